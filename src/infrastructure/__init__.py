"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Object storage (MinIO via the S3 API)

These wrappers translate between external formats and our domain models.
"""
