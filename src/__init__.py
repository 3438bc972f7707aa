"""
Tomato Storage Gateway - file storage service backed by MinIO.

This package contains the complete application:
- core: Framework-agnostic file models and object naming
- infrastructure: External service integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
