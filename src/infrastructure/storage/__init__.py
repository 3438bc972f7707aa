"""
Object storage integration for uploaded files.

Targets MinIO through boto3's S3-compatible client.
"""

from .client import (
    DeleteFailed,
    ObjectStorageGateway,
    StorageConfig,
    StorageError,
    StorageUnavailable,
    UploadFailed,
    UrlGenerationFailed,
    create_storage_gateway,
)

__all__ = [
    "DeleteFailed",
    "ObjectStorageGateway",
    "StorageConfig",
    "StorageError",
    "StorageUnavailable",
    "UploadFailed",
    "UrlGenerationFailed",
    "create_storage_gateway",
]
