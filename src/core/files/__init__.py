"""
Uploaded file descriptors and object key derivation.
"""

from .models import (
    DEFAULT_FOLDER,
    FileDescriptor,
    build_object_name,
    file_extension,
    generate_object_id,
)

__all__ = [
    "DEFAULT_FOLDER",
    "FileDescriptor",
    "build_object_name",
    "file_extension",
    "generate_object_id",
]
