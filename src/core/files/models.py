"""
Domain models for uploaded files.

A FileDescriptor is what a caller hands over for one upload: the bytes
plus the little metadata we attach to the stored object. The gateway
keeps no reference to it after the call returns.
"""

import secrets
from dataclasses import dataclass
from typing import Optional

DEFAULT_FOLDER = "tasks"

# 16 random bytes -> 32 hex chars
OBJECT_ID_BYTES = 16


@dataclass(frozen=True)
class FileDescriptor:
    """
    One file to upload.

    Field names follow what multipart upload handlers hand us:
    the raw buffer, its declared size, MIME type and the client-side
    filename.
    """
    buffer: bytes
    size: int
    mimetype: str
    originalname: str

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError("File size cannot be negative")
        if not self.mimetype:
            raise ValueError("File mimetype cannot be empty")

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        originalname: str,
        mimetype: str = "application/octet-stream",
    ) -> "FileDescriptor":
        """Build a descriptor whose size is the buffer length."""
        return cls(
            buffer=data,
            size=len(data),
            mimetype=mimetype,
            originalname=originalname,
        )

    @property
    def extension(self) -> Optional[str]:
        return file_extension(self.originalname)


def file_extension(originalname: str) -> Optional[str]:
    """
    Return the text after the last dot, or None.

    "photo.tar.gz" -> "gz", "README" -> None, "trailing." -> None
    """
    if "." not in originalname:
        return None
    ext = originalname.rsplit(".", 1)[-1]
    return ext or None


def generate_object_id() -> str:
    """
    Random object id: 128 bits from the OS CSPRNG, hex encoded.

    Collisions are not checked for. At 128 bits they are not a
    practical concern.
    """
    return secrets.token_hex(OBJECT_ID_BYTES)


def build_object_name(originalname: str, folder: str = DEFAULT_FOLDER) -> str:
    """
    Derive a destination key: folder/<random-id>.<original-extension>.

    The original filename itself never becomes part of the key, only
    its extension. Files without an extension get a bare id.
    """
    name = generate_object_id()
    ext = file_extension(originalname)
    if ext:
        name = f"{name}.{ext}"

    prefix = folder.strip("/")
    if not prefix:
        return name
    return f"{prefix}/{name}"
