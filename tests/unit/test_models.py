"""
Unit tests for file descriptors and object naming.

No storage backend involved.
"""

import re

import pytest

from src.core.files.models import (
    FileDescriptor,
    build_object_name,
    file_extension,
    generate_object_id,
)

HEX_ID = r"[0-9a-f]{32}"


# ---------------------------------------------------------------------------
# FileDescriptor Tests
# ---------------------------------------------------------------------------

class TestFileDescriptor:
    """Tests for the FileDescriptor value object."""

    def test_from_bytes_uses_buffer_length(self):
        file = FileDescriptor.from_bytes(b"hello", "a.txt", "text/plain")

        assert file.size == 5
        assert file.mimetype == "text/plain"
        assert file.originalname == "a.txt"

    def test_rejects_negative_size(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            FileDescriptor(buffer=b"", size=-1, mimetype="text/plain", originalname="a.txt")

    def test_rejects_empty_mimetype(self):
        with pytest.raises(ValueError, match="mimetype"):
            FileDescriptor(buffer=b"x", size=1, mimetype="", originalname="a.txt")

    def test_extension_property(self):
        file = FileDescriptor.from_bytes(b"x", "photo.JPG")
        assert file.extension == "JPG"


# ---------------------------------------------------------------------------
# Naming Tests
# ---------------------------------------------------------------------------

class TestFileExtension:

    @pytest.mark.parametrize("name, expected", [
        ("a.txt", "txt"),
        ("archive.tar.gz", "gz"),
        ("README", None),
        ("trailing.", None),
        (".env", "env"),
    ])
    def test_extension(self, name, expected):
        assert file_extension(name) == expected


class TestObjectNaming:
    """Tests for destination key derivation."""

    def test_object_id_is_128_bit_hex(self):
        assert re.fullmatch(HEX_ID, generate_object_id())

    def test_object_ids_differ(self):
        ids = {generate_object_id() for _ in range(100)}
        assert len(ids) == 100

    def test_default_folder_is_tasks(self):
        name = build_object_name("report.pdf")
        assert re.fullmatch(rf"tasks/{HEX_ID}\.pdf", name)

    def test_custom_folder(self):
        name = build_object_name("clip.mp4", folder="avatars/2024")
        assert re.fullmatch(rf"avatars/2024/{HEX_ID}\.mp4", name)

    def test_folder_slashes_are_trimmed(self):
        name = build_object_name("a.png", folder="/images/")
        assert re.fullmatch(rf"images/{HEX_ID}\.png", name)

    def test_empty_folder_gives_bare_key(self):
        name = build_object_name("a.png", folder="")
        assert re.fullmatch(rf"{HEX_ID}\.png", name)

    def test_name_without_extension(self):
        name = build_object_name("Makefile")
        assert re.fullmatch(rf"tasks/{HEX_ID}", name)

    def test_original_name_not_in_key(self):
        name = build_object_name("secret-plans.docx")
        assert "secret-plans" not in name
