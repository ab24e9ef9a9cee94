"""Tests for attachment upload screening."""

from __future__ import annotations

import pytest

from tripguard.security.errors import InputRejected
from tripguard.security.uploads import (
    DEFAULT_MAX_UPLOAD_BYTES,
    ScreenedUpload,
    UploadPolicy,
    screen_upload,
)

PDF_BYTES = b"%PDF-1.7\n%\xe2\xe3\xcf\xd3\n1 0 obj\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
EXE_BYTES = b"MZ\x90\x00\x03\x00\x00\x00\x04\x00\x00\x00\xff\xff"


class TestScreenUpload:
    def test_accepts_matching_pdf(self):
        result = screen_upload("itinerary.pdf", "application/pdf", PDF_BYTES)
        assert result == ScreenedUpload(
            filename="itinerary.pdf",
            content_type="application/pdf",
            size=len(PDF_BYTES),
        )

    def test_sanitizes_filename(self):
        result = screen_upload("../../../etc/passwd", "image/png", PNG_BYTES)
        assert "/" not in result.filename
        assert result.filename == ".._.._.._etc_passwd"

    def test_empty_filename_gets_placeholder(self):
        assert screen_upload("", "image/png", PNG_BYTES).filename == "upload"

    def test_rejects_empty_file(self):
        with pytest.raises(InputRejected, match="File is required"):
            screen_upload("empty.pdf", "application/pdf", b"")

    def test_rejects_oversized_file(self):
        data = b"%PDF" + b"\x00" * DEFAULT_MAX_UPLOAD_BYTES
        with pytest.raises(InputRejected) as exc_info:
            screen_upload("big.pdf", "application/pdf", data)
        assert exc_info.value.message == "File size must be 10MB or less"

    def test_custom_size_limit(self):
        policy = UploadPolicy(max_bytes=2048)
        with pytest.raises(InputRejected, match="2KB"):
            screen_upload("big.pdf", "application/pdf", PDF_BYTES * 100, policy=policy)

    def test_rejects_disallowed_type(self):
        with pytest.raises(InputRejected, match="File type not allowed"):
            screen_upload("page.html", "text/html", b"<html><script></script></html>")

    def test_rejects_spoofed_pdf(self):
        with pytest.raises(InputRejected, match="does not match"):
            screen_upload("invoice.pdf", "application/pdf", EXE_BYTES)

    def test_rejects_png_declared_as_jpeg(self):
        with pytest.raises(InputRejected):
            screen_upload("photo.jpg", "image/jpeg", PNG_BYTES)

    def test_types_without_signature_pass_on_whitelist_alone(self):
        result = screen_upload("boarding.gif", "image/gif", b"GIF89a\x01\x00\x01\x00")
        assert result.content_type == "image/gif"

    def test_policy_whitelist_is_respected(self):
        policy = UploadPolicy(allowed_mime_types=frozenset({"application/pdf"}))
        with pytest.raises(InputRejected, match="File type not allowed"):
            screen_upload("photo.png", "image/png", PNG_BYTES, policy=policy)

    def test_rejection_is_a_value_error(self):
        with pytest.raises(ValueError):
            screen_upload("x.pdf", "application/pdf", b"")
