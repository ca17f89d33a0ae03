import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from gallery.config import Settings
from gallery.services.validation import (
    INVALID_TYPE_MESSAGE,
    UploadRejected,
    size_limit_message,
    validate_content_type,
    validate_size,
    validate_upload,
)

MAX = 5 * 1024 * 1024


@pytest.mark.parametrize("content_type", ["image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp", "IMAGE/PNG"])
def test_allowed_types_pass(content_type):
    validate_content_type(content_type, Settings(_env_file=None).allowed_content_types)


@pytest.mark.parametrize("content_type", ["application/pdf", "image/svg+xml", "text/plain", "", None])
def test_other_types_rejected(content_type):
    with pytest.raises(UploadRejected, match="Invalid file type"):
        validate_content_type(content_type, Settings(_env_file=None).allowed_content_types)


def test_size_boundary():
    validate_size(MAX, MAX)
    validate_size(None, MAX)
    with pytest.raises(UploadRejected) as exc_info:
        validate_size(MAX + 1, MAX)
    assert str(exc_info.value) == "File size too large. Maximum size is 5MB."


def test_size_message_for_non_megabyte_limits():
    assert size_limit_message(10) == "File size too large. Maximum size is 10 bytes."


def test_type_is_checked_before_size():
    upload = UploadFile(
        file=io.BytesIO(b"x"),
        filename="doc.pdf",
        size=MAX + 1,
        headers=Headers({"content-type": "application/pdf"}),
    )
    with pytest.raises(UploadRejected) as exc_info:
        validate_upload(upload, Settings(_env_file=None))
    assert str(exc_info.value) == INVALID_TYPE_MESSAGE
