from loguru import logger
from starlette.datastructures import UploadFile

from gallery.config import Settings

INVALID_TYPE_MESSAGE = "Invalid file type. Only JPEG, PNG, GIF, and WebP images are allowed."


class UploadRejected(ValueError):
    pass


def size_limit_message(max_bytes: int) -> str:
    if max_bytes % (1024 * 1024) == 0:
        return f"File size too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
    return f"File size too large. Maximum size is {max_bytes} bytes."


def validate_content_type(content_type: str | None, allowed: frozenset[str]) -> None:
    if (content_type or "").lower() not in allowed:
        raise UploadRejected(INVALID_TYPE_MESSAGE)


def validate_size(size: int | None, max_bytes: int) -> None:
    if size is not None and size > max_bytes:
        raise UploadRejected(size_limit_message(max_bytes))


def validate_upload(upload: UploadFile, app_settings: Settings) -> None:
    validate_content_type(upload.content_type, app_settings.allowed_content_types)
    validate_size(upload.size, app_settings.max_upload_bytes)
    logger.debug(
        "Upload validated filename={} content_type={} size_bytes={}",
        upload.filename,
        upload.content_type,
        upload.size,
    )
