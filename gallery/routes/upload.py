from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from starlette.datastructures import UploadFile

from gallery.config import Settings
from gallery.models.image import ErrorBody, UploadResult
from gallery.services.rate_limit import enforce_upload_rate_limit
from gallery.services.storage import save_upload
from gallery.services.validation import UploadRejected, size_limit_message, validate_upload

router = APIRouter(prefix="/api", tags=["upload"])

FIELD_NAME = "image"
# Boundaries, part headers and a filename on top of the file bytes.
MULTIPART_OVERHEAD = 64 * 1024

_ERROR_RESPONSES = {400: {"model": ErrorBody}, 429: {"model": ErrorBody}, 500: {"model": ErrorBody}}


def _check_content_length(request: Request, max_bytes: int) -> None:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes + MULTIPART_OVERHEAD:
        logger.warning("Upload rejected before parsing content_length={} max_bytes={}", declared, max_bytes)
        raise HTTPException(status_code=400, detail=size_limit_message(max_bytes))


# The form is read here rather than declared as a File parameter so that the
# rate limit dependency runs before any of the body is parsed.
@router.post(
    "/upload",
    response_model=UploadResult,
    responses=_ERROR_RESPONSES,
    dependencies=[Depends(enforce_upload_rate_limit)],
)
async def upload_image(request: Request) -> UploadResult:
    app_settings: Settings = request.app.state.settings
    _check_content_length(request, app_settings.max_upload_bytes)

    form = await request.form()
    try:
        files = [part for part in form.getlist(FIELD_NAME) if isinstance(part, UploadFile)]
        if len(files) > 1:
            logger.warning("Upload rejected reason=multiple_files file_count={}", len(files))
            raise HTTPException(status_code=400, detail="Only one file may be uploaded per request")
        if not files or not files[0].filename:
            logger.warning("Upload rejected reason=no_file")
            raise HTTPException(status_code=400, detail="No file uploaded")
        image = files[0]

        logger.info(
            "Upload request filename={} content_type={} size_bytes={}",
            image.filename,
            image.content_type,
            image.size,
        )
        try:
            validate_upload(image, app_settings)
            saved = await save_upload(image, app_settings.upload_path, app_settings.max_upload_bytes)
        except UploadRejected as exc:
            logger.warning(
                "Upload rejected filename={} content_type={} error={}",
                image.filename,
                image.content_type,
                str(exc),
            )
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except OSError as exc:
            logger.exception("Upload write failed filename={} error={}", image.filename, str(exc))
            raise HTTPException(status_code=500, detail="Failed to save uploaded file") from exc
    finally:
        await form.close()

    logger.info(
        "Upload stored filename={} original_name={} size_bytes={}",
        saved.filename,
        saved.original_name,
        saved.size,
    )
    return saved
