from fastapi import APIRouter, HTTPException, Request
from loguru import logger

from gallery.config import Settings
from gallery.models.image import ErrorBody, ImageList
from gallery.services.storage import list_images

router = APIRouter(prefix="/api", tags=["images"])


@router.get("/images", response_model=ImageList, responses={500: {"model": ErrorBody}})
async def get_images(request: Request) -> ImageList:
    app_settings: Settings = request.app.state.settings
    try:
        records = await list_images(app_settings.upload_path, app_settings.placeholder_name)
    except OSError as exc:
        logger.exception("Listing failed upload_dir={} error={}", app_settings.upload_dir, str(exc))
        raise HTTPException(status_code=500, detail="Failed to read uploads directory") from exc
    return ImageList(images=records)
