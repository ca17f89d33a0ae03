import asyncio
import stat
from datetime import datetime, timezone
from pathlib import Path

import aiofiles
import aiofiles.os
from loguru import logger
from starlette.datastructures import UploadFile

from gallery.models.image import ImageRecord, UploadResult
from gallery.services.naming import build_storage_name, public_path
from gallery.services.validation import UploadRejected, size_limit_message

CHUNK_SIZE = 64 * 1024


def ensure_storage_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Storage directory ready path={}", str(path))
    return path


async def _discard_partial(destination: Path) -> None:
    try:
        await aiofiles.os.remove(destination)
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Partial upload not removed destination={} error={}", str(destination), str(exc))
        return
    logger.debug("Partial upload removed destination={}", str(destination))


async def save_upload(upload: UploadFile, upload_dir: Path, max_bytes: int) -> UploadResult:
    """Raises UploadRejected or OSError; neither leaves a file behind."""
    original_name = upload.filename or ""
    storage_name = build_storage_name(original_name)
    destination = upload_dir / storage_name

    written = 0
    try:
        async with aiofiles.open(destination, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                written += len(chunk)
                if written > max_bytes:
                    raise UploadRejected(size_limit_message(max_bytes))
                await out.write(chunk)
    except BaseException:
        await _discard_partial(destination)
        raise

    logger.debug(
        "File saved storage_name={} destination={} size_bytes={}",
        storage_name,
        str(destination),
        written,
    )
    return UploadResult(
        filename=storage_name,
        original_name=original_name,
        size=written,
        path=public_path(storage_name),
    )


async def _stat_record(upload_dir: Path, name: str) -> ImageRecord | None:
    info = await aiofiles.os.stat(upload_dir / name)
    if not stat.S_ISREG(info.st_mode):
        return None
    return ImageRecord(
        filename=name,
        path=public_path(name),
        size=info.st_size,
        uploaded_at=datetime.fromtimestamp(info.st_mtime, tz=timezone.utc),
    )


async def list_images(upload_dir: Path, placeholder_name: str) -> list[ImageRecord]:
    names = [name for name in await aiofiles.os.listdir(upload_dir) if name != placeholder_name]
    stats = await asyncio.gather(*(_stat_record(upload_dir, name) for name in names))
    records = [record for record in stats if record is not None]
    records.sort(key=lambda record: record.uploaded_at, reverse=True)
    logger.debug("Listed images upload_dir={} count={}", str(upload_dir), len(records))
    return records
