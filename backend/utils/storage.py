# backend/utils/storage.py
import logging
import shutil
import time
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile

from config import settings

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}

PUBLIC_PREFIX = "/uploads"


def bucket_dir(bucket: str) -> Path:
    path = Path(settings.UPLOAD_DIR) / bucket
    path.mkdir(parents=True, exist_ok=True)
    return path


def public_url(bucket: str, filename: str) -> str:
    return f"{PUBLIC_PREFIX}/{bucket}/{filename}"


def _local_path(url: str) -> Optional[Path]:
    # Only files we stored ourselves are eligible for removal
    if not url or not url.startswith(PUBLIC_PREFIX + "/"):
        return None
    return Path(settings.UPLOAD_DIR) / url[len(PUBLIC_PREFIX) + 1:]


def remove_stored_file(url: Optional[str]) -> None:
    path = _local_path(url)
    if path is not None and path.exists():
        path.unlink()


def upload_product_image(product_id: int, file: UploadFile, replaces: Optional[str] = None) -> str:
    """Store an uploaded image in the product bucket and return its public URL.

    The previous image (``replaces``) is removed only after the new one is on disk,
    so a failed upload leaves the product with its earlier picture.
    """
    ext = ALLOWED_IMAGE_TYPES.get(file.content_type or "")
    if ext is None:
        raise HTTPException(status_code=415, detail=f"Unsupported image type: {file.content_type}")

    # Check the size before writing anything
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    if size > settings.MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image too large")

    bucket = settings.PRODUCT_IMAGE_BUCKET
    filename = f"{product_id}-{int(time.time() * 1000)}.{ext}"
    save_path = bucket_dir(bucket) / filename
    try:
        with open(save_path, "wb") as buffer:
            shutil.copyfileobj(file.file, buffer)
    except OSError as e:
        logger.exception("Could not store image for product %s", product_id)
        raise HTTPException(status_code=500, detail=f"File save error: {e}")
    finally:
        file.file.close()

    url = public_url(bucket, filename)
    if replaces and replaces != url:
        try:
            remove_stored_file(replaces)
        except OSError:
            logger.warning("Could not remove previous image %s", replaces)
    return url
