"""
Image uploads, proxied to Cloudinary.

Nothing is stored locally: the bytes go straight to Cloudinary under
``portfolio/<type>`` through the Cloudinary SDK and the hosted URL is
returned.
"""

import io
import logging
import re
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
from fastapi import APIRouter, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool

import config
from errors import ApiError

logger = logging.getLogger(__name__)

FOLDER_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

router = APIRouter()


def credentials_configured() -> bool:
    return bool(config.CLOUDINARY_CLOUD_NAME and config.CLOUDINARY_API_KEY and config.CLOUDINARY_API_SECRET)


def upload_to_cloudinary(data: bytes, filename: str, folder: str) -> dict:
    """Blocking SDK upload; run it off the event loop."""
    cloudinary.config(
        cloud_name=config.CLOUDINARY_CLOUD_NAME,
        api_key=config.CLOUDINARY_API_KEY,
        api_secret=config.CLOUDINARY_API_SECRET,
        secure=True,
    )
    stream = io.BytesIO(data)
    stream.name = filename
    return cloudinary.uploader.upload(stream, folder=folder, resource_type="auto")


@router.post("")
async def upload(
    file: Optional[UploadFile] = File(None),
    folder_type: str = Form("general", alias="type"),
):
    if file is None or not file.filename:
        raise ApiError(400, "No file provided")
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise ApiError(400, "Please select an image file")
    data = await file.read()
    if len(data) > config.MAX_UPLOAD_BYTES:
        raise ApiError(400, "Image size should be less than 5MB")
    if not credentials_configured():
        logger.warning("Cloudinary credentials are not set; rejecting upload")
        raise ApiError(500, "Failed to upload image", details="Image host credentials are not configured")

    folder = f"portfolio/{folder_type if FOLDER_PATTERN.match(folder_type) else 'general'}"
    try:
        result = await run_in_threadpool(upload_to_cloudinary, data, file.filename, folder)
    except cloudinary.exceptions.Error as exc:
        logger.error("Upload of %s failed: %s", file.filename, exc)
        raise ApiError(500, "Failed to upload image", details=str(exc))

    logger.info("Uploaded %s to %s", file.filename, result.get("public_id"))
    return {
        "success": True,
        "url": result.get("secure_url"),
        "publicId": result.get("public_id"),
        "width": result.get("width"),
        "height": result.get("height"),
    }
