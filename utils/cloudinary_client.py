import io
import cloudinary
import cloudinary.uploader
from fastapi import status
from starlette.concurrency import run_in_threadpool
import logging

from config import CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET, TMDB_IMAGE_BASE_URL
from utils.app_error import AppError

logger = logging.getLogger(__name__)

cloudinary.config(
    cloud_name=CLOUDINARY_CLOUD_NAME,
    api_key=CLOUDINARY_API_KEY,
    api_secret=CLOUDINARY_API_SECRET,
    secure=True
)

# Folders
MOVIE_POSTERS = "parsflix_posters"
MOVIE_BACKDROPS = "parsflix_backdrops"
SERIES_POSTERS = "parsflix_series_posters"
SERIES_BACKDROPS = "parsflix_series_backdrops"
SEASON_POSTERS = "parsflix_season_posters"
EPISODE_STILLS = "parsflix_episode_stills"
PERSON_IMAGES = "parsflix_persons"
PROFILE_PICTURES = "parsflix/profiles"

def tmdb_image_url(path):
    if not path:
        return None
    return f"{TMDB_IMAGE_BASE_URL}{path}"

async def upload_image_from_url(url, folder, public_id=None):
    """
    Copy a remote image (usually from TMDB) into Cloudinary.
    Returns the secure URL, or None when there is nothing to upload or the upload fails.
    """
    if not url:
        return None

    options = {"folder": folder, "overwrite": True, "resource_type": "image"}
    if public_id:
        options["public_id"] = public_id

    try:
        result = await run_in_threadpool(cloudinary.uploader.upload, url, **options)
        return result.get("secure_url")
    except Exception as e:
        logger.warning(f"Cloudinary upload failed for {url}: {str(e)}")
        return None

async def upload_tmdb_image(path, folder, public_id=None):
    return await upload_image_from_url(tmdb_image_url(path), folder, public_id)

async def upload_image_bytes(data: bytes, folder, public_id):
    """Upload an image sent by a client. Failure is an error for the caller."""
    try:
        result = await run_in_threadpool(
            cloudinary.uploader.upload,
            io.BytesIO(data),
            folder=folder,
            public_id=public_id,
            overwrite=True,
            resource_type="image"
        )
    except Exception as e:
        logger.error(f"Cloudinary upload failed for {folder}/{public_id}: {str(e)}")
        raise AppError("Image upload failed.", status.HTTP_500_INTERNAL_SERVER_ERROR)

    url = result.get("secure_url")
    if not url:
        raise AppError("Image upload failed.", status.HTTP_500_INTERNAL_SERVER_ERROR)
    return url
