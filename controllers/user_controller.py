from fastapi import HTTPException, status
from typing import Dict, Any
from bson import ObjectId
import logging
from datetime import datetime

from database import user_collection, serialize_doc
from utils.app_error import AppError
from utils.auth import sanitize_user
from utils.cloudinary_client import upload_image_bytes, PROFILE_PICTURES

logger = logging.getLogger(__name__)

async def _load_user(user_id: str) -> dict:
    user = await user_collection.find_one({"_id": ObjectId(user_id)})
    if not user:
        raise AppError("User not found", status.HTTP_404_NOT_FOUND)
    return sanitize_user(serialize_doc(user))

async def get_profile(current_user: dict):
    try:
        return {"success": True, "data": {"user": await _load_user(current_user["_id"])}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_profile: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def update_profile(current_user: dict, profile_data: Dict[str, Any]):
    try:
        if not profile_data:
            raise AppError("No valid fields were provided for update.", status.HTTP_400_BAD_REQUEST)

        update = {k: (v.value if hasattr(v, "value") else v) for k, v in profile_data.items()}
        update["updatedAt"] = datetime.now()

        await user_collection.update_one({"_id": ObjectId(current_user["_id"])}, {"$set": update})
        return {"success": True, "data": {"user": await _load_user(current_user["_id"])}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_profile: {str(e)}")
        raise AppError(str(e), status.HTTP_400_BAD_REQUEST)

async def update_profile_picture(current_user: dict, image: bytes):
    try:
        url = await upload_image_bytes(image, PROFILE_PICTURES, f"user_{current_user['_id']}")
        await user_collection.update_one(
            {"_id": ObjectId(current_user["_id"])},
            {"$set": {"profilePictureUrl": url, "updatedAt": datetime.now()}}
        )
        return {"success": True, "data": {"user": await _load_user(current_user["_id"])}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_profile_picture: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
