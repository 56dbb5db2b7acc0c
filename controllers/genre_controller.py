from fastapi import status
from pymongo import ASCENDING
import logging

from database import genre_collection, serialize_doc
from utils.app_error import AppError

logger = logging.getLogger(__name__)

async def get_all_genres():
    try:
        cursor = genre_collection.find({}, {"name": 1, "tmdbId": 1, "imageUrl": 1}).sort("name", ASCENDING)
        genres = [serialize_doc(genre) async for genre in cursor]
        return {"success": True, "data": {"genres": genres}}
    except Exception as e:
        logger.error(f"Error in get_all_genres: {str(e)}")
        raise AppError("Failed to fetch genres.", status.HTTP_500_INTERNAL_SERVER_ERROR)
