from fastapi import HTTPException, status
from typing import Dict, Any
import logging
from datetime import datetime

from database import series_collection, season_collection, episode_collection, serialize_doc, invalidate_public_cache
from controllers.catalog_utils import ensure_object_id, assert_can_manage
from utils.app_error import AppError
from utils.cloudinary_client import upload_image_bytes, SEASON_POSTERS, EPISODE_STILLS

logger = logging.getLogger(__name__)

async def _parent_series(series_id, user: dict) -> dict:
    """Seasons and episodes are owned through their series"""
    series = await series_collection.find_one({"_id": series_id}, {"addedBy": 1, "tmdbId": 1})
    if not series:
        raise AppError("Parent series not found", status.HTTP_404_NOT_FOUND)
    assert_can_manage(user, series, "series")
    return series

async def _get_season(season_id: str) -> dict:
    season = await season_collection.find_one({"_id": ensure_object_id(season_id, "season ID")})
    if not season:
        raise AppError("Season not found", status.HTTP_404_NOT_FOUND)
    return season

async def _get_episode(episode_id: str) -> dict:
    episode = await episode_collection.find_one({"_id": ensure_object_id(episode_id, "episode ID")})
    if not episode:
        raise AppError("Episode not found", status.HTTP_404_NOT_FOUND)
    return episode

# SEASON CONTROLLERS
async def update_season(season_id: str, season_data: Dict[str, Any], user: dict):
    try:
        season = await _get_season(season_id)
        await _parent_series(season["seriesId"], user)

        if not season_data:
            raise AppError("No valid fields were provided for update.", status.HTTP_400_BAD_REQUEST)

        season_data["updatedAt"] = datetime.now()
        await season_collection.update_one({"_id": season["_id"]}, {"$set": season_data})
        updated = await season_collection.find_one({"_id": season["_id"]})
        await invalidate_public_cache()

        return {"success": True, "data": serialize_doc(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_season: {str(e)}")
        raise AppError(str(e), status.HTTP_400_BAD_REQUEST)

async def update_season_poster(season_id: str, image: bytes, user: dict):
    try:
        season = await _get_season(season_id)
        series = await _parent_series(season["seriesId"], user)

        url = await upload_image_bytes(
            image, SEASON_POSTERS, f"series_{series['tmdbId']}_season_{season['seasonNumber']}_poster"
        )
        await season_collection.update_one(
            {"_id": season["_id"]},
            {"$set": {"posterPath": url, "updatedAt": datetime.now()}}
        )
        updated = await season_collection.find_one({"_id": season["_id"]})
        await invalidate_public_cache()

        return {"success": True, "data": serialize_doc(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_season_poster: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

# EPISODE CONTROLLERS
async def update_episode(episode_id: str, episode_data: Dict[str, Any], user: dict):
    try:
        episode = await _get_episode(episode_id)
        await _parent_series(episode["seriesId"], user)

        if not episode_data:
            raise AppError("No valid fields were provided for update.", status.HTTP_400_BAD_REQUEST)

        episode_data["updatedAt"] = datetime.now()
        await episode_collection.update_one({"_id": episode["_id"]}, {"$set": episode_data})
        updated = await episode_collection.find_one({"_id": episode["_id"]})
        await invalidate_public_cache()

        return {"success": True, "data": serialize_doc(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_episode: {str(e)}")
        raise AppError(str(e), status.HTTP_400_BAD_REQUEST)

async def update_episode_still(episode_id: str, image: bytes, user: dict):
    try:
        episode = await _get_episode(episode_id)
        series = await _parent_series(episode["seriesId"], user)

        url = await upload_image_bytes(
            image, EPISODE_STILLS,
            f"series_{series['tmdbId']}_s{episode['seasonNumber']}_e{episode['episodeNumber']}_still"
        )
        await episode_collection.update_one(
            {"_id": episode["_id"]},
            {"$set": {"stillPath": url, "updatedAt": datetime.now()}}
        )
        updated = await episode_collection.find_one({"_id": episode["_id"]})
        await invalidate_public_cache()

        return {"success": True, "data": serialize_doc(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_episode_still: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
