from fastapi import HTTPException, status
from typing import Optional, Dict, Any, List
from bson import ObjectId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError
import asyncio
import logging
import re
from datetime import datetime

from database import client, series_collection, season_collection, episode_collection, serialize_doc, invalidate_public_cache
from models.enums import SeriesStatus
from controllers.catalog_utils import (
    parse_tmdb_id, ensure_object_id, parse_date, build_sort, page_window, total_pages,
    owner_filter, assert_can_manage, upsert_genres, build_credits,
    hydrate, attach_genre_names, coerce_update
)
from utils.app_error import AppError
from utils import tmdb
from utils.cloudinary_client import (
    upload_tmdb_image, upload_image_bytes,
    SERIES_POSTERS, SERIES_BACKDROPS, SEASON_POSTERS, EPISODE_STILLS
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "بدون عنوان"
TRANSACTION_TIMEOUT_MS = 60000
ADMIN_SORT_FIELDS = [
    "title", "firstAirDate", "lastAirDate", "createdAt", "popularity",
    "status", "tmdbId", "numberOfSeasons", "numberOfEpisodes"
]
IMAGE_TARGETS = {
    "poster": ("posterPath", SERIES_POSTERS),
    "backdrop": ("backdropPath", SERIES_BACKDROPS),
}

async def get_series_or_404(series_id: str) -> dict:
    series = await series_collection.find_one({"_id": ensure_object_id(series_id, "series ID")})
    if not series:
        raise AppError("Series not found", status.HTTP_404_NOT_FOUND)
    return series

async def load_seasons_with_episodes(series_id: ObjectId, season_filter: Optional[dict] = None,
                                     episode_filter: Optional[dict] = None) -> List[dict]:
    """Seasons sorted by number, each with its episodes sorted by number"""
    season_query = {"seriesId": series_id}
    season_query.update(season_filter or {})
    seasons = await season_collection.find(season_query).sort("seasonNumber", ASCENDING).to_list(length=None)
    if not seasons:
        return []

    episode_query = {"seasonId": {"$in": [s["_id"] for s in seasons]}}
    episode_query.update(episode_filter or {})
    episodes = await episode_collection.find(episode_query).sort(
        [("seasonNumber", ASCENDING), ("episodeNumber", ASCENDING)]
    ).to_list(length=None)

    by_season = {}
    for episode in episodes:
        by_season.setdefault(episode["seasonId"], []).append(serialize_doc(episode))

    result = []
    for season in seasons:
        item = serialize_doc(season)
        item["episodes"] = by_season.get(season["_id"], [])
        result.append(item)
    return result

async def prepare_seasons(tmdb_id: int, tmdb_seasons: List[dict]) -> List[dict]:
    """
    Upload season posters and episode stills and fetch episode lists.
    Runs before the transaction; a season whose details fail keeps no episodes.
    """
    prepared = []
    for tmdb_season in tmdb_seasons or []:
        season_number = tmdb_season.get("season_number")
        if season_number is None:
            continue

        poster_url = await upload_tmdb_image(
            tmdb_season.get("poster_path"), SEASON_POSTERS, f"series_{tmdb_id}_season_{season_number}_poster"
        )
        season_doc = {
            "tmdbId": tmdb_season.get("id"),
            "seasonNumber": season_number,
            "name": tmdb_season.get("name"),
            "overview": tmdb_season.get("overview") or None,
            "airDate": parse_date(tmdb_season.get("air_date")),
            "posterPath": poster_url,
            "episodeCount": tmdb_season.get("episode_count"),
        }

        episodes = []
        try:
            season_details = await tmdb.get_season_details(tmdb_id, season_number)
            for tmdb_episode in season_details.get("episodes") or []:
                episode_number = tmdb_episode.get("episode_number")
                if not tmdb_episode.get("id") or not episode_number:
                    continue
                still_url = await upload_tmdb_image(
                    tmdb_episode.get("still_path"), EPISODE_STILLS,
                    f"series_{tmdb_id}_s{season_number}_e{episode_number}_still"
                )
                episodes.append({
                    "tmdbId": tmdb_episode["id"],
                    "episodeNumber": episode_number,
                    "seasonNumber": season_number,
                    "title": tmdb_episode.get("name"),
                    "overview": tmdb_episode.get("overview") or None,
                    "airDate": parse_date(tmdb_episode.get("air_date")),
                    "runtime": tmdb_episode.get("runtime"),
                    "stillPath": still_url,
                })
        except Exception as e:
            logger.error(f"Failed to load season {season_number} of series {tmdb_id}: {str(e)}")

        prepared.append({"season": season_doc, "episodes": episodes})
    return prepared

async def create_series(tmdb_id, series_status: SeriesStatus, user: dict):
    try:
        tmdb_id = parse_tmdb_id(tmdb_id)

        existing = await series_collection.find_one({"tmdbId": tmdb_id}, {"_id": 1})
        if existing:
            raise AppError(f"A series with TMDB ID {tmdb_id} already exists.", status.HTTP_409_CONFLICT)

        details = await tmdb.get_series_details(tmdb_id)

        poster_url, backdrop_url = await asyncio.gather(
            upload_tmdb_image(details.get("poster_path"), SERIES_POSTERS, f"series_{tmdb_id}_poster"),
            upload_tmdb_image(details.get("backdrop_path"), SERIES_BACKDROPS, f"series_{tmdb_id}_backdrop"),
        )

        genre_ids = await upsert_genres(details.get("genres"))
        credits = await build_credits(details.get("credits"), details.get("created_by"))
        seasons = await prepare_seasons(tmdb_id, details.get("seasons"))

        vote_average = details.get("vote_average")
        now = datetime.now()
        series_doc = {
            "tmdbId": tmdb_id,
            "title": details.get("name") or DEFAULT_TITLE,
            "originalTitle": details.get("original_name"),
            "tagline": details.get("tagline") or None,
            "description": details.get("overview") or None,
            "firstAirDate": parse_date(details.get("first_air_date")),
            "lastAirDate": parse_date(details.get("last_air_date")),
            "status": SeriesStatus(series_status or SeriesStatus.PENDING).value,
            "tmdbStatus": details.get("status"),
            "type": details.get("type"),
            "originalLanguage": details.get("original_language"),
            "popularity": details.get("popularity"),
            "numberOfSeasons": details.get("number_of_seasons"),
            "numberOfEpisodes": details.get("number_of_episodes"),
            "homepage": details.get("homepage") or None,
            "adult": bool(details.get("adult", False)),
            "posterPath": poster_url,
            "backdropPath": backdrop_url,
            "imdbRating": round(vote_average, 1) if vote_average is not None else None,
            "genreIds": genre_ids,
            "credits": credits,
            "addedBy": ObjectId(user["_id"]),
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            async with await client.start_session() as session:
                async with session.start_transaction(max_commit_time_ms=TRANSACTION_TIMEOUT_MS):
                    result = await series_collection.insert_one(series_doc, session=session)
                    series_id = result.inserted_id
                    for entry in seasons:
                        season_doc = dict(entry["season"], seriesId=series_id)
                        season_result = await season_collection.insert_one(season_doc, session=session)
                        if entry["episodes"]:
                            await episode_collection.insert_many(
                                [dict(ep, seriesId=series_id, seasonId=season_result.inserted_id) for ep in entry["episodes"]],
                                session=session
                            )
        except DuplicateKeyError:
            raise AppError(f"A series with TMDB ID {tmdb_id} already exists.", status.HTTP_409_CONFLICT)
        except Exception as e:
            logger.error(f"Transaction failed while creating series {tmdb_id}: {str(e)}")
            raise AppError("Failed to save the series to the database.", status.HTTP_500_INTERNAL_SERVER_ERROR)

        await invalidate_public_cache()
        logger.info(f"Series {tmdb_id} created by {user['_id']} with {len(seasons)} seasons")
        return {"success": True, "data": await hydrate_series(series_id)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in create_series: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def hydrate_series(series_id: ObjectId) -> dict:
    series = await series_collection.find_one({"_id": series_id})
    if not series:
        raise AppError("Series not found", status.HTTP_404_NOT_FOUND)
    result = await hydrate(series)
    result["seasons"] = await load_seasons_with_episodes(series_id)
    return result

async def get_admin_series(user: dict, page: int = 1, limit: int = 10, sort_by: str = "createdAt",
                           sort_order: str = "desc", search: Optional[str] = None):
    try:
        page, limit, skip = page_window(page, limit)
        base_filter = owner_filter(user)
        if base_filter is None:
            return {"success": True, "data": {"series": [], "totalSeries": 0, "totalPages": 0, "currentPage": page, "limit": limit}}

        query = dict(base_filter)
        if search:
            search_regex = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [{"title": search_regex}, {"originalTitle": search_regex}]

        field, direction = build_sort(sort_by, sort_order, ADMIN_SORT_FIELDS, "createdAt")
        cursor = series_collection.find(query, {"credits": 0}).sort(field, direction).skip(skip).limit(limit)
        series = await attach_genre_names(await cursor.to_list(length=limit))
        total = await series_collection.count_documents(query)

        return {
            "success": True,
            "data": {
                "series": series,
                "totalSeries": total,
                "totalPages": total_pages(total, limit),
                "currentPage": page,
                "limit": limit,
            }
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_admin_series: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_admin_series_by_id(series_id: str):
    try:
        series = await get_series_or_404(series_id)
        return {"success": True, "data": await hydrate_series(series["_id"])}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_admin_series_by_id: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def update_series(series_id: str, series_data: Dict[str, Any], user: dict):
    try:
        series = await get_series_or_404(series_id)
        assert_can_manage(user, series, "series")

        if not series_data:
            raise AppError("No valid fields were provided for update.", status.HTTP_400_BAD_REQUEST)

        update = coerce_update(series_data)
        update["updatedAt"] = datetime.now()
        await series_collection.update_one({"_id": series["_id"]}, {"$set": update})
        await invalidate_public_cache()

        return {"success": True, "data": await hydrate_series(series["_id"])}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_series: {str(e)}")
        raise AppError(str(e), status.HTTP_400_BAD_REQUEST)

async def update_series_image(series_id: str, kind: str, image: bytes, user: dict):
    try:
        field, folder = IMAGE_TARGETS[kind]
        series = await get_series_or_404(series_id)
        assert_can_manage(user, series, "series")

        url = await upload_image_bytes(image, folder, f"series_{series['tmdbId']}_{kind}")
        await series_collection.update_one(
            {"_id": series["_id"]},
            {"$set": {field: url, "updatedAt": datetime.now()}}
        )
        await invalidate_public_cache()

        return {"success": True, "data": await hydrate_series(series["_id"])}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_series_image: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def delete_series(series_id: str, user: dict):
    try:
        series = await get_series_or_404(series_id)
        assert_can_manage(user, series, "series")

        # Seasons and episodes go with the series
        await episode_collection.delete_many({"seriesId": series["_id"]})
        await season_collection.delete_many({"seriesId": series["_id"]})
        await series_collection.delete_one({"_id": series["_id"]})
        await invalidate_public_cache()

        logger.info(f"Series {series_id} deleted by {user['_id']}")
        return {"success": True, "data": {}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in delete_series: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def search_tmdb_series(query: str, page: int = 1):
    try:
        return {"success": True, "data": await tmdb.search_series(query, page)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in search_tmdb_series: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
