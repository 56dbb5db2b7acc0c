from fastapi import HTTPException, status
from typing import Optional
import logging
import re
from datetime import datetime

from config import PUBLIC_CACHE_TTL
from database import series_collection, get_cache, set_cache
from models.enums import CreditType, PUBLIC_SERIES_STATUSES, PUBLIC_SERIES_DETAIL_STATUSES
from controllers.catalog_utils import ensure_object_id, build_sort, page_window, total_pages, hydrate, attach_genre_names
from controllers.public_movie_controller import lookup_filter
from controllers.series_controller import load_seasons_with_episodes
from utils.app_error import AppError

logger = logging.getLogger(__name__)

PUBLIC_SORT_FIELDS = ["title", "firstAirDate", "popularity", "imdbRating", "createdAt", "numberOfSeasons"]
LIST_PROJECTION = {
    "tmdbId": 1, "title": 1, "description": 1, "posterPath": 1, "backdropPath": 1, "firstAirDate": 1,
    "status": 1, "imdbRating": 1, "numberOfSeasons": 1, "numberOfEpisodes": 1, "genreIds": 1
}
DETAIL_CREDIT_LIMIT = 15

async def get_public_series(page: int = 1, limit: int = 10, sort_by: str = "popularity", sort_order: str = "desc",
                            genre_id: Optional[str] = None, search: Optional[str] = None):
    try:
        page, limit, skip = page_window(page, limit)
        cache_key = f"public:series:{page}:{limit}:{sort_by}:{sort_order}:{genre_id}:{search}"
        cached_data = await get_cache(cache_key)
        if cached_data:
            return cached_data

        query = {"status": {"$in": PUBLIC_SERIES_STATUSES}, "posterPath": {"$ne": None}}
        if search and search.strip():
            search_regex = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [
                {"title": search_regex},
                {"originalTitle": search_regex},
                {"description": search_regex}
            ]
        if genre_id:
            query["genreIds"] = ensure_object_id(genre_id, "genre ID")

        field, direction = build_sort(sort_by, sort_order, PUBLIC_SORT_FIELDS, "popularity")
        cursor = series_collection.find(query, LIST_PROJECTION).sort(field, direction).skip(skip).limit(limit)
        series = await attach_genre_names(await cursor.to_list(length=limit))
        total = await series_collection.count_documents(query)

        result = {
            "success": True,
            "data": {
                "series": series,
                "totalSeries": total,
                "totalPages": total_pages(total, limit),
                "currentPage": page,
                "limit": limit,
            }
        }
        await set_cache(cache_key, result, PUBLIC_CACHE_TTL)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_public_series: {str(e)}")
        raise AppError("Failed to fetch series.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_public_series_details(id_or_tmdb_id: str):
    try:
        cache_key = f"public:series-detail:{id_or_tmdb_id}"
        cached_data = await get_cache(cache_key)
        if cached_data:
            return cached_data

        query = lookup_filter(id_or_tmdb_id)
        series = await series_collection.find_one(query) if query else None
        if not series:
            raise AppError(f"Series '{id_or_tmdb_id}' not found.", status.HTTP_404_NOT_FOUND)

        if series.get("status") not in PUBLIC_SERIES_DETAIL_STATUSES:
            raise AppError("This series is not publicly available right now.", status.HTTP_403_FORBIDDEN)

        data = await hydrate(
            series,
            credit_roles=[CreditType.ACTOR.value, CreditType.DIRECTOR.value],
            credit_limit=DETAIL_CREDIT_LIMIT
        )
        data.pop("addedBy", None)

        # Only what has aired, specials (season 0) are hidden
        now = datetime.now()
        data["seasons"] = await load_seasons_with_episodes(
            series["_id"],
            season_filter={"airDate": {"$lte": now}, "seasonNumber": {"$ne": 0}},
            episode_filter={"airDate": {"$lte": now}}
        )

        result = {"success": True, "data": data}
        await set_cache(cache_key, result, PUBLIC_CACHE_TTL)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_public_series_details: {str(e)}")
        raise AppError("Failed to fetch series details.", status.HTTP_500_INTERNAL_SERVER_ERROR)
