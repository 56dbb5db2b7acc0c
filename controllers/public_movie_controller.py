from fastapi import HTTPException, status
from typing import Optional
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING
import asyncio
import logging
import re
from datetime import datetime

from config import PUBLIC_CACHE_TTL
from database import movie_collection, genre_collection, serialize_doc, get_cache, set_cache
from models.enums import MovieStatus, CreditType, PUBLIC_MOVIE_STATUSES
from controllers.catalog_utils import ensure_object_id, build_sort, page_window, total_pages, hydrate, attach_genre_names
from utils.app_error import AppError
from utils.media_item import map_to_media_item

logger = logging.getLogger(__name__)

PUBLIC_SORT_FIELDS = ["title", "releaseDate", "popularity", "imdbRating", "rottenTomatoesScore", "createdAt"]
LIST_PROJECTION = {
    "tmdbId": 1, "title": 1, "description": 1, "posterPath": 1, "releaseDate": 1, "runtime": 1,
    "status": 1, "imdbRating": 1, "rottenTomatoesScore": 1, "genreIds": 1
}
DETAIL_CREDIT_LIMIT = 15

async def get_public_movies(page: int = 1, limit: int = 20, sort_by: str = "popularity", sort_order: str = "desc",
                            genre_id: Optional[str] = None, search: Optional[str] = None, country: Optional[str] = None,
                            year: Optional[int] = None, min_imdb_rating: Optional[float] = None):
    try:
        page, limit, skip = page_window(page, limit)
        cache_key = f"public:movies:{page}:{limit}:{sort_by}:{sort_order}:{genre_id}:{search}:{country}:{year}:{min_imdb_rating}"
        cached_data = await get_cache(cache_key)
        if cached_data:
            return cached_data

        query = {"status": {"$in": PUBLIC_MOVIE_STATUSES}, "posterPath": {"$ne": None}}

        if search and search.strip():
            search_regex = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [
                {"title": search_regex},
                {"originalTitle": search_regex},
                {"description": search_regex}
            ]
        if genre_id:
            query["genreIds"] = ensure_object_id(genre_id, "genre ID")
        if year:
            query["releaseDate"] = {"$gte": datetime(year, 1, 1), "$lt": datetime(year + 1, 1, 1)}
        if min_imdb_rating is not None:
            query["imdbRating"] = {"$gte": min_imdb_rating}
        if country and country.strip():
            query["countryOfOrigin"] = {"$regex": re.escape(country.strip()), "$options": "i"}

        field, direction = build_sort(sort_by, sort_order, PUBLIC_SORT_FIELDS, "popularity")
        cursor = movie_collection.find(query, LIST_PROJECTION).sort(field, direction).skip(skip).limit(limit)
        movies = await attach_genre_names(await cursor.to_list(length=limit))
        total = await movie_collection.count_documents(query)

        result = {
            "success": True,
            "data": {
                "movies": movies,
                "totalMovies": total,
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
        logger.error(f"Error in get_public_movies: {str(e)}")
        raise AppError("Failed to fetch movies.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_movie_filter_options():
    try:
        cache_key = "public:movies:filter-options"
        cached_data = await get_cache(cache_key)
        if cached_data:
            return cached_data

        visible = {"status": {"$in": PUBLIC_MOVIE_STATUSES}}
        genre_ids, release_dates, countries = await asyncio.gather(
            movie_collection.distinct("genreIds", visible),
            movie_collection.distinct("releaseDate", dict(visible, releaseDate={"$ne": None})),
            movie_collection.distinct("countryOfOrigin", dict(visible, countryOfOrigin={"$nin": [None, ""]})),
        )

        genres = []
        if genre_ids:
            cursor = genre_collection.find({"_id": {"$in": genre_ids}}, {"name": 1}).sort("name", ASCENDING)
            genres = [serialize_doc(g) async for g in cursor]

        years = sorted({d.year for d in release_dates if isinstance(d, datetime)}, reverse=True)

        result = {
            "success": True,
            "data": {
                "genres": genres,
                "years": years,
                "countries": sorted(c for c in countries if c),
            }
        }
        await set_cache(cache_key, result, PUBLIC_CACHE_TTL)
        return result
    except Exception as e:
        logger.error(f"Error in get_movie_filter_options: {str(e)}")
        raise AppError("Failed to fetch filter options.", status.HTTP_500_INTERNAL_SERVER_ERROR)

def lookup_filter(id_or_tmdb_id: str) -> dict:
    """Numeric values are TMDB ids, anything else must be an ObjectId"""
    if id_or_tmdb_id.isdigit():
        return {"tmdbId": int(id_or_tmdb_id)}
    if ObjectId.is_valid(id_or_tmdb_id):
        return {"_id": ObjectId(id_or_tmdb_id)}
    return None

async def get_public_movie_details(id_or_tmdb_id: str):
    try:
        cache_key = f"public:movie:{id_or_tmdb_id}"
        cached_data = await get_cache(cache_key)
        if cached_data:
            return cached_data

        query = lookup_filter(id_or_tmdb_id)
        movie = await movie_collection.find_one(query) if query else None
        if not movie:
            raise AppError(f"Movie '{id_or_tmdb_id}' not found.", status.HTTP_404_NOT_FOUND)

        if movie.get("status") not in PUBLIC_MOVIE_STATUSES:
            raise AppError("This movie is not publicly available right now.", status.HTTP_403_FORBIDDEN)

        data = await hydrate(
            movie,
            credit_roles=[CreditType.ACTOR.value, CreditType.DIRECTOR.value],
            credit_limit=DETAIL_CREDIT_LIMIT
        )
        data.pop("addedBy", None)

        result = {"success": True, "data": data}
        await set_cache(cache_key, result, PUBLIC_CACHE_TTL)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_public_movie_details: {str(e)}")
        raise AppError("Failed to fetch movie details.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_newest_movies_slider(limit: int = 10):
    try:
        cache_key = f"content:newest-movies:{limit}"
        cached_data = await get_cache(cache_key)
        if cached_data:
            return cached_data

        query = {"status": MovieStatus.PUBLISHED.value, "posterPath": {"$ne": None}, "backdropPath": {"$ne": None}}
        cursor = movie_collection.find(query, {"credits": 0}).sort("releaseDate", DESCENDING).limit(limit)
        movies = await attach_genre_names(await cursor.to_list(length=limit))

        result = {"success": True, "data": [map_to_media_item(m, "movie") for m in movies]}
        await set_cache(cache_key, result, PUBLIC_CACHE_TTL)
        return result
    except Exception as e:
        logger.error(f"Error in get_newest_movies_slider: {str(e)}")
        raise AppError("Failed to fetch newest movies.", status.HTTP_500_INTERNAL_SERVER_ERROR)
