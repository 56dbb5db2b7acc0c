from fastapi import HTTPException, status
from pymongo import ASCENDING, DESCENDING
import asyncio
import logging

from config import PUBLIC_CACHE_TTL
from database import movie_collection, series_collection, get_cache, set_cache
from models.enums import (
    MovieStatus, SeriesStatus, PUBLIC_MOVIE_STATUSES, PUBLIC_SERIES_STATUSES
)
from controllers.catalog_utils import page_window, total_pages, attach_genre_names
from utils.app_error import AppError
from utils.media_item import map_to_media_item

logger = logging.getLogger(__name__)

HAS_POSTER = {"posterPath": {"$ne": None}}
HAS_IMAGES = {"posterPath": {"$ne": None}, "backdropPath": {"$ne": None}}
CARD_PROJECTION = {"credits": 0, "addedBy": 0}
HERO_MOVIES = 3
HERO_SERIES = 2
HERO_SIZE = 5
TOP_LIST_SIZE = 10

async def _fetch_items(collection, query, sort, limit, skip=0):
    cursor = collection.find(query, CARD_PROJECTION).sort(sort).skip(skip).limit(limit)
    return await attach_genre_names(await cursor.to_list(length=limit))

async def _cached(cache_key, builder):
    """Serve a content section from cache or build and cache it"""
    cached_data = await get_cache(cache_key)
    if cached_data:
        return cached_data
    result = {"success": True, "data": await builder()}
    await set_cache(cache_key, result, PUBLIC_CACHE_TTL)
    return result

async def get_hero_items():
    async def build():
        movies, series = await asyncio.gather(
            _fetch_items(movie_collection, dict(HAS_IMAGES, status={"$in": PUBLIC_MOVIE_STATUSES}),
                         [("popularity", DESCENDING)], HERO_MOVIES),
            _fetch_items(series_collection, dict(HAS_IMAGES, status={"$in": PUBLIC_SERIES_STATUSES}),
                         [("popularity", DESCENDING)], HERO_SERIES),
        )
        items = [map_to_media_item(m, "movie") for m in movies] + [map_to_media_item(s, "show") for s in series]
        items = [item for item in items if item is not None]
        items.sort(key=lambda item: item.get("releaseYear") or 0, reverse=True)
        return items[:HERO_SIZE]

    try:
        return await _cached("content:hero-items", build)
    except Exception as e:
        logger.error(f"Error in get_hero_items: {str(e)}")
        raise AppError("Failed to fetch hero items.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_trending_movies(limit: int = 10):
    async def build():
        movies = await _fetch_items(movie_collection, dict(HAS_POSTER, status={"$in": PUBLIC_MOVIE_STATUSES}),
                                    [("popularity", DESCENDING)], limit)
        return [map_to_media_item(m, "movie") for m in movies]

    try:
        return await _cached(f"content:trending-movies:{limit}", build)
    except Exception as e:
        logger.error(f"Error in get_trending_movies: {str(e)}")
        raise AppError("Failed to fetch trending movies.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_recommended_shows(limit: int = 10):
    async def build():
        series = await _fetch_items(series_collection, dict(HAS_POSTER, status={"$in": PUBLIC_SERIES_STATUSES}),
                                    [("popularity", DESCENDING)], limit)
        return [map_to_media_item(s, "show") for s in series]

    try:
        return await _cached(f"content:recommended-shows:{limit}", build)
    except Exception as e:
        logger.error(f"Error in get_recommended_shows: {str(e)}")
        raise AppError("Failed to fetch recommended shows.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_featured_item():
    async def build():
        movies = await _fetch_items(movie_collection, dict(HAS_IMAGES, status=MovieStatus.PUBLISHED.value),
                                    [("releaseDate", DESCENDING)], 1)
        return map_to_media_item(movies[0], "movie") if movies else None

    try:
        return await _cached("content:featured-item", build)
    except Exception as e:
        logger.error(f"Error in get_featured_item: {str(e)}")
        raise AppError("Failed to fetch featured item.", status.HTTP_500_INTERNAL_SERVER_ERROR)

def _ranked(items, media_type):
    ranked = []
    for rank, item in enumerate(items, start=1):
        media_item = map_to_media_item(item, media_type)
        media_item["rank"] = rank
        ranked.append(media_item)
    return ranked

async def get_top_movies():
    async def build():
        movies = await _fetch_items(
            movie_collection,
            dict(HAS_POSTER, status={"$in": PUBLIC_MOVIE_STATUSES}, imdbRating={"$ne": None}),
            [("imdbRating", DESCENDING), ("popularity", DESCENDING), ("releaseDate", DESCENDING)],
            TOP_LIST_SIZE
        )
        return _ranked(movies, "movie")

    try:
        return await _cached("content:top-10-movies", build)
    except Exception as e:
        logger.error(f"Error in get_top_movies: {str(e)}")
        raise AppError("Failed to fetch top movies.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_top_series():
    async def build():
        series = await _fetch_items(
            series_collection,
            dict(HAS_POSTER, status={"$in": PUBLIC_SERIES_STATUSES}, imdbRating={"$ne": None}),
            [("imdbRating", DESCENDING), ("popularity", DESCENDING), ("firstAirDate", DESCENDING)],
            TOP_LIST_SIZE
        )
        return _ranked(series, "show")

    try:
        return await _cached("content:top-10-series", build)
    except Exception as e:
        logger.error(f"Error in get_top_series: {str(e)}")
        raise AppError("Failed to fetch top series.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def _upcoming(collection, status_value, date_field, media_type, page, limit):
    page, limit, skip = page_window(page, limit)
    query = dict(HAS_POSTER, status=status_value)
    items = await _fetch_items(collection, query, [(date_field, ASCENDING), ("popularity", DESCENDING)], limit, skip)
    total = await collection.count_documents(query)
    return {
        "items": [map_to_media_item(item, media_type) for item in items],
        "totalItems": total,
        "totalPages": total_pages(total, limit),
        "currentPage": page,
        "limit": limit,
    }

async def get_upcoming_movies(page: int = 1, limit: int = 20):
    try:
        return await _cached(
            f"content:upcoming-movies:{page}:{limit}",
            lambda: _upcoming(movie_collection, MovieStatus.UPCOMING.value, "releaseDate", "movie", page, limit)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_upcoming_movies: {str(e)}")
        raise AppError("Failed to fetch upcoming movies.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_upcoming_series(page: int = 1, limit: int = 20):
    try:
        return await _cached(
            f"content:upcoming-series:{page}:{limit}",
            lambda: _upcoming(series_collection, SeriesStatus.UPCOMING.value, "firstAirDate", "show", page, limit)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_upcoming_series: {str(e)}")
        raise AppError("Failed to fetch upcoming series.", status.HTTP_500_INTERNAL_SERVER_ERROR)
