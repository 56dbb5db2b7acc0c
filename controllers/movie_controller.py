from fastapi import HTTPException, status
from typing import Optional, Dict, Any
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
import asyncio
import logging
import re
from datetime import datetime

from database import movie_collection, serialize_doc, invalidate_public_cache
from models.enums import MovieStatus
from controllers.catalog_utils import (
    parse_tmdb_id, ensure_object_id, parse_date, build_sort, page_window, total_pages,
    owner_filter, assert_can_manage, youtube_trailer_url, upsert_genres, build_credits,
    hydrate, attach_genre_names, coerce_update
)
from utils.app_error import AppError
from utils import tmdb
from utils.cloudinary_client import upload_tmdb_image, upload_image_bytes, MOVIE_POSTERS, MOVIE_BACKDROPS

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "بدون عنوان"
ADMIN_SORT_FIELDS = ["title", "releaseDate", "createdAt", "updatedAt", "status", "popularity", "imdbRating"]
IMAGE_TARGETS = {
    "poster": ("posterPath", MOVIE_POSTERS),
    "backdrop": ("backdropPath", MOVIE_BACKDROPS),
}

async def get_movie_or_404(movie_id: str) -> dict:
    movie = await movie_collection.find_one({"_id": ensure_object_id(movie_id, "movie ID")})
    if not movie:
        raise AppError("Movie not found", status.HTTP_404_NOT_FOUND)
    return movie

async def create_movie(tmdb_id, movie_status: MovieStatus, user: dict, title: Optional[str] = None):
    try:
        tmdb_id = parse_tmdb_id(tmdb_id)

        existing = await movie_collection.find_one({"tmdbId": tmdb_id}, {"_id": 1})
        if existing:
            raise AppError(f"A movie with TMDB ID {tmdb_id} already exists.", status.HTTP_409_CONFLICT)

        details = await tmdb.get_movie_details(tmdb_id)

        poster_url, backdrop_url = await asyncio.gather(
            upload_tmdb_image(details.get("poster_path"), MOVIE_POSTERS, f"movie_{tmdb_id}_poster"),
            upload_tmdb_image(details.get("backdrop_path"), MOVIE_BACKDROPS, f"movie_{tmdb_id}_backdrop"),
        )

        genre_ids = await upsert_genres(details.get("genres"))
        credits = await build_credits(details.get("credits"))

        countries = details.get("production_countries") or []
        vote_average = details.get("vote_average")
        now = datetime.now()

        movie_doc = {
            "tmdbId": tmdb_id,
            "title": title or details.get("title") or DEFAULT_TITLE,
            "originalTitle": details.get("original_title"),
            "tagline": details.get("tagline") or None,
            "description": details.get("overview") or None,
            "releaseDate": parse_date(details.get("release_date")),
            "runtime": details.get("runtime") or None,
            "status": MovieStatus(movie_status or MovieStatus.PENDING).value,
            "originalLanguage": details.get("original_language"),
            "popularity": details.get("popularity"),
            "imdbId": details.get("imdb_id"),
            "adult": bool(details.get("adult", False)),
            "posterPath": poster_url,
            "backdropPath": backdrop_url,
            "trailerUrl": youtube_trailer_url(details.get("videos")),
            "imdbRating": round(vote_average, 1) if vote_average is not None else None,
            "rottenTomatoesScore": None,
            "countryOfOrigin": countries[0].get("name") if countries else None,
            "genreIds": genre_ids,
            "credits": credits,
            "addedBy": ObjectId(user["_id"]),
            "createdAt": now,
            "updatedAt": now,
        }

        try:
            result = await movie_collection.insert_one(movie_doc)
        except DuplicateKeyError:
            # Lost a race with a concurrent import of the same title
            raise AppError(f"A movie with TMDB ID {tmdb_id} already exists.", status.HTTP_409_CONFLICT)
        created = await movie_collection.find_one({"_id": result.inserted_id})
        await invalidate_public_cache()

        logger.info(f"Movie {tmdb_id} created by {user['_id']} with {len(credits)} credits")
        return {"success": True, "data": await hydrate(created)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in create_movie: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_admin_movies(user: dict, page: int = 1, limit: int = 10, sort_by: str = "createdAt",
                           sort_order: str = "desc", search: Optional[str] = None):
    try:
        page, limit, skip = page_window(page, limit)
        base_filter = owner_filter(user)
        if base_filter is None:
            return {"success": True, "data": {"movies": [], "totalMovies": 0, "totalPages": 0, "currentPage": page, "limit": limit}}

        query = dict(base_filter)
        if search:
            search_regex = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [{"title": search_regex}, {"originalTitle": search_regex}]

        field, direction = build_sort(sort_by, sort_order, ADMIN_SORT_FIELDS, "createdAt")
        projection = {"credits": 0}
        cursor = movie_collection.find(query, projection).sort(field, direction).skip(skip).limit(limit)
        movies = await attach_genre_names(await cursor.to_list(length=limit))
        total = await movie_collection.count_documents(query)

        return {
            "success": True,
            "data": {
                "movies": movies,
                "totalMovies": total,
                "totalPages": total_pages(total, limit),
                "currentPage": page,
                "limit": limit,
            }
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_admin_movies: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_admin_movie_by_id(movie_id: str):
    try:
        movie = await get_movie_or_404(movie_id)
        return {"success": True, "data": await hydrate(movie)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_admin_movie_by_id: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def update_movie(movie_id: str, movie_data: Dict[str, Any], user: dict):
    try:
        movie = await get_movie_or_404(movie_id)
        assert_can_manage(user, movie, "movie")

        if not movie_data:
            raise AppError("No valid fields were provided for update.", status.HTTP_400_BAD_REQUEST)

        update = coerce_update(movie_data)
        update["updatedAt"] = datetime.now()

        await movie_collection.update_one({"_id": movie["_id"]}, {"$set": update})
        updated = await movie_collection.find_one({"_id": movie["_id"]})
        await invalidate_public_cache()

        return {"success": True, "data": await hydrate(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_movie: {str(e)}")
        raise AppError(str(e), status.HTTP_400_BAD_REQUEST)

async def update_movie_image(movie_id: str, kind: str, image: bytes, user: dict):
    try:
        field, folder = IMAGE_TARGETS[kind]
        movie = await get_movie_or_404(movie_id)
        assert_can_manage(user, movie, "movie")

        url = await upload_image_bytes(image, folder, f"movie_{movie['tmdbId']}_{kind}")
        await movie_collection.update_one(
            {"_id": movie["_id"]},
            {"$set": {field: url, "updatedAt": datetime.now()}}
        )
        updated = await movie_collection.find_one({"_id": movie["_id"]})
        await invalidate_public_cache()

        return {"success": True, "data": await hydrate(updated)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in update_movie_image: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def delete_movie(movie_id: str, user: dict):
    try:
        movie = await get_movie_or_404(movie_id)
        assert_can_manage(user, movie, "movie")

        await movie_collection.delete_one({"_id": movie["_id"]})
        await invalidate_public_cache()

        logger.info(f"Movie {movie_id} deleted by {user['_id']}")
        return {"success": True, "data": {}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in delete_movie: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)

async def search_tmdb_movies(query: str, page: int = 1):
    try:
        return {"success": True, "data": await tmdb.search_movies(query, page)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in search_tmdb_movies: {str(e)}")
        raise AppError(str(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
