import httpx
from fastapi import status
import logging

from config import TMDB_API_KEY, TMDB_BASE_URL, TMDB_LANGUAGE, TMDB_TIMEOUT
from utils.app_error import AppError

logger = logging.getLogger(__name__)

DETAIL_APPENDS = {
    "append_to_response": "credits,videos,images",
    "include_image_language": "en,null",
}

async def tmdb_get(path: str, params: dict = None) -> httpx.Response:
    """
    GET a TMDB endpoint with the api key and language attached.

    Returns the raw response so callers can map status codes themselves.
    """
    if not TMDB_API_KEY:
        logger.error("TMDB_API_KEY is not configured")
        raise AppError("TMDB API key is not configured on the server.", status.HTTP_500_INTERNAL_SERVER_ERROR)

    query = {"api_key": TMDB_API_KEY, "language": TMDB_LANGUAGE}
    if params:
        query.update(params)

    async with httpx.AsyncClient(base_url=TMDB_BASE_URL, timeout=TMDB_TIMEOUT) as client:
        return await client.get(path, params=query)

async def get_movie_details(tmdb_id: int) -> dict:
    try:
        response = await tmdb_get(f"/movie/{tmdb_id}", DETAIL_APPENDS)
        if response.status_code == 404:
            raise AppError(f"Movie with TMDB ID {tmdb_id} not found.", status.HTTP_404_NOT_FOUND)
        response.raise_for_status()
        return response.json()
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error fetching TMDB movie {tmdb_id}: {str(e)}")
        raise AppError("Failed to fetch movie details from TMDB.", status.HTTP_502_BAD_GATEWAY)

async def get_series_details(tmdb_id: int) -> dict:
    if not isinstance(tmdb_id, int) or tmdb_id <= 0:
        raise AppError("Invalid TMDB series ID.", status.HTTP_400_BAD_REQUEST)
    try:
        response = await tmdb_get(f"/tv/{tmdb_id}", DETAIL_APPENDS)
        if response.status_code == 404:
            raise AppError(f"Series with TMDB ID {tmdb_id} not found.", status.HTTP_404_NOT_FOUND)
        response.raise_for_status()
        return response.json()
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error fetching TMDB series {tmdb_id}: {str(e)}")
        raise AppError("Failed to fetch series details from TMDB.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_season_details(series_tmdb_id: int, season_number: int) -> dict:
    if not isinstance(series_tmdb_id, int) or series_tmdb_id <= 0 or not isinstance(season_number, int) or season_number < 0:
        raise AppError("Invalid series ID or season number.", status.HTTP_400_BAD_REQUEST)
    try:
        response = await tmdb_get(f"/tv/{series_tmdb_id}/season/{season_number}")
        if response.status_code == 404:
            raise AppError(
                f"Season {season_number} of series {series_tmdb_id} not found on TMDB.",
                status.HTTP_404_NOT_FOUND
            )
        response.raise_for_status()
        return response.json()
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error fetching TMDB season {season_number} of {series_tmdb_id}: {str(e)}")
        raise AppError("Failed to fetch season details from TMDB.", status.HTTP_502_BAD_GATEWAY)

async def _search(path: str, query: str, page: int, fields: tuple) -> dict:
    if not query or not query.strip():
        raise AppError("Search query is required.", status.HTTP_400_BAD_REQUEST)
    try:
        response = await tmdb_get(path, {"query": query.strip(), "page": page, "include_adult": "false"})
        response.raise_for_status()
        data = response.json()
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error searching TMDB {path} for '{query}': {str(e)}")
        raise AppError("Failed to search TMDB.", status.HTTP_502_BAD_GATEWAY)

    return {
        "page": data.get("page", page),
        "results": [{field: item.get(field) for field in fields} for item in data.get("results", [])],
        "total_pages": data.get("total_pages", 0),
        "total_results": data.get("total_results", 0),
    }

async def search_movies(query: str, page: int = 1) -> dict:
    return await _search(
        "/search/movie", query, page,
        ("id", "title", "original_title", "release_date", "poster_path")
    )

async def search_series(query: str, page: int = 1) -> dict:
    return await _search(
        "/search/tv", query, page,
        ("id", "name", "original_name", "first_air_date", "poster_path")
    )
