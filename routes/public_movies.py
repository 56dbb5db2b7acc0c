from fastapi import APIRouter, Query, Path, Request
from typing import Optional

from controllers import public_movie_controller
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_DEFAULT

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.get("/")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_movies(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(20, le=100),
    sortBy: str = Query("popularity"),
    sortOrder: str = Query("desc"),
    genreId: Optional[str] = None,
    search: Optional[str] = None,
    country: Optional[str] = None,
    year: Optional[int] = Query(None, ge=1800, le=3000),
    minImdbRating: Optional[float] = Query(None, ge=0, le=10)
):
    """
    Browse published movies with filters
    """
    return await public_movie_controller.get_public_movies(
        page, limit, sortBy, sortOrder, genreId, search, country, year, minImdbRating
    )

@router.get("/filter-options")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_filter_options(request: Request):
    """
    Genres, years and countries available for filtering
    """
    return await public_movie_controller.get_movie_filter_options()

@router.get("/newest-movies-slider")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_newest_movies(request: Request, limit: int = Query(10, ge=1, le=30)):
    return await public_movie_controller.get_newest_movies_slider(limit)

@router.get("/{id_or_tmdb_id}")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_movie(request: Request, id_or_tmdb_id: str = Path(..., description="Movie ID or TMDB ID")):
    """
    Get public movie details
    """
    return await public_movie_controller.get_public_movie_details(id_or_tmdb_id)
