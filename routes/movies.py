from fastapi import APIRouter, Depends, Query, Path, Request, File, UploadFile
from typing import Optional
import logging

from controllers import movie_controller
from models.movie import MovieCreate, MovieUpdate
from middleware.auth_required import require_admin
from middleware.upload import read_image_upload
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_ADMIN

logger = logging.getLogger(__name__)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

router = APIRouter()

@router.get("/")
@limiter.limit(RATE_LIMIT_ADMIN)
async def get_movies(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: str = Query("createdAt"),
    sortOrder: str = Query("desc"),
    search: Optional[str] = None,
    current_user: dict = Depends(require_admin)
):
    """
    List movies visible to the admin (own movies, or all for a super admin)
    """
    return await movie_controller.get_admin_movies(current_user, page, limit, sortBy, sortOrder, search)

@router.get("/tmdb/search")
@limiter.limit(RATE_LIMIT_ADMIN)
async def search_tmdb(
    request: Request,
    query: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    current_user: dict = Depends(require_admin)
):
    """
    Search TMDB for movies to import
    """
    return await movie_controller.search_tmdb_movies(query, page)

@router.post("/", status_code=201)
@limiter.limit(RATE_LIMIT_ADMIN)
async def create_movie(request: Request, movie_data: MovieCreate, current_user: dict = Depends(require_admin)):
    """
    Import a movie from TMDB
    """
    return await movie_controller.create_movie(movie_data.tmdbId, movie_data.status, current_user)

@router.get("/{movie_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def get_movie(
    request: Request,
    movie_id: str = Path(..., description="The ID of the movie to get"),
    current_user: dict = Depends(require_admin)
):
    """
    Get a movie by ID with genres and credits
    """
    return await movie_controller.get_admin_movie_by_id(movie_id)

@router.put("/{movie_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_movie(
    request: Request,
    movie_data: MovieUpdate,
    movie_id: str = Path(..., description="The ID of the movie to update"),
    current_user: dict = Depends(require_admin)
):
    """
    Update an existing movie
    """
    return await movie_controller.update_movie(movie_id, movie_data.model_dump(exclude_unset=True), current_user)

@router.put("/{movie_id}/poster")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_poster(
    request: Request,
    movie_id: str = Path(...),
    posterImage: UploadFile = File(...),
    current_user: dict = Depends(require_admin)
):
    """
    Replace the movie poster
    """
    image = await read_image_upload(posterImage)
    return await movie_controller.update_movie_image(movie_id, "poster", image, current_user)

@router.put("/{movie_id}/backdrop")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_backdrop(
    request: Request,
    movie_id: str = Path(...),
    backdropImage: UploadFile = File(...),
    current_user: dict = Depends(require_admin)
):
    """
    Replace the movie backdrop
    """
    image = await read_image_upload(backdropImage)
    return await movie_controller.update_movie_image(movie_id, "backdrop", image, current_user)

@router.delete("/{movie_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def delete_movie(
    request: Request,
    movie_id: str = Path(..., description="The ID of the movie to delete"),
    current_user: dict = Depends(require_admin)
):
    """
    Delete a movie
    """
    return await movie_controller.delete_movie(movie_id, current_user)
