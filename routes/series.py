from fastapi import APIRouter, Depends, Query, Path, Request, File, UploadFile
from typing import Optional

from controllers import series_controller
from models.series import SeriesCreate, SeriesUpdate
from middleware.auth_required import require_admin
from middleware.upload import read_image_upload
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_ADMIN

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.get("/")
@limiter.limit(RATE_LIMIT_ADMIN)
async def get_series_list(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: str = Query("createdAt"),
    sortOrder: str = Query("desc"),
    search: Optional[str] = None,
    current_user: dict = Depends(require_admin)
):
    """
    List series visible to the admin
    """
    return await series_controller.get_admin_series(current_user, page, limit, sortBy, sortOrder, search)

@router.get("/tmdb/search")
@limiter.limit(RATE_LIMIT_ADMIN)
async def search_tmdb(
    request: Request,
    query: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    current_user: dict = Depends(require_admin)
):
    """
    Search TMDB for series to import
    """
    return await series_controller.search_tmdb_series(query, page)

@router.post("/", status_code=201)
@limiter.limit(RATE_LIMIT_ADMIN)
async def create_series(request: Request, series_data: SeriesCreate, current_user: dict = Depends(require_admin)):
    """
    Import a series with all its seasons and episodes from TMDB
    """
    return await series_controller.create_series(series_data.tmdbId, series_data.status, current_user)

@router.get("/{series_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def get_series(request: Request, series_id: str = Path(...), current_user: dict = Depends(require_admin)):
    """
    Get a series with seasons and episodes
    """
    return await series_controller.get_admin_series_by_id(series_id)

@router.put("/{series_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_series(
    request: Request,
    series_data: SeriesUpdate,
    series_id: str = Path(...),
    current_user: dict = Depends(require_admin)
):
    return await series_controller.update_series(series_id, series_data.model_dump(exclude_unset=True), current_user)

@router.put("/{series_id}/poster")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_poster(
    request: Request,
    series_id: str = Path(...),
    posterImage: UploadFile = File(...),
    current_user: dict = Depends(require_admin)
):
    image = await read_image_upload(posterImage)
    return await series_controller.update_series_image(series_id, "poster", image, current_user)

@router.put("/{series_id}/backdrop")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_backdrop(
    request: Request,
    series_id: str = Path(...),
    backdropImage: UploadFile = File(...),
    current_user: dict = Depends(require_admin)
):
    image = await read_image_upload(backdropImage)
    return await series_controller.update_series_image(series_id, "backdrop", image, current_user)

@router.delete("/{series_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def delete_series(request: Request, series_id: str = Path(...), current_user: dict = Depends(require_admin)):
    """
    Delete a series together with its seasons and episodes
    """
    return await series_controller.delete_series(series_id, current_user)
