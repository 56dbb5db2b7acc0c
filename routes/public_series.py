from fastapi import APIRouter, Query, Path, Request
from typing import Optional

from controllers import public_series_controller
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_DEFAULT

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.get("/")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_series_list(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, le=100),
    sortBy: str = Query("popularity"),
    sortOrder: str = Query("desc"),
    genreId: Optional[str] = None,
    search: Optional[str] = None
):
    """
    Browse published series
    """
    return await public_series_controller.get_public_series(page, limit, sortBy, sortOrder, genreId, search)

@router.get("/{id_or_tmdb_id}")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_series(request: Request, id_or_tmdb_id: str = Path(..., description="Series ID or TMDB ID")):
    """
    Get public series details with aired seasons and episodes
    """
    return await public_series_controller.get_public_series_details(id_or_tmdb_id)
