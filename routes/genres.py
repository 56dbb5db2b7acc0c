from fastapi import APIRouter, Depends, Request

from controllers import genre_controller
from middleware.auth_required import require_admin
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_ADMIN

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.get("/")
@limiter.limit(RATE_LIMIT_ADMIN)
async def get_genres(request: Request, current_user: dict = Depends(require_admin)):
    """
    List all genres sorted by name
    """
    return await genre_controller.get_all_genres()
