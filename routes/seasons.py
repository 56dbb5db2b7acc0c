from fastapi import APIRouter, Depends, Path, Request, File, UploadFile

from controllers import season_controller
from models.series import SeasonUpdate
from middleware.auth_required import require_admin
from middleware.upload import read_image_upload
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_ADMIN

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.put("/{season_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_season(
    request: Request,
    season_data: SeasonUpdate,
    season_id: str = Path(..., description="The ID of the season to update"),
    current_user: dict = Depends(require_admin)
):
    """
    Update season name, overview or air date
    """
    return await season_controller.update_season(season_id, season_data.model_dump(exclude_unset=True), current_user)

@router.put("/{season_id}/poster")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_season_poster(
    request: Request,
    season_id: str = Path(...),
    posterImage: UploadFile = File(...),
    current_user: dict = Depends(require_admin)
):
    image = await read_image_upload(posterImage)
    return await season_controller.update_season_poster(season_id, image, current_user)
