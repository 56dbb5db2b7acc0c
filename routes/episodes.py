from fastapi import APIRouter, Depends, Path, Request, File, UploadFile

from controllers import season_controller
from models.series import EpisodeUpdate
from middleware.auth_required import require_admin
from middleware.upload import read_image_upload
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_ADMIN

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.put("/{episode_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_episode(
    request: Request,
    episode_data: EpisodeUpdate,
    episode_id: str = Path(..., description="The ID of the episode to update"),
    current_user: dict = Depends(require_admin)
):
    """
    Update episode title, overview, air date or runtime
    """
    return await season_controller.update_episode(episode_id, episode_data.model_dump(exclude_unset=True), current_user)

@router.put("/{episode_id}/still")
@limiter.limit(RATE_LIMIT_ADMIN)
async def update_episode_still(
    request: Request,
    episode_id: str = Path(...),
    stillImage: UploadFile = File(...),
    current_user: dict = Depends(require_admin)
):
    image = await read_image_upload(stillImage)
    return await season_controller.update_episode_still(episode_id, image, current_user)
