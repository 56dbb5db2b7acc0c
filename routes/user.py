from fastapi import APIRouter, Depends, Request, File, UploadFile

from controllers import user_controller
from models.user import ProfileUpdate
from middleware.auth_required import protect
from middleware.upload import read_image_upload
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_DEFAULT

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.get("/profile")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_profile(request: Request, current_user: dict = Depends(protect)):
    """
    Get the logged-in user's profile
    """
    return await user_controller.get_profile(current_user)

@router.put("/profile")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def update_profile(request: Request, profile_data: ProfileUpdate, current_user: dict = Depends(protect)):
    """
    Update name, date of birth or gender
    """
    return await user_controller.update_profile(current_user, profile_data.model_dump(exclude_unset=True))

@router.put("/profile/picture")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def update_profile_picture(
    request: Request,
    profilePicture: UploadFile = File(...),
    current_user: dict = Depends(protect)
):
    image = await read_image_upload(profilePicture)
    return await user_controller.update_profile_picture(current_user, image)
