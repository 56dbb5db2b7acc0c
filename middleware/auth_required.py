from fastapi import Depends, Request, status
from bson import ObjectId
import logging

from database import user_collection, serialize_doc
from models.enums import Role
from utils.app_error import AppError
from utils.auth import get_token_from_request, decode_access_token, sanitize_user

logger = logging.getLogger(__name__)

async def protect(request: Request):
    """
    Require a logged-in, activated and unblocked user.
    The token is read from the authToken cookie or a Bearer header.
    """
    token = await get_token_from_request(request)
    if not token:
        raise AppError("You are not logged in. Please log in to get access.", status.HTTP_401_UNAUTHORIZED)

    token_data = decode_access_token(token)
    if token_data is None or not ObjectId.is_valid(token_data.user_id):
        raise AppError("Invalid or expired authentication token. Please login again.", status.HTTP_401_UNAUTHORIZED)

    user = await user_collection.find_one({"_id": ObjectId(token_data.user_id)})
    if user is None:
        raise AppError("The user belonging to this token no longer exists.", status.HTTP_401_UNAUTHORIZED)

    if not user.get("isActivated"):
        raise AppError("Your account is not activated yet.", status.HTTP_403_FORBIDDEN)

    if user.get("isBlocked"):
        reason = user.get("blockReason")
        message = "Your account has been blocked."
        if reason:
            message = f"{message} Reason: {reason}"
        raise AppError(message, status.HTTP_403_FORBIDDEN)

    return sanitize_user(serialize_doc(user))

def restrict_to(*roles):
    """Dependency factory allowing only the given roles"""
    allowed = [r.value if isinstance(r, Role) else r for r in roles]

    async def checker(current_user: dict = Depends(protect)):
        if current_user.get("role") not in allowed:
            logger.warning(f"User {current_user.get('_id')} with role {current_user.get('role')} denied access")
            raise AppError("You do not have permission to perform this action.", status.HTTP_403_FORBIDDEN)
        return current_user

    return checker

# Shared dependency for the admin panel
require_admin = restrict_to(Role.ADMIN, Role.SUPER_ADMIN)
require_super_admin = restrict_to(Role.SUPER_ADMIN)
