# admin_router.py
from fastapi import APIRouter, Depends, Query, Path, Request
from typing import Optional

from controllers import admin_controller
from models.user import BlockUserRequest, ChangeRoleRequest
from middleware.auth_required import require_admin, require_super_admin
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_ADMIN

# Rate limiter
limiter = Limiter(key_func=get_remote_address)

router = APIRouter(tags=["admin"])

# Dashboard routes
@router.get("/stats")
@limiter.limit(RATE_LIMIT_ADMIN)
async def get_dashboard_stats(request: Request, current_user: dict = Depends(require_admin)):
    """
    Get dashboard counters for the current admin
    """
    return await admin_controller.get_dashboard_stats(current_user)

@router.get("/recent-activities")
@limiter.limit(RATE_LIMIT_ADMIN)
async def get_recent_activities(request: Request, current_user: dict = Depends(require_admin)):
    """
    Get the latest users, movies and series
    """
    return await admin_controller.get_recent_activities(current_user)

# User management routes
@router.get("/users")
@limiter.limit(RATE_LIMIT_ADMIN)
async def get_users(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sortBy: str = Query("createdAt"),
    sortOrder: str = Query("desc"),
    role: Optional[str] = Query(None, description="Filter by role (super admin only)"),
    search: Optional[str] = None,
    current_user: dict = Depends(require_admin)
):
    """
    List users the current admin may manage
    """
    return await admin_controller.get_all_users(current_user, page, limit, sortBy, sortOrder, role, search)

@router.put("/users/{user_id}/block")
@limiter.limit(RATE_LIMIT_ADMIN)
async def block_user(
    request: Request,
    user_id: str = Path(..., description="The ID of the user to block"),
    block_data: Optional[BlockUserRequest] = None,
    current_user: dict = Depends(require_admin)
):
    """
    Block a user with an optional reason
    """
    block_reason = block_data.blockReason if block_data else None
    return await admin_controller.block_user(user_id, block_reason, current_user)

@router.put("/users/{user_id}/unblock")
@limiter.limit(RATE_LIMIT_ADMIN)
async def unblock_user(
    request: Request,
    user_id: str = Path(..., description="The ID of the user to unblock"),
    current_user: dict = Depends(require_admin)
):
    """
    Unblock a user
    """
    return await admin_controller.unblock_user(user_id, current_user)

@router.delete("/users/{user_id}")
@limiter.limit(RATE_LIMIT_ADMIN)
async def delete_user(
    request: Request,
    user_id: str = Path(..., description="The ID of the user to delete"),
    current_user: dict = Depends(require_admin)
):
    """
    Delete a user
    """
    return await admin_controller.delete_user(user_id, current_user)

@router.put("/users/{user_id}/role")
@limiter.limit(RATE_LIMIT_ADMIN)
async def change_user_role(
    request: Request,
    role_data: ChangeRoleRequest,
    user_id: str = Path(..., description="The ID of the user"),
    current_user: dict = Depends(require_super_admin)
):
    """
    Change a user's role (super admin only)
    """
    return await admin_controller.change_user_role(user_id, role_data.role, current_user)
