# admin_controller.py
from fastapi import HTTPException, status
from typing import Optional
from bson import ObjectId
from pymongo import DESCENDING
import asyncio
import logging
import re
from datetime import datetime

from database import (
    movie_collection, series_collection, genre_collection, person_collection,
    user_collection, serialize_doc
)
from models.enums import Role, MovieStatus, SeriesStatus
from controllers.catalog_utils import ensure_object_id, build_sort, page_window, total_pages
from utils.app_error import AppError
from utils.auth import sanitize_user

logger = logging.getLogger(__name__)

USER_SORT_FIELDS = ["email", "name", "role", "createdAt", "isActivated", "isBlocked"]
USER_PROJECTION = {"password": 0, "activationToken": 0, "activationExpires": 0, "failedActivationAttempts": 0}
RECENT_LIMIT = 10

# DASHBOARD CONTROLLERS
async def get_dashboard_stats(user: dict):
    try:
        role = user.get("role")
        if role not in (Role.ADMIN.value, Role.SUPER_ADMIN.value):
            raise AppError("You do not have permission to view dashboard stats.", status.HTTP_403_FORBIDDEN)

        (total_movies, total_series, total_genres, total_persons,
         published_movies, published_series, user_count) = await asyncio.gather(
            movie_collection.count_documents({}),
            series_collection.count_documents({}),
            genre_collection.count_documents({}),
            person_collection.count_documents({}),
            movie_collection.count_documents({"status": MovieStatus.PUBLISHED.value}),
            series_collection.count_documents({"status": SeriesStatus.PUBLISHED.value}),
            user_collection.count_documents({"role": Role.USER.value}),
        )

        stats = {
            "totalMovies": total_movies,
            "totalSeries": total_series,
            "totalGenres": total_genres,
            "totalPersons": total_persons,
            "publishedMovies": published_movies,
            "publishedSeries": published_series,
            "userCount": user_count,
        }

        if role == Role.SUPER_ADMIN.value:
            admin_count, user_count_total, pending_movies, pending_series = await asyncio.gather(
                user_collection.count_documents({"role": Role.ADMIN.value}),
                user_collection.count_documents({}),
                movie_collection.count_documents({"status": MovieStatus.PENDING.value}),
                series_collection.count_documents({"status": SeriesStatus.PENDING.value}),
            )
            stats.update({
                "adminCount": admin_count,
                "userCountTotal": user_count_total,
                "pendingMovies": pending_movies,
                "pendingSeries": pending_series,
            })
        else:
            owner = ObjectId(user["_id"])
            pending_movies, pending_series = await asyncio.gather(
                movie_collection.count_documents({"status": MovieStatus.PENDING.value, "addedBy": owner}),
                series_collection.count_documents({"status": SeriesStatus.PENDING.value, "addedBy": owner}),
            )
            stats.update({"pendingMovies": pending_movies, "pendingSeries": pending_series})

        return {"success": True, "data": {"stats": stats}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_dashboard_stats: {str(e)}")
        raise AppError("Failed to fetch dashboard stats.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def get_recent_activities(user: dict):
    """Latest signups, movies and series for the dashboard feed"""
    try:
        users_cursor = user_collection.find(
            {"role": Role.USER.value}, {"name": 1, "email": 1, "createdAt": 1}
        ).sort("createdAt", DESCENDING).limit(RECENT_LIMIT)
        movies_cursor = movie_collection.find(
            {}, {"title": 1, "status": 1, "createdAt": 1, "posterPath": 1}
        ).sort("createdAt", DESCENDING).limit(RECENT_LIMIT)
        series_cursor = series_collection.find(
            {}, {"title": 1, "status": 1, "createdAt": 1, "posterPath": 1}
        ).sort("createdAt", DESCENDING).limit(RECENT_LIMIT)

        users, movies, series = await asyncio.gather(
            users_cursor.to_list(length=RECENT_LIMIT),
            movies_cursor.to_list(length=RECENT_LIMIT),
            series_cursor.to_list(length=RECENT_LIMIT),
        )

        return {
            "success": True,
            "data": {
                "recentUsers": serialize_doc(users),
                "recentMovies": serialize_doc(movies),
                "recentSeries": serialize_doc(series),
            }
        }
    except Exception as e:
        logger.error(f"Error in get_recent_activities: {str(e)}")
        raise AppError("Failed to fetch recent activities.", status.HTTP_500_INTERNAL_SERVER_ERROR)

# USER ADMIN CONTROLLERS
async def get_all_users(user: dict, page: int = 1, limit: int = 10, sort_by: str = "createdAt",
                        sort_order: str = "desc", role_filter: Optional[str] = None, search: Optional[str] = None):
    try:
        page, limit, skip = page_window(page, limit)
        role = user.get("role")

        if role == Role.ADMIN.value:
            query = {"role": Role.USER.value}
        elif role == Role.SUPER_ADMIN.value:
            query = {"_id": {"$ne": ObjectId(user["_id"])}}
            if role_filter and role_filter in [r.value for r in Role]:
                query["role"] = role_filter
        else:
            raise AppError("You do not have permission to view users.", status.HTTP_403_FORBIDDEN)

        if search:
            search_regex = {"$regex": re.escape(search.strip()), "$options": "i"}
            query["$or"] = [{"name": search_regex}, {"email": search_regex}]

        field, direction = build_sort(sort_by, sort_order, USER_SORT_FIELDS, "createdAt")
        cursor = user_collection.find(query, USER_PROJECTION).sort(field, direction).skip(skip).limit(limit)
        users = serialize_doc(await cursor.to_list(length=limit))
        total = await user_collection.count_documents(query)

        return {
            "success": True,
            "data": {
                "users": users,
                "totalUsers": total,
                "totalPages": total_pages(total, limit),
                "currentPage": page,
                "limit": limit,
            }
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in get_all_users: {str(e)}")
        raise AppError("Failed to fetch users.", status.HTTP_500_INTERNAL_SERVER_ERROR)

def can_moderate(actor_role: str, target_role: str) -> bool:
    """SUPER_ADMIN moderates users and admins, ADMIN moderates users only"""
    if actor_role == Role.SUPER_ADMIN.value:
        return target_role in (Role.USER.value, Role.ADMIN.value)
    if actor_role == Role.ADMIN.value:
        return target_role == Role.USER.value
    return False

async def _get_moderation_target(user_id: str, actor: dict, action: str) -> dict:
    target_id = ensure_object_id(user_id, "user ID")
    if str(target_id) == str(actor["_id"]):
        raise AppError(f"You cannot {action} your own account.", status.HTTP_400_BAD_REQUEST)

    target = await user_collection.find_one({"_id": target_id})
    if not target:
        raise AppError("User not found", status.HTTP_404_NOT_FOUND)

    if not can_moderate(actor.get("role"), target.get("role")):
        raise AppError(f"You do not have permission to {action} this user.", status.HTTP_403_FORBIDDEN)
    return target

async def block_user(user_id: str, block_reason: Optional[str], actor: dict):
    try:
        target = await _get_moderation_target(user_id, actor, "block")
        if target.get("isBlocked"):
            raise AppError("User is already blocked.", status.HTTP_400_BAD_REQUEST)

        await user_collection.update_one(
            {"_id": target["_id"]},
            {"$set": {"isBlocked": True, "blockReason": block_reason or None, "updatedAt": datetime.now()}}
        )
        updated = await user_collection.find_one({"_id": target["_id"]}, USER_PROJECTION)
        logger.info(f"User {user_id} blocked by {actor['_id']}")
        return {"success": True, "data": {"user": sanitize_user(serialize_doc(updated))}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in block_user: {str(e)}")
        raise AppError("Failed to block user.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def unblock_user(user_id: str, actor: dict):
    try:
        target = await _get_moderation_target(user_id, actor, "unblock")
        if not target.get("isBlocked"):
            raise AppError("User is not blocked.", status.HTTP_400_BAD_REQUEST)

        await user_collection.update_one(
            {"_id": target["_id"]},
            {"$set": {"isBlocked": False, "blockReason": None, "updatedAt": datetime.now()}}
        )
        updated = await user_collection.find_one({"_id": target["_id"]}, USER_PROJECTION)
        logger.info(f"User {user_id} unblocked by {actor['_id']}")
        return {"success": True, "data": {"user": sanitize_user(serialize_doc(updated))}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in unblock_user: {str(e)}")
        raise AppError("Failed to unblock user.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def delete_user(user_id: str, actor: dict):
    try:
        target = await _get_moderation_target(user_id, actor, "delete")
        await user_collection.delete_one({"_id": target["_id"]})
        logger.info(f"User {user_id} deleted by {actor['_id']}")
        return {"success": True, "data": {}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in delete_user: {str(e)}")
        raise AppError("Failed to delete user.", status.HTTP_500_INTERNAL_SERVER_ERROR)

async def change_user_role(user_id: str, new_role: Role, actor: dict):
    try:
        if actor.get("role") != Role.SUPER_ADMIN.value:
            raise AppError("Only a super admin can change user roles.", status.HTTP_403_FORBIDDEN)

        new_role = Role(new_role).value
        if new_role not in (Role.USER.value, Role.ADMIN.value):
            raise AppError("Role can only be changed to USER or ADMIN.", status.HTTP_400_BAD_REQUEST)

        target_id = ensure_object_id(user_id, "user ID")
        if str(target_id) == str(actor["_id"]):
            raise AppError("You cannot change your own role.", status.HTTP_400_BAD_REQUEST)

        target = await user_collection.find_one({"_id": target_id})
        if not target:
            raise AppError("User not found", status.HTTP_404_NOT_FOUND)
        if target.get("role") == Role.SUPER_ADMIN.value:
            raise AppError("The role of a super admin cannot be changed.", status.HTTP_403_FORBIDDEN)
        if target.get("role") == new_role:
            raise AppError(f"User already has the role {new_role}.", status.HTTP_400_BAD_REQUEST)

        await user_collection.update_one(
            {"_id": target_id},
            {"$set": {"role": new_role, "updatedAt": datetime.now()}}
        )
        updated = await user_collection.find_one({"_id": target_id}, USER_PROJECTION)
        logger.info(f"User {user_id} role changed to {new_role} by {actor['_id']}")
        return {"success": True, "data": {"user": sanitize_user(serialize_doc(updated))}}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in change_user_role: {str(e)}")
        raise AppError("Failed to change user role.", status.HTTP_500_INTERNAL_SERVER_ERROR)
