from fastapi import APIRouter, Query, Request

from controllers import content_controller
from slowapi import Limiter
from slowapi.util import get_remote_address
from config import RATE_LIMIT_DEFAULT

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

@router.get("/hero-items")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_hero_items(request: Request):
    """
    Items for the home page hero slider
    """
    return await content_controller.get_hero_items()

@router.get("/trending-movies")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_trending_movies(request: Request, limit: int = Query(10, ge=1, le=30)):
    return await content_controller.get_trending_movies(limit)

@router.get("/recommended-shows")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_recommended_shows(request: Request, limit: int = Query(10, ge=1, le=30)):
    return await content_controller.get_recommended_shows(limit)

@router.get("/featured-item")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_featured_item(request: Request):
    """
    Newest published movie with artwork
    """
    return await content_controller.get_featured_item()

@router.get("/top-10-movies")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_top_movies(request: Request):
    return await content_controller.get_top_movies()

@router.get("/top-10-series")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_top_series(request: Request):
    return await content_controller.get_top_series()

@router.get("/upcoming-movies")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_upcoming_movies(request: Request, page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=50)):
    return await content_controller.get_upcoming_movies(page, limit)

@router.get("/upcoming-series")
@limiter.limit(RATE_LIMIT_DEFAULT)
async def get_upcoming_series(request: Request, page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=50)):
    return await content_controller.get_upcoming_series(page, limit)
