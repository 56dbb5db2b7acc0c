import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from contextlib import asynccontextmanager
import traceback
from pydantic import ValidationError

from database import create_indexes, check_redis_connection, CACHE_ENABLED
from routes import (
    auth, user, movies, series, seasons, episodes, genres, admin,
    public_movies, public_series, content
)
from config import RATE_LIMIT_DEFAULT, CORS_ORIGINS, DEBUG, PORT

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Rate limiter
limiter = Limiter(key_func=get_remote_address, default_limits=[RATE_LIMIT_DEFAULT])

# Lifespan context manager to replace on_event
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup event
    logger.info("Starting up the application")
    await create_indexes()
    await check_redis_connection()

    yield

    # Shutdown event
    logger.info("Shutting down the application")
    from database import client, redis_client
    client.close()
    if redis_client:
        await redis_client.close()

# Create FastAPI app with ORJSON for faster serialization
app = FastAPI(
    title="Parsflix API",
    description="Backend API for the Parsflix movie and series catalog",
    version="1.0.0",
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# Add custom error handler for HTTP errors
@app.exception_handler(StarletteHTTPException)
async def custom_http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail

    # Already formatted by AppError or a controller
    if isinstance(detail, dict):
        return JSONResponse(status_code=exc.status_code, content=detail, headers=exc.headers)

    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "status": "fail", "message": "Authentication required. Please login to access this content."}
        )

    # Generic formatting for standard FastAPI errors
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "status": "fail" if 400 <= exc.status_code < 500 else "error",
            "message": str(detail)
        }
    )

def _validation_response(errors):
    error_messages = []
    for error in errors:
        field = ".".join(str(loc) for loc in error["loc"])
        error_messages.append(f"{field}: {error['msg']}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "status": "fail",
            "message": "Validation error",
            "errors": error_messages
        }
    )

# Add custom error handlers for validation errors
@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    return _validation_response(exc.errors())

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    return _validation_response(exc.errors())

# Add custom error handler for generic exceptions
@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {str(exc)}")
    logger.error(traceback.format_exc())

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "status": "error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )

# Add rate limiter
app.state.limiter = limiter

# Custom handler for rate limit exceeded
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "success": False,
            "status": "fail",
            "message": "Too many requests. Please try again later."
        }
    )

app.add_middleware(SlowAPIMiddleware)

# Credentials are required for the authToken cookie, so origins must be explicit
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["auth"])
app.include_router(user.router, prefix=f"{API_PREFIX}/users", tags=["users"])
app.include_router(movies.router, prefix=f"{API_PREFIX}/movies", tags=["movies"])
app.include_router(series.router, prefix=f"{API_PREFIX}/series", tags=["series"])
app.include_router(seasons.router, prefix=f"{API_PREFIX}/seasons", tags=["seasons"])
app.include_router(episodes.router, prefix=f"{API_PREFIX}/episodes", tags=["episodes"])
app.include_router(genres.router, prefix=f"{API_PREFIX}/genres", tags=["genres"])
app.include_router(admin.router, prefix=f"{API_PREFIX}/admin", tags=["admin"])
app.include_router(public_movies.router, prefix=f"{API_PREFIX}/public-movies", tags=["public"])
app.include_router(public_series.router, prefix=f"{API_PREFIX}/public-series", tags=["public"])
app.include_router(content.router, prefix=f"{API_PREFIX}/content", tags=["content"])

# Root endpoint
@app.get("/", tags=["root"])
@limiter.limit("60/minute")
async def root(request: Request):
    return {
        "message": "Parsflix API (Python FastAPI)",
        "status": "works :)",
        "endpoints": [
            f"{API_PREFIX}/auth",
            f"{API_PREFIX}/users",
            f"{API_PREFIX}/movies",
            f"{API_PREFIX}/series",
            f"{API_PREFIX}/seasons",
            f"{API_PREFIX}/episodes",
            f"{API_PREFIX}/genres",
            f"{API_PREFIX}/admin",
            f"{API_PREFIX}/public-movies",
            f"{API_PREFIX}/public-series",
            f"{API_PREFIX}/content"
        ]
    }

# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check():
    return {"status": "healthy"}

# Redis status endpoint
@app.get("/redis-status", tags=["health"])
async def redis_status():
    redis_working = await check_redis_connection()
    return {
        "redis_enabled": CACHE_ENABLED,
        "redis_status": "connected" if redis_working else "disconnected"
    }

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=PORT, reload=DEBUG)
