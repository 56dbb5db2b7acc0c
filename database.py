from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING
from bson import ObjectId
from datetime import datetime
import redis.asyncio as redis
import logging
import orjson

from config import (
    MONGODB_URI, DATABASE_NAME, MONGODB_MAX_POOL_SIZE, MONGODB_MIN_POOL_SIZE,
    REDIS_URL, CACHE_TTL, CACHE_ENABLED
)

# Configure logging
logger = logging.getLogger(__name__)

# Create a MongoDB client with connection pooling
client = AsyncIOMotorClient(
    MONGODB_URI,
    maxPoolSize=MONGODB_MAX_POOL_SIZE,
    minPoolSize=MONGODB_MIN_POOL_SIZE,
    retryWrites=True,
    serverSelectionTimeoutMS=5000,
    tz_aware=False
)
db = client[DATABASE_NAME]

# Initialize Redis client for caching
redis_client = None
if CACHE_ENABLED:
    try:
        redis_client = redis.from_url(REDIS_URL, encoding="utf-8", decode_responses=False)
        logger.info("Redis cache initialized successfully")
    except Exception as e:
        logger.warning(f"Redis connection failed: {str(e)}. Continuing without caching.")

# Collections
movie_collection = db.movies
series_collection = db.series
season_collection = db.seasons
episode_collection = db.episodes
genre_collection = db.genres
person_collection = db.persons
user_collection = db.users

# Helper function to convert string ID to ObjectId
def to_object_id(id_str):
    if isinstance(id_str, str) and ObjectId.is_valid(id_str):
        return ObjectId(id_str)
    return id_str

# Helper function to serialize MongoDB documents
def serialize_doc(doc):
    if doc is None:
        return None

    if isinstance(doc, list):
        return [serialize_doc(item) for item in doc]

    if isinstance(doc, dict):
        return {k: serialize_doc(v) for k, v in doc.items()}

    if isinstance(doc, ObjectId):
        return str(doc)

    if isinstance(doc, datetime):
        return doc.isoformat()

    return doc

# Cache functions
async def get_cache(key):
    """Get data from cache"""
    if not CACHE_ENABLED or not redis_client:
        return None
    try:
        data = await redis_client.get(key)
        if data:
            return orjson.loads(data)
        return None
    except Exception as e:
        logger.warning(f"Cache get error: {str(e)}")
        return None

async def set_cache(key, data, ttl=CACHE_TTL):
    """Set data in cache"""
    if not CACHE_ENABLED or not redis_client:
        return
    try:
        await redis_client.set(key, orjson.dumps(data), ex=ttl)
    except Exception as e:
        logger.warning(f"Cache set error: {str(e)}")

async def delete_cache_pattern(pattern):
    """Delete all keys matching pattern"""
    if not CACHE_ENABLED or not redis_client:
        return
    try:
        keys = await redis_client.keys(pattern)
        if keys:
            await redis_client.delete(*keys)
    except Exception as e:
        logger.warning(f"Cache delete pattern error: {str(e)}")

async def invalidate_public_cache():
    """Drop cached public pages after catalog writes"""
    await delete_cache_pattern("public:*")
    await delete_cache_pattern("content:*")

# Create indexes for better performance
async def create_indexes():
    try:
        # Movie indexes
        await movie_collection.create_index([("tmdbId", ASCENDING)], unique=True)
        await movie_collection.create_index([("status", ASCENDING), ("popularity", DESCENDING)])
        await movie_collection.create_index([("addedBy", ASCENDING)])
        await movie_collection.create_index([("genreIds", ASCENDING)])
        await movie_collection.create_index([("releaseDate", DESCENDING)])

        # Series indexes
        await series_collection.create_index([("tmdbId", ASCENDING)], unique=True)
        await series_collection.create_index([("status", ASCENDING), ("popularity", DESCENDING)])
        await series_collection.create_index([("addedBy", ASCENDING)])
        await series_collection.create_index([("genreIds", ASCENDING)])

        # Season indexes
        await season_collection.create_index([("seriesId", ASCENDING)])
        await season_collection.create_index([("seriesId", ASCENDING), ("seasonNumber", ASCENDING)], unique=True)

        # Episode indexes
        await episode_collection.create_index([("seasonId", ASCENDING)])
        await episode_collection.create_index([("seriesId", ASCENDING)])
        await episode_collection.create_index([("seasonId", ASCENDING), ("episodeNumber", ASCENDING)], unique=True)

        # Genre and person indexes
        await genre_collection.create_index([("tmdbId", ASCENDING)], unique=True)
        await genre_collection.create_index([("name", ASCENDING)])
        await person_collection.create_index([("tmdbId", ASCENDING)], unique=True)

        # User indexes
        await user_collection.create_index([("email", ASCENDING)], unique=True)
        await user_collection.create_index([("googleId", ASCENDING)], unique=True, sparse=True)
        await user_collection.create_index([("role", ASCENDING), ("createdAt", DESCENDING)])

        logger.info("Database indexes created successfully")
    except Exception as e:
        logger.error(f"Error creating indexes: {str(e)}")

# Function to check Redis connection
async def check_redis_connection():
    """Check if Redis connection is working properly"""
    if not CACHE_ENABLED:
        logger.info("Redis cache is disabled")
        return False

    if not redis_client:
        logger.warning("Redis client is not initialized")
        return False

    try:
        await redis_client.ping()
        logger.info("Redis connection is working properly")
        return True
    except Exception as e:
        logger.error(f"Redis connection check failed: {str(e)}")
        return False
