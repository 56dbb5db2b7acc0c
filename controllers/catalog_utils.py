from fastapi import status
from typing import Any, Dict, List, Optional
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from datetime import datetime
import logging

from database import genre_collection, person_collection, serialize_doc
from models.enums import Role, CreditType
from utils.app_error import AppError
from utils.cloudinary_client import upload_tmdb_image, PERSON_IMAGES

logger = logging.getLogger(__name__)

MAX_CAST = 20

# Input helpers
def parse_tmdb_id(value) -> int:
    """TMDB ids arrive as ints or numeric strings. Anything else is a 400."""
    if isinstance(value, bool) or value is None:
        raise AppError("A valid TMDB ID is required.", status.HTTP_400_BAD_REQUEST)
    try:
        tmdb_id = int(str(value).strip())
    except (TypeError, ValueError):
        raise AppError("A valid TMDB ID is required.", status.HTTP_400_BAD_REQUEST)
    if tmdb_id <= 0:
        raise AppError("TMDB ID must be a positive number.", status.HTTP_400_BAD_REQUEST)
    return tmdb_id

def ensure_object_id(value: str, label: str = "ID") -> ObjectId:
    if not ObjectId.is_valid(value):
        raise AppError(f"Invalid {label} format", status.HTTP_400_BAD_REQUEST)
    return ObjectId(value)

def parse_date(value) -> Optional[datetime]:
    """TMDB dates are YYYY-MM-DD strings, often empty"""
    if not value:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d")
    except (TypeError, ValueError):
        return None

def build_sort(sort_by: Optional[str], sort_order: Optional[str], allowed: List[str], default: str):
    field = sort_by if sort_by in allowed else default
    direction = ASCENDING if sort_order == "asc" else DESCENDING
    return field, direction

def page_window(page: int, limit: int):
    page = max(int(page or 1), 1)
    limit = int(limit or 10)
    if limit <= 0:
        raise AppError("Invalid limit value.", status.HTTP_400_BAD_REQUEST)
    return page, limit, (page - 1) * limit

def total_pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit  # Ceiling division

# Ownership
def owner_filter(user: dict) -> Optional[Dict[str, Any]]:
    """
    Mongo filter restricting admin lists to what the user may see.
    None means the user may not see anything.
    """
    role = user.get("role")
    if role == Role.SUPER_ADMIN.value:
        return {}
    if role == Role.ADMIN.value:
        return {"addedBy": ObjectId(user["_id"])}
    return None

def can_manage(user: dict, doc: dict) -> bool:
    role = user.get("role")
    if role == Role.SUPER_ADMIN.value:
        return True
    if role == Role.ADMIN.value:
        return str(doc.get("addedBy")) == str(user.get("_id"))
    return False

def assert_can_manage(user: dict, doc: dict, label: str = "item"):
    if not can_manage(user, doc):
        raise AppError(f"You do not have permission to modify this {label}.", status.HTTP_403_FORBIDDEN)

# TMDB ingestion helpers
def youtube_trailer_url(videos: Optional[dict]) -> Optional[str]:
    for video in (videos or {}).get("results", []):
        if video.get("site") == "YouTube" and video.get("type") == "Trailer" and video.get("key"):
            return f"https://www.youtube.com/watch?v={video['key']}"
    return None

async def upsert_genres(tmdb_genres: List[dict]) -> List[ObjectId]:
    genre_ids = []
    for genre in tmdb_genres or []:
        try:
            doc = await genre_collection.find_one_and_update(
                {"tmdbId": genre["id"]},
                {"$set": {"name": genre.get("name")}, "$setOnInsert": {"tmdbId": genre["id"], "imageUrl": None}},
                upsert=True,
                return_document=ReturnDocument.AFTER
            )
            genre_ids.append(doc["_id"])
        except Exception as e:
            logger.warning(f"Skipping genre {genre}: {str(e)}")
    return genre_ids

async def upsert_person(tmdb_person: dict, person_cache: dict) -> Optional[ObjectId]:
    tmdb_id = tmdb_person.get("id")
    if tmdb_id is None:
        return None
    if tmdb_id in person_cache:
        return person_cache[tmdb_id]

    image_url = await upload_tmdb_image(tmdb_person.get("profile_path"), PERSON_IMAGES, f"person_{tmdb_id}")
    update = {"name": tmdb_person.get("name")}
    if image_url:
        update["imageUrl"] = image_url
    if tmdb_person.get("biography"):
        update["biography"] = tmdb_person["biography"]

    doc = await person_collection.find_one_and_update(
        {"tmdbId": tmdb_id},
        {"$set": update, "$setOnInsert": {"tmdbId": tmdb_id}},
        upsert=True,
        return_document=ReturnDocument.AFTER
    )
    person_cache[tmdb_id] = doc["_id"]
    return doc["_id"]

async def build_credits(tmdb_credits: Optional[dict], creators: Optional[List[dict]] = None) -> List[dict]:
    """
    Turn TMDB credits into embedded credit entries.
    First MAX_CAST cast members become actors; crew with job Director and
    series creators become directors. (personId, role) pairs are unique.
    """
    tmdb_credits = tmdb_credits or {}
    person_cache = {}
    credits = []
    seen = set()

    entries = [(p, CreditType.ACTOR.value, p.get("character")) for p in tmdb_credits.get("cast", [])[:MAX_CAST]]
    entries += [(p, CreditType.DIRECTOR.value, None) for p in tmdb_credits.get("crew", []) if p.get("job") == "Director"]
    entries += [(p, CreditType.DIRECTOR.value, None) for p in creators or []]

    for person, role, character in entries:
        try:
            person_id = await upsert_person(person, person_cache)
        except Exception as e:
            logger.warning(f"Skipping person {person.get('id')}: {str(e)}")
            continue
        if person_id is None or (person_id, role) in seen:
            continue
        seen.add((person_id, role))
        credits.append({"personId": person_id, "role": role, "characterName": character})

    return credits

# Hydration
async def load_genres(genre_ids: List[ObjectId], projection: Optional[dict] = None) -> List[dict]:
    if not genre_ids:
        return []
    projection = projection or {"name": 1, "tmdbId": 1, "imageUrl": 1}
    cursor = genre_collection.find({"_id": {"$in": list(genre_ids)}}, projection).sort("name", ASCENDING)
    return [serialize_doc(g) async for g in cursor]

async def load_credits(credits: List[dict], roles: Optional[List[str]] = None, limit: Optional[int] = None) -> List[dict]:
    credits = credits or []
    if roles:
        credits = [c for c in credits if c.get("role") in roles]
    if limit:
        credits = credits[:limit]
    if not credits:
        return []

    person_ids = list({c["personId"] for c in credits})
    persons = {}
    async for person in person_collection.find({"_id": {"$in": person_ids}}, {"name": 1, "imageUrl": 1, "tmdbId": 1}):
        persons[person["_id"]] = serialize_doc(person)

    return [
        {
            "role": c.get("role"),
            "characterName": c.get("characterName"),
            "person": persons.get(c["personId"]),
        }
        for c in credits
    ]

async def hydrate(doc: dict, credit_roles: Optional[List[str]] = None, credit_limit: Optional[int] = None) -> dict:
    """Replace genreIds and credits references with their documents"""
    genres = await load_genres(doc.get("genreIds"))
    credits = await load_credits(doc.get("credits"), credit_roles, credit_limit)
    result = serialize_doc({k: v for k, v in doc.items() if k not in ("genreIds", "credits")})
    result["genres"] = genres
    result["credits"] = credits
    return result

async def attach_genre_names(docs: List[dict]) -> List[dict]:
    """Batch variant for lists: one genre query for the whole page"""
    genre_ids = {gid for doc in docs for gid in doc.get("genreIds") or []}
    names = {}
    if genre_ids:
        async for genre in genre_collection.find({"_id": {"$in": list(genre_ids)}}, {"name": 1}):
            names[genre["_id"]] = {"_id": str(genre["_id"]), "name": genre.get("name")}

    results = []
    for doc in docs:
        item = serialize_doc({k: v for k, v in doc.items() if k not in ("genreIds", "credits")})
        item["genres"] = [names[gid] for gid in doc.get("genreIds") or [] if gid in names]
        results.append(item)
    return results

def coerce_update(data: Dict[str, Any]) -> Dict[str, Any]:
    """Enum values to strings and genreIds to ObjectIds for a $set"""
    update = {}
    for key, value in data.items():
        if key == "genreIds":
            update[key] = [ObjectId(g) for g in value or []]
        elif hasattr(value, "value"):
            update[key] = value.value
        else:
            update[key] = value
    return update
