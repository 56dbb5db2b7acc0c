from datetime import datetime
from typing import Optional

DESCRIPTION_LIMIT = 150

def _year(value) -> Optional[int]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.year
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).year
    except ValueError:
        return None

def truncate_description(text) -> str:
    if not text:
        return ""
    if len(text) > DESCRIPTION_LIMIT:
        return text[:DESCRIPTION_LIMIT - 3] + "..."
    return text

def map_to_media_item(item: dict, media_type: str) -> Optional[dict]:
    """
    Flatten a movie ("movie") or series ("show") document into the card
    shape the public site renders.
    """
    if not item:
        return None

    if item.get("imdbRating"):
        rating = f"{item['imdbRating']} IMDb"
    elif item.get("vote_average"):
        rating = f"{item['vote_average']}/10 TMDB"
    else:
        rating = None

    if media_type == "movie":
        duration = f"{item['runtime']} دقیقه" if item.get("runtime") else None
    else:
        duration = f"{item['numberOfSeasons']} فصل" if item.get("numberOfSeasons") else None

    adult = item.get("adult")
    if adult:
        age_rating = "18+"
    elif adult is False:
        age_rating = "همه سنین"
    else:
        age_rating = None

    genres = []
    for genre in item.get("genres") or []:
        genres.append(genre.get("name") if isinstance(genre, dict) else genre)

    return {
        "id": item.get("_id") or item.get("id"),
        "tmdbId": item.get("tmdbId"),
        "title": item.get("title") or item.get("name"),
        "originalTitle": item.get("originalTitle") or item.get("original_name"),
        "description": truncate_description(item.get("description") or item.get("overview")),
        "posterPath": item.get("posterPath"),
        "backdropPath": item.get("backdropPath"),
        "genres": genres,
        "status": item.get("status"),
        "type": media_type,
        "rating": rating,
        "duration": duration,
        "releaseYear": _year(item.get("releaseDate")) or _year(item.get("firstAirDate")),
        "ageRating": age_rating,
        "heroSubtitle": item.get("tagline"),
        "heroTagline": item.get("tagline"),
        "imdbRating": item.get("imdbRating"),
    }
