from typing import List, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator
from bson import ObjectId

from models.enums import MovieStatus

class MovieCreate(BaseModel):
    # Parsed by the controller so a bad value answers 400 like the rest of the admin API
    tmdbId: Optional[Union[int, str]] = None
    status: MovieStatus = MovieStatus.PENDING

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "tmdbId": 27205,
                "status": "PENDING"
            }
        }
    )

class MovieUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    originalTitle: Optional[str] = Field(None, max_length=255)
    tagline: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    releaseDate: Optional[datetime] = None
    runtime: Optional[int] = Field(None, gt=0)
    status: Optional[MovieStatus] = None
    originalLanguage: Optional[str] = Field(None, max_length=10)
    popularity: Optional[float] = None
    imdbId: Optional[str] = Field(None, max_length=20)
    adult: Optional[bool] = None
    posterPath: Optional[str] = None
    backdropPath: Optional[str] = None
    trailerUrl: Optional[str] = None
    imdbRating: Optional[float] = Field(None, ge=0, le=10)
    rottenTomatoesScore: Optional[int] = Field(None, ge=0, le=100)
    countryOfOrigin: Optional[str] = None
    genreIds: Optional[List[str]] = None

    @field_validator("title", "status", "adult")
    @classmethod
    def reject_null(cls, v):
        # Omit the field to leave it unchanged; null would wipe a required value
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("genreIds")
    @classmethod
    def validate_genre_ids(cls, v):
        if v is None:
            return v
        for genre_id in v:
            if not ObjectId.is_valid(genre_id):
                raise ValueError(f"Invalid genre ID format: {genre_id}")
        return v

    @field_validator("posterPath", "backdropPath", "trailerUrl")
    @classmethod
    def validate_url(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Must be an absolute http(s) URL")
        return v

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "تلقین",
                "status": "PUBLISHED",
                "runtime": 148,
                "imdbRating": 8.8,
                "genreIds": ["665f1c2e9b1e8a3d4c5b6a79"]
            }
        }
    )
