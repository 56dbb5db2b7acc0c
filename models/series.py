from typing import List, Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict, field_validator
from bson import ObjectId

from models.enums import SeriesStatus

class SeriesCreate(BaseModel):
    tmdbId: Optional[Union[int, str]] = None
    status: SeriesStatus = SeriesStatus.PENDING

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "tmdbId": 1396,
                "status": "PENDING"
            }
        }
    )

class SeriesUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    originalTitle: Optional[str] = Field(None, max_length=255)
    tagline: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    firstAirDate: Optional[datetime] = None
    lastAirDate: Optional[datetime] = None
    status: Optional[SeriesStatus] = None
    tmdbStatus: Optional[str] = Field(None, max_length=50)
    type: Optional[str] = Field(None, max_length=50)
    originalLanguage: Optional[str] = Field(None, max_length=10)
    popularity: Optional[float] = None
    numberOfSeasons: Optional[int] = Field(None, gt=0)
    numberOfEpisodes: Optional[int] = Field(None, gt=0)
    homepage: Optional[str] = None
    adult: Optional[bool] = None
    imdbRating: Optional[float] = Field(None, ge=0, le=10)
    genreIds: Optional[List[str]] = None

    @field_validator("title", "status", "adult")
    @classmethod
    def reject_null(cls, v):
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

    model_config = ConfigDict(populate_by_name=True)

class SeasonUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    overview: Optional[str] = None
    airDate: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True)

class EpisodeUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    overview: Optional[str] = None
    airDate: Optional[datetime] = None
    runtime: Optional[int] = Field(None, gt=0)

    model_config = ConfigDict(populate_by_name=True)
