from enum import Enum

class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"

class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"
    PREFER_NOT_TO_SAY = "PREFER_NOT_TO_SAY"

class MovieStatus(str, Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"
    UPCOMING = "UPCOMING"

class SeriesStatus(str, Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"
    ENDED = "ENDED"
    CANCELED = "CANCELED"
    UPCOMING = "UPCOMING"

class CreditType(str, Enum):
    ACTOR = "ACTOR"
    DIRECTOR = "DIRECTOR"
    WRITER = "WRITER"
    PRODUCER = "PRODUCER"

# Statuses visible on the public site
PUBLIC_MOVIE_STATUSES = [MovieStatus.PUBLISHED.value, MovieStatus.ARCHIVED.value]
PUBLIC_SERIES_STATUSES = [SeriesStatus.PUBLISHED.value, SeriesStatus.ENDED.value, SeriesStatus.CANCELED.value]
PUBLIC_SERIES_DETAIL_STATUSES = PUBLIC_SERIES_STATUSES + [SeriesStatus.ARCHIVED.value]
