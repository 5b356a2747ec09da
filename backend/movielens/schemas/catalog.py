"""
Catalog records mapped from TMDB payloads, plus response envelopes.
"""
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _ProviderRecord(BaseModel):
    """TMDB sends nulls for text it does not have; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class Genre(_ProviderRecord):
    id: int
    name: str


class Movie(_ProviderRecord):
    """A list/search row from TMDB."""

    id: int
    title: str = ""
    poster_path: str | None = None
    backdrop_path: str | None = None
    release_date: str = ""
    overview: str = ""
    vote_average: float = 0.0
    genre_ids: list[int] = Field(default_factory=list)
    original_language: str = ""

    @field_validator("title", "release_date", "overview", "original_language", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("vote_average", mode="before")
    @classmethod
    def _none_as_zero(cls, v: object) -> object:
        return 0.0 if v is None else v


class ProductionCompany(_ProviderRecord):
    id: int
    name: str
    logo_path: str | None = None
    origin_country: str = ""

    @field_validator("origin_country", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v


class CastMember(_ProviderRecord):
    id: int
    name: str
    character: str = ""
    profile_path: str | None = None

    @field_validator("character", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v


class CrewMember(_ProviderRecord):
    id: int
    name: str
    job: str = ""
    profile_path: str | None = None

    @field_validator("job", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v


class Credits(_ProviderRecord):
    cast: list[CastMember] = Field(default_factory=list)
    crew: list[CrewMember] = Field(default_factory=list)


class SimilarMovies(_ProviderRecord):
    results: list[Movie] = Field(default_factory=list)


class MovieDetails(Movie):
    """Single title with credits and similar titles pre-resolved."""

    runtime: int | None = None
    genres: list[Genre] = Field(default_factory=list)
    status: str = ""
    tagline: str = ""
    budget: int = 0
    revenue: int = 0
    production_companies: list[ProductionCompany] = Field(default_factory=list)
    credits: Credits = Field(default_factory=Credits)
    similar: SimilarMovies = Field(default_factory=SimilarMovies)

    @field_validator("status", "tagline", mode="before")
    @classmethod
    def _details_none_as_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("budget", "revenue", mode="before")
    @classmethod
    def _unknown_money(cls, v: object) -> object:
        return 0 if v is None else v


class Actor(_ProviderRecord):
    """A person search row."""

    id: int
    name: str
    profile_path: str | None = None
    known_for_department: str = ""
    popularity: float = 0.0

    @field_validator("known_for_department", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v

    @field_validator("popularity", mode="before")
    @classmethod
    def _none_as_zero(cls, v: object) -> object:
        return 0.0 if v is None else v


class Video(_ProviderRecord):
    key: str
    site: str = ""
    type: str = ""
    name: str = ""

    @field_validator("site", "type", "name", mode="before")
    @classmethod
    def _none_as_empty(cls, v: object) -> object:
        return "" if v is None else v


# ── Envelopes ─────────────────────────────────────────────────────────────────

FetchOutcome = Literal["ok", "empty", "error"]


class Notice(BaseModel):
    """User-facing notification raised by a catalog call."""

    level: Literal["error", "info"] = "error"
    message: str


class PageMeta(BaseModel):
    page: int
    count: int
    has_more: bool
    outcome: FetchOutcome


class MovieListResponse(BaseModel):
    items: list[Movie]
    meta: PageMeta
    notices: list[Notice] = Field(default_factory=list)


class ActorListResponse(BaseModel):
    items: list[Actor]
    meta: PageMeta
    notices: list[Notice] = Field(default_factory=list)


class GenreListResponse(BaseModel):
    items: list[Genre]
    outcome: FetchOutcome
    notices: list[Notice] = Field(default_factory=list)


class TrailerResponse(BaseModel):
    movie_id: int
    key: str | None
    url: str | None
    notices: list[Notice] = Field(default_factory=list)


class CompareResponse(BaseModel):
    items: list[MovieDetails]
    notices: list[Notice] = Field(default_factory=list)


class ImageUrlResponse(BaseModel):
    url: str | None
