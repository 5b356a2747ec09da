"""
TMDB Catalog Client
───────────────────
Wraps the TMDB v3 REST API for browsing: curated lists, genres, discovery
filters, free-text search, single-title details and trailer lookup.

Failure policy:
  Any non-2xx status, transport error, timeout, malformed JSON or payload
  that does not validate is folded into the same outcome: the error is
  logged, one notification is sent to the notifier, and the operation
  returns [] (lists) or None (single records). Nothing is raised to the
  caller, so "not found" and "TMDB unreachable" look the same here.

One attempt per call. No caching.
"""
from typing import Any, Protocol, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from movielens.core.config import settings
from movielens.schemas.catalog import Actor, Genre, Movie, MovieDetails, Notice, Video

logger = structlog.get_logger(__name__)

TRAILER_TYPE = "Trailer"
TRAILER_SITE = "YouTube"

IMAGE_SIZES: dict[str, dict[str, str]] = {
    "poster": {"small": "w342", "medium": "w500", "large": "w780", "original": "original"},
    "backdrop": {"small": "w300", "medium": "w780", "large": "w1280", "original": "original"},
    "profile": {"small": "w45", "medium": "w185", "large": "h632", "original": "original"},
}

RecordT = TypeVar("RecordT", bound=BaseModel)


class TMDBConfigError(Exception):
    """Raised when TMDB client is used without an API key."""


class TMDBUpstreamError(Exception):
    """Raised internally for any failed TMDB request/response."""


# ── Notifications ─────────────────────────────────────────────────────────────


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class NotificationLog:
    """Collects user-facing notices for one request, in emission order."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, message: str) -> None:
        self.notices.append(Notice(level="error", message=message))

    def __len__(self) -> int:
        return len(self.notices)


# ── Image URLs ────────────────────────────────────────────────────────────────


def image_url(path: str | None, kind: str = "poster", size: str = "medium") -> str | None:
    """
    Build a loadable image URL from a TMDB path fragment.

    *kind* is poster, backdrop or profile; *size* is small, medium, large or
    original. Returns None when there is no path.
    """
    sizes = IMAGE_SIZES.get(kind)
    if sizes is None:
        raise ValueError(f"Unknown image kind: {kind!r}")
    size_segment = sizes.get(size)
    if size_segment is None:
        raise ValueError(f"Unknown image size: {size!r}")
    if not path:
        return None
    return f"{settings.TMDB_IMAGE_BASE_URL}/{size_segment}{path}"


def trailer_url(key: str | None) -> str | None:
    if not key:
        return None
    return f"https://www.youtube.com/watch?v={key}"


# ── Client ────────────────────────────────────────────────────────────────────


class TMDBService:
    """
    Thin async wrapper around TMDB v3 API.
    Uses httpx for HTTP — non-blocking in async FastAPI context.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        notifier: Notifier | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.TMDB_API_KEY
        if not self.api_key:
            raise TMDBConfigError(
                "TMDB_API_KEY is not set. "
                "Add it to your .env file or pass it explicitly."
            )
        self.notifier = notifier if notifier is not None else NotificationLog()
        self._transport = transport

    # ── Curated lists ─────────────────────────────────────────────────────────

    async def list_popular(self, page: int = 1) -> list[Movie]:
        return await self._fetch_movies(
            "/movie/popular", {"page": page}, "Failed to load popular movies"
        )

    async def list_top_rated(self, page: int = 1) -> list[Movie]:
        return await self._fetch_movies(
            "/movie/top_rated", {"page": page}, "Failed to load top rated movies"
        )

    async def list_upcoming(self, page: int = 1) -> list[Movie]:
        return await self._fetch_movies(
            "/movie/upcoming", {"page": page}, "Failed to load upcoming movies"
        )

    async def list_now_playing(self, page: int = 1) -> list[Movie]:
        return await self._fetch_movies(
            "/movie/now_playing", {"page": page}, "Failed to load now playing movies"
        )

    async def list_genres(self) -> list[Genre]:
        """Return the complete static genre list (not paginated)."""
        try:
            payload = await self._get("/genre/movie/list", {})
            return self._parse_list(payload, "genres", Genre)
        except TMDBUpstreamError as exc:
            self._report("list_genres", exc, "Failed to load genres")
            return []

    # ── Discovery ─────────────────────────────────────────────────────────────
    # Identifiers are passed through untouched; TMDB decides what is valid.

    async def discover_by_genre(self, genre_id: Any, page: int = 1) -> list[Movie]:
        return await self._fetch_movies(
            "/discover/movie",
            {"with_genres": genre_id, "page": page},
            "Failed to load movies for this genre",
        )

    async def discover_by_language(self, language_code: Any, page: int = 1) -> list[Movie]:
        return await self._fetch_movies(
            "/discover/movie",
            {"with_original_language": language_code, "page": page},
            f"Failed to load {language_code} movies",
        )

    async def discover_by_cast(self, actor_id: Any, page: int = 1) -> list[Movie]:
        return await self._fetch_movies(
            "/discover/movie",
            {"with_cast": actor_id, "page": page},
            "Failed to load movies for this actor",
        )

    # ── Search ────────────────────────────────────────────────────────────────

    async def search_movies(self, query: str, page: int = 1) -> list[Movie]:
        """Free-text title search. A blank query never reaches TMDB."""
        if not query.strip():
            return []
        return await self._fetch_movies(
            "/search/movie", {"query": query, "page": page}, "Failed to search movies"
        )

    async def search_actors(self, query: str, page: int = 1) -> list[Actor]:
        """Free-text person search. A blank query never reaches TMDB."""
        if not query.strip():
            return []
        try:
            payload = await self._get("/search/person", {"query": query, "page": page})
            return self._parse_list(payload, "results", Actor)
        except TMDBUpstreamError as exc:
            self._report("search_actors", exc, "Failed to search actors")
            return []

    # ── Single title ──────────────────────────────────────────────────────────

    async def get_details(self, movie_id: int) -> MovieDetails | None:
        """
        Fetch one title with credits and similar titles embedded.

        Returns None if the id does not resolve or the call fails.
        """
        try:
            payload = await self._get(
                f"/movie/{movie_id}",
                {"append_to_response": "credits,similar"},
            )
            if not isinstance(payload, dict):
                raise TMDBUpstreamError("TMDB details payload is not an object")
            return MovieDetails.model_validate(payload)
        except (TMDBUpstreamError, ValidationError) as exc:
            self._report("get_details", exc, "Failed to load movie details")
            return None

    async def get_trailer_key(self, movie_id: int) -> str | None:
        """
        Return the key of the first YouTube trailer in TMDB's video order.
        """
        try:
            payload = await self._get(f"/movie/{movie_id}/videos", {})
            videos = self._parse_list(payload, "results", Video)
        except TMDBUpstreamError as exc:
            self._report("get_trailer_key", exc, "Failed to load movie trailer")
            return None

        return next(
            (v.key for v in videos if v.type == TRAILER_TYPE and v.site == TRAILER_SITE),
            None,
        )

    # ── Internals ─────────────────────────────────────────────────────────────

    async def _fetch_movies(
        self,
        path: str,
        params: dict[str, Any],
        failure_message: str,
    ) -> list[Movie]:
        try:
            payload = await self._get(path, params)
            return self._parse_list(payload, "results", Movie)
        except TMDBUpstreamError as exc:
            self._report(path, exc, failure_message)
            return []

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        """Single GET against TMDB; every failure becomes TMDBUpstreamError."""
        query = {
            "api_key": self.api_key,
            "language": settings.TMDB_LANGUAGE,
            **params,
        }

        try:
            async with httpx.AsyncClient(
                timeout=settings.TMDB_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.get(f"{settings.TMDB_BASE_URL}{path}", params=query)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TMDBUpstreamError(
                f"TMDB {path} failed with status {exc.response.status_code}"
            ) from exc
        except httpx.RequestError as exc:
            raise TMDBUpstreamError(f"TMDB {path} request failed") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise TMDBUpstreamError(f"TMDB {path} returned malformed JSON") from exc

    def _parse_list(
        self,
        payload: Any,
        field: str,
        model: type[RecordT],
    ) -> list[RecordT]:
        """Validate ``payload[field]`` as a list of *model* records."""
        if not isinstance(payload, dict):
            raise TMDBUpstreamError("TMDB payload is not an object")
        rows = payload.get(field) or []
        if not isinstance(rows, list):
            raise TMDBUpstreamError(f"TMDB payload field {field!r} is not a list")
        try:
            return [model.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise TMDBUpstreamError(f"TMDB {field} rows failed validation") from exc

    def _report(self, operation: str, exc: Exception, message: str) -> None:
        """Log a failed call and raise exactly one user-facing notice."""
        logger.error(
            "tmdb_request_failed",
            operation=operation,
            error=str(exc),
            cause=repr(exc.__cause__) if exc.__cause__ else None,
        )
        try:
            self.notifier.notify(message)
        except Exception:
            logger.exception("tmdb_notifier_failed", operation=operation)
