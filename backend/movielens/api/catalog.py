"""
Catalog API — /catalog
───────────────────────
Endpoints:
  GET /catalog/movies/{category}                 — popular | top-rated | upcoming | now-playing
  GET /catalog/genres                            — Static genre list
  GET /catalog/discover/genre/{genre_id}         — Discover by genre
  GET /catalog/discover/language/{language_code} — Discover by original language
  GET /catalog/discover/cast/{actor_id}          — Discover by cast member
  GET /catalog/search/movies                     — Title search
  GET /catalog/search/people                     — Person search
  GET /catalog/movies/{movie_id}/details         — Details + credits + similar
  GET /catalog/movies/{movie_id}/trailer         — First YouTube trailer
  GET /catalog/compare                           — Side-by-side details (max 3)
  GET /catalog/images                            — Resolve an image path to a URL

TMDB failures never surface as 5xx: lists come back empty with
meta.outcome == "error" and the user-facing message in notices.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status

from movielens.deps.state import error_detail, get_notification_log, get_tmdb_service
from movielens.schemas.catalog import (
    ActorListResponse,
    CompareResponse,
    GenreListResponse,
    ImageUrlResponse,
    Movie,
    MovieDetails,
    MovieListResponse,
    PageMeta,
    TrailerResponse,
)
from movielens.services.catalog_service import (
    CompareLimitError,
    MAX_COMPARE_MOVIES,
    acting_only,
    compare_movies,
    fetch_outcome,
    has_more_pages,
)
from movielens.services.tmdb_client import NotificationLog, TMDBService, image_url, trailer_url

router = APIRouter()

_CATEGORIES: dict[str, str] = {
    "popular": "list_popular",
    "top-rated": "list_top_rated",
    "upcoming": "list_upcoming",
    "now-playing": "list_now_playing",
}


def _movie_page(items: list[Movie], page: int, notices: NotificationLog) -> MovieListResponse:
    return MovieListResponse(
        items=items,
        meta=PageMeta(
            page=page,
            count=len(items),
            has_more=has_more_pages(items),
            outcome=fetch_outcome(items, notices.notices),
        ),
        notices=notices.notices,
    )


# ── Lists ─────────────────────────────────────────────────────────────────────

@router.get("/movies/{category}", response_model=MovieListResponse)
async def list_movies(
    category: str,
    page: int = Query(1, ge=1),
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> MovieListResponse:
    """One page of a curated TMDB list."""
    method_name = _CATEGORIES.get(category)
    if method_name is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail("UNKNOWN_CATEGORY", f"Unknown category {category!r}"),
        )
    items = await getattr(client, method_name)(page)
    return _movie_page(items, page, notices)


@router.get("/genres", response_model=GenreListResponse)
async def list_genres(
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> GenreListResponse:
    genres = await client.list_genres()
    return GenreListResponse(
        items=genres,
        outcome=fetch_outcome(genres, notices.notices),
        notices=notices.notices,
    )


# ── Discovery ─────────────────────────────────────────────────────────────────

@router.get("/discover/genre/{genre_id}", response_model=MovieListResponse)
async def discover_by_genre(
    genre_id: int,
    page: int = Query(1, ge=1),
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> MovieListResponse:
    """
    Movies in one TMDB genre. The path only admits integer ids (non-integers
    get 422 here); any integer, including unknown ones, goes to TMDB as is.
    """
    items = await client.discover_by_genre(genre_id, page)
    return _movie_page(items, page, notices)


@router.get("/discover/language/{language_code}", response_model=MovieListResponse)
async def discover_by_language(
    language_code: str,
    page: int = Query(1, ge=1),
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> MovieListResponse:
    items = await client.discover_by_language(language_code, page)
    return _movie_page(items, page, notices)


@router.get("/discover/cast/{actor_id}", response_model=MovieListResponse)
async def discover_by_cast(
    actor_id: int,
    page: int = Query(1, ge=1),
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> MovieListResponse:
    """
    An actor's filmography, as TMDB discovery sees it. Like genre ids, the
    actor id must be an integer; its existence is left to TMDB.
    """
    items = await client.discover_by_cast(actor_id, page)
    return _movie_page(items, page, notices)


# ── Search ────────────────────────────────────────────────────────────────────

@router.get("/search/movies", response_model=MovieListResponse)
async def search_movies(
    q: str = Query("", description="Search query; blank returns nothing"),
    page: int = Query(1, ge=1),
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> MovieListResponse:
    items = await client.search_movies(q, page)
    return _movie_page(items, page, notices)


@router.get("/search/people", response_model=ActorListResponse)
async def search_people(
    q: str = Query("", description="Search query; blank returns nothing"),
    page: int = Query(1, ge=1),
    acting_only_: bool = Query(False, alias="acting_only"),
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> ActorListResponse:
    """
    Person search. With acting_only=true, crew-only people are dropped;
    has_more still reflects the unfiltered provider page.
    """
    actors = await client.search_actors(q, page)
    more = has_more_pages(actors)
    if acting_only_:
        actors = acting_only(actors)
    return ActorListResponse(
        items=actors,
        meta=PageMeta(
            page=page,
            count=len(actors),
            has_more=more,
            outcome=fetch_outcome(actors, notices.notices),
        ),
        notices=notices.notices,
    )


# ── Single title ──────────────────────────────────────────────────────────────

@router.get("/movies/{movie_id}/details", response_model=MovieDetails)
async def get_movie_details(
    movie_id: int,
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> MovieDetails:
    """Details with credits and similar titles; 404 means "failed to load"."""
    details = await client.get_details(movie_id)
    if details is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                **error_detail("MOVIE_LOAD_FAILED", f"Movie {movie_id} failed to load"),
                "notices": [n.model_dump() for n in notices.notices],
            },
        )
    return details


@router.get("/movies/{movie_id}/trailer", response_model=TrailerResponse)
async def get_movie_trailer(
    movie_id: int,
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> TrailerResponse:
    key = await client.get_trailer_key(movie_id)
    return TrailerResponse(
        movie_id=movie_id,
        key=key,
        url=trailer_url(key),
        notices=notices.notices,
    )


@router.get("/compare", response_model=CompareResponse)
async def compare(
    ids: list[int] = Query(..., description=f"Up to {MAX_COMPARE_MOVIES} movie ids"),
    client: TMDBService = Depends(get_tmdb_service),
    notices: NotificationLog = Depends(get_notification_log),
) -> CompareResponse:
    try:
        items = await compare_movies(client, ids)
    except CompareLimitError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("COMPARE_LIMIT", str(exc)),
        ) from exc
    return CompareResponse(items=items, notices=notices.notices)


@router.get("/images", response_model=ImageUrlResponse)
def resolve_image(
    path: str | None = Query(None),
    kind: str = Query("poster"),
    size: str = Query("medium"),
) -> ImageUrlResponse:
    """Turn a TMDB image path fragment into a loadable URL."""
    try:
        return ImageUrlResponse(url=image_url(path, kind, size))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("INVALID_IMAGE_SIZE", str(exc)),
        ) from exc
