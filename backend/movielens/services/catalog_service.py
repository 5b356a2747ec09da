"""
Catalog helpers layered over the TMDB client: paging inference, actor
filtering, side-by-side comparison and outcome tagging.
"""
import asyncio
from collections.abc import Iterable, Sequence

from movielens.schemas.catalog import Actor, FetchOutcome, MovieDetails, Notice
from movielens.services.tmdb_client import TMDBService

# TMDB returns at most this many rows per page.
PROVIDER_PAGE_SIZE = 20
MAX_COMPARE_MOVIES = 3
ACTING_DEPARTMENT = "Acting"


class CompareLimitError(Exception):
    """Raised when more movies are requested for comparison than allowed."""


def has_more_pages(items: Sequence[object]) -> bool:
    """A full provider page means another page may exist."""
    return len(items) >= PROVIDER_PAGE_SIZE


def acting_only(actors: Iterable[Actor]) -> list[Actor]:
    """Keep people whose known department is Acting, preserving order."""
    return [a for a in actors if a.known_for_department == ACTING_DEPARTMENT]


def fetch_outcome(items: Sequence[object], notices: Sequence[Notice]) -> FetchOutcome:
    """Tag a fetch as error / empty / ok so callers need not guess from []."""
    if notices:
        return "error"
    if not items:
        return "empty"
    return "ok"


def _dedupe_ids(movie_ids: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    ordered: list[int] = []
    for movie_id in movie_ids:
        if movie_id in seen:
            continue
        seen.add(movie_id)
        ordered.append(movie_id)
    return ordered


async def compare_movies(
    client: TMDBService,
    movie_ids: Iterable[int],
    *,
    max_count: int = MAX_COMPARE_MOVIES,
) -> list[MovieDetails]:
    """
    Load details for up to *max_count* distinct movies side by side.

    Details are fetched concurrently; movies that fail to load are dropped
    (the client has already raised a notice for each). Input order is kept.
    """
    ids = _dedupe_ids(movie_ids)
    if len(ids) > max_count:
        raise CompareLimitError(f"You can compare up to {max_count} movies at a time")
    if not ids:
        return []

    results = await asyncio.gather(*(client.get_details(movie_id) for movie_id in ids))
    return [details for details in results if details is not None]
