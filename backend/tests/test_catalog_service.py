import unittest
from unittest.mock import AsyncMock

from movielens.schemas.catalog import Actor, MovieDetails, Notice
from movielens.services.catalog_service import (
    CompareLimitError,
    acting_only,
    compare_movies,
    fetch_outcome,
    has_more_pages,
)


def _details(movie_id: int) -> MovieDetails:
    return MovieDetails(id=movie_id, title=f"Movie {movie_id}")


class TestCatalogHelpers(unittest.TestCase):
    def test_has_more_pages_only_for_full_page(self) -> None:
        self.assertTrue(has_more_pages(list(range(20))))
        self.assertFalse(has_more_pages(list(range(19))))
        self.assertFalse(has_more_pages([]))

    def test_acting_only_keeps_order(self) -> None:
        actors = [
            Actor(id=1, name="A", known_for_department="Acting"),
            Actor(id=2, name="B", known_for_department="Directing"),
            Actor(id=3, name="C", known_for_department="Acting"),
        ]
        self.assertEqual([a.id for a in acting_only(actors)], [1, 3])

    def test_fetch_outcome_tags(self) -> None:
        notice = Notice(message="Failed to load popular movies")
        self.assertEqual(fetch_outcome([], [notice]), "error")
        self.assertEqual(fetch_outcome([], []), "empty")
        self.assertEqual(fetch_outcome([object()], []), "ok")


class TestCompareMovies(unittest.IsolatedAsyncioTestCase):
    async def test_keeps_input_order_and_drops_failures(self) -> None:
        details = {1: _details(1), 3: _details(3)}
        client = AsyncMock()
        client.get_details.side_effect = lambda movie_id: details.get(movie_id)

        result = await compare_movies(client, [3, 2, 1])

        self.assertEqual([d.id for d in result], [3, 1])
        self.assertEqual(client.get_details.await_count, 3)

    async def test_duplicates_are_collapsed(self) -> None:
        client = AsyncMock()
        client.get_details.side_effect = _details

        result = await compare_movies(client, [5, 5, 6, 5])

        self.assertEqual([d.id for d in result], [5, 6])
        self.assertEqual(client.get_details.await_count, 2)

    async def test_more_than_three_rejected_before_any_call(self) -> None:
        client = AsyncMock()

        with self.assertRaises(CompareLimitError):
            await compare_movies(client, [1, 2, 3, 4])
        client.get_details.assert_not_awaited()

    async def test_empty_selection(self) -> None:
        client = AsyncMock()
        self.assertEqual(await compare_movies(client, []), [])
