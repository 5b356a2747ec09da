import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from movielens.core.config import settings
from movielens.deps.state import get_notification_log, get_tmdb_service
from movielens.main import app
from movielens.schemas.catalog import Actor, Genre, Movie, MovieDetails
from movielens.services.tmdb_client import NotificationLog


def _movies(count: int) -> list[Movie]:
    return [Movie(id=i, title=f"Movie {i}") for i in range(1, count + 1)]


class TestCatalogApi(unittest.TestCase):
    def setUp(self) -> None:
        self.client = TestClient(app)
        self.notices = NotificationLog()
        self.tmdb = SimpleNamespace()
        app.dependency_overrides[get_tmdb_service] = lambda: self.tmdb
        app.dependency_overrides[get_notification_log] = lambda: self.notices

    def tearDown(self) -> None:
        app.dependency_overrides.clear()

    def test_full_page_has_more(self) -> None:
        self.tmdb.list_popular = AsyncMock(return_value=_movies(20))

        response = self.client.get("/catalog/movies/popular", params={"page": 2})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["meta"], {"page": 2, "count": 20, "has_more": True, "outcome": "ok"})
        self.assertEqual(payload["notices"], [])
        self.tmdb.list_popular.assert_awaited_once_with(2)

    def test_short_page_has_no_more(self) -> None:
        self.tmdb.list_top_rated = AsyncMock(return_value=_movies(7))

        payload = self.client.get("/catalog/movies/top-rated").json()

        self.assertFalse(payload["meta"]["has_more"])
        self.assertEqual(payload["meta"]["count"], 7)
        self.tmdb.list_top_rated.assert_awaited_once_with(1)

    def test_unknown_category_404(self) -> None:
        response = self.client.get("/catalog/movies/trending")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"]["error"]["code"], "UNKNOWN_CATEGORY")

    def test_failed_fetch_is_empty_with_notice(self) -> None:
        async def failing(genre_id, page):
            self.notices.notify("Failed to load movies for this genre")
            return []

        self.tmdb.discover_by_genre = failing

        response = self.client.get("/catalog/discover/genre/0", params={"page": 1})

        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["items"], [])
        self.assertEqual(payload["meta"]["outcome"], "error")
        self.assertEqual(
            payload["notices"],
            [{"level": "error", "message": "Failed to load movies for this genre"}],
        )

    def test_genres(self) -> None:
        self.tmdb.list_genres = AsyncMock(return_value=[Genre(id=18, name="Drama")])

        payload = self.client.get("/catalog/genres").json()

        self.assertEqual(payload["items"], [{"id": 18, "name": "Drama"}])
        self.assertEqual(payload["outcome"], "ok")

    def test_discover_by_language_and_cast(self) -> None:
        self.tmdb.discover_by_language = AsyncMock(return_value=_movies(3))
        self.tmdb.discover_by_cast = AsyncMock(return_value=[])

        self.assertEqual(self.client.get("/catalog/discover/language/ko").json()["meta"]["count"], 3)
        cast_payload = self.client.get("/catalog/discover/cast/287", params={"page": 4}).json()

        self.assertEqual(cast_payload["meta"]["outcome"], "empty")
        self.tmdb.discover_by_language.assert_awaited_once_with("ko", 1)
        self.tmdb.discover_by_cast.assert_awaited_once_with(287, 4)

    def test_discover_ids_must_be_integers(self) -> None:
        self.tmdb.discover_by_genre = AsyncMock(return_value=[])
        self.tmdb.discover_by_cast = AsyncMock(return_value=[])

        self.assertEqual(self.client.get("/catalog/discover/genre/drama").status_code, 422)
        self.assertEqual(self.client.get("/catalog/discover/cast/abc").status_code, 422)
        self.tmdb.discover_by_genre.assert_not_awaited()
        self.tmdb.discover_by_cast.assert_not_awaited()

        self.client.get("/catalog/discover/genre/999999")
        self.tmdb.discover_by_genre.assert_awaited_once_with(999999, 1)

    def test_search_movies_passes_query(self) -> None:
        self.tmdb.search_movies = AsyncMock(return_value=_movies(1))

        self.client.get("/catalog/search/movies", params={"q": "dune", "page": 3})

        self.tmdb.search_movies.assert_awaited_once_with("dune", 3)

    def test_search_people_acting_only(self) -> None:
        people = [Actor(id=i, name=f"P{i}", known_for_department="Acting") for i in range(19)]
        people.append(Actor(id=99, name="Director", known_for_department="Directing"))
        self.tmdb.search_actors = AsyncMock(return_value=people)

        payload = self.client.get(
            "/catalog/search/people", params={"q": "p", "acting_only": "true"}
        ).json()

        self.assertEqual(payload["meta"]["count"], 19)
        self.assertTrue(payload["meta"]["has_more"])
        self.assertNotIn(99, [a["id"] for a in payload["items"]])

    def test_details_success(self) -> None:
        self.tmdb.get_details = AsyncMock(return_value=MovieDetails(id=27205, title="Inception", runtime=148))

        response = self.client.get("/catalog/movies/27205/details")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["runtime"], 148)
        self.assertEqual(response.json()["credits"], {"cast": [], "crew": []})

    def test_details_failure_is_explicit(self) -> None:
        async def failing(movie_id):
            self.notices.notify("Failed to load movie details")
            return None

        self.tmdb.get_details = failing

        response = self.client.get("/catalog/movies/1/details")

        self.assertEqual(response.status_code, 404)
        detail = response.json()["detail"]
        self.assertEqual(detail["error"]["code"], "MOVIE_LOAD_FAILED")
        self.assertEqual(detail["notices"][0]["message"], "Failed to load movie details")

    def test_trailer(self) -> None:
        self.tmdb.get_trailer_key = AsyncMock(return_value="YoHD9XEInc0")

        payload = self.client.get("/catalog/movies/27205/trailer").json()

        self.assertEqual(payload["key"], "YoHD9XEInc0")
        self.assertEqual(payload["url"], "https://www.youtube.com/watch?v=YoHD9XEInc0")

    def test_no_trailer(self) -> None:
        self.tmdb.get_trailer_key = AsyncMock(return_value=None)

        payload = self.client.get("/catalog/movies/1/trailer").json()

        self.assertIsNone(payload["key"])
        self.assertIsNone(payload["url"])

    def test_compare(self) -> None:
        self.tmdb.get_details = AsyncMock(side_effect=lambda movie_id: MovieDetails(id=movie_id))

        payload = self.client.get("/catalog/compare", params=[("ids", 1), ("ids", 2)]).json()

        self.assertEqual([m["id"] for m in payload["items"]], [1, 2])

    def test_compare_limit(self) -> None:
        self.tmdb.get_details = AsyncMock()

        response = self.client.get("/catalog/compare", params=[("ids", i) for i in range(1, 5)])

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"]["error"]["code"], "COMPARE_LIMIT")

    def test_images(self) -> None:
        payload = self.client.get(
            "/catalog/images", params={"path": "/b.jpg", "kind": "backdrop", "size": "small"}
        ).json()
        self.assertEqual(payload["url"], "https://image.tmdb.org/t/p/w300/b.jpg")

        bad = self.client.get("/catalog/images", params={"path": "/b.jpg", "size": "huge"})
        self.assertEqual(bad.status_code, 400)


class TestCatalogApiNotConfigured(unittest.TestCase):
    def test_missing_key_is_503(self) -> None:
        client = TestClient(app)
        if settings.TMDB_API_KEY:
            self.skipTest("TMDB_API_KEY is set in this environment")
        response = client.get("/catalog/genres")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["detail"]["error"]["code"], "TMDB_NOT_CONFIGURED")
