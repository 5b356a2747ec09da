import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from movielens.db.models import Base
from movielens.db.session import get_db
from movielens.main import app
from movielens.services.state_store import StateStoreError


class TestProfileApi(unittest.TestCase):
    def setUp(self) -> None:
        engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(engine)
        self.db = sessionmaker(bind=engine, expire_on_commit=False)()
        self.client = TestClient(app)
        app.dependency_overrides[get_db] = lambda: self.db

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        self.db.close()

    def test_me_when_signed_out(self) -> None:
        response = self.client.get("/profile/me")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"]["error"]["code"], "NO_CURRENT_USER")

    def test_sign_in_then_me(self) -> None:
        response = self.client.post(
            "/profile/sign-in", json={"email": "ana@example.com", "password": "secret"}
        )
        self.assertEqual(response.status_code, 200)
        user = response.json()
        self.assertEqual(user["name"], "ana")
        self.assertEqual(user["email"], "ana@example.com")

        self.assertEqual(self.client.get("/profile/me").json(), user)

    def test_sign_in_blank_password_401(self) -> None:
        response = self.client.post(
            "/profile/sign-in", json={"email": "ana@example.com", "password": " "}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["detail"]["error"]["code"], "INVALID_CREDENTIALS")

    def test_sign_up_201(self) -> None:
        response = self.client.post(
            "/profile/sign-up",
            json={"name": "  Ana   Lima ", "email": "ana@example.com", "password": "secret"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["name"], "Ana Lima")

    def test_sign_up_rejects_bad_email(self) -> None:
        response = self.client.post(
            "/profile/sign-up", json={"name": "Ana", "email": "not-an-email", "password": "secret"}
        )
        self.assertEqual(response.status_code, 422)

    def test_patch_requires_user(self) -> None:
        response = self.client.patch("/profile/me", json={"name": "Ana"})
        self.assertEqual(response.status_code, 401)

    def test_patch_photo(self) -> None:
        self.client.post("/profile/sign-in", json={"email": "ana@example.com", "password": "secret"})

        response = self.client.patch("/profile/me", json={"photo_url": "data:image/png;base64,AAAA"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["photo_url"], "data:image/png;base64,AAAA")
        self.assertEqual(response.json()["name"], "ana")

    def test_patch_rejects_blank_name(self) -> None:
        self.client.post(
            "/profile/sign-up", json={"name": "Ann", "email": "ann@example.com", "password": "secret"}
        )

        response = self.client.patch("/profile/me", json={"name": "   "})

        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.client.get("/profile/me").json()["name"], "Ann")

    def test_patch_rejects_overlong_name(self) -> None:
        self.client.post("/profile/sign-in", json={"email": "ana@example.com", "password": "secret"})

        response = self.client.patch("/profile/me", json={"name": "x" * 61})

        self.assertEqual(response.status_code, 422)

    def test_sign_out(self) -> None:
        self.client.post("/profile/sign-in", json={"email": "ana@example.com", "password": "secret"})

        response = self.client.post("/profile/sign-out")

        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get("/profile/me").status_code, 404)

    def test_theme(self) -> None:
        self.assertEqual(self.client.get("/profile/theme").json(), {"theme": "dark"})
        self.assertEqual(self.client.put("/profile/theme", json={"theme": "light"}).status_code, 200)
        self.assertEqual(self.client.get("/profile/theme").json(), {"theme": "light"})
        self.assertEqual(self.client.put("/profile/theme", json={"theme": "sepia"}).status_code, 422)

    def test_store_failure_maps_to_503(self) -> None:
        with patch(
            "movielens.services.state_store.StateStore.set_current_user",
            side_effect=StateStoreError("disk full"),
        ):
            response = self.client.post(
                "/profile/sign-in", json={"email": "ana@example.com", "password": "secret"}
            )
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["detail"]["error"]["code"], "STATE_STORE_UNAVAILABLE")
