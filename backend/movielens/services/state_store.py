"""
Device-local persisted state for the current-user slot, review table and theme.

Storage is a key-value table (see db.models.KeyValueEntry). Each record is
a whole JSON document under a fixed key; every write replaces the whole
document. Records are wrapped as ``{"schema_version": N, "data": ...}``;
values without ``schema_version`` are the legacy unversioned shape written
by the browser build of the app and are upgraded on read.

All operations are synchronous and commit immediately.
"""
import json
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from movielens.db.models import KeyValueEntry
from movielens.schemas.profile import Theme, User
from movielens.schemas.reviews import ReviewInput, UserReview

logger = structlog.get_logger(__name__)

STORAGE_KEY_USER = "movieLens_user"
STORAGE_KEY_REVIEWS = "movieLens_reviews"
STORAGE_KEY_THEME = "movieLens_theme"

SCHEMA_VERSION = 1
REVIEW_WRITE_ATTEMPTS = 3
DEFAULT_THEME: Theme = "dark"
_THEMES = ("dark", "light")


class StateStoreError(Exception):
    """Raised when the backing storage cannot be read or written."""


class UnsupportedSchemaError(StateStoreError):
    """Raised when a record was written by a newer schema version."""


class StoreConflictError(StateStoreError):
    """Raised when a compare-and-set write keeps losing to other writers."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Key-value backend ─────────────────────────────────────────────────────────


class KeyValueStore:
    """String values under string keys, with a per-key version counter."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, key: str) -> str | None:
        entry = self.get_entry(key)
        return entry[0] if entry is not None else None

    def get_entry(self, key: str) -> tuple[str, int] | None:
        """Return (value, version), bypassing the session identity map."""
        try:
            row = self.db.execute(
                select(KeyValueEntry.value, KeyValueEntry.version).where(KeyValueEntry.key == key)
            ).first()
        except SQLAlchemyError as exc:
            raise StateStoreError(f"Failed to read {key!r}") from exc
        if row is None:
            return None
        return row.value, row.version

    def set(self, key: str, value: str) -> None:
        """Unconditional write; last writer wins."""
        try:
            result = self.db.execute(
                update(KeyValueEntry)
                .where(KeyValueEntry.key == key)
                .values(value=value, version=KeyValueEntry.version + 1, updated_at=_utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                self.db.execute(self._insert(key, value))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StateStoreError(f"Failed to write {key!r}") from exc

    def compare_and_set(self, key: str, value: str, expected_version: int | None) -> bool:
        """
        Write *value* only if the stored version still equals
        *expected_version* (None = key must not exist yet).

        Returns False when another writer got there first.
        """
        try:
            if expected_version is None:
                try:
                    self.db.execute(self._insert(key, value))
                    self.db.commit()
                except IntegrityError:
                    self.db.rollback()
                    return False
                return True

            result = self.db.execute(
                update(KeyValueEntry)
                .where(KeyValueEntry.key == key, KeyValueEntry.version == expected_version)
                .values(value=value, version=expected_version + 1, updated_at=_utcnow())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                return False
            self.db.commit()
            return True
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StateStoreError(f"Failed to write {key!r}") from exc

    def remove(self, key: str) -> None:
        try:
            self.db.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StateStoreError(f"Failed to remove {key!r}") from exc

    @staticmethod
    def _insert(key: str, value: str):
        return insert(KeyValueEntry).values(key=key, value=value, version=1, updated_at=_utcnow())


# ── Record envelope ───────────────────────────────────────────────────────────


def encode_record(data: Any) -> str:
    return json.dumps({"schema_version": SCHEMA_VERSION, "data": data}, separators=(",", ":"))


def decode_record(raw: str) -> Any:
    """
    Parse a stored value and return its payload at the current version.

    Raises ValueError on malformed JSON and UnsupportedSchemaError for
    records from a newer schema.
    """
    value = json.loads(raw)
    if isinstance(value, dict) and "schema_version" in value:
        version = value["schema_version"]
        if not isinstance(version, int) or version < 1:
            raise ValueError(f"Invalid schema_version {version!r}")
        if version > SCHEMA_VERSION:
            raise UnsupportedSchemaError(
                f"Record schema_version {version} is newer than {SCHEMA_VERSION}"
            )
        return value.get("data")
    return _upgrade_legacy(value)


def _upgrade_legacy(value: Any) -> Any:
    # v0 -> v1: payload was stored bare. Field renames are absorbed by the
    # models' alias choices.
    return value


# ── State store ───────────────────────────────────────────────────────────────


class StateStore:
    """Current user, per-movie reviews and theme, kept on this device."""

    def __init__(self, kv: KeyValueStore, clock: Callable[[], datetime] = _utcnow) -> None:
        self.kv = kv
        self._clock = clock

    # ── Current user ──────────────────────────────────────────────────────────

    def get_current_user(self) -> User | None:
        """Return the stored user; an unreadable record counts as not set."""
        raw = self.kv.get(STORAGE_KEY_USER)
        if raw is None:
            return None
        try:
            return User.model_validate(decode_record(raw))
        except (ValueError, ValidationError, UnsupportedSchemaError) as exc:
            logger.warning("current_user_unreadable", error=str(exc))
            return None

    def set_current_user(self, user: User) -> None:
        self.kv.set(STORAGE_KEY_USER, encode_record(user.model_dump()))

    def clear_current_user(self) -> None:
        self.kv.remove(STORAGE_KEY_USER)

    # ── Reviews ───────────────────────────────────────────────────────────────

    def get_reviews(self, movie_id: int) -> list[UserReview]:
        """Reviews for *movie_id* in insertion order; [] when there are none."""
        entry = self.kv.get_entry(STORAGE_KEY_REVIEWS)
        if entry is None:
            return []
        table = self._load_review_table(entry[0])
        return table.get(str(movie_id), [])

    def add_review(self, movie_id: int, review_input: ReviewInput) -> UserReview:
        """
        Append a review to the movie's list and write the whole table back.

        The write is a compare-and-set on the table version; when another
        writer lands in between, the read-modify-write is redone.
        """
        now = self._clock()
        review = UserReview(
            **review_input.model_dump(),
            id=str(int(now.timestamp() * 1000)),
            created_at=now.isoformat(),
        )

        for attempt in range(1, REVIEW_WRITE_ATTEMPTS + 1):
            entry = self.kv.get_entry(STORAGE_KEY_REVIEWS)
            if entry is None:
                table: dict[str, list[UserReview]] = {}
                expected_version = None
            else:
                table = self._load_review_table(entry[0])
                expected_version = entry[1]

            table.setdefault(str(movie_id), []).append(review)
            serialized = encode_record(
                {mid: [r.model_dump() for r in reviews] for mid, reviews in table.items()}
            )
            if self.kv.compare_and_set(STORAGE_KEY_REVIEWS, serialized, expected_version):
                return review
            logger.info("review_write_conflict", movie_id=movie_id, attempt=attempt)

        raise StoreConflictError(
            f"Could not save review for movie {movie_id} after {REVIEW_WRITE_ATTEMPTS} attempts"
        )

    def _load_review_table(self, raw: str) -> dict[str, list[UserReview]]:
        try:
            data = decode_record(raw)
            if not isinstance(data, dict):
                raise ValueError("Review table is not an object")
            return {
                str(movie_id): [UserReview.model_validate(r) for r in reviews]
                for movie_id, reviews in data.items()
            }
        except UnsupportedSchemaError:
            raise
        except (ValueError, TypeError, ValidationError) as exc:
            raise StateStoreError("Review table is unreadable") from exc

    # ── Theme ─────────────────────────────────────────────────────────────────

    def get_theme(self) -> Theme:
        raw = self.kv.get(STORAGE_KEY_THEME)
        if raw is None:
            return DEFAULT_THEME
        # The browser build stored the bare string, not JSON
        if raw in _THEMES:
            return raw  # type: ignore[return-value]
        try:
            theme = decode_record(raw)
        except (ValueError, UnsupportedSchemaError) as exc:
            logger.warning("theme_unreadable", error=str(exc))
            return DEFAULT_THEME
        return theme if theme in _THEMES else DEFAULT_THEME

    def set_theme(self, theme: Theme) -> None:
        if theme not in _THEMES:
            raise ValueError(f"Unknown theme: {theme!r}")
        self.kv.set(STORAGE_KEY_THEME, encode_record(theme))
