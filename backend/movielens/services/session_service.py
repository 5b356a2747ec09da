"""
User session: the only writer of the current-user slot.

There is no identity provider: sign-in and sign-up accept any non-blank
credentials and mint a device-local user. Passwords are never stored.
"""
import time

from movielens.schemas.profile import User, normalize_name
from movielens.schemas.reviews import ReviewInput, UserReview
from movielens.services.state_store import StateStore

MIN_RATING = 1
MAX_RATING = 5


# ── Custom exceptions ────────────────────────────────────────────────────────


class NotSignedInError(Exception):
    """Raised when an operation needs a signed-in user and there is none."""


class InvalidCredentialsError(Exception):
    """Raised when sign-in / sign-up fields are missing."""


class InvalidProfileError(Exception):
    """Raised when a profile update would leave an unusable display name."""


class InvalidReviewError(Exception):
    """Raised when a review has no body or an out-of-range rating."""


def _new_user_id() -> str:
    return f"user-{int(time.time() * 1000)}"


class UserSession:
    """Identity for the current device, loaded from and mirrored to the store."""

    def __init__(self, store: StateStore) -> None:
        self.store = store
        self.user: User | None = store.get_current_user()

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def require_user(self) -> User:
        if self.user is None:
            raise NotSignedInError("Please sign in first")
        return self.user

    # ── Sign-in / sign-up / sign-out ─────────────────────────────────────────

    def sign_in(self, email: str, password: str) -> User:
        """Demo sign-in: any non-blank email and password."""
        email = email.strip()
        if not email or not password.strip():
            raise InvalidCredentialsError("Invalid credentials")

        user = User(id=_new_user_id(), name=email.split("@")[0], email=email)
        return self._replace(user)

    def sign_up(self, name: str, email: str, password: str) -> User:
        name = name.strip()
        email = email.strip()
        if not name or not email or not password.strip():
            raise InvalidCredentialsError("Please fill all required fields")

        user = User(id=_new_user_id(), name=name, email=email)
        return self._replace(user)

    def sign_out(self) -> None:
        self.store.clear_current_user()
        self.user = None

    # ── Profile ──────────────────────────────────────────────────────────────

    def update_profile(
        self,
        name: str | None = None,
        email: str | None = None,
        photo_url: str | None = None,
    ) -> User:
        current = self.require_user()
        if name is not None:
            try:
                name = normalize_name(name)
            except ValueError as exc:
                raise InvalidProfileError(str(exc)) from exc
        changes = {
            k: v
            for k, v in {"name": name, "email": email, "photo_url": photo_url}.items()
            if v is not None
        }
        return self._replace(current.model_copy(update=changes))

    def update_photo(self, photo_url: str) -> User:
        return self.update_profile(photo_url=photo_url)

    # ── Reviews ──────────────────────────────────────────────────────────────

    def submit_review(
        self,
        movie_id: int,
        rating: int,
        review: str,
        photo_url: str | None = None,
    ) -> UserReview:
        """Attach a review authored by the signed-in user."""
        user = self.require_user()
        if not MIN_RATING <= rating <= MAX_RATING:
            raise InvalidReviewError(f"Rating must be between {MIN_RATING} and {MAX_RATING}")
        if not review.strip():
            raise InvalidReviewError("Please write a review")

        return self.store.add_review(
            movie_id,
            ReviewInput(
                user_id=user.id,
                user_name=user.name,
                user_photo_url=user.photo_url,
                rating=rating,
                review=review,
                photo_url=photo_url,
            ),
        )

    def _replace(self, user: User) -> User:
        # Persist first so a failed write leaves the session unchanged
        self.store.set_current_user(user)
        self.user = user
        return user
