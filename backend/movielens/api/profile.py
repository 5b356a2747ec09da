"""
Profile API — /profile
───────────────────────
Endpoints:
  GET   /profile/me        — Current device user (404 when signed out)
  POST  /profile/sign-in   — Demo sign-in, becomes the current user
  POST  /profile/sign-up   — Demo registration, becomes the current user
  PATCH /profile/me        — Update name / email / photo
  POST  /profile/sign-out  — Clear the current user (204)
  GET   /profile/theme     — Persisted theme preference
  PUT   /profile/theme     — Change theme preference
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status

from movielens.deps.state import error_detail, get_state_store, get_user_session, store_unavailable
from movielens.schemas.profile import (
    SignInRequest,
    SignUpRequest,
    ThemeResponse,
    UpdateProfileRequest,
    UpdateThemeRequest,
    User,
)
from movielens.services.session_service import (
    InvalidCredentialsError,
    InvalidProfileError,
    NotSignedInError,
    UserSession,
)
from movielens.services.state_store import StateStore, StateStoreError

router = APIRouter()


def _not_signed_in(exc: Exception) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error_detail("NOT_SIGNED_IN", str(exc)),
    )


# ── Routes ────────────────────────────────────────────────────────────────────


@router.get("/me", response_model=User)
def me(session: UserSession = Depends(get_user_session)) -> User:
    """Return the signed-in user for this device."""
    if session.user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail("NO_CURRENT_USER", "Nobody is signed in on this device"),
        )
    return session.user


@router.post("/sign-in", response_model=User)
def sign_in(payload: SignInRequest, session: UserSession = Depends(get_user_session)) -> User:
    """
    Sign in with any email + password. No identity provider is consulted;
    the email's local part becomes the display name.
    """
    try:
        return session.sign_in(payload.email, payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_detail("INVALID_CREDENTIALS", str(exc)),
        ) from exc
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc


@router.post("/sign-up", response_model=User, status_code=status.HTTP_201_CREATED)
def sign_up(payload: SignUpRequest, session: UserSession = Depends(get_user_session)) -> User:
    try:
        return session.sign_up(payload.name, payload.email, payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("MISSING_FIELDS", str(exc)),
        ) from exc
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc


@router.patch("/me", response_model=User)
def update_me(
    payload: UpdateProfileRequest,
    session: UserSession = Depends(get_user_session),
) -> User:
    try:
        return session.update_profile(
            name=payload.name,
            email=payload.email,
            photo_url=payload.photo_url,
        )
    except NotSignedInError as exc:
        raise _not_signed_in(exc) from exc
    except InvalidProfileError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=error_detail("INVALID_PROFILE", str(exc)),
        ) from exc
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(session: UserSession = Depends(get_user_session)) -> Response:
    try:
        session.sign_out()
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/theme", response_model=ThemeResponse)
def get_theme(store: StateStore = Depends(get_state_store)) -> ThemeResponse:
    try:
        return ThemeResponse(theme=store.get_theme())
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc


@router.put("/theme", response_model=ThemeResponse)
def put_theme(
    payload: UpdateThemeRequest,
    store: StateStore = Depends(get_state_store),
) -> ThemeResponse:
    try:
        store.set_theme(payload.theme)
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc
    return ThemeResponse(theme=payload.theme)
