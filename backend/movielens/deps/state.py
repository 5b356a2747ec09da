"""
Request-scoped dependencies: the state store, the user session and the
TMDB client with its per-request notification log.

Usage in any route:
    from movielens.deps.state import get_user_session
    from movielens.services.session_service import UserSession

    @router.get("/me")
    def me(session: UserSession = Depends(get_user_session)):
        ...
"""
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from movielens.db.session import get_db
from movielens.services.session_service import UserSession
from movielens.services.state_store import KeyValueStore, StateStore, StateStoreError
from movielens.services.tmdb_client import NotificationLog, TMDBConfigError, TMDBService


def error_detail(code: str, message: str) -> dict:
    """Standard error envelope."""
    return {"error": {"code": code, "message": message}}


def store_unavailable(exc: StateStoreError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=error_detail("STATE_STORE_UNAVAILABLE", str(exc)),
    )


def get_state_store(db: Session = Depends(get_db)) -> StateStore:
    return StateStore(KeyValueStore(db))


def get_user_session(store: StateStore = Depends(get_state_store)) -> UserSession:
    try:
        return UserSession(store)
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc


def get_notification_log() -> NotificationLog:
    return NotificationLog()


def get_tmdb_service(
    notices: NotificationLog = Depends(get_notification_log),
) -> TMDBService:
    """Build a TMDB client whose failures land in this request's notices."""
    try:
        return TMDBService(notifier=notices)
    except TMDBConfigError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=error_detail("TMDB_NOT_CONFIGURED", str(exc)),
        ) from exc
