"""
Reviews API — /reviews
───────────────────────
Endpoints:
  GET  /reviews/movie/{movie_id}   — All reviews for a movie, oldest first
  POST /reviews/movie/{movie_id}   — Add a review as the signed-in user
"""
from fastapi import APIRouter, Depends, HTTPException, status

from movielens.deps.state import error_detail, get_state_store, get_user_session, store_unavailable
from movielens.schemas.reviews import CreateReviewRequest, ReviewListResponse, UserReview
from movielens.services.session_service import (
    InvalidReviewError,
    NotSignedInError,
    UserSession,
)
from movielens.services.state_store import StateStore, StateStoreError, StoreConflictError

router = APIRouter()


@router.get("/movie/{movie_id}", response_model=ReviewListResponse)
def list_movie_reviews(
    movie_id: int,
    store: StateStore = Depends(get_state_store),
) -> ReviewListResponse:
    try:
        reviews = store.get_reviews(movie_id)
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc
    return ReviewListResponse(movie_id=movie_id, reviews=reviews, total=len(reviews))


@router.post(
    "/movie/{movie_id}",
    response_model=UserReview,
    status_code=status.HTTP_201_CREATED,
)
def create_movie_review(
    movie_id: int,
    payload: CreateReviewRequest,
    session: UserSession = Depends(get_user_session),
) -> UserReview:
    """Append a review authored by the current user. Reviews are never edited."""
    try:
        return session.submit_review(
            movie_id,
            rating=payload.rating,
            review=payload.review,
            photo_url=payload.photo_url,
        )
    except NotSignedInError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_detail("NOT_SIGNED_IN", "Please sign in to leave a review"),
        ) from exc
    except InvalidReviewError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=error_detail("INVALID_REVIEW", str(exc)),
        ) from exc
    except StoreConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=error_detail("REVIEW_WRITE_CONFLICT", str(exc)),
        ) from exc
    except StateStoreError as exc:
        raise store_unavailable(exc) from exc
