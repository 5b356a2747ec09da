"""
Review request/response schemas.
"""
from pydantic import AliasChoices, BaseModel, Field


class ReviewInput(BaseModel):
    """A review as handed to the store, before id/timestamp assignment."""

    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId"))
    user_name: str = Field(validation_alias=AliasChoices("user_name", "userName"))
    user_photo_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("user_photo_url", "userPhotoUrl"),
    )
    rating: int
    review: str
    photo_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("photo_url", "photoUrl"),
    )


class UserReview(ReviewInput):
    """A stored review. Never edited once written."""

    id: str
    created_at: str = Field(validation_alias=AliasChoices("created_at", "createdAt"))


class CreateReviewRequest(BaseModel):
    """Payload for POST /reviews/movie/{movie_id}."""

    rating: int = Field(..., ge=1, le=5)
    review: str = Field(..., min_length=1, max_length=2000)
    photo_url: str | None = None


class ReviewListResponse(BaseModel):
    """All reviews for one movie, in insertion order."""

    movie_id: int
    reviews: list[UserReview]
    total: int
