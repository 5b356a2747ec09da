"""
Profile request/response schemas.

Users persisted by the browser build of the app use camelCase
(``photoURL``); both spellings are accepted on read.
"""
from typing import Literal

from pydantic import AliasChoices, BaseModel, EmailStr, Field, field_validator

Theme = Literal["dark", "light"]

MAX_NAME_LENGTH = 60


def normalize_name(v: str) -> str:
    """Collapse whitespace; reject blank or overlong display names."""
    v = " ".join(v.strip().split())
    if not v:
        raise ValueError("name cannot be empty")
    if len(v) > MAX_NAME_LENGTH:
        raise ValueError(f"name cannot exceed {MAX_NAME_LENGTH} characters")
    return v


class User(BaseModel):
    """The signed-in identity on this device."""

    id: str
    name: str
    email: str
    photo_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("photo_url", "photoURL"),
    )


class SignInRequest(BaseModel):
    """Payload for POST /profile/sign-in."""

    email: EmailStr
    password: str


class SignUpRequest(BaseModel):
    """Payload for POST /profile/sign-up."""

    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return normalize_name(v)


class UpdateProfileRequest(BaseModel):
    """Partial profile update; omitted fields are left unchanged."""

    name: str | None = None
    email: EmailStr | None = None
    photo_url: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        return None if v is None else normalize_name(v)


class ThemeResponse(BaseModel):
    theme: Theme


class UpdateThemeRequest(BaseModel):
    theme: Theme
