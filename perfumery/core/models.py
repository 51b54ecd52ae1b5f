"""
Core data models.

Members and reviews are plain pydantic models. Authorization rules live in
perfumery.auth and perfumery.reviews as functions over these models, never
as methods on them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator

from perfumery.core.utils import generate_id, normalize_email, utc_now


MIN_YEAR_OF_BIRTH = 1900


def _check_year_of_birth(value: int | None) -> int | None:
    if value is None:
        return value
    if not MIN_YEAR_OF_BIRTH <= value <= utc_now().year:
        raise ValueError("Invalid year of birth")
    return value


YearOfBirth = Annotated[int, AfterValidator(_check_year_of_birth)]


def _check_name(value: str) -> str:
    value = value.strip()
    if len(value) < 2:
        raise ValueError("Name must be at least 2 characters")
    return value


MemberName = Annotated[str, Field(min_length=2, max_length=100), AfterValidator(_check_name)]


# =============================================================================
# Enums
# =============================================================================


class AuthProvider(str, Enum):
    """How a member account was established."""

    LOCAL = "local"
    GOOGLE = "google"


# =============================================================================
# Stored entities
# =============================================================================


class Member(BaseModel):
    """
    A registered identity.

    Created by local registration or by the first successful OAuth login.
    ``password_hash`` is None for members that only ever used OAuth.
    """

    id: str = Field(default_factory=lambda: generate_id("member"))
    email: str
    name: str
    password_hash: str | None = None

    year_of_birth: int | None = None
    gender: bool | None = None  # True = male, False = female
    avatar: str | None = None

    provider: AuthProvider = AuthProvider.LOCAL
    google_id: str | None = None

    is_admin: bool = False

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return normalize_email(value)

    @property
    def is_linked(self) -> bool:
        """Has an external provider identity attached."""
        return self.google_id is not None


class Review(BaseModel):
    """A member's rating and comment on a perfume."""

    id: str = Field(default_factory=lambda: generate_id("review"))
    perfume_id: str
    author_id: str
    rating: int = Field(ge=1, le=5)
    content: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Perfume(BaseModel):
    """Minimal catalog record; the catalog itself is managed elsewhere."""

    id: str = Field(default_factory=lambda: generate_id("perfume"))
    name: str


# =============================================================================
# Inputs
# =============================================================================


class MemberCreate(BaseModel):
    """Local registration data."""

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(min_length=6)
    name: MemberName
    year_of_birth: YearOfBirth = Field(alias="YOB")
    gender: bool


class MemberUpdate(BaseModel):
    """Self-service profile fields. Anything else in the body is ignored."""

    model_config = ConfigDict(populate_by_name=True)

    name: MemberName | None = None
    year_of_birth: YearOfBirth | None = Field(default=None, alias="YOB")
    gender: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


# =============================================================================
# Outputs
# =============================================================================


class MemberResponse(BaseModel):
    """Member data returned to clients (no password hash)."""

    id: str
    email: str
    name: str
    YOB: int | None
    gender: bool | None
    isAdmin: bool
    provider: str
    avatar: str | None
    createdAt: datetime

    @classmethod
    def from_member(cls, member: Member) -> MemberResponse:
        return cls(
            id=member.id,
            email=member.email,
            name=member.name,
            YOB=member.year_of_birth,
            gender=member.gender,
            isAdmin=member.is_admin,
            provider=member.provider.value,
            avatar=member.avatar,
            createdAt=member.created_at,
        )


class ReviewResponse(BaseModel):
    id: str
    perfumeId: str
    author: str
    rating: int
    content: str
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_review(cls, review: Review) -> ReviewResponse:
        return cls(
            id=review.id,
            perfumeId=review.perfume_id,
            author=review.author_id,
            rating=review.rating,
            content=review.content,
            createdAt=review.created_at,
            updatedAt=review.updated_at,
        )
