"""
Core module - data models, errors and shared helpers.
"""

from perfumery.core.models import (
    AuthProvider,
    Member,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    Perfume,
    Review,
    ReviewResponse,
)
from perfumery.core.utils import generate_id, normalize_email, utc_now

__all__ = [
    # Models
    "AuthProvider",
    "Member",
    "MemberCreate",
    "MemberResponse",
    "MemberUpdate",
    "Perfume",
    "Review",
    "ReviewResponse",
    # Utils
    "generate_id",
    "normalize_email",
    "utc_now",
]
