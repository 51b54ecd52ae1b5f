"""Perfume reviews - one per member per perfume, editable only by the author."""

from perfumery.reviews.guard import ReviewOwnershipGuard
from perfumery.reviews.repository import ReviewRepository
from perfumery.reviews.service import ReviewService

__all__ = [
    "ReviewOwnershipGuard",
    "ReviewRepository",
    "ReviewService",
]
