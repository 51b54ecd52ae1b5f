"""
Review ownership rules.

Per (perfume, member) pair:

    NoReview --create--> Reviewed --delete--> NoReview
                         Reviewed --edit----> Reviewed

Admins never write reviews, and have no override on someone else's.
"""

from __future__ import annotations

from perfumery.auth.capabilities import Decision, DenialReason
from perfumery.core.models import Member, Review
from perfumery.reviews.repository import ReviewRepository


class ReviewOwnershipGuard:
    """Decides who may create, edit or delete a review."""

    def __init__(self, reviews: ReviewRepository):
        self.reviews = reviews

    async def can_create(self, member: Member, perfume_id: str) -> Decision:
        if member.is_admin:
            return Decision.deny(
                DenialReason.ADMIN_CANNOT_REVIEW,
                "Administrators cannot review perfumes",
            )
        if await self.reviews.exists(perfume_id, member.id):
            return Decision.deny(
                DenialReason.ALREADY_REVIEWED,
                "You have already commented on this perfume",
            )
        return Decision.allow()

    @staticmethod
    def can_mutate(member_id: str, review: Review) -> Decision:
        if review.author_id != member_id:
            return Decision.deny(
                DenialReason.NOT_AUTHOR,
                "You can only modify your own comments",
            )
        return Decision.allow()
