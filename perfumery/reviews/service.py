"""
Review service - review writes with ownership enforced.
"""

from __future__ import annotations

import logging

from perfumery.auth.capabilities import DenialReason
from perfumery.core.errors import (
    AlreadyReviewedError,
    ForbiddenError,
    NotFoundError,
    OwnershipMismatchError,
)
from perfumery.core.models import Member, Perfume, Review
from perfumery.reviews.guard import ReviewOwnershipGuard
from perfumery.reviews.repository import ReviewRepository
from perfumery.storage import UniqueConstraintError

logger = logging.getLogger(__name__)


class ReviewService:
    """Create, edit, delete and list reviews."""

    def __init__(self, reviews: ReviewRepository, guard: ReviewOwnershipGuard | None = None):
        self.reviews = reviews
        self.guard = guard or ReviewOwnershipGuard(reviews)

    async def _require_perfume(self, perfume_id: str) -> Perfume:
        perfume = await self.reviews.get_perfume(perfume_id)
        if perfume is None:
            raise NotFoundError("Perfume not found")
        return perfume

    async def _owned_review(self, member: Member, perfume_id: str, review_id: str) -> Review:
        await self._require_perfume(perfume_id)
        review = await self.reviews.get(review_id)
        if review is None or review.perfume_id != perfume_id:
            raise NotFoundError("Comment not found")

        decision = self.guard.can_mutate(member.id, review)
        if not decision:
            logger.info(f"Member {member.id} denied on review {review_id}: {decision.reason.value}")
            raise OwnershipMismatchError(decision.message)
        return review

    async def create(self, member: Member, perfume_id: str, rating: int, content: str) -> Review:
        """
        Add a member's review of a perfume.

        Raises:
            NotFoundError: unknown perfume
            ForbiddenError: the member is an administrator
            AlreadyReviewedError: the member already reviewed this perfume
        """
        await self._require_perfume(perfume_id)

        decision = await self.guard.can_create(member, perfume_id)
        if not decision:
            if decision.reason is DenialReason.ALREADY_REVIEWED:
                raise AlreadyReviewedError()
            raise ForbiddenError(decision.message)

        review = Review(
            perfume_id=perfume_id,
            author_id=member.id,
            rating=rating,
            content=content,
        )
        try:
            await self.reviews.add(review)
        except UniqueConstraintError as e:
            raise AlreadyReviewedError() from e

        logger.info(f"Member {member.id} reviewed perfume {perfume_id}")
        return review

    async def update(
        self,
        member: Member,
        perfume_id: str,
        review_id: str,
        rating: int,
        content: str,
    ) -> Review:
        await self._owned_review(member, perfume_id, review_id)
        review = await self.reviews.update(review_id, {"rating": rating, "content": content})
        if review is None:
            # Deleted between the ownership check and the write
            raise NotFoundError("Comment not found")
        return review

    async def delete(self, member: Member, perfume_id: str, review_id: str) -> None:
        await self._owned_review(member, perfume_id, review_id)
        await self.reviews.delete(review_id)
        logger.info(f"Member {member.id} deleted review {review_id}")

    async def list_for_perfume(self, perfume_id: str) -> list[Review]:
        await self._require_perfume(perfume_id)
        return await self.reviews.for_perfume(perfume_id)

    async def list_for_member(self, member: Member) -> list[Review]:
        # Admins cannot have reviews
        if member.is_admin:
            return []
        return await self.reviews.by_author(member.id)

    async def add_perfume(self, name: str) -> Perfume:
        return await self.reviews.add_perfume(Perfume(name=name))
