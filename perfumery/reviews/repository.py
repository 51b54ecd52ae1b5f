"""
Review repository.

Reviews are stored flat with a compound unique index on
(perfume_id, author_id); see perfumery.storage.declare_indexes.
"""

from __future__ import annotations

from typing import Any

from perfumery.core.models import Perfume, Review
from perfumery.core.utils import utc_now
from perfumery.storage import Collections, MetadataStorage


class ReviewRepository:
    """Reads and writes Review records."""

    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata

    async def get(self, review_id: str) -> Review | None:
        doc = await self.metadata.get(Collections.REVIEWS, review_id)
        return Review.model_validate(doc) if doc else None

    async def find(self, perfume_id: str, author_id: str) -> Review | None:
        docs = await self.metadata.query(
            Collections.REVIEWS,
            {"perfume_id": perfume_id, "author_id": author_id},
            limit=1,
        )
        return Review.model_validate(docs[0]) if docs else None

    async def exists(self, perfume_id: str, author_id: str) -> bool:
        return await self.find(perfume_id, author_id) is not None

    async def for_perfume(self, perfume_id: str) -> list[Review]:
        docs = await self.metadata.query(
            Collections.REVIEWS, {"perfume_id": perfume_id}, limit=10_000
        )
        return sorted(
            (Review.model_validate(doc) for doc in docs),
            key=lambda r: r.created_at,
        )

    async def by_author(self, author_id: str) -> list[Review]:
        """A member's reviews, newest first."""
        docs = await self.metadata.query(
            Collections.REVIEWS, {"author_id": author_id}, limit=10_000
        )
        return sorted(
            (Review.model_validate(doc) for doc in docs),
            key=lambda r: r.created_at,
            reverse=True,
        )

    async def add(self, review: Review) -> Review:
        """Insert a review. Raises UniqueConstraintError on a second review."""
        await self.metadata.insert(Collections.REVIEWS, review.id, review.model_dump())
        return review

    async def update(self, review_id: str, updates: dict[str, Any]) -> Review | None:
        updates = {**updates, "updated_at": utc_now()}
        if not await self.metadata.update(Collections.REVIEWS, review_id, updates):
            return None
        return await self.get(review_id)

    async def delete(self, review_id: str) -> bool:
        return await self.metadata.delete(Collections.REVIEWS, review_id)

    # Perfumes belong to the catalog; reviews only need to know they exist.

    async def get_perfume(self, perfume_id: str) -> Perfume | None:
        doc = await self.metadata.get(Collections.PERFUMES, perfume_id)
        return Perfume.model_validate(doc) if doc else None

    async def add_perfume(self, perfume: Perfume) -> Perfume:
        await self.metadata.insert(Collections.PERFUMES, perfume.id, perfume.model_dump())
        return perfume
