"""
Tests for review ownership.

Per (perfume, member): at most one review; only its author edits or
deletes it; administrators never review.
"""

from unittest.mock import AsyncMock

import pytest

from perfumery.auth.capabilities import Decision, DenialReason
from perfumery.core.errors import (
    AlreadyReviewedError,
    ForbiddenError,
    NotFoundError,
    OwnershipMismatchError,
)
from perfumery.core.models import Member
from perfumery.reviews import ReviewOwnershipGuard, ReviewRepository, ReviewService


class AllowEverything(ReviewOwnershipGuard):
    """Simulates a racing request whose existence check already passed."""

    async def can_create(self, member, perfume_id):
        return Decision.allow()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def reviews(storage):
    return ReviewRepository(storage.metadata)


@pytest.fixture
def service(reviews):
    return ReviewService(reviews)


@pytest.fixture
def alice():
    return Member(email="alice@example.com", name="Alice")


@pytest.fixture
def bob():
    return Member(email="bob@example.com", name="Bob")


@pytest.fixture
def admin():
    return Member(email="admin@example.com", name="Admin", is_admin=True)


# =============================================================================
# Guard
# =============================================================================


class TestReviewOwnershipGuard:
    @pytest.mark.asyncio
    async def test_can_create(self, reviews, alice, admin):
        guard = ReviewOwnershipGuard(reviews)

        assert await guard.can_create(alice, "perfume_1")
        denied = await guard.can_create(admin, "perfume_1")
        assert denied.reason is DenialReason.ADMIN_CANNOT_REVIEW

    @pytest.mark.asyncio
    async def test_second_review_denied(self, service, reviews, alice):
        perfume = await service.add_perfume("Santal 33")
        await service.create(alice, perfume.id, 5, "Smoky and warm")

        decision = await ReviewOwnershipGuard(reviews).can_create(alice, perfume.id)
        assert decision.reason is DenialReason.ALREADY_REVIEWED

    @pytest.mark.asyncio
    async def test_can_mutate_only_own(self, service, alice, bob, admin):
        perfume = await service.add_perfume("Santal 33")
        review = await service.create(alice, perfume.id, 5, "Smoky and warm")

        assert ReviewOwnershipGuard.can_mutate(alice.id, review)
        assert ReviewOwnershipGuard.can_mutate(bob.id, review).reason is DenialReason.NOT_AUTHOR
        # No admin override
        assert not ReviewOwnershipGuard.can_mutate(admin.id, review)


# =============================================================================
# Service
# =============================================================================


class TestCreate:
    @pytest.mark.asyncio
    async def test_create(self, service, alice):
        perfume = await service.add_perfume("Santal 33")

        review = await service.create(alice, perfume.id, 4, "Lovely dry-down")

        assert review.author_id == alice.id
        assert review.perfume_id == perfume.id
        assert [r.id for r in await service.list_for_perfume(perfume.id)] == [review.id]

    @pytest.mark.asyncio
    async def test_one_review_per_perfume(self, service, alice):
        perfume = await service.add_perfume("Santal 33")
        await service.create(alice, perfume.id, 4, "Lovely dry-down")

        with pytest.raises(AlreadyReviewedError):
            await service.create(alice, perfume.id, 1, "Changed my mind")

    @pytest.mark.asyncio
    async def test_other_members_and_perfumes_unaffected(self, service, alice, bob):
        santal = await service.add_perfume("Santal 33")
        another = await service.add_perfume("Another 13")

        await service.create(alice, santal.id, 4, "Lovely dry-down")
        await service.create(bob, santal.id, 3, "Too much sandalwood")
        await service.create(alice, another.id, 5, "Skin scent heaven")

        assert len(await service.list_for_perfume(santal.id)) == 2
        assert len(await service.list_for_member(alice)) == 2

    @pytest.mark.asyncio
    async def test_review_again_after_delete(self, service, alice):
        perfume = await service.add_perfume("Santal 33")
        review = await service.create(alice, perfume.id, 4, "Lovely dry-down")

        await service.delete(alice, perfume.id, review.id)
        again = await service.create(alice, perfume.id, 2, "Second opinion")

        assert again.id != review.id

    @pytest.mark.asyncio
    async def test_admin_cannot_review(self, service, admin):
        perfume = await service.add_perfume("Santal 33")

        with pytest.raises(ForbiddenError) as exc_info:
            await service.create(admin, perfume.id, 5, "Official opinion")

        assert not isinstance(exc_info.value, AlreadyReviewedError)
        assert await service.list_for_perfume(perfume.id) == []

    @pytest.mark.asyncio
    async def test_unknown_perfume(self, service, alice):
        with pytest.raises(NotFoundError):
            await service.create(alice, "perfume_missing", 4, "Lovely dry-down")

    @pytest.mark.asyncio
    async def test_concurrent_second_review_rejected_by_store(self, reviews, alice):
        service = ReviewService(reviews, guard=AllowEverything(reviews))
        perfume = await service.add_perfume("Santal 33")
        await service.create(alice, perfume.id, 4, "Lovely dry-down")

        with pytest.raises(AlreadyReviewedError):
            await service.create(alice, perfume.id, 4, "Lovely dry-down")

        assert len(await service.list_for_perfume(perfume.id)) == 1


class TestMutate:
    @pytest.mark.asyncio
    async def test_author_updates(self, service, alice):
        perfume = await service.add_perfume("Santal 33")
        review = await service.create(alice, perfume.id, 4, "Lovely dry-down")

        updated = await service.update(alice, perfume.id, review.id, 2, "Faded fast on me")

        assert updated.rating == 2
        assert updated.content == "Faded fast on me"
        assert updated.created_at == review.created_at
        assert updated.updated_at >= review.updated_at

    @pytest.mark.asyncio
    @pytest.mark.parametrize("intruder", ["bob", "admin"])
    async def test_non_author_cannot_update_or_delete(self, request, service, alice, intruder):
        other = request.getfixturevalue(intruder)
        perfume = await service.add_perfume("Santal 33")
        review = await service.create(alice, perfume.id, 4, "Lovely dry-down")

        with pytest.raises(OwnershipMismatchError):
            await service.update(other, perfume.id, review.id, 1, "Vandalised")
        with pytest.raises(OwnershipMismatchError):
            await service.delete(other, perfume.id, review.id)

        [stored] = await service.list_for_perfume(perfume.id)
        assert stored.content == "Lovely dry-down"

    @pytest.mark.asyncio
    async def test_review_under_wrong_perfume(self, service, alice):
        santal = await service.add_perfume("Santal 33")
        another = await service.add_perfume("Another 13")
        review = await service.create(alice, santal.id, 4, "Lovely dry-down")

        with pytest.raises(NotFoundError):
            await service.delete(alice, another.id, review.id)

    @pytest.mark.asyncio
    async def test_deleted_during_update(self, service, reviews, alice, monkeypatch):
        perfume = await service.add_perfume("Santal 33")
        review = await service.create(alice, perfume.id, 4, "Lovely dry-down")

        # Another request removed the row after the ownership check passed
        monkeypatch.setattr(reviews, "update", AsyncMock(return_value=None))

        with pytest.raises(NotFoundError):
            await service.update(alice, perfume.id, review.id, 2, "Faded fast on me")

    @pytest.mark.asyncio
    async def test_admins_have_no_reviews(self, service, admin):
        assert await service.list_for_member(admin) == []
