"""
Tests for request authentication and role/ownership predicates.
"""

from datetime import timedelta

import pytest

from perfumery.auth.capabilities import Capability, DenialReason
from perfumery.auth.context import AuthContext
from perfumery.auth.guard import AuthorizationGuard
from perfumery.auth.tokens import TokenService
from perfumery.core.errors import InvalidTokenError, MissingTokenError, UnknownMemberError
from perfumery.core.models import Member
from perfumery.core.utils import utc_now

SECRET = "guard-test-secret-key-with-32-plus-bytes"


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def tokens():
    return TokenService(SECRET)


@pytest.fixture
def guard(tokens, members):
    return AuthorizationGuard(tokens, members)


@pytest.fixture
def member():
    return Member(email="ana@example.com", name="Ana")


@pytest.fixture
def admin():
    return Member(email="admin@example.com", name="Admin", is_admin=True)


# =============================================================================
# authenticate()
# =============================================================================


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_token(self, guard, tokens, members, member):
        await members.add(member)

        ctx = await guard.authenticate(tokens.issue(member.id))

        assert ctx.is_authenticated
        assert ctx.member_id == member.id
        assert not ctx.is_admin

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", [None, ""])
    async def test_missing_token_is_401(self, guard, token):
        with pytest.raises(MissingTokenError) as exc_info:
            await guard.authenticate(token)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_token_is_403(self, guard):
        with pytest.raises(InvalidTokenError) as exc_info:
            await guard.authenticate("garbage")

        assert exc_info.value.status_code == 403
        assert exc_info.value.status == "malformed"

    @pytest.mark.asyncio
    async def test_expired_token(self, guard, members, member):
        await members.add(member)
        issued_long_ago = TokenService(SECRET, clock=lambda: utc_now() - timedelta(days=31))

        with pytest.raises(InvalidTokenError) as exc_info:
            await guard.authenticate(issued_long_ago.issue(member.id))
        assert exc_info.value.status == "expired"

    @pytest.mark.asyncio
    async def test_foreign_signature(self, guard, members, member):
        await members.add(member)
        forger = TokenService("some-other-secret-key-with-32-plus-bytes")

        with pytest.raises(InvalidTokenError) as exc_info:
            await guard.authenticate(forger.issue(member.id))
        assert exc_info.value.status == "signature_mismatch"

    @pytest.mark.asyncio
    async def test_member_gone_is_401(self, guard, tokens):
        with pytest.raises(UnknownMemberError) as exc_info:
            await guard.authenticate(tokens.issue("member_deleted"))
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_admin_flag_read_from_store(self, guard, tokens, members, admin):
        await members.add(admin)

        ctx = await guard.authenticate(tokens.issue(admin.id))
        assert ctx.is_admin


# =============================================================================
# Predicates
# =============================================================================


class TestRequireSelfOrAdmin:
    @pytest.mark.parametrize(
        "is_admin, targets_self, allowed",
        [
            (False, True, True),
            (False, False, False),
            (True, True, True),
            (True, False, True),
        ],
    )
    def test_truth_table(self, is_admin, targets_self, allowed):
        caller = Member(email="caller@example.com", name="Caller", is_admin=is_admin)
        target = caller.id if targets_self else "member_someone_else"

        decision = AuthorizationGuard.require_self_or_admin(AuthContext(member=caller), target)

        assert bool(decision) is allowed
        if not allowed:
            assert decision.reason is DenialReason.NOT_SELF_OR_ADMIN

    def test_editing_others_comes_from_capability(self, admin):
        ctx = AuthContext(member=admin)
        ctx.capabilities.discard(Capability.MEMBERS_EDIT_ANY)

        decision = AuthorizationGuard.require_self_or_admin(ctx, "member_someone_else")

        assert decision.reason is DenialReason.NOT_SELF_OR_ADMIN
        assert AuthorizationGuard.require_self_or_admin(ctx, admin.id)

    def test_anonymous_denied(self):
        decision = AuthorizationGuard.require_self_or_admin(AuthContext.anonymous(), "member_x")
        assert decision.reason is DenialReason.UNAUTHENTICATED


class TestRequireAdmin:
    def test_admin(self, admin):
        assert AuthorizationGuard.require_admin(AuthContext(member=admin))

    def test_member(self, member):
        decision = AuthorizationGuard.require_admin(AuthContext(member=member))

        assert not decision
        assert decision.reason is DenialReason.NOT_ADMIN
        assert decision.message == "Admin privileges required"


class TestCapabilities:
    def test_admin_manages_catalog_but_does_not_review(self, admin):
        ctx = AuthContext(member=admin)

        assert AuthorizationGuard.require_capability(ctx, Capability.CATALOG_MANAGE)
        assert not AuthorizationGuard.require_capability(ctx, Capability.REVIEWS_WRITE)

    def test_member_reviews_but_does_not_manage_catalog(self, member):
        ctx = AuthContext(member=member)

        assert ctx.can("reviews.write")
        decision = AuthorizationGuard.require_capability(ctx, Capability.CATALOG_MANAGE)
        assert decision.reason is DenialReason.MISSING_CAPABILITY

    def test_unknown_capability(self, member):
        assert not AuthContext(member=member).can("perfumes.delete_everything")

    def test_anonymous_has_nothing(self):
        assert AuthContext.anonymous().capabilities == set()
