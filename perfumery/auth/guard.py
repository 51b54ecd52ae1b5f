"""
Authorization guard - request-time policy evaluation.

authenticate() turns a bearer token into an AuthContext; the require_*
predicates evaluate role or ownership rules on that context and return a
Decision. Nothing here writes anything: the only side effect is reading
the member store.
"""

from __future__ import annotations

import logging

from perfumery.auth.capabilities import Capability, Decision, DenialReason
from perfumery.auth.context import AuthContext
from perfumery.auth.tokens import TokenService
from perfumery.core.errors import (
    InvalidTokenError,
    MissingTokenError,
    UnknownMemberError,
)
from perfumery.identity.members import MemberRepository

logger = logging.getLogger(__name__)


class AuthorizationGuard:
    """Authenticates bearer tokens and evaluates role/ownership predicates."""

    def __init__(self, tokens: TokenService, members: MemberRepository):
        self.tokens = tokens
        self.members = members

    async def authenticate(self, token: str | None) -> AuthContext:
        """
        Resolve a bearer token to the member it names.

        Raises:
            MissingTokenError: no token was presented
            InvalidTokenError: expired, malformed or wrongly signed
            UnknownMemberError: the member was deleted after the token was issued
        """
        if not token:
            raise MissingTokenError()

        result = self.tokens.verify(token)
        if not result.is_valid:
            logger.info(f"Rejected bearer token: {result.status.value}")
            raise InvalidTokenError(status=result.status.value)

        member = await self.members.get(result.member_id)
        if member is None:
            logger.info(f"Token references missing member {result.member_id}")
            raise UnknownMemberError()

        return AuthContext(member=member)

    # =========================================================================
    # Predicates
    # =========================================================================

    @staticmethod
    def require_authenticated(ctx: AuthContext) -> Decision:
        if not ctx.is_authenticated:
            return Decision.deny(DenialReason.UNAUTHENTICATED, "Authentication required")
        return Decision.allow()

    @classmethod
    def require_admin(cls, ctx: AuthContext) -> Decision:
        decision = cls.require_authenticated(ctx)
        if not decision:
            return decision
        if not ctx.is_admin:
            return Decision.deny(DenialReason.NOT_ADMIN, "Admin privileges required")
        return Decision.allow()

    @classmethod
    def require_self_or_admin(cls, ctx: AuthContext, target_member_id: str | None) -> Decision:
        decision = cls.require_authenticated(ctx)
        if not decision:
            return decision
        if ctx.is_self(target_member_id) or ctx.can(Capability.MEMBERS_EDIT_ANY):
            return Decision.allow()
        return Decision.deny(
            DenialReason.NOT_SELF_OR_ADMIN,
            "Access denied - can only modify your own data",
        )

    @classmethod
    def require_capability(cls, ctx: AuthContext, capability: Capability) -> Decision:
        decision = cls.require_authenticated(ctx)
        if not decision:
            return decision
        if not ctx.can(capability):
            return Decision.deny(
                DenialReason.MISSING_CAPABILITY,
                f"Missing permission: {capability.value}",
            )
        return Decision.allow()
