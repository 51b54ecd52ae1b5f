"""
Policies - the route-facing interface for authorization.

Just use: ``ctx: AuthContext = Depends(require_admin())``

Design:
- Each require_*() returns a FastAPI dependency that resolves to AuthContext
- Authentication runs first (missing token -> 401, bad token -> 403)
- The policy is then evaluated by AuthorizationGuard; a denial raises 403
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from perfumery.api.dependencies import get_state
from perfumery.auth.capabilities import Capability, Decision
from perfumery.auth.context import AuthContext
from perfumery.auth.guard import AuthorizationGuard
from perfumery.core.errors import ForbiddenError
from perfumery.integrations.sentry import set_user

logger = logging.getLogger(__name__)


# Doesn't fail on its own; the guard decides between 401 and 403
optional_bearer = HTTPBearer(auto_error=False)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> AuthContext:
    """Authenticate the bearer token on the request."""
    token = credentials.credentials if credentials else None
    ctx = await get_state(request).guard.authenticate(token)
    set_user(ctx.member_id)
    return ctx


# =============================================================================
# Policy - the core authorization type
# =============================================================================


class Policy:
    """
    A composable set of requirements checked against an AuthContext.

        Policy()                                  # any authenticated member
        Policy(admin=True)                        # administrators only
        Policy(self_param="member_id")            # the member in the path, or an admin
        Policy(capabilities=["catalog.manage"])   # role-derived capability
    """

    def __init__(
        self,
        admin: bool = False,
        self_param: str | None = None,
        capabilities: list[Capability | str] | None = None,
    ):
        self.admin = admin
        self.self_param = self_param
        self.capabilities = [Capability(c) for c in capabilities or []]

    def check(self, ctx: AuthContext, request: Request | None = None) -> Decision:
        decision = AuthorizationGuard.require_authenticated(ctx)
        if not decision:
            return decision

        if self.admin:
            decision = AuthorizationGuard.require_admin(ctx)
            if not decision:
                return decision

        if self.self_param:
            target = request.path_params.get(self.self_param) if request else None
            decision = AuthorizationGuard.require_self_or_admin(ctx, target)
            if not decision:
                return decision

        for capability in self.capabilities:
            decision = AuthorizationGuard.require_capability(ctx, capability)
            if not decision:
                return decision

        return Decision.allow()


# =============================================================================
# Main Interface
# =============================================================================


def require(*capabilities: Capability | str) -> Callable:
    """
    Require role-derived capabilities.

    Usage:
        @router.post("/perfumes")
        async def create_perfume(ctx: AuthContext = Depends(require("catalog.manage"))):
            ...
    """
    return _create_dependency(Policy(capabilities=list(capabilities)))


def require_auth() -> Callable:
    """Any authenticated member, no role constraint."""
    return _create_dependency(Policy())


def require_admin() -> Callable:
    """Administrators only."""
    return _create_dependency(Policy(admin=True))


def require_self_or_admin(param: str = "member_id") -> Callable:
    """The member named by path parameter ``param``, or an administrator."""
    return _create_dependency(Policy(self_param=param))


# =============================================================================
# Internal: Create the FastAPI Dependency
# =============================================================================


def _create_dependency(policy: Policy) -> Callable:
    """Create a FastAPI dependency from a policy."""

    async def dependency(
        request: Request,
        ctx: AuthContext = Depends(get_auth_context),
    ) -> AuthContext:
        decision = policy.check(ctx, request)
        if not decision:
            logger.info(
                f"Denied {request.method} {request.url.path} for member "
                f"{ctx.member_id}: {decision.reason.value}"
            )
            raise ForbiddenError(decision.message)
        return ctx

    return dependency
