"""
Authentication and authorization.

Design principles:
1. One TokenService mints every bearer token, whatever the login path
2. Authorization predicates are plain functions over plain data
3. Route handlers declare a policy with a single dependency:
       ctx: AuthContext = Depends(require_admin())
   (see perfumery.auth.policies)
"""

from perfumery.auth.passwords import hash_password, verify_password
from perfumery.auth.tokens import (
    TokenPayload,
    TokenService,
    TokenStatus,
    TokenVerification,
)
from perfumery.auth.capabilities import (
    Capability,
    Decision,
    DenialReason,
    Role,
)
from perfumery.auth.context import AuthContext
from perfumery.auth.guard import AuthorizationGuard

__all__ = [
    # Passwords
    "hash_password",
    "verify_password",
    # Tokens
    "TokenPayload",
    "TokenService",
    "TokenStatus",
    "TokenVerification",
    # Types
    "Capability",
    "Decision",
    "DenialReason",
    "Role",
    "AuthContext",
    # Guard
    "AuthorizationGuard",
]
