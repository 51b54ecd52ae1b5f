"""
Roles, capabilities and authorization decisions.

This defines WHAT members can do, not HOW we check it.
The actual checking happens in guard.py (pure) and policies.py (FastAPI).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Platform-wide role of a member."""

    MEMBER = "member"    # Customer: profile, reviews
    ADMIN = "admin"      # Back office: catalog and member management


class Capability(str, Enum):
    """Fine-grained capabilities derived from a role."""

    # Catalog back office
    CATALOG_MANAGE = "catalog.manage"

    # Members
    MEMBERS_READ_ALL = "members.read_all"
    MEMBERS_EDIT_ANY = "members.edit_any"

    # Reviews are a customer-only capability; admins never get it
    REVIEWS_WRITE = "reviews.write"


ROLE_CAPABILITIES: dict[Role, set[Capability]] = {
    Role.ADMIN: {
        Capability.CATALOG_MANAGE,
        Capability.MEMBERS_READ_ALL,
        Capability.MEMBERS_EDIT_ANY,
    },
    Role.MEMBER: {
        Capability.REVIEWS_WRITE,
    },
}


def get_capabilities(role: Role | None) -> set[Capability]:
    """Capabilities granted by a role (none for anonymous callers)."""
    if role is None:
        return set()
    return set(ROLE_CAPABILITIES.get(role, set()))


# =============================================================================
# Decisions
# =============================================================================


class DenialReason(str, Enum):
    """Why an authorization check failed."""

    UNAUTHENTICATED = "unauthenticated"
    NOT_ADMIN = "not_admin"
    NOT_SELF_OR_ADMIN = "not_self_or_admin"
    MISSING_CAPABILITY = "missing_capability"
    ADMIN_CANNOT_REVIEW = "admin_cannot_review"
    ALREADY_REVIEWED = "already_reviewed"
    NOT_AUTHOR = "not_author"


@dataclass(frozen=True)
class Decision:
    """
    Result of an authorization predicate.

    Truthy when allowed, so predicates read naturally in ``if`` statements;
    ``reason`` tags the failure when denied.
    """

    allowed: bool
    reason: DenialReason | None = None
    message: str | None = None

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def allow(cls) -> Decision:
        return cls(True)

    @classmethod
    def deny(cls, reason: DenialReason, message: str) -> Decision:
        return cls(False, reason, message)
