"""Member identity - repository and local/OAuth account reconciliation."""

from perfumery.identity.linker import (
    IdentityLinker,
    LinkOutcome,
    LinkResult,
    OAuthProfileDefaults,
)
from perfumery.identity.members import MemberRepository

__all__ = [
    "IdentityLinker",
    "LinkOutcome",
    "LinkResult",
    "MemberRepository",
    "OAuthProfileDefaults",
]
