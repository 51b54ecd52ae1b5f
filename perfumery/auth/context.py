"""
Auth context - the "who can do what" for each request.

This is the lightweight object passed to route handlers. It contains
everything needed to make authorization decisions.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from perfumery.auth.capabilities import Capability, Role, get_capabilities
from perfumery.core.models import Member


@dataclass
class AuthContext:
    """
    Authorization context for a request.

    Usage in routes:
        async def my_route(ctx: AuthContext = Depends(require_auth())):
            print(f"Member {ctx.member_id} is calling")
            if ctx.can("members.edit_any"):
                ...
    """

    member: Member | None = None

    # Computed capabilities (cached)
    _capabilities: set[Capability] = field(default_factory=set, repr=False)

    def __post_init__(self):
        self._capabilities = get_capabilities(self.role)

    @property
    def member_id(self) -> str | None:
        return self.member.id if self.member else None

    @property
    def role(self) -> Role | None:
        if self.member is None:
            return None
        return Role.ADMIN if self.member.is_admin else Role.MEMBER

    @property
    def is_authenticated(self) -> bool:
        return self.member is not None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def capabilities(self) -> set[Capability]:
        return self._capabilities

    def can(self, capability: Capability | str) -> bool:
        """
        Check if the member has a capability.

        Usage:
            if ctx.can("catalog.manage"):
                ...
        """
        if isinstance(capability, str):
            try:
                capability = Capability(capability)
            except ValueError:
                return False
        return capability in self._capabilities

    def is_self(self, member_id: str | None) -> bool:
        return self.member is not None and self.member.id == member_id

    @classmethod
    def anonymous(cls) -> AuthContext:
        return cls()
