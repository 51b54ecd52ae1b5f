"""
Member repository.

Thin typed layer over MetadataStorage. Emails are normalized on the way in
so lookups are case-insensitive; uniqueness is enforced by the store's
indexes and surfaces here as UniqueConstraintError.
"""

from __future__ import annotations

from typing import Any

from perfumery.core.models import Member
from perfumery.core.utils import normalize_email, utc_now
from perfumery.storage import Collections, MetadataStorage


class MemberRepository:
    """Reads and writes Member records."""

    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata

    @staticmethod
    def _to_model(doc: dict[str, Any] | None) -> Member | None:
        return Member.model_validate(doc) if doc else None

    async def get(self, member_id: str) -> Member | None:
        return self._to_model(await self.metadata.get(Collections.MEMBERS, member_id))

    async def get_by_email(self, email: str) -> Member | None:
        docs = await self.metadata.query(
            Collections.MEMBERS, {"email": normalize_email(email)}, limit=1
        )
        return self._to_model(docs[0]) if docs else None

    async def get_by_google_id(self, google_id: str) -> Member | None:
        docs = await self.metadata.query(Collections.MEMBERS, {"google_id": google_id}, limit=1)
        return self._to_model(docs[0]) if docs else None

    async def find_for_provider(self, google_id: str, email: str) -> Member | None:
        """Match on provider id first, falling back to email."""
        return await self.get_by_google_id(google_id) or await self.get_by_email(email)

    async def list_members(
        self,
        search: str | None = None,
        is_admin: bool | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Member]:
        """List members, optionally filtered by admin flag and a name/email substring."""
        filters = {"is_admin": is_admin} if is_admin is not None else None
        docs = await self.metadata.query(Collections.MEMBERS, filters, limit=10_000)
        members = [Member.model_validate(doc) for doc in docs]

        if search:
            needle = search.lower()
            members = [
                m for m in members
                if needle in m.name.lower() or needle in m.email
            ]

        members.sort(key=lambda m: m.created_at, reverse=True)
        return members[offset:offset + limit]

    async def add(self, member: Member) -> Member:
        """Insert a new member. Raises UniqueConstraintError on a duplicate."""
        await self.metadata.insert(Collections.MEMBERS, member.id, member.model_dump())
        return member

    async def update(self, member_id: str, updates: dict[str, Any]) -> Member | None:
        """Apply a partial update and return the stored result."""
        updates = {**updates, "updated_at": utc_now()}
        if not await self.metadata.update(Collections.MEMBERS, member_id, updates):
            return None
        return await self.get(member_id)
