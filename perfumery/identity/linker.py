"""
Identity linker - one Member per email, however the member arrives.

Two entry flows converge here:

1. Local registration (email + password + profile).
2. External provider assertions (Google). A matching local account is
   *linked* rather than duplicated: it gains the provider id, provider and
   avatar, and keeps everything else (id, password hash, admin flag,
   profile).

The existence checks below are not atomic with the writes that follow.
The store's unique indexes are the real guarantee; a UniqueConstraintError
from a concurrent request is translated into the same outcome a sequential
request would have seen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from perfumery.auth.passwords import DEFAULT_ROUNDS, hash_password, verify_password
from perfumery.config import Settings
from perfumery.core.errors import (
    DuplicateEmailError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    NotFoundError,
)
from perfumery.core.models import AuthProvider, Member, MemberCreate, MemberUpdate
from perfumery.core.utils import normalize_email, utc_now
from perfumery.identity.members import MemberRepository
from perfumery.integrations.oauth import ExternalIdentity
from perfumery.storage import UniqueConstraintError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthProfileDefaults:
    """
    Profile values for members created from a provider assertion.

    Providers do not share age or gender, so these are placeholders
    until the member edits their profile.
    """

    age_years: int = 25
    gender: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> OAuthProfileDefaults:
        return cls(
            age_years=settings.oauth_default_age_years,
            gender=settings.oauth_default_gender,
        )

    def year_of_birth(self) -> int:
        return utc_now().year - self.age_years


class LinkOutcome(str, Enum):
    EXISTING = "existing"  # already linked; returned unchanged
    LINKED = "linked"      # local account gained the provider identity
    CREATED = "created"    # new member


@dataclass(frozen=True)
class LinkResult:
    member: Member
    outcome: LinkOutcome


class IdentityLinker:
    """Creates, authenticates and reconciles members."""

    def __init__(
        self,
        members: MemberRepository,
        oauth_defaults: OAuthProfileDefaults | None = None,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self.members = members
        self.oauth_defaults = oauth_defaults or OAuthProfileDefaults()
        self.bcrypt_rounds = bcrypt_rounds

    @classmethod
    def from_settings(cls, members: MemberRepository, settings: Settings) -> IdentityLinker:
        return cls(
            members,
            oauth_defaults=OAuthProfileDefaults.from_settings(settings),
            bcrypt_rounds=settings.bcrypt_rounds,
        )

    # =========================================================================
    # Local accounts
    # =========================================================================

    async def register(self, data: MemberCreate) -> Member:
        """
        Register a member with a password.

        Raises:
            DuplicateEmailError: a member with this email already exists
        """
        email = normalize_email(data.email)
        if await self.members.get_by_email(email):
            raise DuplicateEmailError()

        member = Member(
            email=email,
            name=data.name,
            password_hash=hash_password(data.password, self.bcrypt_rounds),
            year_of_birth=data.year_of_birth,
            gender=data.gender,
            provider=AuthProvider.LOCAL,
            is_admin=False,
        )

        try:
            await self.members.add(member)
        except UniqueConstraintError as e:
            logger.warning(f"Concurrent registration for {email}")
            raise DuplicateEmailError() from e

        logger.info(f"Registered member {member.id}")
        return member

    async def authenticate(self, email: str, password: str) -> Member:
        """
        Check an email/password pair.

        The error is identical for an unknown email and a wrong password.
        """
        member = await self.members.get_by_email(email)
        if member is None or not verify_password(password, member.password_hash):
            logger.warning(f"Failed login for {normalize_email(email)}")
            raise InvalidCredentialsError()
        return member

    async def update_profile(self, member_id: str, data: MemberUpdate) -> Member:
        """Update name, year of birth and gender. Nothing else is writable here."""
        member = await self.members.update(member_id, data.changes())
        if member is None:
            raise NotFoundError("Member not found")
        return member

    async def change_password(
        self,
        member_id: str,
        current_password: str,
        new_password: str,
    ) -> Member:
        """Replace the password after verifying the current one."""
        member = await self.members.get(member_id)
        if member is None:
            raise NotFoundError("Member not found")

        if not verify_password(current_password, member.password_hash):
            raise IncorrectPasswordError()

        updated = await self.members.update(
            member_id, {"password_hash": hash_password(new_password, self.bcrypt_rounds)}
        )
        if updated is None:
            raise NotFoundError("Member not found")
        logger.info(f"Password changed for member {member_id}")
        return updated

    async def ensure_admin(self, email: str, password: str, name: str) -> Member:
        """
        Seed an administrator account if the email is not taken.

        This is the only code path that creates a member with is_admin set.
        An existing member with the email is left untouched.
        """
        existing = await self.members.get_by_email(email)
        if existing:
            if not existing.is_admin:
                logger.warning(f"Bootstrap admin email belongs to non-admin member {existing.id}")
            return existing

        admin = Member(
            email=email,
            name=name,
            password_hash=hash_password(password, self.bcrypt_rounds),
            provider=AuthProvider.LOCAL,
            is_admin=True,
        )
        try:
            await self.members.add(admin)
        except UniqueConstraintError:
            return await self.members.get_by_email(email)

        logger.info(f"Seeded administrator {admin.id}")
        return admin

    # =========================================================================
    # External identities
    # =========================================================================

    async def link_external(self, identity: ExternalIdentity) -> LinkResult:
        """
        Find, link or create the member for a provider assertion.

        - found and already linked   -> returned unchanged
        - found by email, not linked -> provider id, provider and avatar merged
        - not found                  -> new member with default profile values
        """
        existing = await self.members.find_for_provider(identity.subject, identity.email)
        if existing:
            return await self._link(existing, identity)

        defaults = self.oauth_defaults
        member = Member(
            email=identity.email,
            name=identity.name,
            password_hash=None,
            year_of_birth=defaults.year_of_birth(),
            gender=defaults.gender,
            avatar=identity.avatar_url,
            provider=AuthProvider(identity.provider),
            google_id=identity.subject,
            is_admin=False,
        )

        try:
            await self.members.add(member)
        except UniqueConstraintError:
            # Someone registered or linked this email/provider id between
            # our lookup and insert; link to whatever won instead.
            logger.warning(f"Concurrent {identity.provider} sign-up; linking instead")
            existing = await self.members.find_for_provider(identity.subject, identity.email)
            if existing is None:
                raise DuplicateEmailError()
            return await self._link(existing, identity)

        logger.info(f"Created member {member.id} from {identity.provider}")
        return LinkResult(member, LinkOutcome.CREATED)

    async def _link(self, member: Member, identity: ExternalIdentity) -> LinkResult:
        if member.is_linked:
            return LinkResult(member, LinkOutcome.EXISTING)

        updates = {
            "google_id": identity.subject,
            "provider": AuthProvider(identity.provider),
            "avatar": identity.avatar_url,
        }
        try:
            linked = await self.members.update(member.id, updates)
        except UniqueConstraintError:
            # The provider id was attached to another member concurrently
            owner = await self.members.get_by_google_id(identity.subject)
            if owner is None:
                raise DuplicateEmailError()
            return LinkResult(owner, LinkOutcome.EXISTING)

        logger.info(f"Linked {identity.provider} identity to member {member.id}")
        return LinkResult(linked, LinkOutcome.LINKED)
