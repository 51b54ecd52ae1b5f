# =============================================================================
# Bearer Tokens
# =============================================================================
#
# Signed, time-bounded JWTs naming a member:
#   - issue(member_id) -> token
#   - verify(token)    -> TokenVerification (VALID / EXPIRED / MALFORMED /
#                         SIGNATURE_MISMATCH)
#
# There is no revocation list. A token stays valid until it expires, even if
# the member is later demoted or edited.
#
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

import jwt
from pydantic import BaseModel

from perfumery.config import Settings
from perfumery.core.errors import ConfigurationError
from perfumery.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


# =============================================================================
# Models
# =============================================================================


class TokenPayload(BaseModel):
    """JWT token payload."""
    sub: str  # member_id
    exp: datetime
    iat: datetime
    type: str
    jti: str  # unique token ID


class TokenStatus(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    MALFORMED = "malformed"
    SIGNATURE_MISMATCH = "signature_mismatch"


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of verifying a token. ``member_id`` is only set when valid."""

    status: TokenStatus
    member_id: str | None = None
    payload: TokenPayload | None = None

    @property
    def is_valid(self) -> bool:
        return self.status is TokenStatus.VALID


# =============================================================================
# Token Service
# =============================================================================


class TokenService:
    """Issues and verifies access tokens with a shared secret."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_in: timedelta = timedelta(days=30),
        clock: Callable[[], datetime] = utc_now,
    ):
        if not secret_key:
            raise ConfigurationError("JWT_SECRET_KEY must be set")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in = expires_in
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], datetime] = utc_now) -> TokenService:
        return cls(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expires_in=settings.token_lifetime,
            clock=clock,
        )

    @property
    def expires_in_seconds(self) -> int:
        return int(self.expires_in.total_seconds())

    def issue(self, member_id: str) -> str:
        """Create a signed access token for a member."""
        now = self._clock()
        payload = {
            "sub": member_id,
            "iat": now,
            "exp": now + self.expires_in,
            "type": ACCESS_TOKEN_TYPE,
            "jti": generate_id("tok"),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenVerification:
        """
        Check signature and expiry.

        Expiry is evaluated against this service's clock rather than
        PyJWT's, so it can be tested without sleeping.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["sub", "exp", "iat"],
                },
            )
        except jwt.InvalidSignatureError:
            return TokenVerification(TokenStatus.SIGNATURE_MISMATCH)
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected malformed token: {e}")
            return TokenVerification(TokenStatus.MALFORMED)

        if claims.get("type") != ACCESS_TOKEN_TYPE:
            return TokenVerification(TokenStatus.MALFORMED)

        try:
            payload = TokenPayload(
                sub=claims["sub"],
                exp=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
                iat=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                type=claims["type"],
                jti=claims.get("jti", ""),
            )
        except (TypeError, ValueError, OverflowError):
            return TokenVerification(TokenStatus.MALFORMED)

        if self._clock() >= payload.exp:
            return TokenVerification(TokenStatus.EXPIRED, payload=payload)

        return TokenVerification(TokenStatus.VALID, member_id=payload.sub, payload=payload)
