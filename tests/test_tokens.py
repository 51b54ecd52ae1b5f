"""
Tests for access token issue and verification.

Expiry is driven by an injected clock, never by sleeping.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from perfumery.auth.tokens import TokenService, TokenStatus
from perfumery.core.errors import ConfigurationError

SECRET = "unit-test-secret-key-with-32-plus-bytes"


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def tokens(clock):
    """Token service with the default 30 day lifetime."""
    return TokenService(SECRET, clock=clock)


# =============================================================================
# Tests
# =============================================================================


class TestIssueAndVerify:
    def test_round_trip(self, tokens):
        result = tokens.verify(tokens.issue("member_abc"))

        assert result.status is TokenStatus.VALID
        assert result.is_valid
        assert result.member_id == "member_abc"
        assert result.payload.type == "access"

    def test_each_token_is_unique(self, tokens):
        assert tokens.issue("member_abc") != tokens.issue("member_abc")

    def test_default_lifetime(self, tokens):
        assert tokens.expires_in_seconds == 30 * 24 * 60 * 60

    def test_from_settings(self, settings, clock):
        service = TokenService.from_settings(settings.model_copy(update={"jwt_expire_days": 7}), clock)
        assert service.expires_in_seconds == 7 * 24 * 60 * 60


class TestExpiry:
    def test_valid_just_before_expiry(self, tokens, clock):
        token = tokens.issue("member_abc")
        clock.advance(days=30, seconds=-1)

        assert tokens.verify(token).is_valid

    def test_expired_at_expiry(self, tokens, clock):
        token = tokens.issue("member_abc")
        clock.advance(days=30)

        result = tokens.verify(token)
        assert result.status is TokenStatus.EXPIRED
        assert result.member_id is None

    def test_expired_long_after(self, tokens, clock):
        token = tokens.issue("member_abc")
        clock.advance(days=365)

        assert tokens.verify(token).status is TokenStatus.EXPIRED


class TestRejection:
    def test_signature_mismatch(self, tokens, clock):
        other = TokenService("another-secret-key-with-32-plus-bytes", clock=clock)
        result = tokens.verify(other.issue("member_abc"))

        assert result.status is TokenStatus.SIGNATURE_MISMATCH
        assert result.member_id is None

    @pytest.mark.parametrize("token", ["garbage", "not.a.token", ""])
    def test_malformed(self, tokens, token):
        assert tokens.verify(token).status is TokenStatus.MALFORMED

    def test_missing_subject(self, tokens, clock):
        now = clock()
        token = jwt.encode(
            {"iat": now, "exp": now + timedelta(days=1), "type": "access"},
            SECRET,
            algorithm="HS256",
        )
        assert tokens.verify(token).status is TokenStatus.MALFORMED

    def test_wrong_token_type(self, tokens, clock):
        now = clock()
        token = jwt.encode(
            {"sub": "member_abc", "iat": now, "exp": now + timedelta(days=1), "type": "refresh"},
            SECRET,
            algorithm="HS256",
        )
        assert tokens.verify(token).status is TokenStatus.MALFORMED


class TestConfiguration:
    def test_empty_secret_refused(self):
        with pytest.raises(ConfigurationError):
            TokenService("")
