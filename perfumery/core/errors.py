"""
Error taxonomy.

Every error a request can legitimately run into is a PerfumeryError: it
carries the HTTP status and the message placed in the
``{"success": false, "message": ...}`` envelope by the API layer.

ConfigurationError and CorruptedPasswordHashError are not PerfumeryErrors:
the first aborts startup, the second is a data-integrity fault that is
reported rather than shown to the caller as a user error.
"""

from __future__ import annotations


class PerfumeryError(Exception):
    """Base exception for request-level failures."""

    status_code: int = 400
    message: str = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# =============================================================================
# Authentication
# =============================================================================


class MissingTokenError(PerfumeryError):
    """No bearer token on a protected request."""

    status_code = 401
    message = "Access token required"


class InvalidTokenError(PerfumeryError):
    """Bearer token failed verification (expired, malformed, bad signature)."""

    status_code = 403
    message = "Invalid or expired token"

    def __init__(self, status: str | None = None, message: str | None = None):
        self.status = status
        super().__init__(message)


class UnknownMemberError(PerfumeryError):
    """Token is valid but the member it names no longer exists."""

    status_code = 401
    message = "Invalid token - user not found"


class InvalidCredentialsError(PerfumeryError):
    """Login failed. Never says whether the email exists."""

    status_code = 401
    message = "Invalid email or password"


class IncorrectPasswordError(PerfumeryError):
    """Current password did not verify during a password change."""

    status_code = 400
    message = "Current password is incorrect"


# =============================================================================
# Authorization
# =============================================================================


class ForbiddenError(PerfumeryError):
    """Authenticated but lacking the required role or ownership."""

    status_code = 403
    message = "Access denied"


class OwnershipMismatchError(ForbiddenError):
    """Edit/delete attempted by someone other than the author."""

    message = "You can only modify your own comments"


# =============================================================================
# Identity
# =============================================================================


class DuplicateEmailError(PerfumeryError):
    status_code = 400
    message = "Member with this email already exists"


class UpstreamProviderError(PerfumeryError):
    """The external identity provider's assertion could not be verified."""

    status_code = 401
    message = "Could not verify identity with provider"


class InvalidOAuthStateError(PerfumeryError):
    status_code = 400
    message = "Invalid state parameter"


class UnknownProviderError(PerfumeryError):
    status_code = 404
    message = "Unknown provider"


# =============================================================================
# Resources
# =============================================================================


class AlreadyReviewedError(PerfumeryError):
    """Second review for the same (perfume, member) pair."""

    status_code = 400
    message = "You have already commented on this perfume"


class NotFoundError(PerfumeryError):
    status_code = 404
    message = "Not found"


# =============================================================================
# Non-request errors
# =============================================================================


class ConfigurationError(Exception):
    """Startup configuration is unusable (e.g. missing signing secret)."""


class CorruptedPasswordHashError(Exception):
    """A stored password hash cannot be parsed."""
