# =============================================================================
# Password Hashing
# =============================================================================
#
# bcrypt with a per-hash random salt. The work factor is stored in the hash
# itself, so raising BCRYPT_ROUNDS later does not invalidate existing hashes.
#
# =============================================================================

import logging

import bcrypt

from perfumery.core.errors import CorruptedPasswordHashError

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of the password
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """
    Hash a password with bcrypt.

    Two calls with the same password return different hashes (fresh salt).
    """
    hashed = bcrypt.hashpw(_encode(password), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("ascii")


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify a password against its bcrypt hash.

    Returns False for a wrong password and for members without a password
    (OAuth-only accounts).

    Raises:
        CorruptedPasswordHashError: the stored hash is not a bcrypt hash
    """
    if not password_hash:
        return False

    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("ascii"))
    except (ValueError, UnicodeEncodeError) as e:
        logger.error("Stored password hash is malformed")
        raise CorruptedPasswordHashError("Stored password hash is malformed") from e
