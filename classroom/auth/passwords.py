# =============================================================================
# Password Hashing
# =============================================================================
#
# PBKDF2-SHA256 with a per-password salt. The digest records its own
# iteration count so the work factor can be raised without invalidating
# existing records:
#
#     pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>
#
# =============================================================================

from __future__ import annotations

import hashlib
import secrets
from functools import lru_cache

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 310_000
SALT_BYTES = 32


def _derive(password: str, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        iterations,
    ).hex()


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    """
    Hash a password using PBKDF2-SHA256.

    Entropy or hashing failures propagate; there is no weaker fallback.
    """
    salt = secrets.token_hex(SALT_BYTES)
    return f"{ALGORITHM}${iterations}${salt}${_derive(password, salt, iterations)}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash in constant time."""
    try:
        algorithm, iterations, salt, stored_hash = password_hash.split("$")
        rounds = int(iterations)
    except (ValueError, AttributeError):
        return False
    if algorithm != ALGORITHM or rounds < 1:
        return False
    return secrets.compare_digest(_derive(password, salt, rounds), stored_hash)


@lru_cache(maxsize=8)
def _dummy_hash(iterations: int) -> str:
    return hash_password(secrets.token_urlsafe(16), iterations)


def dummy_verify(password: str, iterations: int = DEFAULT_ITERATIONS) -> bool:
    """
    Spend the same work as a real verification against a throwaway digest.

    Used when no record matches an identifier so that "unknown user" and
    "wrong password" take the same time. Always returns False.
    """
    verify_password(password, _dummy_hash(iterations))
    return False


def password_fingerprint(password_hash: str) -> str:
    """Short, non-reversible marker of a stored digest, embedded in reset tokens."""
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]
