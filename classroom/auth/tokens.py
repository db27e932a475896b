# =============================================================================
# Token Codec
# =============================================================================
#
# Signed, expiring JWTs for three purposes:
#   - access:  short-lived (minutes), authorizes individual requests
#   - refresh: long-lived (days), only exchanged for a new pair
#   - reset:   short-lived, password reset only, never a session token
#
# Each kind is signed with its own secret. Tokens carry the principal id
# and nothing about role: authority is re-read from the credential store
# on every verification.
#
# =============================================================================

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
import logging

from pydantic import BaseModel
import jwt

from classroom.config import Settings
from classroom.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Models
# =============================================================================

class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    RESET = "reset"


class TokenPayload(BaseModel):
    """Verified JWT claims."""
    sub: str  # principal id
    exp: datetime
    iat: datetime
    type: TokenKind
    jti: str
    pwd: str | None = None  # reset tokens only


class TokenPair(BaseModel):
    """Access and refresh token pair."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds until access token expires
    refresh_expires_in: int


# =============================================================================
# Errors
# =============================================================================

class TokenError(Exception):
    """Base exception for token errors."""
    pass


class TokenExpiredError(TokenError):
    """Token has expired."""
    pass


class TokenInvalidError(TokenError):
    """Token is malformed or its signature does not verify."""
    pass


class TokenWrongKindError(TokenInvalidError):
    """A genuine token of another kind was presented."""
    pass


# =============================================================================
# Codec
# =============================================================================

_REQUIRED_CLAIMS = ["sub", "exp", "iat", "type", "jti"]


class TokenCodec:
    """Issues and verifies tokens of every kind."""

    def __init__(self, settings: Settings):
        self.algorithm = settings.jwt_algorithm
        self._secrets = {
            TokenKind.ACCESS: settings.jwt_access_secret,
            TokenKind.REFRESH: settings.jwt_refresh_secret,
            TokenKind.RESET: settings.jwt_reset_secret,
        }
        self._ttls = {
            TokenKind.ACCESS: timedelta(seconds=settings.access_token_ttl_seconds),
            TokenKind.REFRESH: timedelta(seconds=settings.refresh_token_ttl_seconds),
            TokenKind.RESET: timedelta(seconds=settings.reset_token_ttl_seconds),
        }

    def ttl(self, kind: TokenKind) -> timedelta:
        return self._ttls[kind]

    def issue(
        self,
        principal_id: str,
        kind: TokenKind,
        ttl: timedelta | None = None,
        extra_claims: dict[str, Any] | None = None,
    ) -> str:
        """Create a signed token of the given kind."""
        now = utc_now()
        payload = {
            **(extra_claims or {}),
            "sub": principal_id,
            "iat": now,
            "exp": now + (ttl if ttl is not None else self._ttls[kind]),
            "type": kind.value,
            "jti": generate_id("tok"),
        }
        return jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)

    def issue_pair(self, principal_id: str) -> TokenPair:
        """Create both access and refresh tokens."""
        return TokenPair(
            access_token=self.issue(principal_id, TokenKind.ACCESS),
            refresh_token=self.issue(principal_id, TokenKind.REFRESH),
            expires_in=int(self._ttls[TokenKind.ACCESS].total_seconds()),
            refresh_expires_in=int(self._ttls[TokenKind.REFRESH].total_seconds()),
        )

    def verify(self, token: str, kind: TokenKind) -> TokenPayload:
        """
        Decode and validate a token of the expected kind.

        Raises:
            TokenExpiredError: signature valid but past expiry
            TokenWrongKindError: a valid token of a different kind
            TokenInvalidError: anything else
        """
        if not token:
            raise TokenInvalidError("Empty token")

        try:
            claims = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidSignatureError:
            if self._signed_as_other_kind(token, kind):
                raise TokenWrongKindError(f"Expected {kind.value} token")
            raise TokenInvalidError("Signature verification failed")
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError(f"Invalid token: {e}")

        # Secrets are distinct, so a mismatch here means a misissued token.
        if claims.get("type") != kind.value:
            raise TokenWrongKindError(f"Expected {kind.value} token, got {claims.get('type')}")

        return TokenPayload(
            sub=claims["sub"],
            exp=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            type=TokenKind(claims["type"]),
            jti=claims["jti"],
            pwd=claims.get("pwd"),
        )

    def _signed_as_other_kind(self, token: str, expected: TokenKind) -> bool:
        """Whether the token verifies under the secret of another kind."""
        for kind, secret in self._secrets.items():
            if kind == expected:
                continue
            try:
                jwt.decode(
                    token,
                    secret,
                    algorithms=[self.algorithm],
                    options={"verify_exp": False},
                )
            except jwt.InvalidTokenError:
                continue
            logger.warning("Rejected %s token presented as %s", kind.value, expected.value)
            return True
        return False
