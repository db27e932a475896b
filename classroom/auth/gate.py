"""
Authorization gate - the interface for route authorization.

Just use: `principal: Principal = Depends(require_roles("teacher", "admin"))`

Design:
- `require_roles()` returns a FastAPI dependency that resolves to a Principal
- It reads the access token (Bearer header, then cookie), verifies it,
  re-reads the user record and checks the active flag and role
- There is no per-session cache: a role change or suspension is seen on
  the very next request
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from classroom.auth.context import Principal
from classroom.auth.roles import Role, as_role_set
from classroom.auth.store import CredentialStore
from classroom.auth.tokens import (
    TokenCodec,
    TokenExpiredError,
    TokenInvalidError,
    TokenKind,
)
from classroom.core.utils import call_dependency
from classroom.errors import (
    AccountSuspended,
    AuthError,
    Forbidden,
    InvalidToken,
    TokenExpired,
    Unauthenticated,
)


# =============================================================================
# Decision
# =============================================================================


@dataclass(frozen=True)
class AuthorizationDecision:
    """Outcome of a gate check, for callers that prefer a value to an exception."""

    allowed: bool
    principal: Principal | None = None
    error: AuthError | None = None


# =============================================================================
# Gate
# =============================================================================


class AuthorizationGate:
    """Resolves the calling principal and enforces a role set."""

    def __init__(self, store: CredentialStore, codec: TokenCodec, store_timeout: float = 5.0):
        self.store = store
        self.codec = codec
        self.store_timeout = store_timeout

    async def authenticate(self, token: str | None) -> Principal:
        """
        Resolve the principal behind an access token.

        Raises:
            Unauthenticated: no token, or the user no longer exists
            TokenExpired / InvalidToken: token failed verification
            AccountSuspended: the user is deactivated
        """
        if not token:
            raise Unauthenticated()

        try:
            payload = self.codec.verify(token, TokenKind.ACCESS)
        except TokenExpiredError:
            raise TokenExpired()
        except TokenInvalidError:
            raise InvalidToken()

        record = await call_dependency(
            self.store.find_by_id(payload.sub),
            self.store_timeout,
            "credential store",
        )
        if record is None:
            raise Unauthenticated("User no longer exists")
        if not record.is_active:
            raise AccountSuspended()

        return Principal.from_record(record)

    async def authorize(self, token: str | None, roles: Iterable[Role | str] = ()) -> Principal:
        """
        Authenticate, then require one of `roles`.

        An empty role set admits any authenticated, active principal.
        """
        principal = await self.authenticate(token)
        allowed = as_role_set(roles)
        if allowed and principal.role not in allowed:
            raise Forbidden(f"Role '{principal.role.value}' is not allowed to access this resource")
        return principal

    async def decide(self, token: str | None, roles: Iterable[Role | str] = ()) -> AuthorizationDecision:
        try:
            principal = await self.authorize(token, roles)
        except (Unauthenticated, AccountSuspended, Forbidden) as e:
            return AuthorizationDecision(allowed=False, error=e)
        return AuthorizationDecision(allowed=True, principal=principal)


# =============================================================================
# FastAPI dependencies
# =============================================================================


# Optional bearer (doesn't fail if no header; the cookie may carry the token)
optional_bearer = HTTPBearer(auto_error=False)


def get_gate(request: Request) -> AuthorizationGate:
    return request.app.state.gate


async def extract_access_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> str | None:
    """Bearer header first, access cookie second."""
    if credentials and credentials.credentials:
        return credentials.credentials
    cookie_name = request.app.state.settings.access_cookie_name
    return request.cookies.get(cookie_name) or None


def require_roles(*roles: Role | str) -> Callable:
    """
    Require an authenticated principal holding one of `roles`.

    Usage:
        @router.get("/exams")
        async def list_exams(
            principal: Principal = Depends(require_roles("teacher", "student", "admin")),
        ):
            ...
    """
    allowed = as_role_set(roles)

    async def dependency(
        token: str | None = Depends(extract_access_token),
        gate: AuthorizationGate = Depends(get_gate),
    ) -> Principal:
        return await gate.authorize(token, allowed)

    return dependency


def require_auth() -> Callable:
    """Just require authentication, no specific role."""
    return require_roles()
