# =============================================================================
# Authenticator
# =============================================================================
#
# Session lifecycle:
#
#   Anonymous --login--> Authenticated --refresh--> Authenticated
#                              |                          |
#                              +--------logout------------+--> LoggedOut
#
# Tokens are stateless: logout, password changes and suspension never
# revoke an issued token. Suspension is still observed on the next request
# because the gate re-reads the record every time, and access tokens live
# only minutes.
#
# Suspension points are the credential store, the notifier and the password
# hasher. Persisting a new digest is always the last step of an operation.
#
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from classroom.auth.passwords import (
    dummy_verify,
    hash_password,
    password_fingerprint,
    verify_password,
)
from classroom.auth.roles import Role
from classroom.auth.store import CredentialRecord, CredentialStore
from classroom.auth.tokens import (
    TokenCodec,
    TokenExpiredError,
    TokenInvalidError,
    TokenKind,
    TokenPair,
)
from classroom.config import Settings
from classroom.core.utils import call_dependency, normalize_identifier
from classroom.errors import (
    AccountSuspended,
    DependencyUnavailable,
    InvalidCredentials,
    InvalidToken,
    PolicyViolation,
    PrincipalNotFound,
    SecretUnchanged,
    SessionExpired,
    TokenExpired,
)
from classroom.integrations.email import Notifier
from classroom.integrations.sentry import capture_exception

logger = logging.getLogger(__name__)


# =============================================================================
# Models
# =============================================================================

class UserSummary(BaseModel):
    """Minimal user data returned to clients for state sync."""
    id: str
    name: str
    email: str
    role: Role
    is_active: bool

    @classmethod
    def from_record(cls, record: CredentialRecord) -> UserSummary:
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            role=record.role,
            is_active=record.is_active,
        )


class Session(BaseModel):
    """Result of a login or refresh: a fresh token pair plus who it belongs to."""
    tokens: TokenPair
    user: UserSummary


class ResetNotice(BaseModel):
    """A reset link ready for delivery."""
    principal_id: str
    destination: str
    payload: dict[str, Any]


# =============================================================================
# Service
# =============================================================================

class Authenticator:
    """Login, refresh, password change and password reset."""

    def __init__(
        self,
        store: CredentialStore,
        codec: TokenCodec,
        notifier: Notifier,
        settings: Settings,
    ):
        self.store = store
        self.codec = codec
        self.notifier = notifier
        self.settings = settings

    # -------------------------------------------------------------------------
    # Login / logout
    # -------------------------------------------------------------------------

    async def login(self, identifier: str, password: str) -> Session:
        """
        Exchange credentials for a session.

        An unknown identifier and a wrong password fail identically, in
        content and in time. Suspension is reported distinctly.
        """
        email = normalize_identifier(identifier)
        record = await self._find_by_identifier(email) if email else None

        if record is None:
            await run_in_threadpool(dummy_verify, password, self.settings.password_hash_iterations)
            logger.info(f"Login failed for {email!r}")
            raise InvalidCredentials()

        if not await self._verify(password, record.password_hash):
            logger.info(f"Login failed for {email!r}")
            raise InvalidCredentials()

        if not record.is_active:
            logger.warning(f"Login refused for suspended account {record.id}")
            raise AccountSuspended()

        logger.info(f"Login succeeded for {record.id}")
        return self._open_session(record)

    async def logout(self) -> None:
        """Nothing to invalidate server-side; the transport clears the cookies."""
        return None

    # -------------------------------------------------------------------------
    # Refresh (rotation)
    # -------------------------------------------------------------------------

    async def refresh(self, refresh_token: str) -> Session:
        """
        Trade a refresh token for a brand-new access AND refresh token.

        The presented refresh token is not revoked; it stays verifiable
        until its own expiry.
        """
        try:
            payload = self.codec.verify(refresh_token, TokenKind.REFRESH)
        except TokenExpiredError:
            raise SessionExpired("Refresh token expired. Please login again")
        except TokenInvalidError:
            raise InvalidToken("Invalid refresh token")

        record = await self._find_by_id(payload.sub)
        if record is None:
            raise PrincipalNotFound()
        if not record.is_active:
            raise AccountSuspended()

        logger.info(f"Session refreshed for {record.id}")
        return self._open_session(record)

    # -------------------------------------------------------------------------
    # Password change
    # -------------------------------------------------------------------------

    async def change_password(self, principal_id: str, old_password: str, new_password: str) -> None:
        """
        Replace the caller's password.

        Tokens issued before the change stay valid until they expire.
        """
        record = await self._find_by_id(principal_id)
        if record is None:
            raise PrincipalNotFound()

        if not await self._verify(old_password, record.password_hash):
            raise InvalidCredentials("Old password is incorrect")

        await self._replace_password(record, new_password)
        logger.info(f"Password changed for {record.id}")

    # -------------------------------------------------------------------------
    # Password reset
    # -------------------------------------------------------------------------

    async def initiate_reset(self, identifier: str) -> ResetNotice | None:
        """
        Prepare a reset link if an active account matches.

        Nothing is sent here: the caller hands the notice to `deliver_reset`
        after responding, so known and unknown addresses take the same path
        and the same time up to the response.
        """
        email = normalize_identifier(identifier)
        record = await self._find_by_identifier(email) if email else None

        if record is None or not record.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return None

        token = self.codec.issue(
            record.id,
            TokenKind.RESET,
            extra_claims={"pwd": password_fingerprint(record.password_hash)},
        )
        return ResetNotice(
            principal_id=record.id,
            destination=record.email,
            payload={
                "name": record.name,
                "reset_url": f"{self.settings.frontend_url.rstrip('/')}/reset-password?token={token}",
                "expires_minutes": self.settings.reset_token_expire_minutes,
            },
        )

    async def deliver_reset(self, notice: ResetNotice | None) -> None:
        """
        Send a prepared reset link. Runs as a background task.

        Delivery failures are logged and reported to Sentry, never raised:
        the response has already gone out.
        """
        if notice is None:
            return

        try:
            await call_dependency(
                self.notifier.send(notice.destination, "password_reset", notice.payload),
                self.settings.notifier_timeout_seconds,
                "notifier",
            )
        except DependencyUnavailable as e:
            logger.error(f"Password reset delivery failed for {notice.principal_id}: {e.message}")
            capture_exception(e, principal_id=notice.principal_id)
            return

        logger.info(f"Password reset link issued for {notice.principal_id}")

    async def complete_reset(self, reset_token: str, new_password: str) -> None:
        """
        Set a new password using a reset token.

        The token is bound to the digest it was issued against, so it stops
        working as soon as the password changes by any route.
        """
        try:
            payload = self.codec.verify(reset_token, TokenKind.RESET)
        except TokenExpiredError:
            raise TokenExpired("Reset link has expired")
        except TokenInvalidError:
            raise InvalidToken("Invalid reset token")

        record = await self._find_by_id(payload.sub)
        if record is None:
            raise PrincipalNotFound()
        if not record.is_active:
            raise AccountSuspended()
        if payload.pwd != password_fingerprint(record.password_hash):
            raise InvalidToken("Reset link has already been used")

        await self._replace_password(record, new_password)
        logger.info(f"Password reset completed for {record.id}")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _open_session(self, record: CredentialRecord) -> Session:
        return Session(
            tokens=self.codec.issue_pair(record.id),
            user=UserSummary.from_record(record),
        )

    async def _replace_password(self, record: CredentialRecord, new_password: str) -> None:
        candidate = new_password.strip()

        if await self._verify(candidate, record.password_hash):
            raise SecretUnchanged()

        low = self.settings.password_min_length
        high = self.settings.password_max_length
        if not low <= len(candidate) <= high:
            raise PolicyViolation(f"Password must be between {low} and {high} characters")

        digest = await run_in_threadpool(
            hash_password, candidate, self.settings.password_hash_iterations
        )
        updated = await call_dependency(
            self.store.update_secret(record.id, digest),
            self.settings.store_timeout_seconds,
            "credential store",
        )
        if not updated:
            raise PrincipalNotFound()

    async def _verify(self, password: str, password_hash: str) -> bool:
        return await run_in_threadpool(verify_password, password, password_hash)

    async def _find_by_identifier(self, email: str) -> CredentialRecord | None:
        return await call_dependency(
            self.store.find_by_identifier(email),
            self.settings.store_timeout_seconds,
            "credential store",
        )

    async def _find_by_id(self, principal_id: str) -> CredentialRecord | None:
        return await call_dependency(
            self.store.find_by_id(principal_id),
            self.settings.store_timeout_seconds,
            "credential store",
        )
