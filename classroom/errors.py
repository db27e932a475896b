"""
Error taxonomy for the session and access-control core.

Every failure carries a machine-readable kind plus the HTTP status class
the API layer answers with.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_SUSPENDED = "account_suspended"
    UNAUTHENTICATED = "unauthenticated"
    INVALID_TOKEN = "invalid_token"
    TOKEN_EXPIRED = "token_expired"
    SESSION_EXPIRED = "session_expired"
    FORBIDDEN = "forbidden"
    POLICY_VIOLATION = "policy_violation"
    SECRET_UNCHANGED = "secret_unchanged"
    PRINCIPAL_NOT_FOUND = "principal_not_found"
    NOT_FOUND = "not_found"
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"


class ConfigurationError(Exception):
    """Fatal misconfiguration detected at startup."""


class AuthError(Exception):
    """Base exception for authentication and authorization failures."""

    kind: ErrorKind = ErrorKind.UNAUTHENTICATED
    status_code: int = 401
    default_message: str = "Authentication required"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.kind.value,
            "message": self.message,
            "status_code": self.status_code,
        }


class InvalidCredentials(AuthError):
    kind = ErrorKind.INVALID_CREDENTIALS
    status_code = 400
    default_message = "Invalid credentials"


class AccountSuspended(AuthError):
    kind = ErrorKind.ACCOUNT_SUSPENDED
    status_code = 403
    default_message = "This account has been suspended. Contact the administrator"


class Unauthenticated(AuthError):
    kind = ErrorKind.UNAUTHENTICATED
    status_code = 401
    default_message = "Please login to access this resource"


class InvalidToken(Unauthenticated):
    kind = ErrorKind.INVALID_TOKEN
    default_message = "Invalid token"


class TokenExpired(Unauthenticated):
    kind = ErrorKind.TOKEN_EXPIRED
    default_message = "Token has expired"


class SessionExpired(Unauthenticated):
    kind = ErrorKind.SESSION_EXPIRED
    default_message = "Session expired. Please login again"


class Forbidden(AuthError):
    kind = ErrorKind.FORBIDDEN
    status_code = 403
    default_message = "You are not allowed to access this resource"


class PolicyViolation(AuthError):
    kind = ErrorKind.POLICY_VIOLATION
    status_code = 400
    default_message = "Request violates password policy"


class SecretUnchanged(PolicyViolation):
    kind = ErrorKind.SECRET_UNCHANGED
    default_message = "New password must be different from the previous one"


class PrincipalNotFound(AuthError):
    kind = ErrorKind.PRINCIPAL_NOT_FOUND
    status_code = 404
    default_message = "User not found"


class ResourceNotFound(AuthError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class DependencyUnavailable(AuthError):
    kind = ErrorKind.DEPENDENCY_UNAVAILABLE
    status_code = 503
    default_message = "A required service is unavailable. Try again later"
