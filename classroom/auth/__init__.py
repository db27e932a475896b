"""
Session and access-control core.

Design principles:
1. Stateless dual tokens (access + refresh), rotated on every refresh
2. Role re-read from the credential store on every request
3. Field redaction and ownership checks decided in one place
4. One dependency in route handlers: Depends(require_roles(...))
"""

from classroom.auth.context import Principal
from classroom.auth.gate import (
    AuthorizationDecision,
    AuthorizationGate,
    require_auth,
    require_roles,
)
from classroom.auth.passwords import (
    dummy_verify,
    hash_password,
    verify_password,
)
from classroom.auth.roles import Role, STAFF_ROLES
from classroom.auth.service import Authenticator, ResetNotice, Session, UserSummary
from classroom.auth.store import (
    CredentialRecord,
    CredentialStore,
    InMemoryCredentialStore,
)
from classroom.auth.tokens import TokenCodec, TokenKind, TokenPair
from classroom.auth.transport import SessionTransport
from classroom.auth.visibility import (
    REDACTION_RULES,
    ResourceKind,
    ensure_can_modify_exam,
    ensure_can_view_exam,
    ensure_can_view_submission,
    exam_list_filter,
    redact,
    view_exam,
    view_submission,
    view_user,
)

__all__ = [
    # Main interface
    "require_roles",
    "require_auth",
    "Principal",
    "AuthorizationGate",
    "AuthorizationDecision",
    # Lifecycle
    "Authenticator",
    "Session",
    "ResetNotice",
    "UserSummary",
    "SessionTransport",
    # Types
    "Role",
    "STAFF_ROLES",
    "CredentialRecord",
    "CredentialStore",
    "InMemoryCredentialStore",
    # Tokens
    "TokenCodec",
    "TokenKind",
    "TokenPair",
    # Passwords
    "hash_password",
    "verify_password",
    "dummy_verify",
    # Visibility
    "ResourceKind",
    "REDACTION_RULES",
    "redact",
    "view_exam",
    "view_submission",
    "view_user",
    "ensure_can_view_exam",
    "ensure_can_modify_exam",
    "ensure_can_view_submission",
    "exam_list_filter",
]
