"""
Credential store abstraction.

The session core never owns user persistence. It reaches user records
through this narrow interface so the backing store (MongoDB, PostgreSQL,
in-memory for tests) can be swapped without touching auth logic.

"Not found" is always a None/False result, never an exception; exceptions
are reserved for the store itself failing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from classroom.auth.roles import Role
from classroom.core.utils import generate_id, normalize_identifier, utc_now


# =============================================================================
# Models
# =============================================================================


class CredentialRecord(BaseModel):
    """User record as stored; the only place a password digest lives."""

    id: str
    email: str
    name: str
    password_hash: str
    role: Role = Role.STUDENT
    is_active: bool = True

    # Tenant scoping
    student_class: str | None = None
    teacher_subjects: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


# Fields an admin operation may change through update_role_or_active()
MUTABLE_ACCESS_FIELDS = frozenset({"role", "is_active"})


# =============================================================================
# Store Interface
# =============================================================================


class CredentialStore(ABC):
    """
    Lookup and narrow mutation of credential records.

    Implementations: in-memory (tests/dev), document DB in production.
    """

    @abstractmethod
    async def find_by_identifier(self, identifier: str) -> CredentialRecord | None:
        """Find a record by normalised email."""
        pass

    @abstractmethod
    async def find_by_id(self, principal_id: str) -> CredentialRecord | None:
        """Find a record by id."""
        pass

    @abstractmethod
    async def update_secret(self, principal_id: str, password_hash: str) -> bool:
        """Replace the stored digest in one atomic write."""
        pass

    @abstractmethod
    async def update_role_or_active(self, principal_id: str, fields: dict[str, Any]) -> bool:
        """Change role and/or active flag in one atomic write."""
        pass


# =============================================================================
# In-Memory Implementation
# =============================================================================


class InMemoryCredentialStore(CredentialStore):
    """Dict-backed store. Every write replaces a whole record at once."""

    def __init__(self) -> None:
        self._records: dict[str, CredentialRecord] = {}
        self._ids_by_email: dict[str, str] = {}

    def add(
        self,
        email: str,
        name: str,
        password_hash: str,
        role: Role = Role.STUDENT,
        is_active: bool = True,
        student_class: str | None = None,
        teacher_subjects: list[str] | None = None,
        principal_id: str | None = None,
    ) -> CredentialRecord:
        """Create a record. At most one record may exist per email."""
        email = normalize_identifier(email)
        if email in self._ids_by_email:
            raise ValueError("Email already registered")

        record = CredentialRecord(
            id=principal_id or generate_id("user"),
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
            is_active=is_active,
            student_class=student_class,
            teacher_subjects=teacher_subjects or [],
        )
        self._records[record.id] = record
        self._ids_by_email[email] = record.id
        return record

    async def find_by_identifier(self, identifier: str) -> CredentialRecord | None:
        principal_id = self._ids_by_email.get(normalize_identifier(identifier))
        return self._records.get(principal_id) if principal_id else None

    async def find_by_id(self, principal_id: str) -> CredentialRecord | None:
        return self._records.get(principal_id)

    async def update_secret(self, principal_id: str, password_hash: str) -> bool:
        record = self._records.get(principal_id)
        if record is None:
            return False
        self._records[principal_id] = record.model_copy(
            update={"password_hash": password_hash, "updated_at": utc_now()}
        )
        return True

    async def update_role_or_active(self, principal_id: str, fields: dict[str, Any]) -> bool:
        unknown = set(fields) - MUTABLE_ACCESS_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        record = self._records.get(principal_id)
        if record is None:
            return False

        updates = dict(fields)
        if "role" in updates:
            updates["role"] = Role(updates["role"])
        updates["updated_at"] = utc_now()
        self._records[principal_id] = record.model_copy(update=updates)
        return True
