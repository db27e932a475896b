"""
Principal - the "who is calling" for each request.

This is the lightweight object passed to route handlers once the
authorization gate has verified the token and re-read the user record.
It is rebuilt on every request and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from classroom.auth.roles import STAFF_ROLES, Role
from classroom.auth.store import CredentialRecord


@dataclass(frozen=True)
class Principal:
    """
    Identity resolved from a verified access token.

    Usage in routes:
        async def my_route(principal: Principal = Depends(require_roles("teacher"))):
            print(f"User {principal.id} ({principal.role.value})")
    """

    id: str
    role: Role
    is_active: bool = True
    name: str = ""
    email: str = ""

    # Enrolled class, for students
    student_class: str | None = None

    @classmethod
    def from_record(cls, record: CredentialRecord) -> Principal:
        return cls(
            id=record.id,
            role=record.role,
            is_active=record.is_active,
            name=record.name,
            email=record.email,
            student_class=record.student_class,
        )

    @property
    def is_staff(self) -> bool:
        """Teachers and admins."""
        return self.role in STAFF_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def has_role(self, *roles: Role | str) -> bool:
        return any(self.role == Role(r) for r in roles)

    def actor(self) -> dict[str, Any]:
        """Attribution for background jobs and activity logs."""
        return {"user_id": self.id, "role": self.role.value}
