"""
Roles.

This defines WHO a principal is, not WHAT they may see.
Route gating lives in gate.py, field visibility in visibility.py.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class Role(str, Enum):
    """Platform-wide role of a user account."""

    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


# Roles allowed to see exam answer keys and manage exams
STAFF_ROLES: frozenset[Role] = frozenset({Role.ADMIN, Role.TEACHER})


def as_role_set(roles: Iterable[Role | str]) -> frozenset[Role]:
    """
    Normalise a collection of roles.

    Accepts enum members or their string values; unknown names raise
    ValueError at route-definition time rather than per request.
    """
    return frozenset(Role(r) for r in roles)
