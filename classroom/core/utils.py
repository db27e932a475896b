"""
Shared utility functions.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Awaitable, TypeVar

from classroom.errors import DependencyUnavailable

T = TypeVar("T")


def generate_id(prefix: str = "") -> str:
    """
    Generate a unique ID with optional prefix.

    Args:
        prefix: Optional prefix (e.g., "user", "tok")

    Returns:
        A unique ID like "user_a1b2c3d4e5f6"
    """
    uid = uuid.uuid4().hex[:12]
    return f"{prefix}_{uid}" if prefix else uid


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def normalize_identifier(identifier: str) -> str:
    """Emails are matched case-insensitively and without surrounding blanks."""
    return identifier.strip().lower()


async def call_dependency(awaitable: Awaitable[T], timeout: float, name: str) -> T:
    """
    Await a call into an external collaborator with a deadline.

    Timeouts and connection failures become DependencyUnavailable so they are
    never confused with a credential or authorization failure.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise DependencyUnavailable(f"{name} timed out") from e
    except ConnectionError as e:
        raise DependencyUnavailable(f"{name} is unreachable") from e
