"""
Background job dispatch.

Exam and timetable generation run as fire-and-forget jobs submitted by the
resource handlers. The access-control core only contributes the caller's
identity so every job can be attributed to the user who triggered it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any
import logging

from classroom.auth.context import Principal

logger = logging.getLogger(__name__)


class JobDispatcher(ABC):
    """Submits a named job with a JSON-able payload."""

    @abstractmethod
    async def dispatch(self, name: str, data: dict[str, Any]) -> None:
        pass


async def dispatch_as(
    dispatcher: JobDispatcher,
    principal: Principal,
    name: str,
    data: dict[str, Any],
) -> None:
    """Submit a job stamped with the triggering principal."""
    payload = {**data, "triggered_by": principal.actor()}
    logger.info(f"Dispatching job {name} for {principal.id}")
    await dispatcher.dispatch(name, payload)
