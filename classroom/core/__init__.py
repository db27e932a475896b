"""
Core module - shared infrastructure.

This module contains:
- utils: ids, clocks, identifier normalisation, dependency deadlines
"""

from classroom.core.utils import (
    call_dependency,
    generate_id,
    normalize_identifier,
    utc_now,
)

__all__ = [
    "call_dependency",
    "generate_id",
    "normalize_identifier",
    "utc_now",
]
