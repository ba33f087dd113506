"""Overflow-checked length arithmetic."""

from __future__ import annotations

from pi.reflow.errors import LengthOverflowError

# Largest signed 32-bit value; lengths above it are rejected.
DEFAULT_MAX_LENGTH = 2**31 - 1


def checked_add(x: int, y: int, limit: int, operation: str) -> int:
    """Return ``x + y``, raising :class:`LengthOverflowError` outside ``[0, limit]``."""
    total = x + y
    if total > limit or total < 0:
        raise LengthOverflowError(operation, limit)
    return total
