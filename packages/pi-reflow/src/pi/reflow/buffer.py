"""Reusable scratch buffer for assembling output strings.

Writers size their complete output before writing anything: reserving space
discards whatever the buffer held, the same way a reallocation would.
"""

from __future__ import annotations

from pi.reflow.errors import InternalInvariantError
from pi.reflow.limits import DEFAULT_MAX_LENGTH

_MIN_CAPACITY = 128


class ScratchBuffer:
    """Growable buffer owned by a single batch call.

    Capacity doubles (or jumps to the requested size when that is larger),
    never shrinks, and never exceeds ``max_length + 1``.
    """

    def __init__(self, max_length: int = DEFAULT_MAX_LENGTH) -> None:
        self.max_length = max_length
        self.capacity = 0
        self._parts: list[str] = []
        self._reserved = 0
        self._used = 0

    def reserve(self, size: int) -> None:
        """Make room for *size* characters and clear the current contents."""
        ceiling = self.max_length + 1
        if size > self.capacity:
            if not self.capacity:
                new_capacity = max(size, min(_MIN_CAPACITY, ceiling))
            else:
                new_capacity = max(min(self.capacity * 2, ceiling), size)
            if new_capacity > ceiling:
                raise InternalInvariantError(
                    f"Requested buffer size {size} greater than max length + 1 ({ceiling})."
                )
            self.capacity = new_capacity
        self._parts = []
        self._reserved = size
        self._used = 0

    def write(self, text: str) -> None:
        self._used += len(text)
        if self._used > self._reserved:
            raise InternalInvariantError(
                f"Buffer overrun: wrote {self._used} characters into a "
                f"{self._reserved} character reservation."
            )
        self._parts.append(text)

    def getvalue(self) -> str:
        return "".join(self._parts)

    def __len__(self) -> int:
        return self._used
