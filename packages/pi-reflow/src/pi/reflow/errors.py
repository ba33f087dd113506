"""Exceptions and warnings raised by pi-reflow."""

from __future__ import annotations


class ReflowError(Exception):
    """Base class for every error raised by this package."""


class ArgumentError(ReflowError, ValueError):
    """An argument is outside of what the operation accepts."""


class WidthTooNarrowError(ArgumentError):
    """Hard wrapping cannot make progress because a unit is wider than the line."""

    def __init__(self) -> None:
        super().__init__(
            "Wrap error: trying to wrap to width narrower than character width; "
            "set wrap_always=False to resolve."
        )


class LengthOverflowError(ReflowError, OverflowError):
    """A computed length would exceed the configured maximum length."""

    def __init__(self, operation: str, limit: int) -> None:
        self.operation = operation
        self.limit = limit
        super().__init__(
            f"Attempting to create string longer than {limit} while {operation}."
        )


class InternalInvariantError(ReflowError, RuntimeError):
    """A state that correct code can never reach."""


class ReflowCancelled(ReflowError):
    """A batch call was cancelled through its ``should_cancel`` callback."""


class UnhandledSequenceWarning(UserWarning):
    """Input contains control sequences that could not be interpreted."""


class MalformedEncodingWarning(UnhandledSequenceWarning):
    """Input contains bytes that are not valid UTF-8."""
