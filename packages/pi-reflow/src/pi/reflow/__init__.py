"""pi-reflow: ANSI-aware display width, tab expansion and word wrapping."""

from pi.reflow.api import (
    UnhandledSequence,
    display_width,
    expand_tabs,
    find_next_control,
    has_ctl,
    normalize_whitespace,
    reflow,
    strip_ctl,
    trim_to_width,
    unhandled_ctl,
)
from pi.reflow.config import Ctl, ReflowConfig, TermCap, WarnPolicy
from pi.reflow.cursor import (
    Cursor,
    CursorState,
    has_open_style,
    serialize_style,
    serialized_style_size,
)
from pi.reflow.errors import (
    ArgumentError,
    InternalInvariantError,
    LengthOverflowError,
    MalformedEncodingWarning,
    ReflowCancelled,
    ReflowError,
    UnhandledSequenceWarning,
    WidthTooNarrowError,
)
from pi.reflow.scanner import ControlMatch
from pi.reflow.style import Style

__all__ = [
    # Batch operations
    "display_width",
    "expand_tabs",
    "find_next_control",
    "has_ctl",
    "normalize_whitespace",
    "reflow",
    "strip_ctl",
    "trim_to_width",
    "unhandled_ctl",
    "UnhandledSequence",
    # Configuration
    "Ctl",
    "ReflowConfig",
    "TermCap",
    "WarnPolicy",
    # Cursor
    "ControlMatch",
    "Cursor",
    "CursorState",
    "Style",
    "has_open_style",
    "serialize_style",
    "serialized_style_size",
    # Errors
    "ArgumentError",
    "InternalInvariantError",
    "LengthOverflowError",
    "MalformedEncodingWarning",
    "ReflowCancelled",
    "ReflowError",
    "UnhandledSequenceWarning",
    "WidthTooNarrowError",
]
