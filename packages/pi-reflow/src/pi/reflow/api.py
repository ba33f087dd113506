"""Batch entry points.

Every function takes a sequence of strings and processes the elements in
order with one scratch buffer and one warning sink per call. Elements may be
``str`` or ``bytes``; bytes are decoded as UTF-8 with ``surrogateescape`` so
malformed input survives the round trip, and results come back as bytes.
"""

from __future__ import annotations

import logging
from typing import Callable, NamedTuple, Sequence, Union

from pi.reflow.buffer import ScratchBuffer
from pi.reflow.config import DEFAULT_CONFIG, Ctl, ReflowConfig
from pi.reflow.cursor import CollectingSink, Cursor, WarningSink
from pi.reflow.errors import ArgumentError, ReflowCancelled
from pi.reflow.normalize import normalize_whitespace
from pi.reflow.scanner import ControlMatch, iter_controls
from pi.reflow.scanner import find_next_control as _find_next_control
from pi.reflow.tabs import TabExpander
from pi.reflow.wrap import Reflower, WrapOptions, build_prefixes, check_feasible

logger = logging.getLogger(__name__)

StrOrBytes = Union[str, bytes]

# Elements between two polls of ``should_cancel``.
CANCEL_CHECK_INTERVAL = 1000


class UnhandledSequence(NamedTuple):
    index: int
    start: int
    end: int
    detail: str
    text: str


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _decode(value: StrOrBytes) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", "surrogateescape")
    if isinstance(value, str):
        return value
    raise ArgumentError(f"Expected str or bytes, got {type(value).__name__}")


def _encode(value: str, like: StrOrBytes) -> StrOrBytes:
    if isinstance(like, bytes):
        return value.encode("utf-8", "surrogateescape")
    return value


def _batch(strings: Sequence[StrOrBytes]) -> tuple[list[StrOrBytes], list[str]]:
    """Return the original elements and their decoded text."""
    if isinstance(strings, (str, bytes)):
        raise ArgumentError("Expected a sequence of strings, not a single string")
    originals = list(strings)
    return originals, [_decode(s) for s in originals]


def _cancel_check(should_cancel: Callable[[], bool] | None) -> Callable[[int], None] | None:
    if should_cancel is None:
        return None

    def check(i: int) -> None:
        if i % CANCEL_CHECK_INTERVAL == 0 and should_cancel():
            raise ReflowCancelled(f"Cancelled before element {i + 1}")

    return check


# ---------------------------------------------------------------------------
# Wrapping
# ---------------------------------------------------------------------------


def reflow(
    strings: Sequence[StrOrBytes],
    width: int,
    indent: int = 0,
    exdent: int = 0,
    prefix: StrOrBytes = "",
    initial: StrOrBytes | None = None,
    wrap_always: bool = False,
    pad_char: str = "",
    strip_spaces: bool = True,
    expand_tabs: bool = False,
    tab_stops: Sequence[int] = (8,),
    first_line_only: bool = False,
    config: ReflowConfig | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> list[list[StrOrBytes]] | list[StrOrBytes]:
    """Word-wrap each string to *width* columns.

    Args:
        strings: Input elements.
        width: Target display width of each line, prefix included.
        indent: Spaces added after ``initial``/``prefix`` on paragraph starts.
        exdent: Spaces added after ``prefix`` on continuation lines.
        prefix: Written at the start of every line.
        initial: Written instead of ``prefix`` on the first line of the first
            element; defaults to ``prefix``.
        wrap_always: Break inside words that do not fit.
        pad_char: Pad narrower lines to the width with this character.
        strip_spaces: Normalise whitespace and drop spaces at breaks.
        expand_tabs: Replace tabs with spaces first (needs ``strip_spaces=False``).
        tab_stops: Cumulative tab-stop widths; the last one repeats.
        first_line_only: Return only the first line of each element.
        config: Control categories, warning policy, capabilities and limits.
        should_cancel: Polled every 1000 elements; returning true aborts.

    Returns:
        One list of lines per element, or one line per element when
        *first_line_only* is set.
    """
    config = config if config is not None else DEFAULT_CONFIG
    if strip_spaces and expand_tabs:
        raise ArgumentError("expand_tabs requires strip_spaces=False")
    options = WrapOptions(
        width=width,
        wrap_always=wrap_always,
        strip_spaces=strip_spaces,
        pad_char=pad_char,
        first_line_only=first_line_only,
    )
    originals, texts = _batch(strings)
    prefix_text = _decode(prefix)
    initial_text = prefix_text if initial is None else _decode(initial)
    logger.debug("reflow: %d strings to width %d", len(texts), width)

    sink = WarningSink(config.warn)
    buffer = ScratchBuffer(config.max_length)
    check = _cancel_check(should_cancel)

    if strip_spaces:
        texts = [normalize_whitespace(t, config) for t in texts]
    if expand_tabs:
        expander = TabExpander(tab_stops, config, buffer, sink)
        texts = expander.expand_all(texts, check)
        prefix_text = expander.expand(prefix_text, "prefix")
        initial_text = expander.expand(initial_text, "initial")

    ini_first, pre_first, pre_next = build_prefixes(
        prefix_text, initial_text, indent, exdent, config, sink
    )
    check_feasible(width, wrap_always, (ini_first, pre_first, pre_next))

    reflower = Reflower(options, pre_first, pre_next, config, buffer, sink)
    wrapped = reflower.wrap_all(texts, ini_first, check)

    if first_line_only:
        return [_encode(lines[0], orig) for lines, orig in zip(wrapped, originals)]
    return [
        [_encode(line, orig) for line in lines] for lines, orig in zip(wrapped, originals)
    ]


def trim_to_width(
    strings: Sequence[StrOrBytes],
    width: int,
    pad_char: str = "",
    config: ReflowConfig | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> list[StrOrBytes]:
    """Cut each string to its first *width* display columns, keeping styles closed."""
    if width < 0:
        raise ArgumentError("width must be non-negative")
    if width == 0:
        return [_encode("", s) for s in _batch(strings)[0]]
    return reflow(
        strings,
        width,
        wrap_always=True,
        pad_char=pad_char,
        strip_spaces=False,
        first_line_only=True,
        config=config,
        should_cancel=should_cancel,
    )


# ---------------------------------------------------------------------------
# Tabs
# ---------------------------------------------------------------------------


def expand_tabs(
    strings: Sequence[StrOrBytes],
    tab_stops: Sequence[int] = (8,),
    config: ReflowConfig | None = None,
    should_cancel: Callable[[], bool] | None = None,
) -> list[StrOrBytes]:
    """Replace tabs with spaces; elements without tabs are returned as is."""
    config = config if config is not None else DEFAULT_CONFIG
    expander = TabExpander(tab_stops, config)
    originals, texts = _batch(strings)
    logger.debug("expand_tabs: %d strings, stops %s", len(texts), expander.tab_stops)
    expanded = expander.expand_all(texts, _cancel_check(should_cancel))
    return [
        orig if new is text else _encode(new, orig)
        for orig, text, new in zip(originals, texts, expanded)
    ]


# ---------------------------------------------------------------------------
# Control sequences
# ---------------------------------------------------------------------------


def find_next_control(
    text: StrOrBytes,
    ctl: Ctl | None = None,
    start: int = 0,
    config: ReflowConfig | None = None,
) -> ControlMatch:
    """Locate the next control run in *text*; offsets are bytes for bytes input."""
    config = config if config is not None else DEFAULT_CONFIG
    ctl = config.ctl if ctl is None else ctl
    decoded = _decode(text)
    if not isinstance(text, bytes):
        return _find_next_control(decoded, ctl, start, config.lenient_csi)

    char_start = len(text[:start].decode("utf-8", "surrogateescape"))
    match = _find_next_control(decoded, ctl, char_start, config.lenient_csi)

    def nbytes(s: str) -> int:
        return len(s.encode("utf-8", "surrogateescape"))

    offset = nbytes(decoded[: match.offset])
    return match._replace(offset=offset, length=nbytes(decoded[match.offset : match.end]))


def has_ctl(
    strings: Sequence[StrOrBytes],
    ctl: Ctl | None = None,
    config: ReflowConfig | None = None,
) -> list[bool]:
    config = config if config is not None else DEFAULT_CONFIG
    ctl = config.ctl if ctl is None else ctl
    return [
        bool(_find_next_control(text, ctl, 0, config.lenient_csi).length)
        for text in _batch(strings)[1]
    ]


def strip_ctl(
    strings: Sequence[StrOrBytes],
    ctl: Ctl | None = None,
    config: ReflowConfig | None = None,
) -> list[StrOrBytes]:
    """Remove control sequences of the *ctl* categories from each string."""
    config = config if config is not None else DEFAULT_CONFIG
    ctl = config.ctl if ctl is None else ctl
    sink = WarningSink(config.warn)
    originals, texts = _batch(strings)
    logger.debug("strip_ctl: %d strings, mask %d", len(texts), int(ctl))
    result: list[StrOrBytes] = []
    for i, (orig, text) in enumerate(zip(originals, texts)):
        sink.begin(f"element {i + 1}")
        parts: list[str] = []
        last = 0
        for match in iter_controls(text, ctl, config.lenient_csi):
            if not match.valid:
                sink.report(match.offset, match.end, "an invalid control sequence")
            parts.append(text[last : match.offset])
            last = match.end
        if not last:
            result.append(orig)
            continue
        parts.append(text[last:])
        result.append(_encode("".join(parts), orig))
    return result


def display_width(
    strings: Sequence[StrOrBytes],
    config: ReflowConfig | None = None,
) -> list[int]:
    """Return the display width of the widest line of each string.

    Tabs count as zero columns; expand them first when they matter.
    """
    config = config if config is not None else DEFAULT_CONFIG
    sink = WarningSink(config.warn)
    widths: list[int] = []
    for i, text in enumerate(_batch(strings)[1]):
        sink.begin(f"element {i + 1}")
        cursor = Cursor(text, config, sink)
        state = cursor.start()
        widest = 0
        while not cursor.at_end(state):
            state = cursor.advance(state)
            widest = max(widest, state.width)
        widths.append(widest)
    return widths


def unhandled_ctl(
    strings: Sequence[StrOrBytes],
    config: ReflowConfig | None = None,
) -> list[UnhandledSequence]:
    """List every sequence the cursor could not interpret, element by element."""
    config = config if config is not None else DEFAULT_CONFIG
    found: list[UnhandledSequence] = []
    for i, text in enumerate(_batch(strings)[1]):
        sink = CollectingSink()
        Cursor(text, config, sink).walk()
        found.extend(
            UnhandledSequence(i, issue.start, issue.end, issue.detail, text[issue.start : issue.end])
            for issue in sink.issues
        )
    return found


__all__ = [
    "CANCEL_CHECK_INTERVAL",
    "UnhandledSequence",
    "display_width",
    "expand_tabs",
    "find_next_control",
    "has_ctl",
    "normalize_whitespace",
    "reflow",
    "strip_ctl",
    "trim_to_width",
    "unhandled_ctl",
]
