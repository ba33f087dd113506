"""Walk text one visual unit at a time.

A :class:`CursorState` is an immutable snapshot: position, display width so far,
active style, and a couple of flags. :meth:`Cursor.advance` returns a new
snapshot, so callers can hold several positions at once and back off to an
earlier one.
"""

from __future__ import annotations

import logging
import unicodedata
import warnings
from typing import NamedTuple

import grapheme
import wcwidth as _wcwidth

from pi.reflow.config import DEFAULT_CONFIG, Ctl, ReflowConfig
from pi.reflow.errors import MalformedEncodingWarning, UnhandledSequenceWarning
from pi.reflow.scanner import read_control
from pi.reflow.style import EMPTY_STYLE, Style

logger = logging.getLogger(__name__)

# Upper bound on characters handed to the segmenter for one cluster.
_MAX_CLUSTER = 32


# ---------------------------------------------------------------------------
# Warning reporting
# ---------------------------------------------------------------------------


class WarningSink:
    """Collects unhandled-content reports for one batch call.

    Backtracking walks the same characters more than once, so reports are
    keyed by (label, position) and each position is reported at most once.
    The ``once`` policy emits a single warning per call, ``always`` emits one
    per position, ``silent`` emits nothing.
    """

    def __init__(self, policy: str = "once") -> None:
        self.policy = policy
        self.label = "element 1"
        self.count = 0
        self._seen: set[tuple[str, int]] = set()

    def begin(self, label: str) -> None:
        self.label = label

    def report(
        self,
        start: int,
        end: int,
        detail: str,
        category: type[Warning] = UnhandledSequenceWarning,
    ) -> None:
        key = (self.label, start)
        if key in self._seen:
            return
        self._seen.add(key)
        self.record(start, end, detail, category)

    def record(self, start: int, end: int, detail: str, category: type[Warning]) -> None:
        if self.policy == "silent" or (self.policy == "once" and self.count):
            return
        self.count += 1
        message = f"{self.label} contains {detail} at position {start}."
        logger.debug("%s", message)
        warnings.warn(message, category, stacklevel=5)


class Issue(NamedTuple):
    label: str
    start: int
    end: int
    detail: str


class CollectingSink(WarningSink):
    """Records every report instead of emitting warnings."""

    def __init__(self) -> None:
        super().__init__("silent")
        self.issues: list[Issue] = []

    def record(self, start: int, end: int, detail: str, category: type[Warning]) -> None:
        self.issues.append(Issue(self.label, start, end, detail))


# ---------------------------------------------------------------------------
# Unit width
# ---------------------------------------------------------------------------


def unit_width(cluster: str) -> int:
    """Return the terminal display width of one grapheme cluster.

    * Combining marks, format characters and controls are 0 columns.
    * Emoji sequences (VS16, ZWJ, skin tones, flag pairs) are 2 columns.
    * Anything else takes the East Asian width of its first codepoint.
    """
    if len(cluster) == 1:
        return max(_wcwidth.wcwidth(cluster), 0)

    for ch in cluster:
        cp = ord(ch)
        if cp in (0xFE0F, 0x200D):
            return 2
        if 0x1F3FB <= cp <= 0x1F3FF or 0x1F1E6 <= cp <= 0x1F1FF:
            return 2

    first = cluster[0]
    if unicodedata.category(first) in ("Mn", "Me", "Cf"):
        return 0
    return max(_wcwidth.wcwidth(first), 0)


# ---------------------------------------------------------------------------
# Cursor
# ---------------------------------------------------------------------------


class CursorState(NamedTuple):
    pos: int
    width: int
    style: Style = EMPTY_STYLE
    multibyte: bool = False
    warned: bool = False


def has_open_style(state: CursorState) -> bool:
    return state.style.is_open


def serialize_style(state: CursorState) -> str:
    return state.style.to_sgr()


def serialized_style_size(state: CursorState) -> int:
    return len(state.style.to_sgr())


class Cursor:
    """Advances :class:`CursorState` snapshots over a fixed piece of text."""

    def __init__(
        self,
        text: str,
        config: ReflowConfig = DEFAULT_CONFIG,
        sink: WarningSink | None = None,
    ) -> None:
        self.text = text
        self.config = config
        self.sink = sink

    def start(self) -> CursorState:
        return CursorState(0, 0)

    def at_end(self, state: CursorState) -> bool:
        return state.pos >= len(self.text)

    def char(self, state: CursorState) -> str:
        """Return the character under *state*, or ``""`` at the end."""
        return self.text[state.pos] if state.pos < len(self.text) else ""

    def with_width(self, state: CursorState, extra: int) -> CursorState:
        return state._replace(width=state.width + extra)

    def advance(self, state: CursorState) -> CursorState:
        """Move past exactly one visual unit."""
        text = self.text
        pos = state.pos
        if pos >= len(text):
            return state
        cp = ord(text[pos])

        if 0 < cp < 32 or cp == 127:
            if cp == 9:
                # Tabs owe spaces from the tab-stop table; callers add them.
                return state._replace(pos=pos + 1)
            return self._advance_control(state)

        if cp < 128 and (pos + 1 >= len(text) or ord(text[pos + 1]) < 128):
            return state._replace(pos=pos + 1, width=state.width + (1 if cp else 0))

        if 0xD800 <= cp <= 0xDFFF:
            warned = self._warn(
                pos, pos + 1, "an invalid UTF-8 byte", MalformedEncodingWarning
            )
            return state._replace(pos=pos + 1, width=state.width + 1, warned=warned)

        cluster = self._cluster_at(pos)
        warned = state.warned
        if 0x80 <= cp <= 0x9F:
            warned = self._warn(pos, pos + 1, "a raw C1 control character")
        return CursorState(
            pos + len(cluster),
            state.width + unit_width(cluster),
            state.style,
            state.multibyte or any(ord(ch) > 127 for ch in cluster),
            warned,
        )

    def _cluster_at(self, pos: int) -> str:
        text = self.text
        stop = pos + 1
        limit = min(len(text), pos + _MAX_CLUSTER)
        while stop < limit:
            cp = ord(text[stop])
            if cp < 32 or cp == 127 or 0xD800 <= cp <= 0xDFFF:
                break
            stop += 1
        if stop == pos + 1:
            return text[pos]
        return next(grapheme.graphemes(text[pos:stop]))

    def _advance_control(self, state: CursorState) -> CursorState:
        text = self.text
        pos = state.pos
        config = self.config
        seq = read_control(text, pos, config.lenient_csi)

        if not seq.category & config.ctl:
            # Uninterpreted: only the introducer is consumed, with no width.
            width = 0 if seq.category == Ctl.NL else state.width
            return state._replace(pos=pos + 1, width=width)

        warned = state.warned
        if not seq.valid:
            warned = self._warn(pos, seq.end, "an invalid control sequence")

        if seq.category == Ctl.SGR:
            style, handled = state.style.apply(text[pos + 2 : seq.end - 1], config.term_cap)
            if not handled:
                warned = self._warn(
                    pos, seq.end, "an unhandled or unsupported SGR sequence"
                )
            return CursorState(seq.end, state.width, style, state.multibyte, warned)

        width = 0 if seq.category == Ctl.NL else state.width
        return state._replace(pos=seq.end, width=width, warned=warned)

    def _warn(
        self,
        start: int,
        end: int,
        detail: str,
        category: type[Warning] = UnhandledSequenceWarning,
    ) -> bool:
        if self.sink is not None:
            self.sink.report(start, end, detail, category)
        return True

    def walk(self, state: CursorState | None = None) -> CursorState:
        """Advance from *state* (default: the start) to the end of the text."""
        if state is None:
            state = self.start()
        while state.pos < len(self.text):
            state = self.advance(state)
        return state
