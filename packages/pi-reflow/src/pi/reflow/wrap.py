"""Word-wrap text while keeping SGR styles intact across line breaks.

The engine walks each string with a :class:`~pi.reflow.cursor.Cursor` and keeps
three snapshots: the start of the current line, the last legal break point,
and the unit just before the current one. When a line has to end it is
materialised from the start and break snapshots: the style active at the
start is re-opened, the prefix is written, then the raw text, optional
padding, and a reset if a style is still open at the break.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, NamedTuple, Sequence

from pi.reflow.buffer import ScratchBuffer
from pi.reflow.config import DEFAULT_CONFIG, ReflowConfig
from pi.reflow.cursor import Cursor, CursorState, WarningSink
from pi.reflow.errors import ArgumentError, InternalInvariantError, WidthTooNarrowError
from pi.reflow.limits import checked_add
from pi.reflow.style import RESET

logger = logging.getLogger(__name__)

_BOUNDARY = frozenset(" \t\n")


# ---------------------------------------------------------------------------
# Prefix / initial strings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PrefixSpec:
    """A prefix or initial string with its indent/exdent spaces appended.

    ``indent`` counts how many of the trailing characters are indent spaces,
    so they can be dropped again for lines without content.
    """

    text: str = ""
    width: int = 0
    indent: int = 0

    @property
    def length(self) -> int:
        return len(self.text)

    @classmethod
    def build(
        cls,
        text: str,
        config: ReflowConfig = DEFAULT_CONFIG,
        sink: WarningSink | None = None,
        label: str = "prefix",
    ) -> PrefixSpec:
        if sink is not None:
            sink.begin(label)
        end = Cursor(text, config, sink).walk()
        return cls(text=text, width=end.width)

    def pad(self, spaces: int, max_length: int) -> PrefixSpec:
        checked_add(self.length, spaces, max_length, "adding indent to prefix")
        return replace(
            self,
            text=self.text + " " * spaces,
            width=self.width + spaces,
            indent=self.indent + spaces,
        )

    def drop_indent(self) -> PrefixSpec:
        if self.indent < 0:
            raise InternalInvariantError("Cannot drop indent when there is none.")
        if not self.indent:
            return self
        return replace(
            self,
            text=self.text[: self.length - self.indent],
            width=self.width - self.indent,
            indent=0,
        )


class WrapLine(NamedTuple):
    """The snapshots bounding one output line."""

    start: CursorState
    end: CursorState


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WrapOptions:
    width: int
    wrap_always: bool = False
    strip_spaces: bool = True
    pad_char: str = ""
    first_line_only: bool = False

    def __post_init__(self) -> None:
        if self.pad_char and (len(self.pad_char) != 1 or not " " <= self.pad_char <= "~"):
            raise ArgumentError(
                "pad_char must be an empty string or a single printable ASCII character."
            )
        if self.width < 0:
            raise ArgumentError("width must be non-negative.")
        if self.wrap_always and self.width < 1:
            raise ArgumentError("width must be positive when wrap_always is set.")


class Reflower:
    """Wraps strings one at a time, reusing a scratch buffer.

    Args:
        options: Width and wrapping switches shared by every string.
        pre_first: Prefix for the first line of a paragraph.
        pre_next: Prefix for continuation lines.
        config: Call configuration.
        buffer: Scratch buffer; one is created when omitted.
        sink: Receives unhandled-content reports.
    """

    def __init__(
        self,
        options: WrapOptions,
        pre_first: PrefixSpec,
        pre_next: PrefixSpec,
        config: ReflowConfig = DEFAULT_CONFIG,
        buffer: ScratchBuffer | None = None,
        sink: WarningSink | None = None,
    ) -> None:
        self.options = options
        self.pre_first = pre_first
        self.pre_next = pre_next
        self.config = config
        self.buffer = buffer if buffer is not None else ScratchBuffer(config.max_length)
        self.sink = sink if sink is not None else WarningSink(config.warn)

    def wrap(
        self,
        text: str,
        pre_first: PrefixSpec | None = None,
        label: str = "element 1",
    ) -> list[str]:
        """Return the wrapped lines of *text*.

        *pre_first* overrides the paragraph prefix for this string; batch
        callers use it to give the very first string its ``initial``.
        In first-line-only mode the result holds a single line.
        """
        opts = self.options
        pre_first = pre_first if pre_first is not None else self.pre_first
        pre_next = self.pre_next
        width_first = opts.width - pre_first.width
        width_next = opts.width - pre_next.width
        if opts.wrap_always and (width_first < 0 or width_next < 0):
            raise InternalInvariantError("Incompatible width/indent/prefix.")

        self.sink.begin(label)
        cursor = Cursor(text, self.config, self.sink)
        strip = opts.strip_spaces
        wrap_always = opts.wrap_always
        first_only = opts.first_line_only

        lines: list[str] = []
        width_tar = width_first
        prev_boundary = False
        has_boundary = False
        para_start = True
        first_line = True
        last_start = 0

        state = cursor.start()
        state_start = state_bound = state_prev = state

        while True:
            at_end = cursor.at_end(state)
            state_next = state if at_end else cursor.advance(state)
            ch = cursor.char(state)

            if ch in _BOUNDARY:
                # In strip mode only the first character of a whitespace run
                # can be a break point.
                if not strip or not prev_boundary:
                    state_bound = state
                has_boundary = prev_boundary = True
            else:
                prev_boundary = False

            too_wide = state.width > width_tar or (
                # At exactly the width, zero-width units stay on this line.
                state.width == width_tar and state_next.width > state.width
            )
            if not (
                at_end
                or (ch == "\n" and not first_only)
                or (too_wide and (has_boundary or wrap_always))
            ):
                state_prev = state
                state = state_next
                continue

            if at_end or (wrap_always and (first_only or not has_boundary)):
                if state.width > width_tar and wrap_always:
                    # A wide character overshot the line; break before it.
                    state = state_prev
                state_bound = state

            if not first_line and last_start >= state_start.pos:
                raise WidthTooNarrowError()

            # Without space stripping the boundary whitespace stays on this line.
            if (
                not strip
                and has_boundary
                and cursor.char(state_bound) in (" ", "\t")
                and state_bound.pos < state.pos
            ):
                state_bound = cursor.advance(state_bound)

            pre = pre_first if para_start else pre_next
            line = self.write_line(cursor, WrapLine(state_start, state_bound), pre, width_tar)
            first_line = False
            last_start = state_start.pos
            if first_only:
                return [line]
            lines.append(line)

            if cursor.at_end(state):
                break

            para_start = cursor.char(state) == "\n"
            width_tar = width_first if para_start else width_next

            # Position the next line: past the newline that ended a paragraph,
            # or at the current unit when hard breaking without a boundary.
            if has_boundary and para_start:
                state_bound = cursor.advance(state_bound)
            elif not has_boundary:
                state_bound = state
            if strip:
                while cursor.char(state_bound) == " ":
                    state_bound = cursor.advance(state_bound)
            has_boundary = False
            state_bound = state_bound._replace(width=0)

            state_prev = state
            state = state_start = state_bound

        return lines

    def write_line(
        self,
        cursor: Cursor,
        line: WrapLine,
        pre: PrefixSpec,
        width_tar: int,
    ) -> str:
        """Materialise one line into the scratch buffer and return it."""
        start, end = line
        if end.pos < start.pos or end.width < start.width:
            raise InternalInvariantError("Boundary leading position.")

        max_length = self.config.max_length
        pad_char = self.options.pad_char
        width_tar = max(width_tar, 0)
        size = end.pos - start.pos
        content_width = end.width - start.width

        if not size:
            # Lines without content don't get indented.
            pre = pre.drop_indent()

        pad = 0
        if pad_char and content_width <= width_tar:
            pad = width_tar - content_width
            size = checked_add(size, pad, max_length, "padding")
        size = checked_add(size, pre.length, max_length, "adding prefix/initial/indent/exdent")

        opening = start.style.to_sgr()
        closing = RESET if end.style.is_open else ""
        size = checked_add(
            size,
            len(opening) + len(closing),
            max_length,
            "adding leading and trailing CSI SGR sequences",
        )

        buffer = self.buffer
        buffer.reserve(size)
        buffer.write(opening)
        buffer.write(pre.text)
        buffer.write(cursor.text[start.pos : end.pos])
        if pad:
            buffer.write(pad_char * pad)
        buffer.write(closing)
        return buffer.getvalue()

    def wrap_all(
        self,
        strings: Sequence[str],
        pre_initial: PrefixSpec | None = None,
        check_cancel: Callable[[int], None] | None = None,
    ) -> list[list[str]]:
        """Wrap every string; the first one uses *pre_initial* for its first line."""
        results: list[list[str]] = []
        for i, text in enumerate(strings):
            if check_cancel is not None:
                check_cancel(i)
            first = pre_initial if i == 0 and pre_initial is not None else self.pre_first
            results.append(self.wrap(text, first, f"element {i + 1}"))
        logger.debug("Wrapped %d strings into %d lines", len(results), sum(map(len, results)))
        return results


def build_prefixes(
    prefix: str,
    initial: str,
    indent: int,
    exdent: int,
    config: ReflowConfig = DEFAULT_CONFIG,
    sink: WarningSink | None = None,
) -> tuple[PrefixSpec, PrefixSpec, PrefixSpec]:
    """Build the three prefix variants shared by a batch call.

    Returns ``(initial + indent, prefix + indent, prefix + exdent)``; variants
    that would be identical are built once and shared.
    """
    if indent < 0 or exdent < 0:
        raise ArgumentError("indent and exdent must be non-negative.")
    max_length = config.max_length
    pre_raw = PrefixSpec.build(prefix, config, sink, "prefix")
    ini_raw = PrefixSpec.build(initial, config, sink, "initial") if initial != prefix else pre_raw

    ini_first = ini_raw.pad(indent, max_length)
    pre_first = pre_raw.pad(indent, max_length) if initial != prefix else ini_first
    pre_next = pre_raw.pad(exdent, max_length) if indent != exdent else pre_first
    return ini_first, pre_first, pre_next


def check_feasible(
    width: int, wrap_always: bool, prefixes: Sequence[PrefixSpec]
) -> None:
    if wrap_always and any(p.width >= width for p in prefixes):
        raise ArgumentError(
            "Width error: sum of indent and initial width or sum of exdent and "
            "prefix width must be less than width - 1 when in wrap_always."
        )
