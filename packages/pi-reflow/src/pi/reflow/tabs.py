"""Replace tabs with spaces using a cumulative tab-stop table."""

from __future__ import annotations

from typing import Sequence

from pi.reflow.buffer import ScratchBuffer
from pi.reflow.config import DEFAULT_CONFIG, ReflowConfig
from pi.reflow.cursor import Cursor, CursorState, WarningSink
from pi.reflow.errors import ArgumentError, InternalInvariantError
from pi.reflow.limits import checked_add


def validate_tab_stops(tab_stops: Sequence[int]) -> tuple[int, ...]:
    stops = tuple(tab_stops)
    if not stops:
        raise ArgumentError("tab_stops must contain at least one stop")
    for stop in stops:
        if isinstance(stop, bool) or not isinstance(stop, int) or stop < 1:
            raise ArgumentError(f"tab_stops must be positive integers; got {stop!r}")
    return stops


def tab_width(column: int, tab_stops: Sequence[int], max_length: int) -> int:
    """Return how many spaces a tab at visual *column* expands to.

    Stops are cumulative (``s1``, ``s1 + s2``, ...) and the last width repeats
    once the table runs out.
    """
    stop = 0
    idx = 0
    last = len(tab_stops) - 1
    while column >= stop:
        stop = checked_add(stop, tab_stops[idx], max_length, "computing tab width")
        if idx < last:
            idx += 1
    return stop - column


class TabExpander:
    """Expands tabs in a batch of strings, sharing one scratch buffer."""

    def __init__(
        self,
        tab_stops: Sequence[int],
        config: ReflowConfig = DEFAULT_CONFIG,
        buffer: ScratchBuffer | None = None,
        sink: WarningSink | None = None,
    ) -> None:
        self.tab_stops = validate_tab_stops(tab_stops)
        self.config = config
        self.buffer = buffer if buffer is not None else ScratchBuffer(config.max_length)
        self.sink = sink if sink is not None else WarningSink(config.warn)
        self._max_stop = max(self.tab_stops)

    def worst_case_length(self, text: str, tab_count: int) -> int:
        extra = (self._max_stop - 1) * tab_count
        return checked_add(len(text), extra, self.config.max_length, "converting tabs to spaces")

    def expand(self, text: str, label: str = "element 1") -> str:
        """Return *text* with every tab replaced; the same object when it has none."""
        tab_count = text.count("\t")
        if not tab_count:
            return text

        size = self.worst_case_length(text, tab_count)
        buffer = self.buffer
        buffer.reserve(size)
        self.sink.begin(label)
        cursor = Cursor(text, self.config, self.sink)
        state: CursorState = cursor.start()
        last = 0
        while True:
            ch = cursor.char(state)
            if ch == "\t" or not ch:
                buffer.write(text[last : state.pos])
                if not ch:
                    break
                spaces = tab_width(state.width, self.tab_stops, self.config.max_length)
                state = cursor.with_width(cursor.advance(state), spaces)
                last = state.pos
                buffer.write(" " * spaces)
                continue
            state = cursor.advance(state)

        result = buffer.getvalue()
        if len(result) > self.config.max_length:
            raise InternalInvariantError(
                f"Attempting to write string longer than {self.config.max_length} for {label}."
            )
        return result

    def expand_all(self, strings: Sequence[str], check_cancel=None) -> list[str]:
        result = list(strings)
        for i, text in enumerate(strings):
            if check_cancel is not None:
                check_cancel(i)
            result[i] = self.expand(text, f"element {i + 1}")
        return result
