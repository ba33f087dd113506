"""Locate and classify control sequences in text.

The scanner is the single source of truth for control-sequence boundaries:
the cursor calls :func:`read_control` for each sequence it consumes, and
:func:`find_next_control` merges consecutive sequences into one span.
"""

from __future__ import annotations

from typing import NamedTuple

from pi.reflow.config import Ctl

ESC = "\x1b"


class ControlMatch(NamedTuple):
    """A run of control sequences found by :func:`find_next_control`.

    ``length == 0`` means nothing matched; ``offset`` is then the scan start.
    ``valid`` and ``categories`` describe everything scanned up to and
    including the match, whether or not those categories were requested.
    """

    offset: int
    length: int
    valid: bool
    categories: Ctl

    @property
    def end(self) -> int:
        return self.offset + self.length


class ControlSequence(NamedTuple):
    """A single control sequence starting at a C0 character."""

    start: int
    end: int
    category: Ctl
    valid: bool


def is_passthrough(ch: str) -> bool:
    """Return ``True`` for characters that never start a control sequence."""
    cp = ord(ch)
    return 31 < cp < 127 or cp > 127 or cp == 0


def _in(ch: str, lo: int, hi: int) -> bool:
    return lo <= ord(ch) <= hi


def read_control(text: str, pos: int, lenient_csi: bool = True) -> ControlSequence:
    """Read the control sequence that starts at ``text[pos]``.

    ``text[pos]`` must be a C0 control character (0x01-0x1F or 0x7F).
    """
    n = len(text)
    ch = text[pos]
    if ch != ESC:
        category = Ctl.NL if ch == "\n" else Ctl.C0
        return ControlSequence(pos, pos + 1, category, True)

    i = pos + 1
    if i < n and text[i] == "[":
        i += 1
        while i < n and _in(text[i], 0x30, 0x3F):
            i += 1
        intermediate = False
        while i < n and _in(text[i], 0x20, 0x2F):
            intermediate = True
            i += 1
        valid = i < n and _in(text[i], 0x40, 0x7E)
        if not valid and lenient_csi:
            # Some terminals keep consuming parameter and intermediate bytes
            # until a final byte shows up.
            while i < n and _in(text[i], 0x20, 0x3F):
                i += 1
        sgr = not intermediate and i < n and text[i] == "m"
        if i < n and _in(text[i], 0x40, 0x7E) and (valid or lenient_csi):
            i += 1
        return ControlSequence(pos, i, Ctl.SGR if sgr else Ctl.CSI, valid)

    valid = i < n and _in(text[i], 0x40, 0x7E)
    if i < n and _in(text[i], 0x20, 0x7E):
        i += 1
    return ControlSequence(pos, i, Ctl.ESC, valid)


def find_next_control(
    text: str,
    ctl: Ctl = Ctl.ALL,
    start: int = 0,
    lenient_csi: bool = True,
) -> ControlMatch:
    """Return the next run of control sequences in *text* whose category is in *ctl*."""
    n = len(text)
    valid = True
    seen = Ctl(0)
    found_start = -1
    found_end = -1
    i = start
    while i < n:
        if is_passthrough(text[i]):
            if found_start >= 0:
                break
            i += 1
            continue
        seq = read_control(text, i, lenient_csi)
        if seq.category & ctl:
            if found_start < 0:
                found_start = seq.start
            found_end = seq.end
        elif found_start >= 0:
            break
        valid = valid and seq.valid
        seen |= seq.category
        i = seq.end

    if found_start < 0:
        return ControlMatch(start, 0, valid, seen)
    return ControlMatch(found_start, found_end - found_start, valid, seen)


def iter_controls(
    text: str,
    ctl: Ctl = Ctl.ALL,
    lenient_csi: bool = True,
):
    """Yield every :class:`ControlMatch` in *text*, left to right."""
    pos = 0
    while True:
        match = find_next_control(text, ctl, pos, lenient_csi)
        if not match.length:
            return
        yield match
        pos = match.end
