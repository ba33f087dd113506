"""Tests for pi.reflow.scanner -- locating and classifying control sequences."""

from __future__ import annotations

import pytest

from pi.reflow.config import Ctl
from pi.reflow.cursor import Cursor
from pi.reflow.scanner import find_next_control, iter_controls, read_control


# ---------------------------------------------------------------------------
# SGR and CSI
# ---------------------------------------------------------------------------


class TestSgrAndCsi:
    """CSI sequences split into SGR and other CSI."""

    def test_two_sgr_matches(self) -> None:
        text = "\x1b[31mHELLO\x1b[0m"
        matches = list(iter_controls(text, Ctl.SGR))
        assert [(m.offset, m.length) for m in matches] == [(0, 5), (10, 4)]
        assert all(m.valid for m in matches)
        assert all(m.categories == Ctl.SGR for m in matches)

    def test_sgr_not_matched_as_csi(self) -> None:
        match = find_next_control("\x1b[31mHELLO\x1b[0m", Ctl.CSI)
        assert match.length == 0
        assert match.offset == 0
        # Excluded categories are still reported as observed.
        assert match.categories & Ctl.SGR

    def test_no_controls(self) -> None:
        match = find_next_control("plain text", Ctl.ALL)
        assert match.length == 0
        assert match.valid

    def test_other_csi(self) -> None:
        match = find_next_control("a\x1b[2Kb", Ctl.CSI)
        assert (match.offset, match.length) == (1, 4)
        assert match.categories == Ctl.CSI

    def test_intermediate_byte_makes_csi_not_sgr(self) -> None:
        seq = read_control("\x1b[1 m", 0)
        assert seq.category == Ctl.CSI
        assert seq.valid
        assert seq.end == 5

    def test_adjacent_matches_merge(self) -> None:
        match = find_next_control("\x1b[1m\x1b[31mX", Ctl.SGR)
        assert (match.offset, match.length) == (0, 9)

    def test_merge_stops_at_excluded_category(self) -> None:
        match = find_next_control("\x1b[1m\x1b[2JX", Ctl.SGR)
        assert (match.offset, match.length) == (0, 4)

    def test_start_offset(self) -> None:
        match = find_next_control("\x1b[1mab\x1b[0m", Ctl.SGR, start=4)
        assert (match.offset, match.length) == (6, 4)

    def test_unterminated_csi_is_invalid(self) -> None:
        match = find_next_control("\x1b[31", Ctl.ALL)
        assert (match.offset, match.length) == (0, 4)
        assert not match.valid
        assert match.categories == Ctl.CSI

    def test_multibyte_text_passes_through(self) -> None:
        match = find_next_control("é世\x1b[0m", Ctl.SGR)
        assert (match.offset, match.length) == (2, 4)


# ---------------------------------------------------------------------------
# Invalid CSI recovery
# ---------------------------------------------------------------------------


class TestCsiRecovery:
    """The lenient policy keeps consuming bytes after a broken CSI."""

    def test_lenient_consumes_trailing_bytes(self) -> None:
        seq = read_control("\x1b[1 2mX", 0, lenient_csi=True)
        assert seq.end == 6
        assert not seq.valid
        assert seq.category == Ctl.CSI

    def test_strict_stops_at_offending_byte(self) -> None:
        seq = read_control("\x1b[1 2mX", 0, lenient_csi=False)
        assert seq.end == 4
        assert not seq.valid

    def test_invalid_csi_does_not_swallow_newline(self) -> None:
        seq = read_control("\x1b[1\nX", 0)
        assert seq.end == 3
        assert not seq.valid


# ---------------------------------------------------------------------------
# ESC, C0 and newline
# ---------------------------------------------------------------------------


class TestEscAndC0:
    """Two-character escapes and single control characters."""

    def test_two_char_escape(self) -> None:
        match = find_next_control("\x1bMx", Ctl.ESC)
        assert (match.offset, match.length) == (0, 2)
        assert match.valid

    def test_lone_escape_at_end_is_invalid(self) -> None:
        match = find_next_control("a\x1b", Ctl.ESC)
        assert (match.offset, match.length) == (1, 1)
        assert not match.valid

    def test_escape_followed_by_escape(self) -> None:
        match = find_next_control("\x1b\x1b[0m", Ctl.ALL)
        assert (match.offset, match.length) == (0, 5)
        assert not match.valid
        assert match.categories == Ctl.ESC | Ctl.SGR

    def test_newline_category(self) -> None:
        match = find_next_control("a\nb", Ctl.NL)
        assert (match.offset, match.length) == (1, 1)
        assert match.categories == Ctl.NL

    def test_newline_is_not_c0(self) -> None:
        assert find_next_control("a\nb", Ctl.C0).length == 0

    def test_bell_is_c0(self) -> None:
        match = find_next_control("a\x07b", Ctl.C0)
        assert (match.offset, match.length) == (1, 1)


# ---------------------------------------------------------------------------
# Agreement with the cursor
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text",
    [
        "\x1b[31mHELLO\x1b[0m",
        "a\x1b[1;4m\x1b[2Kb\x1bMc",
        "x\x1b[1 2my\x1b[",
        "\x1b\x1b[0m\n\x07z",
        "世\x1b[38;5;200mé\x1b[m",
    ],
)
def test_scanner_and_cursor_agree_on_boundaries(text: str) -> None:
    cursor = Cursor(text)
    state = cursor.start()
    positions = {state.pos}
    while not cursor.at_end(state):
        state = cursor.advance(state)
        positions.add(state.pos)
    for match in iter_controls(text, Ctl.ALL):
        assert match.offset in positions
        assert match.end in positions
