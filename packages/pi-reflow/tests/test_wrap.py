"""Tests for pi.reflow.wrap -- the reflow engine."""

from __future__ import annotations

import pytest

from pi.reflow import display_width, reflow, trim_to_width
from pi.reflow.config import ReflowConfig
from pi.reflow.errors import ArgumentError, LengthOverflowError, WidthTooNarrowError
from pi.reflow.wrap import PrefixSpec, WrapOptions, build_prefixes, check_feasible

RED_TEXT = "\x1b[31mredredred text\x1b[0m"
PANGRAM = "The quick brown fox jumps over the lazy dog"


# ---------------------------------------------------------------------------
# Word wrapping
# ---------------------------------------------------------------------------


class TestWordWrap:
    """Breaking at whitespace."""

    def test_simple(self) -> None:
        assert reflow(["The quick brown fox"], 10) == [["The quick", "brown fox"]]

    def test_padding(self) -> None:
        assert reflow(["The quick brown fox"], 10, pad_char=" ") == [
            ["The quick ", "brown fox "]
        ]

    def test_pad_character(self) -> None:
        assert reflow(["ab cd"], 4, pad_char=".") == [["ab..", "cd.."]]

    def test_fits_on_one_line(self) -> None:
        assert reflow(["short"], 80) == [["short"]]

    def test_empty_string(self) -> None:
        assert reflow([""], 10) == [[""]]

    def test_long_word_overshoots_without_wrap_always(self) -> None:
        assert reflow(["abcdefgh ij"], 3) == [["abcdefgh", "ij"]]

    def test_paragraph_breaks(self) -> None:
        assert reflow(["a\n\nb"], 10) == [["a", "", "b"]]

    def test_whitespace_is_normalised(self) -> None:
        assert reflow(["  one\ttwo   three "], 80) == [["one two three"]]

    def test_keep_spaces(self) -> None:
        assert reflow(["hello  world"], 7, strip_spaces=False) == [["hello  ", "world"]]

    def test_every_element_wrapped(self) -> None:
        assert reflow(["aa bb", "cc"], 2) == [["aa", "bb"], ["cc"]]

    def test_width_bound(self) -> None:
        for width in (8, 12, 20):
            lines = reflow([PANGRAM], width)[0]
            assert all(w <= width for w in display_width(lines))

    def test_idempotent(self) -> None:
        for text, width in ((PANGRAM, 12), (RED_TEXT, 10)):
            lines = reflow([text], width)[0]
            assert reflow(lines, width) == [[line] for line in lines]


class TestStyles:
    """Open styles are closed at line ends and re-opened on the next line."""

    def test_style_carried_across_break(self) -> None:
        assert reflow([RED_TEXT], 10) == [
            ["\x1b[31mredredred\x1b[0m", "\x1b[31mtext\x1b[0m"]
        ]

    def test_unstyled_lines_get_no_sequences(self) -> None:
        assert reflow(["\x1b[1mbold\x1b[0m plain words"], 6) == [
            ["\x1b[1mbold\x1b[0m", "plain", "words"]
        ]


class TestWrapAlways:
    """Breaking inside words."""

    def test_long_word(self) -> None:
        assert reflow(["abcdefgh"], 3, wrap_always=True) == [["abc", "def", "gh"]]

    def test_wide_character_not_split(self) -> None:
        assert reflow(["a中b"], 2, wrap_always=True) == [["a", "中", "b"]]

    def test_width_bound(self) -> None:
        lines = reflow(["abc defghijkl mn 中文字"], 4, wrap_always=True)[0]
        assert all(w <= 4 for w in display_width(lines))

    def test_character_wider_than_line(self) -> None:
        with pytest.raises(WidthTooNarrowError, match="wrap_always=False"):
            reflow(["中"], 1, wrap_always=True)

    def test_prefix_too_wide(self) -> None:
        with pytest.raises(ArgumentError, match="Width error"):
            reflow(["abc"], 4, indent=4, wrap_always=True)


# ---------------------------------------------------------------------------
# Prefixes
# ---------------------------------------------------------------------------


class TestPrefixes:
    """prefix, initial, indent and exdent."""

    def test_prefix_indent_exdent(self) -> None:
        assert reflow(["aaa bbb ccc"], 8, prefix="> ", indent=2, exdent=1) == [
            [">   aaa", ">  bbb", ">  ccc"]
        ]

    def test_initial_only_on_first_element(self) -> None:
        assert reflow(["aa", "bb"], 10, prefix="- ", initial="* ") == [["* aa"], ["- bb"]]

    def test_empty_lines_are_not_indented(self) -> None:
        assert reflow(["a\n\nb"], 10, indent=2) == [["  a", "", "  b"]]

    def test_styled_prefix_width(self) -> None:
        assert reflow(["aa bb"], 5, prefix="\x1b[2m|\x1b[0m ") == [
            ["\x1b[2m|\x1b[0m aa", "\x1b[2m|\x1b[0m bb"]
        ]

    def test_negative_indent(self) -> None:
        with pytest.raises(ArgumentError):
            reflow(["a"], 10, indent=-1)

    def test_build_prefixes_shares_identical_variants(self) -> None:
        ini_first, pre_first, pre_next = build_prefixes("> ", "> ", 2, 2)
        assert ini_first is pre_first is pre_next
        assert ini_first.text == ">   "
        assert ini_first.width == 4

    def test_drop_indent(self) -> None:
        prefix = PrefixSpec.build("ab").pad(3, 100)
        assert prefix.text == "ab   "
        assert prefix.drop_indent() == PrefixSpec.build("ab")

    def test_check_feasible(self) -> None:
        check_feasible(5, True, [PrefixSpec.build("abcd")])
        with pytest.raises(ArgumentError):
            check_feasible(4, True, [PrefixSpec.build("abcd")])


class TestOptions:
    @pytest.mark.parametrize("pad", ["ab", "\x01", "\u00e9"])
    def test_bad_pad_char(self, pad: str) -> None:
        with pytest.raises(ArgumentError, match="pad_char"):
            WrapOptions(width=10, pad_char=pad)

    def test_wrap_always_needs_positive_width(self) -> None:
        with pytest.raises(ArgumentError):
            WrapOptions(width=0, wrap_always=True)

    def test_negative_width(self) -> None:
        with pytest.raises(ArgumentError, match="non-negative"):
            WrapOptions(width=-1)
        with pytest.raises(ArgumentError):
            reflow(["abc def"], -3)

    def test_strip_spaces_excludes_tab_expansion(self) -> None:
        with pytest.raises(ArgumentError, match="expand_tabs"):
            reflow(["a\tb"], 10, expand_tabs=True)

    def test_tab_expansion(self) -> None:
        result = reflow(["a\tb"], 10, strip_spaces=False, expand_tabs=True, tab_stops=[4])
        assert result == [["a   b"]]


# ---------------------------------------------------------------------------
# First line only / trimming
# ---------------------------------------------------------------------------


class TestFirstLineOnly:
    def test_first_line_only(self) -> None:
        assert reflow(["hello world", "x"], 5, first_line_only=True) == ["hello", "x"]

    def test_first_line_breaks_at_word_boundary(self) -> None:
        assert reflow(["aaa bbb"], 5, first_line_only=True) == ["aaa"]

    @pytest.mark.parametrize(
        "text, width",
        [("aaa bbb", 5), ("abcdefgh ij", 3), (PANGRAM, 12), (RED_TEXT, 10)],
    )
    def test_first_line_matches_plain_wrapping(self, text: str, width: int) -> None:
        assert reflow([text], width, first_line_only=True) == [reflow([text], width)[0][0]]

    def test_trim_closes_style(self) -> None:
        assert trim_to_width(["\x1b[1mbold text\x1b[0m"], 4) == ["\x1b[1mbold\x1b[0m"]

    def test_trim_keeps_combining_mark(self) -> None:
        assert trim_to_width(["abe\u0301c"], 3) == ["abe\u0301"]

    def test_trim_keeps_zero_width_at_exact_width(self) -> None:
        assert trim_to_width(["ab\u200bc"], 2) == ["ab\u200b"]

    def test_trim_with_padding(self) -> None:
        assert trim_to_width(["ab"], 4, pad_char=" ") == ["ab  "]

    def test_trim_to_zero(self) -> None:
        assert trim_to_width(["abc", b"def"], 0) == ["", b""]

    def test_trim_negative_width(self) -> None:
        with pytest.raises(ArgumentError):
            trim_to_width(["abc"], -1)


# ---------------------------------------------------------------------------
# Length limits
# ---------------------------------------------------------------------------


class TestLengthLimits:
    """Output lengths are checked against ReflowConfig.max_length."""

    def test_padding(self) -> None:
        config = ReflowConfig(max_length=5)
        with pytest.raises(LengthOverflowError, match="padding"):
            reflow(["abc"], 10, pad_char=" ", config=config)

    def test_prefix(self) -> None:
        config = ReflowConfig(max_length=5)
        with pytest.raises(LengthOverflowError, match="adding prefix"):
            reflow(["a"], 10, prefix="12345", config=config)

    def test_style_sequences(self) -> None:
        config = ReflowConfig(max_length=8)
        with pytest.raises(LengthOverflowError, match="CSI SGR"):
            reflow(["\x1b[1mab"], 10, config=config)

    def test_within_limit(self) -> None:
        config = ReflowConfig(max_length=10)
        assert reflow(["abc"], 10, config=config) == [["abc"]]
