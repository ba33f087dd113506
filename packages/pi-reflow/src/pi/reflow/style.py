"""Active SGR (Select Graphic Rendition) style.

A :class:`Style` is an immutable record of the attributes a terminal would have
active after some sequence of SGR codes. Applying a code returns a new record;
:meth:`Style.to_sgr` renders the minimal single sequence that reproduces it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from pi.reflow.config import TermCap

RESET = "\x1b[0m"

# On/off attributes, keyed by the SGR code that turns them on.
_ATTR_CODES: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7, 8, 9, 20, 21, 51, 52, 53)
_ATTR_BITS: dict[int, int] = {code: 1 << i for i, code in enumerate(_ATTR_CODES)}

# SGR codes that turn attributes off.
_ATTR_RESETS: dict[int, tuple[int, ...]] = {
    22: (1, 2),
    23: (3, 20),
    24: (4, 21),
    25: (5, 6),
    27: (7,),
    28: (8,),
    29: (9,),
    54: (51, 52),
    55: (53,),
}

_SGR_PARAM_CHARS = frozenset("0123456789;")


def _mask(codes: tuple[int, ...]) -> int:
    bits = 0
    for code in codes:
        bits |= _ATTR_BITS[code]
    return bits


@dataclass(frozen=True)
class Style:
    """Attributes, colours and font selected by SGR codes.

    Colours are stored as the normalised parameter tokens that selected them,
    e.g. ``("31",)``, ``("38", "5", "208")`` or ``("48", "2", "0", "0", "255")``,
    so they are forwarded verbatim without colour-space interpretation.
    """

    attrs: int = 0
    fg: tuple[str, ...] | None = None
    bg: tuple[str, ...] | None = None
    underline_color: tuple[str, ...] | None = None
    font: int | None = None

    @property
    def is_open(self) -> bool:
        return bool(self.attrs) or any(
            v is not None for v in (self.fg, self.bg, self.underline_color, self.font)
        )

    def codes(self) -> list[str]:
        parts = [str(code) for code in _ATTR_CODES if self.attrs & _ATTR_BITS[code]]
        if self.font is not None:
            parts.append(str(self.font))
        for color in (self.fg, self.bg, self.underline_color):
            if color is not None:
                parts.extend(color)
        return parts

    def to_sgr(self) -> str:
        """Render the style as one SGR sequence; empty when nothing is active."""
        parts = self.codes()
        if not parts:
            return ""
        return "\x1b[" + ";".join(parts) + "m"

    def apply(self, params: str, term_cap: TermCap = TermCap.ALL) -> tuple[Style, bool]:
        """Apply the parameter string of an SGR sequence (between ``ESC[`` and ``m``).

        Returns the new style and whether every parameter was understood and
        supported by *term_cap*. Unknown parameters are skipped; colours that
        need a missing capability are still applied.
        """
        if not params:
            return EMPTY_STYLE, True
        if not set(params) <= _SGR_PARAM_CHARS:
            # Sub-parameters (``:``) and private markers are not interpreted.
            return self, False

        tokens = [int(tok) if tok else 0 for tok in params.split(";")]
        style = self
        handled = True
        i = 0
        while i < len(tokens):
            val = tokens[i]
            if val == 0:
                style = EMPTY_STYLE
            elif val in _ATTR_BITS:
                style = replace(style, attrs=style.attrs | _ATTR_BITS[val])
            elif val in _ATTR_RESETS:
                style = replace(style, attrs=style.attrs & ~_mask(_ATTR_RESETS[val]))
            elif val == 10:
                style = replace(style, font=None)
            elif 11 <= val <= 19:
                style = replace(style, font=val)
            elif 30 <= val <= 37:
                style = replace(style, fg=(str(val),))
            elif 40 <= val <= 47:
                style = replace(style, bg=(str(val),))
            elif 90 <= val <= 97 or 100 <= val <= 107:
                if not term_cap & TermCap.BRIGHT:
                    handled = False
                if val < 100:
                    style = replace(style, fg=(str(val),))
                else:
                    style = replace(style, bg=(str(val),))
            elif val == 39:
                style = replace(style, fg=None)
            elif val == 49:
                style = replace(style, bg=None)
            elif val == 59:
                style = replace(style, underline_color=None)
            elif val in (38, 48, 58):
                color, consumed, supported = _read_extended_color(tokens, i, term_cap)
                if color is None:
                    # Can't tell how many tokens the broken colour spans.
                    return style, False
                handled = handled and supported
                if val == 38:
                    style = replace(style, fg=color)
                elif val == 48:
                    style = replace(style, bg=color)
                else:
                    style = replace(style, underline_color=color)
                i += consumed
            else:
                handled = False
            i += 1
        return style, handled


def _read_extended_color(
    tokens: list[int], i: int, term_cap: TermCap
) -> tuple[tuple[str, ...] | None, int, bool]:
    """Read a ``38;5;n`` / ``38;2;r;g;b`` colour starting at ``tokens[i]``.

    Returns ``(color, extra_tokens_consumed, supported)``; *color* is ``None``
    when the tokens do not form a valid colour.
    """
    if i + 1 >= len(tokens):
        return None, 0, False
    mode = tokens[i + 1]
    if mode == 5:
        if i + 2 >= len(tokens) or tokens[i + 2] > 255:
            return None, 0, False
        color = tuple(str(t) for t in tokens[i : i + 3])
        return color, 2, bool(term_cap & TermCap.COLOR256)
    if mode == 2:
        rgb = tokens[i + 2 : i + 5]
        if len(rgb) < 3 or any(c > 255 for c in rgb):
            return None, 0, False
        color = tuple(str(t) for t in tokens[i : i + 5])
        return color, 4, bool(term_cap & TermCap.TRUECOLOR)
    return None, 0, False


EMPTY_STYLE = Style()
