"""Call configuration: control categories, terminal capabilities, warnings."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Literal

from pi.reflow.errors import ArgumentError
from pi.reflow.limits import DEFAULT_MAX_LENGTH

WarnPolicy = Literal["silent", "once", "always"]

_WARN_POLICIES: tuple[str, ...] = ("silent", "once", "always")


class Ctl(enum.IntFlag):
    """Control-sequence categories that receive special treatment."""

    NL = 1
    C0 = 2
    SGR = 4
    CSI = 8
    ESC = 16

    ALL = NL | C0 | SGR | CSI | ESC

    @classmethod
    def from_names(cls, names: Iterable[str]) -> Ctl:
        """Build a mask from names such as ``["sgr", "csi"]``.

        ``"all"`` on its own selects every category; combined with other
        names it selects every category *except* those named.
        """
        mask = cls(0)
        invert = False
        for name in names:
            key = name.strip().lower()
            if key == "all":
                invert = True
                continue
            try:
                mask |= cls[key.upper()]
            except KeyError:
                raise ArgumentError(f"Unknown control category {name!r}") from None
        if invert:
            mask ^= cls.ALL
        return mask


class TermCap(enum.IntFlag):
    """Extended colour capabilities the target terminal is assumed to have."""

    BRIGHT = 1
    COLOR256 = 2
    TRUECOLOR = 4

    ALL = BRIGHT | COLOR256 | TRUECOLOR

    @classmethod
    def from_names(cls, names: Iterable[str]) -> TermCap:
        aliases = {"bright": cls.BRIGHT, "256": cls.COLOR256, "truecolor": cls.TRUECOLOR}
        mask = cls(0)
        for name in names:
            key = name.strip().lower()
            if key == "all":
                mask |= cls.ALL
            elif key in aliases:
                mask |= aliases[key]
            else:
                raise ArgumentError(f"Unknown terminal capability {name!r}")
        return mask


@dataclass(frozen=True)
class ReflowConfig:
    """Settings shared by every element of a batch call.

    ``max_length`` replaces any process-wide limit: it is passed explicitly so
    tests can lower it without affecting other callers.
    """

    ctl: Ctl = Ctl.ALL
    warn: WarnPolicy = "once"
    term_cap: TermCap = TermCap.ALL
    max_length: int = DEFAULT_MAX_LENGTH
    lenient_csi: bool = True

    def __post_init__(self) -> None:
        if self.warn not in _WARN_POLICIES:
            raise ArgumentError(
                f"warn must be one of {', '.join(_WARN_POLICIES)}; got {self.warn!r}"
            )
        if self.max_length < 1:
            raise ArgumentError("max_length must be positive")
        if int(self.ctl) & ~int(Ctl.ALL):
            raise ArgumentError(f"Invalid control mask {int(self.ctl)}")


DEFAULT_CONFIG = ReflowConfig()
