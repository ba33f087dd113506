"""Whitespace normalisation applied before wrapping in strip-spaces mode."""

from __future__ import annotations

from pi.reflow.config import DEFAULT_CONFIG, ReflowConfig
from pi.reflow.scanner import is_passthrough, read_control

_WHITESPACE = frozenset(" \t\n")
_SENTENCE_END = frozenset(".?!")
_CLOSERS = frozenset(")\"'")


def _ends_sentence(visible: list[str]) -> bool:
    i = len(visible) - 1
    while i >= 0 and visible[i] in _CLOSERS:
        i -= 1
    return i >= 0 and visible[i] in _SENTENCE_END


def normalize_whitespace(text: str, config: ReflowConfig = DEFAULT_CONFIG) -> str:
    """Collapse whitespace the way a paragraph filler does.

    * Leading and trailing whitespace is removed.
    * A run holding two or more newlines becomes a paragraph break (``\\n\\n``).
    * Any other run becomes one space, or two after ``.``, ``?`` or ``!``
      (optionally followed by closing brackets or quotes).

    Control sequences are kept in place and do not interrupt a run.
    """
    out: list[str] = []
    visible: list[str] = []  # the last few non-space characters written
    pending: list[str] = []  # control sequences seen inside the current run
    run_newlines = 0
    in_run = False
    n = len(text)
    i = 0
    while i < n:
        ch = text[i]
        if ch in _WHITESPACE:
            in_run = True
            if ch == "\n":
                run_newlines += 1
            i += 1
            continue
        if not is_passthrough(ch):
            seq = read_control(text, i, config.lenient_csi)
            if in_run:
                pending.append(text[i : seq.end])
            else:
                out.append(text[i : seq.end])
            i = seq.end
            continue

        if in_run and visible:
            if run_newlines >= 2:
                out.append("\n\n")
            elif _ends_sentence(visible):
                out.append("  ")
            else:
                out.append(" ")
        out.extend(pending)
        pending = []
        in_run = False
        run_newlines = 0
        out.append(ch)
        visible.append(ch)
        if len(visible) > 8:
            del visible[:-4]
        i += 1

    out.extend(pending)
    return "".join(out)
