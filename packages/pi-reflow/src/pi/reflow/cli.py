"""CLI entry point for pi-reflow. Uses Click for argument parsing."""

from __future__ import annotations

import logging
import sys

import click

from pi.reflow.api import display_width, expand_tabs, reflow, strip_ctl, trim_to_width
from pi.reflow.config import Ctl, ReflowConfig, TermCap
from pi.reflow.errors import ReflowError


def _read_inputs(files) -> list[str]:
    if not files:
        return [click.get_text_stream("stdin").read()]
    return [f.read() for f in files]


def _config(ctl: tuple[str, ...], warn: str, term_cap: tuple[str, ...], strict_csi: bool) -> ReflowConfig:
    return ReflowConfig(
        ctl=Ctl.from_names(ctl) if ctl else Ctl.ALL,
        warn=warn,
        term_cap=TermCap.from_names(term_cap) if term_cap else TermCap.ALL,
        lenient_csi=not strict_csi,
    )


def _fail(e: ReflowError) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


_files_argument = click.argument("files", nargs=-1, type=click.File("r"))


def _config_options(f):
    f = click.option(
        "--ctl",
        multiple=True,
        help="Control categories to interpret: nl, c0, sgr, csi, esc, all (repeatable).",
    )(f)
    f = click.option(
        "--warn",
        type=click.Choice(["silent", "once", "always"]),
        default="once",
        show_default=True,
        help="How to report unhandled sequences.",
    )(f)
    f = click.option(
        "--term-cap",
        multiple=True,
        help="Terminal capabilities: bright, 256, truecolor, all (repeatable).",
    )(f)
    f = click.option(
        "--strict-csi",
        is_flag=True,
        help="End invalid CSI sequences at the first offending character.",
    )(f)
    return f


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    default="warning",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level.",
)
@click.pass_context
def main(ctx, log_level):
    """ANSI-aware text wrapping and tab expansion."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@_files_argument
@click.option("--width", "-w", type=int, default=80, show_default=True, help="Target line width.")
@click.option("--indent", type=int, default=0, help="Indent of paragraph first lines.")
@click.option("--exdent", type=int, default=0, help="Indent of continuation lines.")
@click.option("--prefix", default="", help="String written before every line.")
@click.option("--initial", default=None, help="String written before the very first line.")
@click.option("--wrap-always", is_flag=True, help="Break words that do not fit.")
@click.option("--pad", default="", help="Pad lines to the width with this character.")
@click.option("--keep-spaces", is_flag=True, help="Do not normalise whitespace.")
@click.option("--expand-tabs", "tabs", is_flag=True, help="Expand tabs (implies --keep-spaces).")
@click.option("--tab-stop", type=int, multiple=True, help="Tab-stop width (repeatable).")
@_config_options
def wrap(files, width, indent, exdent, prefix, initial, wrap_always, pad, keep_spaces, tabs,
         tab_stop, ctl, warn, term_cap, strict_csi):
    """Word-wrap text, keeping colours intact across lines."""
    try:
        result = reflow(
            _read_inputs(files),
            width,
            indent=indent,
            exdent=exdent,
            prefix=prefix,
            initial=initial,
            wrap_always=wrap_always,
            pad_char=pad,
            strip_spaces=not (keep_spaces or tabs),
            expand_tabs=tabs,
            tab_stops=tab_stop or (8,),
            config=_config(ctl, warn, term_cap, strict_csi),
        )
    except ReflowError as e:
        _fail(e)
    for lines in result:
        for line in lines:
            click.echo(line)


@main.command()
@_files_argument
@click.option("--width", "-w", type=int, default=80, show_default=True, help="Maximum width.")
@click.option("--pad", default="", help="Pad lines to the width with this character.")
@_config_options
def trim(files, width, pad, ctl, warn, term_cap, strict_csi):
    """Cut every input line to WIDTH display columns."""
    lines = [line for text in _read_inputs(files) for line in text.splitlines()]
    try:
        result = trim_to_width(lines, width, pad_char=pad, config=_config(ctl, warn, term_cap, strict_csi))
    except ReflowError as e:
        _fail(e)
    for line in result:
        click.echo(line)


@main.command("expand-tabs")
@_files_argument
@click.option("--tab-stop", type=int, multiple=True, help="Tab-stop width (repeatable).")
@_config_options
def expand_tabs_command(files, tab_stop, ctl, warn, term_cap, strict_csi):
    """Replace tabs with spaces."""
    try:
        result = expand_tabs(
            _read_inputs(files),
            tab_stop or (8,),
            config=_config(ctl, warn, term_cap, strict_csi),
        )
    except ReflowError as e:
        _fail(e)
    for text in result:
        click.echo(text, nl=False)


@main.command()
@_files_argument
@_config_options
def strip(files, ctl, warn, term_cap, strict_csi):
    """Remove control sequences."""
    try:
        config = _config(ctl, warn, term_cap, strict_csi)
        result = strip_ctl(_read_inputs(files), config=config)
    except ReflowError as e:
        _fail(e)
    for text in result:
        click.echo(text, nl=False)


@main.command()
@_files_argument
@_config_options
def width(files, ctl, warn, term_cap, strict_csi):
    """Print the display width of every input line."""
    lines = [line for text in _read_inputs(files) for line in text.splitlines()]
    try:
        widths = display_width(lines, config=_config(ctl, warn, term_cap, strict_csi))
    except ReflowError as e:
        _fail(e)
    for w in widths:
        click.echo(str(w))


if __name__ == "__main__":
    main()
