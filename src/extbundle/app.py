"""Command-line entry point for extbundle.

``app`` is the Typer application; :func:`main` is the ``extbundle`` console
script. Root options configure output for every command, and :func:`main`
turns errors into exit codes:

* :class:`~extbundle.exceptions.ExtbundleError` exits with its ``exit_code``;
* Ctrl-C exits 130;
* anything else is a bug, so the traceback is saved under the data
  directory and the process exits 1.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any

import typer

from extbundle import __version__
from extbundle.commands import bundle_command
from extbundle.exit_codes import EXIT_GENERIC_FAILURE

CANCELLED_EXIT_CODE = 130

app = typer.Typer(
    name="extbundle",
    help="Build static extension repositories.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)
app.command("bundle")(bundle_command)


def _show_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"extbundle {__version__}")
    raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Print the extbundle version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Print the build summary as JSON."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Print the build summary as tab-separated text."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Never use colour or styling."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only print warnings, errors and the summary."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show tool command lines and per-module timings."
    ),
) -> None:
    """Configure output before the sub-command runs."""
    from extbundle.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    if verbose:
        _configure_logging(no_color)


def _configure_logging(no_color: bool) -> None:
    """Route ``extbundle.*`` log records (provider discovery) to stderr."""
    from rich.console import Console
    from rich.logging import RichHandler

    logger = logging.getLogger("extbundle")
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.addHandler(
        RichHandler(
            console=Console(stderr=True, no_color=no_color),
            show_time=False,
            show_path=False,
        )
    )


def _exit_on_sigint(signum: int, frame: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(CANCELLED_EXIT_CODE)


def _save_traceback() -> Path:
    """Write the current traceback to ``<data dir>/logs/crash-<time>.log``."""
    from extbundle.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    path.write_text(traceback.format_exc(), encoding="utf-8")
    return path


def main() -> None:
    """Run the CLI. Always ends in ``SystemExit``."""
    from extbundle.exceptions import ExtbundleError
    from extbundle.output import error

    signal.signal(signal.SIGINT, _exit_on_sigint)
    try:
        app()
    except KeyboardInterrupt:
        _exit_on_sigint(signal.SIGINT, None)
    except ExtbundleError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error. Debug log: {_save_traceback()}")
        sys.exit(EXIT_GENERIC_FAILURE)
