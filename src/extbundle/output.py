"""Terminal output for extbundle, split between data and diagnostics.

The rules come from `clig.dev <https://clig.dev/>`_:

* stdout only ever receives the build summary, so ``extbundle bundle --json``
  can be piped into ``jq``;
* phase timings, skipped modules, warnings and errors go to stderr;
* Rich styling is used on an interactive terminal and dropped when stdout is
  piped, when ``NO_COLOR`` is set, when ``TERM=dumb`` or with ``--no-color``.

Build phases never hold a reference to the manager. They call the
module-level helpers (:func:`info`, :func:`warning`, :func:`timed`, ...)
which forward to the instance installed by
:func:`~extbundle.app.main_callback` through :func:`set_output`.
"""

from __future__ import annotations

import json
import os
import sys
import threading
import time
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table


class OutputFormat(str, Enum):
    """How the build summary is printed. ``AUTO`` picks RICH or PLAIN."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Owns the two consoles and the quiet/verbose switches for one run.

    Worker threads report per-module outcomes while a phase fans out, so
    every stderr write goes through one lock.

    Args:
        format: Summary format; ``AUTO`` is resolved once, here.
        no_color: Force monochrome output.
        quiet: Hide info, success and suggestion lines.
        verbose: Show debug lines (per-module timings, tool command lines).
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._plain_diagnostics = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._lock = threading.Lock()
        self._format = _resolve_format(format, self._plain_diagnostics)

        self._out = Console(
            file=sys.stdout,
            no_color=self._plain_diagnostics,
            force_terminal=self._format is OutputFormat.RICH,
        )
        self._err = Console(
            file=sys.stderr, no_color=self._plain_diagnostics, stderr=True
        )

    @property
    def format(self) -> OutputFormat:
        return self._format

    # --- stdout ---

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_json(self, data: Any) -> None:
        self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print *rows* under *headers*.

        JSON mode emits a list of objects, plain mode emits tab-separated
        lines with a header line first, and Rich mode draws a table with
        *title* above it.
        """
        if self._format is OutputFormat.JSON:
            self.print_json([dict(zip(headers, row)) for row in rows])
            return
        if self._format is OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(*headers, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*map(escape, row))
        self._out.print(table)

    # --- stderr ---

    def _emit(self, plain: str, markup: str) -> None:
        with self._lock:
            if self._plain_diagnostics:
                print(plain, file=sys.stderr, flush=True)
            else:
                self._err.print(markup)

    def info(self, message: str) -> None:
        if self._quiet:
            return
        self._emit(message, escape(message))

    def success(self, message: str) -> None:
        if self._quiet:
            return
        self._emit(message, f"[green]{escape(message)}[/green]")

    def suggest(self, message: str) -> None:
        if self._quiet:
            return
        hint = f"→ {message}"
        self._emit(hint, f"[dim]{escape(hint)}[/dim]")

    def warning(self, message: str) -> None:
        self._emit(f"Warning: {message}", f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        if not self._verbose:
            return
        self._emit(f"[debug] {message}", f"[dim]\\[debug] {escape(message)}[/dim]")

    @contextmanager
    def timed(self, label: str, *, level: str = "info") -> Iterator[dict[str, float]]:
        """Report ``"<label>: <seconds>s"`` when the block exits, even on error.

        The yielded dict gets an ``elapsed`` key so the caller can keep the
        measurement for the build report.
        """
        measurement: dict[str, float] = {}
        started = time.perf_counter()
        try:
            yield measurement
        finally:
            measurement["elapsed"] = time.perf_counter() - started
            line = f"{label}: {measurement['elapsed']:.3f}s"
            if level == "debug":
                self.debug(line)
            else:
                self.info(line)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` turn colour off."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _resolve_format(requested: OutputFormat, monochrome: bool) -> OutputFormat:
    if requested is not OutputFormat.AUTO:
        return requested
    if _is_tty() and not monochrome:
        return OutputFormat.RICH
    return OutputFormat.PLAIN


# --- process-wide instance ---

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests swap stdout/stderr between runs)."""
    global _output
    _output = None


def print_table(
    headers: list[str], rows: list[list[str]], title: Optional[str] = None
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)


def timed(label: str, *, level: str = "info") -> Any:
    return get_output().timed(label, level=level)
