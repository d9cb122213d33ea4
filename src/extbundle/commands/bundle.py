"""Bundle command -- build the whole extension repository.

Implements ``extbundle bundle``. Run it from the root of an extension
project (the directory holding ``src/`` and ``package.json``); everything is
written to ``bundles/``.
"""

from __future__ import annotations

from pathlib import Path

import typer

from extbundle.models import BuildReport
from extbundle.output import error, print_table, success, suggest, warning


def bundle_command() -> None:
    """Build all the sources in the repository and generate a versioning file.

    Compiles the project, bundles every module into
    ``bundles/<id>/source.js``, writes ``bundles/versioning.json`` and
    renders ``bundles/index.html`` when ``package.json`` is present.

    Per-module failures are reported but do not fail the command; a
    compile failure or a malformed manifest/descriptor does.

    Example::

        cd my-extensions && extbundle bundle
    """
    from extbundle.config import resolve_config
    from extbundle.exceptions import ExtbundleError
    from extbundle.pipeline import BuildPipeline

    try:
        config = resolve_config(Path.cwd())
        report = BuildPipeline(config).run()
    except ExtbundleError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    _print_report(report)


def _print_report(report: BuildReport) -> None:
    sources = report.manifest.sources if report.manifest else []
    print_table(
        ["id", "name", "version", "author"],
        [[s.id, s.name, s.version, s.author] for s in sources],
        title="Published sources",
    )

    for module_id, message in sorted(report.bundle_failed.items()):
        warning(f"{module_id} was not bundled: {message}")
    for module_id, message in sorted(report.manifest_failed.items()):
        warning(f"{module_id} was left out of the manifest: {message}")

    if report.ok:
        success(f"Published {len(sources)} source(s).")
    else:
        failed = len(report.bundle_failed) + len(report.manifest_failed)
        warning(f"Published {len(sources)} source(s), {failed} failed.")
        suggest("Re-run with --verbose for bundler and provider details.")

    if report.homepage is None:
        suggest("Add a package.json with name and description to generate a homepage.")
