"""Per-module bundler -- one standalone script per compiled module.

For every module directory in the intermediate build output the bundler
produces ``bundles/<id>/source.js`` with browserify and copies the module's
``includes`` asset folder next to it. Modules are bundled concurrently via
:func:`~extbundle.tasks.run_tasks`; each one only writes below its own
``bundles/<id>/`` directory.

The runtime API wrapper is ignored and the libraries the host app provides at
load time (``axios``, ``cheerio``, ``fs``) are declared external so they are
never inlined.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from extbundle.exceptions import BundleError, ModuleSkipped
from extbundle.fsutil import copy_tree, delete_tree
from extbundle.models import BuildConfig
from extbundle.output import debug, info, timed
from extbundle.tasks import TaskResults, run_tasks

RESERVED_TESTS_ENTRY = "tests"
BUNDLE_FILENAME = "source.js"
INCLUDES_DIRNAME = "includes"


def bundle_all(config: BuildConfig) -> TaskResults[Path]:
    """Bundle every module found in the intermediate build directory.

    ``bundles_dir`` must already exist; the orchestrator recreates it before
    calling this.

    Returns:
        A :class:`~extbundle.tasks.TaskResults` mapping each bundled module
        id to its ``source.js`` path. Skipped and failed modules are listed
        separately and have no destination directory.
    """
    build_path = config.build_path
    if not build_path.is_dir():
        info(f"No compiled output at {build_path}, nothing to bundle")
        return TaskResults()

    entries = sorted(p.name for p in build_path.iterdir())
    return run_tasks(
        entries,
        lambda module_id: bundle_module(config, module_id),
        max_workers=config.workers,
    )


def bundle_module(config: BuildConfig, module_id: str) -> Path:
    """Bundle a single module and copy its assets.

    Raises:
        ModuleSkipped: For the reserved ``tests`` entry, non-directories and
            modules without a compiled ``<id>.js`` entry point.
        BundleError: If the bundler cannot be started or exits non-zero.
        OSError: If the includes folder cannot be copied.
    """
    if module_id == RESERVED_TESTS_ENTRY:
        raise ModuleSkipped("Tests directory")

    compiled_dir = config.build_path / module_id
    if not compiled_dir.is_dir():
        raise ModuleSkipped("Not a directory")

    entry_point = compiled_dir / f"{module_id}.js"
    if not entry_point.is_file():
        raise ModuleSkipped(f"No compiled entry point {entry_point.name}")

    output_dir = config.bundles_path / module_id
    output_dir.mkdir()
    output_file = output_dir / BUNDLE_FILENAME

    with timed(f"Building {module_id}", level="debug"):
        try:
            _run_bundler(config, entry_point, output_file)
            copy_tree(
                config.source_path / module_id / INCLUDES_DIRNAME,
                output_dir / INCLUDES_DIRNAME,
            )
        except BaseException:
            # A failed module must not leave a directory for the manifest scan.
            delete_tree(output_dir)
            raise

    return output_file


def bundler_args(config: BuildConfig, entry_point: Path, output_file: Path) -> list[str]:
    """Build the browserify command line for one module."""
    args = [
        *config.bundler_command,
        str(entry_point),
        "--standalone",
        config.standalone_name,
    ]
    for ignored in config.ignored_modules:
        args.extend(["--ignore", ignored])
    for external in config.external_modules:
        args.extend(["--external", external])
    args.extend(["--outfile", str(output_file)])
    return args


def _run_bundler(config: BuildConfig, entry_point: Path, output_file: Path) -> None:
    args = bundler_args(config, entry_point, output_file)
    debug(f"Running: {' '.join(args)}")

    try:
        result = subprocess.run(
            args,
            cwd=config.project_root,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        raise BundleError(f"Bundler not found: {config.bundler_command[0]}") from None
    except OSError as exc:
        raise BundleError(f"Could not start the bundler: {exc}") from exc

    if result.returncode != 0:
        tail = (result.stderr or "").strip().splitlines()[-5:]
        detail = f": {' | '.join(tail)}" if tail else ""
        raise BundleError(f"Bundler exited with status {result.returncode}{detail}")

    if not output_file.is_file():
        raise BundleError(f"Bundler produced no {output_file.name}")
