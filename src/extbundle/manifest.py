"""Manifest generator -- ``bundles/versioning.json``.

Scans the bundle output directory, asks the provider registry for each
module's metadata, checks that the declared icon was copied into the
module's ``includes`` folder, and writes the manifest with a fresh build
timestamp. A module with bad metadata is logged and left out; it never
stops the other modules.

Records are sorted by module id so two builds of the same tree produce the
same ``sources`` array.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from extbundle.config import atomic_write
from extbundle.exceptions import ManifestError, MissingIconError, ModuleSkipped
from extbundle.models import BuildConfig, Manifest, ModuleContext, SourceInfo
from extbundle.providers import ProviderManager
from extbundle.tasks import TaskResults, run_tasks

RESERVED_TESTS_PREFIX = "tests"


def generate_manifest(
    config: BuildConfig, providers: ProviderManager
) -> tuple[Manifest, TaskResults[SourceInfo]]:
    """Build and write the manifest for every module in ``bundles/``.

    Args:
        config: Build configuration.
        providers: A manager with providers already discovered.

    Returns:
        The written :class:`~extbundle.models.Manifest` and the per-module
        :class:`~extbundle.tasks.TaskResults` (for reporting failures).

    Raises:
        ManifestError: If ``bundles/`` does not exist.
    """
    bundles_path = config.bundles_path
    if not bundles_path.is_dir():
        raise ManifestError(f"Bundle directory not found: {bundles_path}")

    entries = sorted(p.name for p in bundles_path.iterdir())
    results = run_tasks(
        entries,
        lambda module_id: describe_module(config, providers, module_id),
        max_workers=config.workers,
    )

    manifest = Manifest(
        buildTime=_build_time(),
        sources=[results.succeeded[key] for key in sorted(results.succeeded)],
    )
    write_manifest(manifest, config.manifest_path)
    return manifest, results


def describe_module(
    config: BuildConfig, providers: ProviderManager, module_id: str
) -> SourceInfo:
    """Resolve and validate the metadata of one bundled module.

    Raises:
        ModuleSkipped: For hidden entries, ``tests*`` entries and files.
        MissingIconError: If the icon is not inside ``includes/``.
    """
    if module_id.startswith(".") or module_id.startswith(RESERVED_TESTS_PREFIX):
        raise ModuleSkipped("Hidden or tests entry")

    ctx = ModuleContext.for_module(config, module_id)
    if not ctx.bundle_dir.is_dir():
        raise ModuleSkipped("Not a directory")

    source_info = providers.resolve(ctx)

    if source_info.icon and not _icon_in_includes(ctx.includes_dir, source_info.icon):
        raise MissingIconError(
            f"[{module_id}] Icon must be inside the includes folder"
        )
    return source_info


def _icon_in_includes(includes_dir: Path, icon: str) -> bool:
    includes = includes_dir.resolve()
    icon_path = (includes_dir / icon).resolve()
    return includes in icon_path.parents and icon_path.is_file()


def write_manifest(manifest: Manifest, path: Path) -> None:
    """Write *manifest* to *path*, replacing any previous file."""
    atomic_write(path, manifest.to_json())


def load_manifest(path: Path) -> Manifest:
    """Read and validate a manifest written by :func:`write_manifest`.

    Raises:
        ManifestError: If the file is missing, not JSON, or not a manifest.
    """
    if not path.is_file():
        raise ManifestError(f"Manifest not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Manifest.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as exc:
        raise ManifestError(f"Invalid manifest at {path}: {exc}") from exc


def _build_time() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )
