"""Build configuration, the user data directory and atomic file writes.

:func:`resolve_config` produces the :class:`~extbundle.models.BuildConfig`
every phase receives. It layers, from lowest to highest priority, the model
defaults, the project's optional ``extbundle.json``, the ``EXTBUNDLE_*``
environment variables and the project root picked by the CLI.

The user data directory only holds crash logs. Manifest and homepage are
written with :func:`atomic_write` so an interrupted build never publishes a
truncated file.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from extbundle.exceptions import ConfigError
from extbundle.models import BuildConfig

_APP_NAME = "extbundle"
_PROJECT_CONFIG_FILENAME = "extbundle.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return (and create) ``$XDG_DATA_HOME/extbundle`` or ``~/.extbundle``.

    The XDG location, defaulting to ``~/.local/share``, applies on Linux and
    the BSDs; macOS and Windows use a dot directory in the home folder.
    """
    if not _is_xdg_platform():
        data_dir = Path.home() / f".{_APP_NAME}"
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME") or str(
            Path.home() / ".local" / "share"
        )
        data_dir = Path(xdg_data_home) / _APP_NAME
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one rename.

    The text goes to a hidden sibling temp file first, so the final
    ``os.replace`` stays on one filesystem. The result is world-readable
    so it can be served as is. The temp file is removed if
    anything fails before the rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(handle, "w", encoding="utf-8") as stream:
            stream.write(data)
            stream.flush()
            os.fsync(stream.fileno())
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def load_project_config(project_root: Path) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``<project_root>/extbundle.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = project_root / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(
            f"Invalid project config at {path}: expected an object, "
            f"got {type(data).__name__}"
        )
    return data


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (got {value!r})")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer (got {value!r})") from None


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect the ``EXTBUNDLE_*`` overrides present in *environ*."""
    overrides: dict[str, Any] = {}
    workers = environ.get("EXTBUNDLE_WORKERS")
    if workers:
        overrides["workers"] = _parse_int("EXTBUNDLE_WORKERS", workers)
    cont = environ.get("EXTBUNDLE_CONTINUE_ON_COMPILE_ERROR")
    if cont is not None:
        overrides["continue_on_compile_error"] = _parse_bool(
            "EXTBUNDLE_CONTINUE_ON_COMPILE_ERROR", cont
        )
    bundles_dir = environ.get("EXTBUNDLE_BUNDLES_DIR")
    if bundles_dir:
        overrides["bundles_dir"] = bundles_dir
    return overrides


def resolve_config(
    project_root: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BuildConfig:
    """Resolve the build configuration with the full precedence chain.

    Precedence (high to low):
        1. CLI (``project_root``, defaults to the working directory)
        2. Environment variables (``EXTBUNDLE_WORKERS``,
           ``EXTBUNDLE_CONTINUE_ON_COMPILE_ERROR``, ``EXTBUNDLE_BUNDLES_DIR``)
        3. Project config (``<project_root>/extbundle.json``)
        4. Defaults

    Raises:
        ConfigError: If the project config or an environment value is invalid.
    """
    root = (project_root or Path.cwd()).resolve()
    env = os.environ if environ is None else environ

    data: dict[str, Any] = {}
    project = load_project_config(root)
    if project is not None:
        data.update(project)
    data.update(_env_overrides(env))
    data["project_root"] = root

    try:
        return BuildConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid build configuration: {exc}") from exc
