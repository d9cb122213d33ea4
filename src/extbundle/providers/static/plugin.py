"""Static descriptor provider -- metadata from ``src/<id>/source.{json,yaml,yml}``.

Modules that do not want their metadata evaluated from the bundled script
ship a plain data record next to their sources::

    # src/MangaDex/source.yaml
    name: MangaDex
    author: Team
    description: Reads from MangaDex
    version: 2.1.0
    icon: icon.png
    sourceTags:
      - {text: Recommended, type: success}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import yaml

from extbundle.exceptions import SourceError
from extbundle.models import ModuleContext
from extbundle.providers.base import SourceInfoProvider

DESCRIPTOR_NAMES = ("source.json", "source.yaml", "source.yml")


class StaticInfoProvider(SourceInfoProvider):
    """Reads a JSON or YAML descriptor from the module's source directory."""

    @property
    def name(self) -> str:
        return "static"

    @property
    def description(self) -> str:
        return "Static source.json / source.yaml descriptor"

    def supports(self, ctx: ModuleContext) -> bool:
        return _find_descriptor(ctx.source_dir) is not None

    def load(self, ctx: ModuleContext) -> dict[str, Any]:
        path = _find_descriptor(ctx.source_dir)
        if path is None:
            raise SourceError(f"[{ctx.id}] No static descriptor found")

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceError(f"[{ctx.id}] Cannot read {path.name}: {exc}") from exc

        try:
            if path.suffix == ".json":
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise SourceError(f"[{ctx.id}] Invalid {path.name}: {exc}") from exc

        if not isinstance(data, dict):
            raise SourceError(
                f"[{ctx.id}] {path.name} must contain an object "
                f"(got {type(data).__name__})"
            )
        return data


def _find_descriptor(source_dir: Path) -> Optional[Path]:
    for filename in DESCRIPTOR_NAMES:
        candidate = source_dir / filename
        if candidate.is_file():
            return candidate
    return None
