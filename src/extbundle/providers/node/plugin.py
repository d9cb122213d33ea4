"""Node provider -- metadata read from the bundled ``source.js`` with Node.js.

Extensions built on ``paperback-extensions-common`` export a plain data
record named ``<id>Info`` next to their source class. The provider loads the
standalone bundle in a short-lived ``node`` process and prints that record
as JSON. Older extensions that only export the ``<id>`` class are
instantiated with no context and their metadata properties are read off the
instance instead.
"""

from __future__ import annotations

import json
import subprocess
from typing import Any

from extbundle.exceptions import SourceError
from extbundle.models import BuildConfig, ModuleContext
from extbundle.providers.base import SourceInfoProvider

METADATA_KEYS = (
    "name",
    "author",
    "description",
    "authorWebsite",
    "version",
    "icon",
    "sourceTags",
    "tags",
    "websiteBaseURL",
)

_READ_INFO_SCRIPT = """\
const path = require('path');
const [scriptPath, id] = process.argv.slice(-2);
const exported = require(path.resolve(scriptPath));
let info = exported[id + 'Info'];
if (info === undefined) {
  const Source = exported[id];
  if (typeof Source !== 'function') {
    console.error('No ' + id + 'Info record or ' + id + ' class exported');
    process.exit(2);
  }
  info = new Source(null);
}
const keys = %s;
const picked = {};
for (const key of keys) {
  if (info[key] !== undefined) picked[key] = info[key];
}
process.stdout.write(JSON.stringify(picked));
""" % json.dumps(list(METADATA_KEYS))


class NodeInfoProvider(SourceInfoProvider):
    """Evaluates the bundled script with Node.js to read its metadata."""

    def __init__(self) -> None:
        self._node_command: list[str] = ["node"]

    @property
    def name(self) -> str:
        return "node"

    @property
    def description(self) -> str:
        return "Reads the <id>Info export of the bundled source.js"

    def on_init(self, config: BuildConfig) -> None:
        self._node_command = list(config.node_command)

    def supports(self, ctx: ModuleContext) -> bool:
        return ctx.script_path.is_file()

    def load(self, ctx: ModuleContext) -> dict[str, Any]:
        args = [
            *self._node_command,
            "-e",
            _READ_INFO_SCRIPT,
            str(ctx.script_path),
            ctx.id,
        ]
        try:
            result = subprocess.run(
                args,
                cwd=ctx.bundle_dir,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            raise SourceError(
                f"[{ctx.id}] Node.js not found: {self._node_command[0]}"
            ) from None
        except OSError as exc:
            raise SourceError(f"[{ctx.id}] Could not start Node.js: {exc}") from exc

        if result.returncode != 0:
            detail = (result.stderr or "").strip().splitlines()
            message = detail[-1] if detail else f"exit status {result.returncode}"
            raise SourceError(f"[{ctx.id}] Cannot load {ctx.script_path.name}: {message}")

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise SourceError(f"[{ctx.id}] Node.js returned invalid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise SourceError(f"[{ctx.id}] Metadata must be an object")
        return data
