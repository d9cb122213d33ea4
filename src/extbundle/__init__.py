"""extbundle -- Build static extension repositories from a directory of sources.

This package compiles every extension under ``src/``, bundles each one into a
standalone script, collects their metadata into ``versioning.json`` and renders
a static homepage. The result is a ``bundles/`` directory ready to be served
from GitHub Pages or any static host.

Typical workflow::

    cd my-extensions
    extbundle bundle              # compile, bundle, manifest, homepage

Modules:
    app: Typer application factory and CLI entry point.
    pipeline: The orchestrator running every build phase in order.
    models: Pydantic models shared across the entire package.
    config: Project configuration resolution and atomic writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
