"""Shared test fixtures for extbundle.

Provides an isolated extension project on disk, a fake Node toolchain that
stands in for ``tsc``, ``browserify`` and ``node`` (so no JavaScript tooling
is needed to run the suite), output state management, and a CLI runner.
These fixtures are automatically discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Optional

import pytest

from extbundle.config import resolve_config
from extbundle.models import BuildConfig
from extbundle.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during a
    test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CI variables of the machine running the tests out of the build."""
    for var in [
        "GITHUB_REPOSITORY",
        "EXTBUNDLE_WORKERS",
        "EXTBUNDLE_CONTINUE_ON_COMPILE_ERROR",
        "EXTBUNDLE_BUNDLES_DIR",
    ]:
        monkeypatch.delenv(var, raising=False)


# ---------------------------------------------------------------------------
# Extension project fixtures
# ---------------------------------------------------------------------------


SAMPLE_METADATA: dict[str, dict[str, Any]] = {
    "MangaDex": {
        "name": "MangaDex",
        "author": "Alice",
        "description": "Extension that pulls manga from MangaDex",
        "authorWebsite": "https://github.com/alice",
        "version": "2.1.0",
        "icon": "icon.png",
        "sourceTags": [{"text": "Recommended", "type": "success"}],
        "websiteBaseURL": "https://mangadex.org",
    },
    "Guya": {
        "name": "Guya",
        "author": "Bob",
        "description": "Extension that pulls manga from Guya",
        "authorWebsite": "https://github.com/bob",
        "version": "1.0.3",
        "icon": "logo.png",
        "sourceTags": [],
        "websiteBaseURL": "https://guya.moe",
    },
}


def write_module(
    root: Path,
    module_id: str,
    icon: Optional[str] = "icon.png",
    with_entry: bool = True,
) -> Path:
    """Create ``src/<module_id>/`` with a TypeScript entry and an includes folder."""
    module_dir = root / "src" / module_id
    module_dir.mkdir(parents=True, exist_ok=True)
    if with_entry:
        (module_dir / f"{module_id}.ts").write_text(
            f"export class {module_id} {{}}\n", encoding="utf-8"
        )
    includes = module_dir / "includes"
    includes.mkdir(exist_ok=True)
    if icon:
        (includes / icon).write_bytes(b"\x89PNG")
    return module_dir


def write_descriptor(root: Path, **fields: Any) -> Path:
    """Write ``package.json`` with a name and description plus *fields*."""
    data = {
        "name": "my-extensions",
        "description": "A test extension repository",
        "devDependencies": {"paperback-extensions-common": "^5.0.0"},
    }
    data.update(fields)
    path = root / "package.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """An extension project with two valid modules and a ``package.json``.

    The working directory is changed to the project root.
    """
    root = tmp_path / "repo"
    root.mkdir()
    write_module(root, "MangaDex", icon="icon.png")
    write_module(root, "Guya", icon="logo.png")
    write_descriptor(root)
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def config(project: Path) -> BuildConfig:
    """The resolved build configuration of :func:`project`."""
    return resolve_config(project, environ={})


# ---------------------------------------------------------------------------
# Fake Node toolchain
# ---------------------------------------------------------------------------


class FakeToolchain:
    """Stand-in for ``subprocess.run`` emulating tsc, browserify and node.

    * ``tsc`` emits ``<build_dir>/<id>/<id>.js`` for each ``src/<id>/<id>.ts``.
    * ``browserify`` writes the ``--outfile``; ids in :attr:`fail_bundles`
      exit 1 instead.
    * ``node`` prints :attr:`metadata` for the requested id as JSON; unknown
      ids exit 2.
    """

    def __init__(self, metadata: dict[str, dict[str, Any]]) -> None:
        self.metadata = {k: dict(v) for k, v in metadata.items()}
        self.fail_bundles: set[str] = set()
        self.compile_returncode = 0
        self.calls: list[list[str]] = []

    def __call__(self, args: list[str], cwd: Any = None, **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(list(args))
        if "tsc" in args:
            return self._tsc(args, Path(cwd))
        if "browserify" in args:
            return self._browserify(args)
        if args[0] == "node":
            return self._node(args)
        raise AssertionError(f"Unexpected command: {args}")

    def commands(self, tool: str) -> list[list[str]]:
        return [c for c in self.calls if tool in c or c[0] == tool]

    def _tsc(self, args: list[str], cwd: Path) -> subprocess.CompletedProcess:
        out_dir = cwd / args[args.index("--outDir") + 1]
        for module_dir in sorted((cwd / "src").iterdir()):
            if not module_dir.is_dir():
                continue
            for ts_file in module_dir.glob("*.ts"):
                target = out_dir / module_dir.name / f"{ts_file.stem}.js"
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(f"// compiled {ts_file.name}\n", encoding="utf-8")
        stderr = "" if self.compile_returncode == 0 else "src/X/X.ts(1,1): error TS2304"
        return subprocess.CompletedProcess(args, self.compile_returncode, "", stderr)

    def _browserify(self, args: list[str]) -> subprocess.CompletedProcess:
        entry = Path(args[args.index("browserify") + 1])
        module_id = entry.stem
        if module_id in self.fail_bundles:
            return subprocess.CompletedProcess(
                args, 1, "", f"Error: Cannot find module './missing' from '{entry.parent}'"
            )
        outfile = Path(args[args.index("--outfile") + 1])
        outfile.write_text(f"// bundle of {module_id}\n", encoding="utf-8")
        return subprocess.CompletedProcess(args, 0, "", "")

    def _node(self, args: list[str]) -> subprocess.CompletedProcess:
        module_id = args[-1]
        if module_id not in self.metadata:
            return subprocess.CompletedProcess(
                args, 2, "", f"No {module_id}Info record or {module_id} class exported"
            )
        return subprocess.CompletedProcess(
            args, 0, json.dumps(self.metadata[module_id]), ""
        )


@pytest.fixture
def toolchain(monkeypatch: pytest.MonkeyPatch) -> FakeToolchain:
    """Install a :class:`FakeToolchain` in place of ``subprocess.run``."""
    fake = FakeToolchain(SAMPLE_METADATA)
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for tests that ignore output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
