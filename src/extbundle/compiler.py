"""Compiler invocation -- transpile the extension project into ``temp_build/``.

The project's own compiler configuration (``tsconfig.json``) decides what is
compiled; extbundle only adds ``--outDir`` so the output lands in the
intermediate build directory, mirroring ``src/`` with one ``<id>.js`` per
module.
"""

from __future__ import annotations

import subprocess

from extbundle.exceptions import CompileError
from extbundle.models import BuildConfig
from extbundle.output import debug, error, warning


def compile_project(config: BuildConfig) -> None:
    """Run the compiler over the project and wait for it to finish.

    Args:
        config: Build configuration. ``compiler_command`` is run from
            ``project_root`` with ``--outDir <build_dir>`` appended.

    Raises:
        CompileError: If the compiler cannot be started, or exits non-zero
            while ``continue_on_compile_error`` is off.
    """
    args = [*config.compiler_command, "--outDir", config.build_dir]
    debug(f"Running: {' '.join(args)}")

    try:
        result = subprocess.run(
            args,
            cwd=config.project_root,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        raise CompileError(
            f"Compiler not found: {config.compiler_command[0]}"
        ) from None
    except OSError as exc:
        raise CompileError(f"Could not start the compiler: {exc}") from exc

    for line in (result.stdout or "").splitlines():
        debug(f"  {line}")

    if result.returncode == 0:
        return

    # tsc reports type errors on stdout, other compilers on stderr.
    details = (result.stderr or result.stdout or "").splitlines()[-20:]
    if config.continue_on_compile_error:
        warning(
            f"Compiler exited with status {result.returncode}; "
            "bundling whatever was emitted."
        )
        for line in details:
            debug(f"  {line}")
        return

    error(f"Compiler exited with status {result.returncode}:")
    for line in details:
        error(f"  {line}")
    raise CompileError(f"Compilation failed with status {result.returncode}")
