"""Filesystem helpers shared by every build phase."""

from __future__ import annotations

import shutil
from pathlib import Path


def delete_tree(path: Path) -> None:
    """Remove *path* and everything below it. No-op if it does not exist."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def copy_tree(src: Path, dst: Path) -> None:
    """Recursively copy the contents of *src* into *dst*.

    Intermediate directories are created and an existing *dst* is merged
    into. A missing *src* is not an error: modules without an ``includes``
    folder are legal.
    """
    if not src.is_dir():
        return
    shutil.copytree(src, dst, dirs_exist_ok=True)


def reset_dir(path: Path) -> Path:
    """Delete *path* and recreate it empty."""
    delete_tree(path)
    path.mkdir(parents=True)
    return path
