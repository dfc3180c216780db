"""Filesystem helpers shared by the installer and removal code."""

from __future__ import annotations

import os
import shutil
from pathlib import Path


def entry_exists(path: Path) -> bool:
    """True if *path* exists, counting dangling symlinks as existing."""
    return path.is_symlink() or path.exists()


def is_link_to(link: Path, target: Path) -> bool:
    """Check whether *link* is a symlink that resolves to *target*."""
    if not link.is_symlink():
        return False
    return link.resolve() == target.resolve()


def remove_path(path: Path) -> None:
    """Remove a file, symlink or directory tree.

    Symlinks are unlinked, never followed, so removing a link into the
    canonical store leaves the store untouched.
    """
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def relative_symlink(target: Path, link: Path) -> None:
    """Create *link* pointing at *target* through a relative path."""
    relative = os.path.relpath(target, link.parent)
    link.symlink_to(relative, target_is_directory=True)


def list_entries(directory: Path) -> list[str]:
    """Sorted names of non-hidden directories and symlinks in *directory*."""
    if not directory.is_dir():
        return []
    return sorted(
        child.name
        for child in directory.iterdir()
        if not child.name.startswith(".") and (child.is_dir() or child.is_symlink())
    )
