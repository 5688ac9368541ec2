"""Recursive directory listing with a prune predicate."""

import asyncio
import os
from pathlib import Path
from typing import Callable

# (relative posix path, is_dir) -> True to skip the entry
PrunePredicate = Callable[[str, bool], bool]

# (root, prune) -> relative posix paths of the files kept
Lister = Callable[[Path, PrunePredicate], list[str]]


def _raise(error: OSError) -> None:
    raise error


def list_files(root: Path | str, prune: PrunePredicate) -> list[str]:
    """
    List every file under root that the predicate does not prune.

    Walks top-down, a directory's files before its subdirectories, each
    sorted by name. Pruned directories are never descended into.
    Unreadable directories raise OSError.
    """
    root = Path(root)
    found: list[str] = []
    for dirpath, dirs, files in os.walk(root, onerror=_raise):
        rel_dir = Path(dirpath).relative_to(root)
        dirs[:] = sorted(
            name for name in dirs
            if not prune((rel_dir / name).as_posix(), True)
        )
        for filename in sorted(files):
            rel = (rel_dir / filename).as_posix()
            if not prune(rel, False):
                found.append(rel)
    return found


async def list_files_async(root: Path | str, prune: PrunePredicate, lister: Lister = list_files) -> list[str]:
    """Run a lister in a worker thread."""
    return await asyncio.to_thread(lister, Path(root), prune)
