"""
Resolve what a run loads: dependency names and project source files.

Module order: primary dependencies in manifest order, then (optionally)
development dependencies. Primary dependencies are always imported in
production, so they go first and their timings are not masked by dev
dependencies warming up shared sub-dependencies.

File order: the order of the directory listing.
"""

import logging
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath

from project_repl.ignore import IgnorePolicy, canonical_module_name
from project_repl.manifest import Manifest
from project_repl.naming import SOURCE_SUFFIX
from project_repl.walk import Lister, PrunePredicate, list_files, list_files_async

logger = logging.getLogger(__name__)

# Never descended into, whatever the ignore policy says
ALWAYS_PRUNED_DIRS = frozenset({
    "node_modules",
    ".git",
    "__pycache__",
    ".venv",
    "venv",
    ".tox",
    ".nox",
    ".mypy_cache",
    ".pytest_cache",
    ".eggs",
    "site-packages",
})

TEST_FILE_SUFFIX = "_test.py"
TEST_FILE_PREFIX = "test_"


def resolve_modules(manifest: Manifest, policy: IgnorePolicy, include_dev: bool = False) -> list[str]:
    """Ordered dependency names to import, minus ignored ones."""
    modules = [m for m in manifest.dependencies if not policy.ignores_module(m)]
    if include_dev:
        primary = {canonical_module_name(m) for m in modules}
        modules += [
            m for m in manifest.dev_dependencies
            if canonical_module_name(m) not in primary and not policy.ignores_module(m)
        ]
    return modules


def is_test_file(basename: str) -> bool:
    return basename.endswith(TEST_FILE_SUFFIX) or (
        basename.startswith(TEST_FILE_PREFIX) and basename.endswith(SOURCE_SUFFIX)
    )


def _matches_pattern(rel_path: str, basename: str, patterns: tuple[str, ...]) -> bool:
    return any(fnmatchcase(rel_path, p) or fnmatchcase(basename, p) for p in patterns)


def make_prune_predicate(policy: IgnorePolicy) -> PrunePredicate:
    """
    Build the predicate handed to the directory lister.

    Only directories and source files are ever pruned; any other file is
    let through and filtered out by resolve_files.
    """

    def prune(rel_path: str, is_dir: bool) -> bool:
        basename = PurePosixPath(rel_path).name
        if is_dir:
            if basename in ALWAYS_PRUNED_DIRS:
                return True
            if basename in policy.files:
                return True
            return _matches_pattern(rel_path, basename, policy.path_patterns)

        if not basename.endswith(SOURCE_SUFFIX):
            return False
        if is_test_file(basename):
            return True
        if basename in policy.files or rel_path in policy.files:
            return True
        return _matches_pattern(rel_path, basename, policy.path_patterns)

    return prune


async def resolve_files(root: Path | str, policy: IgnorePolicy, lister: Lister = list_files) -> list[str]:
    """Ordered root-relative source files to import."""
    listed = await list_files_async(root, make_prune_predicate(policy), lister)
    files = [f for f in listed if f.endswith(SOURCE_SUFFIX)]
    logger.debug(f"Resolved {len(files)} source files under {root}")
    return files
