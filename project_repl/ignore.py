"""
Ignore policy: which files and modules a run skips.

The policy is merged from three layers, later layers winning:

    built-in < manifest ([tool.project-repl.ignore]) < caller (ReplOptions)

A caller can both extend the ignore sets and re-enable something an
earlier layer ignored, by mapping the name to False.
"""

import re
from dataclasses import dataclass

from project_repl.config import ReplOptions
from project_repl.manifest import Manifest

TOOL_MODULE_NAME = "project-repl"

# __tests__ is always skipped; the others run side effects when imported
BUILTIN_IGNORED_FILES = ("__tests__", "setup.py", "conftest.py", "__main__.py")
BUILTIN_IGNORED_MODULES = (TOOL_MODULE_NAME,)


def canonical_module_name(name: str) -> str:
    """PEP 503 normalized distribution name."""
    return re.sub(r"[-_.]+", "-", name).lower()


@dataclass(frozen=True)
class IgnorePolicy:
    """
    Resolved ignore rules for one run.

    Attributes:
        files: Ignored file/directory basenames and root-relative paths
        modules: Ignored dependency names (PEP 503 normalized)
        path_patterns: fnmatch patterns matched against relative paths
    """

    files: frozenset[str] = frozenset()
    modules: frozenset[str] = frozenset()
    path_patterns: tuple[str, ...] = ()

    def ignores_module(self, name: str) -> bool:
        return canonical_module_name(name) in self.modules


def _layer(*layers: dict[str, bool]) -> frozenset[str]:
    merged: dict[str, bool] = {}
    for layer in layers:
        merged.update(layer)
    return frozenset(name for name, enabled in merged.items() if enabled)


def build_ignore_policy(manifest: Manifest, options: ReplOptions) -> IgnorePolicy:
    """Merge built-in, manifest and caller ignore settings."""
    files = _layer(
        dict.fromkeys(BUILTIN_IGNORED_FILES, True),
        dict.fromkeys(manifest.ignore.files, True),
        options.ignore_files,
    )

    def _canonical(layer: dict[str, bool]) -> dict[str, bool]:
        return {canonical_module_name(k): v for k, v in layer.items()}

    modules = _layer(
        _canonical(dict.fromkeys(BUILTIN_IGNORED_MODULES, True)),
        _canonical(dict.fromkeys(manifest.ignore.modules, True)),
        _canonical(options.ignore_modules),
    )

    return IgnorePolicy(
        files=files,
        modules=modules,
        path_patterns=tuple(manifest.ignore.path_patterns) + tuple(options.ignore_globs),
    )
