"""
Manifest reader for project-repl.

Reads the project's ``pyproject.toml`` and extracts what a REPL session
needs: project name and version, the main entry file, declared dependencies
(primary and development), and the ``[tool.project-repl]`` ignore settings.

Example pyproject.toml:

    [project]
    name = "my-app"
    version = "1.2.0"
    dependencies = ["requests>=2", "left-pad"]

    [project.optional-dependencies]
    dev = ["pytest"]

    [tool.project-repl]
    main = "my_app/__init__.py"

    [tool.project-repl.ignore]
    files = ["migrations", "my_app/slow.py"]
    modules = ["uvloop"]
    path-patterns = ["scripts/*"]

A missing or unparseable manifest is an empty manifest. The two cases are
deliberately not distinguished.
"""

import asyncio
import logging
import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "pyproject.toml"
TOOL_TABLE = "project-repl"

# PEP 508 distribution name at the start of a requirement string
_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?)")


@dataclass(frozen=True)
class IgnoreConfig:
    """The ``[tool.project-repl.ignore]`` table."""

    files: tuple[str, ...] = ()
    modules: tuple[str, ...] = ()
    path_patterns: tuple[str, ...] = ()


@dataclass(frozen=True)
class Manifest:
    """
    Declared project metadata.

    Attributes:
        name: Project name ([project].name)
        version: Project version ([project].version)
        main: Root-relative path of the main entry file
        dependencies: Primary dependency name -> version spec, in declaration order
        dev_dependencies: Secondary dependency name -> version spec, in declaration order
        ignore: Ignore settings declared by the project
    """

    name: Optional[str] = None
    version: Optional[str] = None
    main: Optional[str] = None
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Manifest":
        """Build a Manifest from a parsed pyproject.toml document."""
        project = _table(data, "project")
        tool = _table(data, "tool")
        poetry = _table(tool, "poetry")
        repl = _table(tool, TOOL_TABLE)
        ignore = _table(repl, "ignore")

        dependencies = _requirements(project.get("dependencies"))
        if not dependencies:
            dependencies = _poetry_dependencies(_table(poetry, "dependencies"))

        dev_dependencies: dict[str, str] = {}
        for group in _table(project, "optional-dependencies").values():
            _merge_new(dev_dependencies, _requirements(group))
        for group in _table(data, "dependency-groups").values():
            _merge_new(dev_dependencies, _requirements(group))
        _merge_new(dev_dependencies, _poetry_dependencies(_table(poetry, "dev-dependencies")))
        for group in _table(poetry, "group").values():
            if isinstance(group, Mapping):
                _merge_new(dev_dependencies, _poetry_dependencies(_table(group, "dependencies")))

        return cls(
            name=_string(project.get("name") or poetry.get("name")),
            version=_string(project.get("version") or poetry.get("version")),
            main=_string(repl.get("main")),
            dependencies=dependencies,
            dev_dependencies=dev_dependencies,
            ignore=IgnoreConfig(
                files=_strings(ignore.get("files")),
                modules=_strings(ignore.get("modules")),
                path_patterns=_strings(ignore.get("path-patterns", ignore.get("path_patterns"))),
            ),
        )


def requirement_name(requirement: str) -> Optional[str]:
    """Return the distribution name of a PEP 508 requirement string."""
    match = _REQUIREMENT_NAME.match(requirement)
    if match is None:
        return None
    return match.group(1)


def read_manifest(root: Path | str) -> Manifest:
    """
    Read ``<root>/pyproject.toml``.

    Returns an empty Manifest when the file is missing, unreadable or
    malformed.
    """
    path = Path(root) / MANIFEST_FILENAME
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        return Manifest.from_dict(data)
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
        logger.debug(f"No usable manifest at {path}: {e}")
        return Manifest()


async def read_manifest_async(root: Path | str) -> Manifest:
    """Read the manifest without blocking the event loop."""
    return await asyncio.to_thread(read_manifest, root)


def _table(data: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        return {}
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(v for v in value if isinstance(v, str))


def _requirements(value: Any) -> dict[str, str]:
    """Map a list of PEP 508 strings to name -> remainder of the requirement."""
    result: dict[str, str] = {}
    for requirement in _strings(value):
        name = requirement_name(requirement)
        if name is None or name in result:
            continue
        result[name] = requirement.strip()[len(name):].strip()
    return result


def _poetry_dependencies(table: Mapping[str, Any]) -> dict[str, str]:
    result: dict[str, str] = {}
    for name, spec in table.items():
        if name.lower() == "python":
            continue
        if isinstance(spec, Mapping):
            spec = spec.get("version", "")
        result[name] = spec if isinstance(spec, str) else ""
    return result


def _merge_new(target: dict[str, str], extra: dict[str, str]) -> None:
    for name, spec in extra.items():
        target.setdefault(name, spec)
