"""
Loaders - turn a specifier into an imported value.

The orchestrator only knows the Loader contract: given a specifier, return
the loaded value or raise. Two kinds of specifier are passed:

- Dependency names as declared in pyproject.toml ("requests", "PyYAML")
- Root-relative file specifiers without suffix ("./my_app/cli")

ImportlibLoader is the real implementation. Tests pass plain functions.
"""

import importlib
import importlib.util
import inspect
import logging
import re
import sys
from collections.abc import Mapping
from importlib import metadata
from pathlib import Path
from typing import Any, Awaitable, Callable, Protocol, Union, runtime_checkable

from project_repl.ignore import canonical_module_name
from project_repl.naming import SOURCE_SUFFIX, identifier_for_file_path

logger = logging.getLogger(__name__)

FILE_PREFIX = "./"

# sys.modules prefix for files whose import name is taken by another module
SHADOWED_MODULE_PREFIX = "_project_repl_file_"


@runtime_checkable
class Loader(Protocol):
    """Anything with an async ``load(specifier)`` method."""

    async def load(self, specifier: str) -> Any:
        ...


LoadFn = Callable[[str], Union[Any, Awaitable[Any]]]


def as_load_function(loader: Union[Loader, LoadFn]) -> Callable[[str], Awaitable[Any]]:
    """Adapt a Loader object or a sync/async function to one async callable."""
    fn = loader.load if isinstance(loader, Loader) else loader

    async def load(specifier: str) -> Any:
        result = fn(specifier)
        if inspect.isawaitable(result):
            result = await result
        return result

    return load


def file_specifier(rel_path_without_suffix: str) -> str:
    return FILE_PREFIX + rel_path_without_suffix


def module_name_for_file(path: Path) -> tuple[str, Path]:
    """
    Dotted module name for a source file, plus the directory to import it from.

    Walks up through parent directories while they contain __init__.py, so
    ``root/pkg/sub/mod.py`` becomes ``("pkg.sub.mod", root)`` when pkg and
    pkg/sub are packages.
    """
    parts = [] if path.stem == "__init__" else [path.stem]
    base = path.parent
    while (base / "__init__.py").exists() and base.parent != base:
        parts.insert(0, base.name)
        base = base.parent
    return ".".join(parts), base


class ImportlibLoader:
    """
    Import dependencies and project files with importlib.

    File specifiers are resolved against the project root. The directory a
    file's top-level package lives in is added to sys.path before importing,
    so relative imports inside the project keep working.

    A file whose import name already belongs to a different module (a
    script with the same name in another directory, or one named after a
    stdlib module) is executed from its path under a private
    ``_project_repl_file_<identifier>`` name instead.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()
        self._import_names: dict[str, list[str]] | None = None

    async def load(self, specifier: str) -> Any:
        if specifier.startswith(FILE_PREFIX):
            return self.load_file(specifier[len(FILE_PREFIX):])
        return self.load_module(specifier)

    def load_file(self, rel_path: str) -> Any:
        path = (self.root / f"{rel_path}{SOURCE_SUFFIX}").resolve()
        if not path.is_file():
            raise ModuleNotFoundError(f"No source file at {path}", path=str(path))

        module_name, base = module_name_for_file(path)
        if not module_name:
            raise ModuleNotFoundError(f"Cannot derive a module name for {path}", path=str(path))

        # The name may already belong to another file (a same-named script in
        # a sibling directory) or to the standard library.
        top = module_name.partition(".")[0]
        cached = sys.modules.get(top)
        if cached is not None and not _is_from(cached, base / top):
            return self._load_by_path(path, rel_path)

        base_entry = str(base)
        if base_entry not in sys.path:
            sys.path.insert(0, base_entry)

        logger.debug(f"Importing {module_name} from {base}")
        module = importlib.import_module(module_name)
        if not _is_from(module, path):
            return self._load_by_path(path, rel_path)
        return module

    def _load_by_path(self, path: Path, rel_path: str) -> Any:
        """Execute a source file as a module registered under a private name."""
        name = f"{SHADOWED_MODULE_PREFIX}{identifier_for_file_path(rel_path)}"
        logger.debug(f"Importing {path} as {name}")

        spec = importlib.util.spec_from_file_location(name, path)
        if spec is None or spec.loader is None:
            raise ModuleNotFoundError(f"Cannot load {path}", path=str(path))
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            del sys.modules[name]
            raise
        return module

    def load_module(self, name: str) -> Any:
        import_name = self.import_name(name)
        logger.debug(f"Importing {import_name} for dependency {name}")
        return importlib.import_module(import_name)

    def import_name(self, distribution: str) -> str:
        """
        Top-level import name for a distribution name.

        Uses installed package metadata ("PyYAML" -> "yaml"), falling back
        to the distribution name with '-' and '.' turned into '_'.
        """
        fallback = re.sub(r"[-.]+", "_", distribution)
        candidates = self._distribution_modules().get(canonical_module_name(distribution), [])
        if not candidates:
            return fallback
        if fallback in candidates:
            return fallback
        if fallback.lower() in candidates:
            return fallback.lower()
        public = sorted(c for c in candidates if not c.startswith("_"))
        return public[0] if public else sorted(candidates)[0]

    def _distribution_modules(self) -> dict[str, list[str]]:
        if self._import_names is None:
            index: dict[str, list[str]] = {}
            for module, dists in metadata.packages_distributions().items():
                for dist in dists:
                    index.setdefault(canonical_module_name(dist), []).append(module)
            self._import_names = index
        return self._import_names


def _is_from(module: Any, location: Path) -> bool:
    """Whether ``module`` was loaded from a source file or package directory."""
    file = getattr(module, "__file__", None)
    if not file:
        return False
    origin = Path(file).resolve()
    return origin in (location, location / "__init__.py", location.with_suffix(SOURCE_SUFFIX))


def exported_names(value: Any) -> list[str]:
    """
    Names a value exports, as ``from value import *`` would see them.

    ``__all__`` when defined, the keys of a mapping, otherwise the public
    attributes in the value's ``__dict__``.
    """
    if isinstance(value, Mapping):
        return [k for k in value.keys() if isinstance(k, str)]

    declared = getattr(value, "__all__", None)
    if declared is not None:
        return [str(name) for name in declared]

    try:
        attributes = vars(value)
    except TypeError:
        return []
    return [name for name in attributes if not name.startswith("_")]


def get_export(value: Any, name: str) -> Any:
    if isinstance(value, Mapping):
        return value[name]
    return getattr(value, name)
