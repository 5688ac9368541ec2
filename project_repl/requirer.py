"""
Requirer - import a project's dependencies and source files into a namespace.

A run:
1. Reads pyproject.toml and builds the ignore policy
2. Resolves the dependency list and the file list (concurrently)
3. Imports every dependency, in order, timing each one
4. Imports every source file, in order, timing each one; the project's main
   file is also aliased under the project name and its exports are copied
   to the top of the namespace
5. Returns a RunReport

Usage:
    from project_repl import ImportlibLoader, Requirer

    namespace = {}
    report = asyncio.run(Requirer(".", ImportlibLoader(".")).require(namespace))

Error handling contract:
- Loads run strictly one after another; dependencies always precede files
- Any loader exception aborts the run and propagates unchanged
- Values assigned before a failure stay in the namespace (no rollback)
"""

import asyncio
import logging
import time
from collections.abc import MutableMapping
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any, Optional, Union

from project_repl.config import ReplOptions
from project_repl.errors import NamespaceCollisionError
from project_repl.ignore import IgnorePolicy, build_ignore_policy
from project_repl.loader import (
    ImportlibLoader,
    LoadFn,
    Loader,
    as_load_function,
    exported_names,
    file_specifier,
    get_export,
)
from project_repl.manifest import Manifest, read_manifest_async
from project_repl.naming import identifier_for_file_path, identifier_for_module_name, strip_source_suffix
from project_repl.resolver import resolve_files, resolve_modules
from project_repl.schemas import LoadRecord, RunReport
from project_repl.walk import Lister, list_files

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunPlan:
    """What a run would import, resolved without importing anything."""

    manifest: Manifest
    policy: IgnorePolicy
    modules: list[str]
    files: list[str]

    @property
    def main_path(self) -> Optional[str]:
        if not self.manifest.main:
            return None
        return PurePosixPath(self.manifest.main.replace("\\", "/")).as_posix()


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class Requirer:
    """
    Loads one project into a caller-owned namespace.

    Args:
        root: Project directory (holds pyproject.toml)
        loader: Loader object or function mapping a specifier to a value
        options: Run options; defaults to ReplOptions()
        lister: Directory lister used to find source files
    """

    def __init__(
        self,
        root: Path | str,
        loader: Union[Loader, LoadFn],
        options: Optional[ReplOptions] = None,
        lister: Lister = list_files,
    ):
        self.root = Path(root)
        self.options = options or ReplOptions()
        self._load = as_load_function(loader)
        self._lister = lister

    async def plan(self) -> RunPlan:
        """Resolve the dependency and file lists."""
        manifest = await read_manifest_async(self.root)
        policy = build_ignore_policy(manifest, self.options)

        async def _modules() -> list[str]:
            return resolve_modules(manifest, policy, self.options.include_dev_dependencies)

        modules, files = await asyncio.gather(
            _modules(),
            resolve_files(self.root, policy, self._lister),
        )
        return RunPlan(manifest=manifest, policy=policy, modules=modules, files=files)

    async def require(self, namespace: MutableMapping[str, Any]) -> RunReport:
        """
        Import everything into ``namespace`` and report the timings.

        Raises whatever the loader raises, and NamespaceCollisionError when
        ``on_collision="error"`` and two items share an identifier.
        """
        plan = await self.plan()
        manifest = plan.manifest
        report = RunReport(
            modules=plan.modules,
            files=plan.files,
            project_name=manifest.name,
            project_version=manifest.version,
        )
        owners: dict[str, str] = {}

        phase_start = time.perf_counter()
        for m in plan.modules:
            record = await self._load_one(m, m, identifier_for_module_name(m), namespace, owners)
            report.module_durations[m] = record.duration_ms
            report.records.append(record)
        report.modules_total_ms = _elapsed_ms(phase_start)

        main_path = plan.main_path
        phase_start = time.perf_counter()
        for f in plan.files:
            f_no_suffix = strip_source_suffix(f)
            record = await self._load_one(
                f, file_specifier(f_no_suffix), identifier_for_file_path(f), namespace, owners
            )
            report.file_durations[f_no_suffix] = record.duration_ms
            report.records.append(record)

            if f == main_path:
                self._expose_main(record, manifest, namespace, report, owners)
        report.files_total_ms = _elapsed_ms(phase_start)

        logger.info(
            f"Imported {len(report.modules)} modules and {len(report.files)} files "
            f"in {report.total_ms:.0f}ms"
        )
        return report

    async def _load_one(
        self,
        specifier: str,
        load_specifier: str,
        identifier: str,
        namespace: MutableMapping[str, Any],
        owners: dict[str, str],
    ) -> LoadRecord:
        self._check_collision(identifier, specifier, owners)

        start = time.perf_counter()
        value = await self._load(load_specifier)
        duration = _elapsed_ms(start)

        namespace[identifier] = value
        owners[identifier] = specifier
        logger.debug(f"{specifier} -> {identifier} ({duration:.1f}ms)")
        return LoadRecord(specifier=specifier, identifier=identifier, value=value, duration_ms=duration)

    def _expose_main(
        self,
        record: LoadRecord,
        manifest: Manifest,
        namespace: MutableMapping[str, Any],
        report: RunReport,
        owners: dict[str, str],
    ) -> None:
        """Bind the project-name alias and copy the main file's exports."""
        alias = identifier_for_module_name(manifest.name) if manifest.name else ""
        names = exported_names(record.value) if self.options.populate_namespace_with_main else []

        # All checks run before any binding
        for identifier in ([alias] if alias else []) + names:
            self._check_collision(identifier, record.specifier, owners)

        if alias:
            namespace[alias] = record.value
            owners[alias] = record.specifier
            report.main_identifier = alias

        if not self.options.populate_namespace_with_main:
            return
        for name in names:
            namespace[name] = get_export(record.value, name)
            owners[name] = record.specifier
        report.main_exports = names

    def _check_collision(self, identifier: str, specifier: str, owners: dict[str, str]) -> None:
        owner = owners.get(identifier)
        if self.options.on_collision == "error" and owner is not None and owner != specifier:
            raise NamespaceCollisionError(identifier, owner, specifier)


async def require_project(
    root: Path | str,
    namespace: MutableMapping[str, Any],
    options: Optional[ReplOptions] = None,
    loader: Union[Loader, LoadFn, None] = None,
) -> RunReport:
    """Load a project with the importlib loader unless another is given."""
    if loader is None:
        loader = ImportlibLoader(root)
    return await Requirer(root, loader, options).require(namespace)
