"""
Result records produced by a run.

LoadRecord: one per imported dependency or file, never mutated.
RunReport: the aggregate returned by Requirer.require().
"""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class LoadRecord:
    """
    One imported item.

    Attributes:
        specifier: Dependency name or root-relative file path
        identifier: Mangled name the value was stored under
        value: The imported value
        duration_ms: Wall-clock import time in milliseconds
    """
    specifier: str
    identifier: str
    value: Any
    duration_ms: float


@dataclass
class RunReport:
    """
    Everything a run imported and how long it took.

    module_durations is keyed by dependency name, file_durations by the
    file path without its suffix. Totals are measured over each whole phase.
    """
    modules: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    module_durations: dict[str, float] = field(default_factory=dict)
    file_durations: dict[str, float] = field(default_factory=dict)
    modules_total_ms: float = 0.0
    files_total_ms: float = 0.0
    main_exports: list[str] = field(default_factory=list)
    main_identifier: Optional[str] = None
    records: list[LoadRecord] = field(default_factory=list)
    project_name: Optional[str] = None
    project_version: Optional[str] = None

    @property
    def total_ms(self) -> float:
        return self.modules_total_ms + self.files_total_ms

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output (values are left out)."""
        result: dict[str, Any] = {
            "modules": self.modules,
            "files": self.files,
            "module_durations": self.module_durations,
            "file_durations": self.file_durations,
            "modules_total_ms": self.modules_total_ms,
            "files_total_ms": self.files_total_ms,
            "main_exports": self.main_exports,
        }
        if self.main_identifier is not None:
            result["main_identifier"] = self.main_identifier
        if self.project_name is not None:
            result["project_name"] = self.project_name
        if self.project_version is not None:
            result["project_version"] = self.project_version
        return result
