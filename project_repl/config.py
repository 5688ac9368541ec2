"""
Configuration management for project-repl.

Options come from three layers, later layers winning:

1. Built-in defaults (the field defaults of ReplOptions)
2. The user config file, $PROJECT_REPL_HOME/config.yaml
   (default ~/.config/project-repl/config.yaml)
3. Caller overrides (CLI flags or keyword arguments)

The project's own pyproject.toml is merged separately, when the ignore policy
is built (see project_repl.ignore).
"""

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from project_repl.errors import ConfigError

COLLISION_POLICIES = ("overwrite", "error")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_MODULES_THRESHOLD = 0.0
DEFAULT_FILES_THRESHOLD = 10.0


def get_repl_home() -> Path:
    """Directory holding the user config file."""
    home = os.environ.get("PROJECT_REPL_HOME")
    if home:
        return Path(home).expanduser()
    return Path("~/.config/project-repl").expanduser()


def ignore_flags(value: Any) -> dict[str, bool]:
    """
    Normalize an ignore list into a name -> enabled mapping.

    Accepts a mapping (``{"tests": True, "__tests__": False}``) or any
    iterable of names, which are all enabled.
    """
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return {str(k): bool(v) for k, v in value.items()}
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ConfigError(f"Expected a list or mapping of names, got: {value!r}")
    return {str(v): True for v in value}


@dataclass(frozen=True)
class ReplOptions:
    """
    Caller-facing options for a run.

    Attributes:
        ignore_files: File/directory names or relative paths to skip.
            A False value re-enables a name ignored by an earlier layer.
        ignore_modules: Dependency names to skip, same mapping rules
        ignore_globs: Extra fnmatch patterns for paths to skip
        include_dev_dependencies: Also import development dependencies
        populate_namespace_with_main: Copy the main file's exports to the namespace
        modules_duration_threshold: Show module timings at or above this (ms)
        files_duration_threshold: Show file timings at or above this (ms)
        default_duration_threshold: Fallback for both thresholds (ms)
        startup_message: Printed after the report
        on_collision: "overwrite" (last write wins) or "error"
        log_level: Level for the project_repl logger
    """

    ignore_files: dict[str, bool] = field(default_factory=dict)
    ignore_modules: dict[str, bool] = field(default_factory=dict)
    ignore_globs: tuple[str, ...] = ()
    include_dev_dependencies: bool = False
    populate_namespace_with_main: bool = True
    modules_duration_threshold: Optional[float] = None
    files_duration_threshold: Optional[float] = None
    default_duration_threshold: Optional[float] = None
    startup_message: Optional[str] = None
    on_collision: str = "overwrite"
    log_level: str = "WARNING"

    def __post_init__(self):
        # Accept sets/lists from callers; store the normalized mapping
        object.__setattr__(self, "ignore_files", ignore_flags(self.ignore_files))
        object.__setattr__(self, "ignore_modules", ignore_flags(self.ignore_modules))
        object.__setattr__(self, "ignore_globs", tuple(self.ignore_globs))
        if self.on_collision not in COLLISION_POLICIES:
            raise ConfigError(
                f"on_collision must be one of {COLLISION_POLICIES}, got: {self.on_collision!r}"
            )
        if str(self.log_level).upper() not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {LOG_LEVELS}, got: {self.log_level!r}")

    @property
    def modules_threshold(self) -> float:
        if self.modules_duration_threshold is not None:
            return self.modules_duration_threshold
        if self.default_duration_threshold is not None:
            return self.default_duration_threshold
        return DEFAULT_MODULES_THRESHOLD

    @property
    def files_threshold(self) -> float:
        if self.files_duration_threshold is not None:
            return self.files_duration_threshold
        if self.default_duration_threshold is not None:
            return self.default_duration_threshold
        return DEFAULT_FILES_THRESHOLD

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ReplOptions":
        """Build options from a parsed config file, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

        for key in ("include_dev_dependencies", "populate_namespace_with_main"):
            if key in data and not isinstance(data[key], bool):
                raise ConfigError(f"'{key}' must be true or false")
        for key in ("modules_duration_threshold", "files_duration_threshold", "default_duration_threshold"):
            value = data.get(key)
            if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise ConfigError(f"'{key}' must be a number of milliseconds")

        values = dict(data)
        if values.get("ignore_globs") is None:
            values.pop("ignore_globs", None)
        elif isinstance(values["ignore_globs"], str):
            raise ConfigError("'ignore_globs' must be a list of patterns")
        return cls(**values)

    def merged(self, **overrides: Any) -> "ReplOptions":
        """
        Layer caller overrides on top of these options.

        None values are skipped. Ignore mappings are overlaid key by key
        and glob lists are extended, everything else is replaced.
        """
        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            if key in ("ignore_files", "ignore_modules"):
                changes[key] = {**getattr(self, key), **ignore_flags(value)}
            elif key == "ignore_globs":
                changes[key] = self.ignore_globs + tuple(value)
            else:
                changes[key] = value
        return replace(self, **changes)


def default_config_dict() -> dict[str, Any]:
    """Contents written by ``project-repl init``."""
    return {
        "include_dev_dependencies": False,
        "populate_namespace_with_main": True,
        "modules_duration_threshold": None,
        "files_duration_threshold": None,
        "default_duration_threshold": None,
        "startup_message": None,
        "ignore_files": [],
        "ignore_modules": [],
        "ignore_globs": [],
        "on_collision": "overwrite",
        "log_level": "WARNING",
    }


def load_config(config_path: Optional[Path] = None) -> ReplOptions:
    """
    Load user options from YAML.

    Args:
        config_path: Path to config file. Defaults to <home>/config.yaml

    Returns:
        ReplOptions (defaults when the file does not exist)

    Raises:
        ConfigError: If the file is not valid YAML or has invalid values
    """
    if config_path is None:
        config_path = get_repl_home() / "config.yaml"

    if not config_path.exists():
        return ReplOptions()

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {config_path}: {e}")

    if data is None:
        return ReplOptions()
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    return ReplOptions.from_dict({k: v for k, v in data.items()})
