"""
project-repl - Import a project and its dependencies into a REPL.

Reads pyproject.toml, imports every declared dependency and every project
source file into one namespace, and reports how long each import took.
"""

__version__ = "0.1.0"


__all__ = [
    "ImportlibLoader",
    "Manifest",
    "ReplOptions",
    "Requirer",
    "RunReport",
    "identifier_for_file_path",
    "identifier_for_module_name",
    "load_config",
    "require_project",
]

from .config import ReplOptions, load_config
from .loader import ImportlibLoader
from .manifest import Manifest
from .naming import identifier_for_file_path, identifier_for_module_name
from .requirer import Requirer, require_project
from .schemas import RunReport
