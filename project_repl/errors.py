"""
Error classes for project-repl.

Only configuration and namespace problems get their own types. Failures raised
while importing a dependency or a project file are NOT wrapped: they propagate
unchanged to whoever started the run, so the traceback points at the code that
actually broke.

Error handling contract:
- Manifest problems never raise (an unreadable manifest is an empty manifest)
- Loader errors propagate unchanged and abort the run
- Directory traversal errors (OSError) propagate unchanged
"""


class ProjectReplError(Exception):
    """Base exception for project-repl."""
    pass


class ConfigError(ProjectReplError):
    """
    Configuration validation error.

    Raised for an invalid user config file (bad YAML, unknown keys,
    wrong value types) or an invalid option value passed by a caller.
    """
    pass


class NamespaceCollisionError(ProjectReplError):
    """
    Two loaded items mangled to the same identifier.

    Only raised when the run uses ``on_collision="error"``. The default
    policy is last-write-wins. Loaded dependencies and files, the project
    alias for the main file, and the main file's copied exports all own
    their identifiers; keys already in the caller's namespace do not.
    """

    def __init__(self, identifier: str, first: str, second: str):
        self.identifier = identifier
        self.first = first
        self.second = second
        super().__init__(
            f"Identifier '{identifier}' for '{second}' is already taken by '{first}'"
        )
