"""
Interactive console hosting and the ``repl`` launcher script.
"""

import code
from pathlib import Path
from typing import Any, Optional

REPL_SCRIPT = """#!/usr/bin/env sh
exec project-repl run . "$@"
"""


def new_namespace() -> dict[str, Any]:
    """Fresh globals for a console session, as code.InteractiveConsole would create."""
    return {"__name__": "__console__", "__doc__": None}


def launch_console(namespace: dict[str, Any], banner: Optional[str] = None) -> None:
    """Start an interactive console whose globals are the loaded namespace."""
    console = code.InteractiveConsole(locals=namespace)
    # Report is already printed; an empty banner suppresses Python's own
    console.interact(banner=banner or "", exitmsg="")


def make_script(path: Path | str = "repl") -> Path:
    """Write an executable shell script that starts a session in its directory."""
    path = Path(path)
    path.write_text(REPL_SCRIPT, encoding="utf-8")
    path.chmod(0o755)
    return path
