import sys
import textwrap
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch, tmp_path):
    """Keep the user's real ~/.config/project-repl out of every test."""
    home = tmp_path / "repl_home"
    monkeypatch.setenv("PROJECT_REPL_HOME", str(home))
    return home


@pytest.fixture
def write_tree(tmp_path):
    """Write {relative path: content} under a fresh project directory."""

    def _write(files: dict[str, str], root: Path | None = None) -> Path:
        root = root or tmp_path / "project"
        root.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content))
        return root

    return _write


@pytest.fixture
def clean_imports():
    """Undo sys.path and sys.modules changes made by real imports."""
    saved_path = list(sys.path)
    saved_modules = set(sys.modules)
    yield
    sys.path[:] = saved_path
    for name in set(sys.modules) - saved_modules:
        del sys.modules[name]
