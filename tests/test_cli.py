import json
import os

import pytest
import yaml
from click.testing import CliRunner

from project_repl.cli import main
from project_repl.repl import REPL_SCRIPT


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def project(write_tree):
    return write_tree({
        "pyproject.toml": """
            [project]
            name = "cli-demo"
            version = "2.0.0"
            dependencies = ["json"]

            [project.optional-dependencies]
            dev = ["textwrap"]

            [tool.project-repl]
            main = "cli_demo_pkg/__init__.py"
        """,
        "cli_demo_pkg/__init__.py": """
            __all__ = ["hello"]

            def hello():
                return "hello"
        """,
        "cli_demo_pkg/extra.py": "",
        "cli_demo_pkg/extra_test.py": "",
    })


def test_version(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "project-repl" in result.output


def test_list_command(runner, project):
    result = runner.invoke(main, ["list", str(project)])
    assert result.exit_code == 0
    assert "modules (1):" in result.output
    assert "  json" in result.output
    assert "  cli_demo_pkg/__init__.py  (main)" in result.output
    assert "extra_test" not in result.output


def test_list_command_json_with_flags(runner, project):
    result = runner.invoke(main, ["list", str(project), "--dev", "--ignore-file", "extra.py", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data == {
        "modules": ["json", "textwrap"],
        "files": ["cli_demo_pkg/__init__.py"],
        "main": "cli_demo_pkg/__init__.py",
    }


def test_run_command_json(runner, project, clean_imports):
    result = runner.invoke(main, ["run", str(project), "--no-interact", "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["modules"] == ["json"]
    assert data["files"] == ["cli_demo_pkg/__init__.py", "cli_demo_pkg/extra.py"]
    assert data["main_exports"] == ["hello"]
    assert data["main_identifier"] == "cliDemo"


def test_run_command_report(runner, project, clean_imports):
    result = runner.invoke(main, ["run", str(project), "--no-interact"])
    assert result.exit_code == 0, result.output
    assert "// cli-demo v2.0.0" in result.output
    assert "1 modules and 2 files imported" in result.output
    assert "hello" in result.output


def test_run_command_failure_exits_1(runner, write_tree, clean_imports):
    root = write_tree({"broken_cli_mod.py": "raise ValueError('bad module')\n"})
    result = runner.invoke(main, ["run", str(root), "--no-interact"])
    assert result.exit_code == 1
    assert "ValueError: bad module" in result.output


def test_run_opens_console(runner, project, clean_imports, monkeypatch):
    captured = {}
    monkeypatch.setattr(
        "project_repl.repl.launch_console",
        lambda namespace, banner=None: captured.update(namespace),
    )
    result = runner.invoke(main, ["run", str(project)])
    assert result.exit_code == 0, result.output
    assert captured["hello"]() == "hello"
    assert "cliDemoPkg_extra" not in captured
    assert "cli_demo_pkg_extra" in captured


def test_broken_config_reported(runner, isolated_home, project):
    isolated_home.mkdir()
    (isolated_home / "config.yaml").write_text("bogus_key: 1\n")
    result = runner.invoke(main, ["list", str(project)])
    assert result.exit_code == 1
    assert "Config not loaded" in result.output


def test_init_command_creates_config(runner, isolated_home):
    result = runner.invoke(main, ["init"])
    assert result.exit_code == 0
    assert "Initialized project-repl config" in result.output

    cfg = yaml.safe_load((isolated_home / "config.yaml").read_text())
    assert cfg["on_collision"] == "overwrite"


def test_init_does_not_overwrite_without_force(runner, isolated_home):
    isolated_home.mkdir(parents=True)
    (isolated_home / "config.yaml").write_text("existing: true")

    result = runner.invoke(main, ["init"])
    assert result.exit_code == 1
    assert "Config already exists" in result.output
    assert (isolated_home / "config.yaml").read_text() == "existing: true"


def test_init_force_overwrites(runner, isolated_home):
    isolated_home.mkdir(parents=True)
    (isolated_home / "config.yaml").write_text("existing: true")

    result = runner.invoke(main, ["init", "--force"])
    assert result.exit_code == 0
    cfg = yaml.safe_load((isolated_home / "config.yaml").read_text())
    assert "include_dev_dependencies" in cfg


def test_make_script(runner, tmp_path):
    target = tmp_path / "repl"
    result = runner.invoke(main, ["make-script", str(target)])
    assert result.exit_code == 0
    assert target.read_text() == REPL_SCRIPT
    assert os.access(target, os.X_OK)

    again = runner.invoke(main, ["make-script", str(target)])
    assert again.exit_code == 1
    assert "already exists" in again.output
