from pathlib import Path

import pytest
import yaml

from project_repl.config import (
    ReplOptions,
    default_config_dict,
    get_repl_home,
    ignore_flags,
    load_config,
)
from project_repl.errors import ConfigError


def test_get_repl_home_default(monkeypatch):
    monkeypatch.delenv("PROJECT_REPL_HOME", raising=False)
    assert get_repl_home() == Path("~/.config/project-repl").expanduser()


def test_get_repl_home_env_var(monkeypatch, tmp_path):
    custom_home = tmp_path / "custom_home"
    monkeypatch.setenv("PROJECT_REPL_HOME", str(custom_home))
    assert get_repl_home() == custom_home


def test_load_config_missing_file_gives_defaults():
    assert load_config() == ReplOptions()


def test_load_config_empty_file(isolated_home):
    isolated_home.mkdir()
    (isolated_home / "config.yaml").write_text("")
    assert load_config() == ReplOptions()


def test_load_config_valid(isolated_home):
    isolated_home.mkdir()
    (isolated_home / "config.yaml").write_text(yaml.dump({
        "include_dev_dependencies": True,
        "files_duration_threshold": 25,
        "ignore_files": ["migrations"],
        "ignore_modules": {"uvloop": True},
        "ignore_globs": ["scripts/*"],
        "startup_message": "hello",
    }))

    cfg = load_config()
    assert cfg.include_dev_dependencies is True
    assert cfg.files_threshold == 25
    assert cfg.ignore_files == {"migrations": True}
    assert cfg.ignore_modules == {"uvloop": True}
    assert cfg.ignore_globs == ("scripts/*",)
    assert cfg.startup_message == "hello"


def test_default_config_round_trips(isolated_home):
    isolated_home.mkdir()
    (isolated_home / "config.yaml").write_text(yaml.safe_dump(default_config_dict()))
    assert load_config() == ReplOptions()


def test_load_config_invalid_yaml(isolated_home):
    isolated_home.mkdir()
    (isolated_home / "config.yaml").write_text("ignore_files: [unclosed")
    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config()


def test_load_config_unknown_key(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("colour: blue\n")
    with pytest.raises(ConfigError, match="Unknown config keys: colour"):
        load_config(path)


def test_load_config_not_a_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config(path)


@pytest.mark.parametrize("data,message", [
    ({"include_dev_dependencies": "yes"}, "true or false"),
    ({"files_duration_threshold": "fast"}, "milliseconds"),
    ({"default_duration_threshold": True}, "milliseconds"),
    ({"ignore_globs": "*.py"}, "list of patterns"),
    ({"ignore_files": "tests"}, "list or mapping"),
    ({"on_collision": "merge"}, "on_collision"),
    ({"log_level": "LOUD"}, "log_level"),
])
def test_from_dict_rejects_bad_values(data, message):
    with pytest.raises(ConfigError, match=message):
        ReplOptions.from_dict(data)


class TestThresholds:

    def test_defaults(self):
        options = ReplOptions()
        assert options.modules_threshold == 0
        assert options.files_threshold == 10

    def test_default_threshold_fallback(self):
        options = ReplOptions(default_duration_threshold=5)
        assert options.modules_threshold == 5
        assert options.files_threshold == 5

    def test_specific_threshold_wins(self):
        options = ReplOptions(default_duration_threshold=5, files_duration_threshold=0)
        assert options.modules_threshold == 5
        assert options.files_threshold == 0


class TestMerged:

    def test_none_is_skipped(self):
        base = ReplOptions(include_dev_dependencies=True)
        assert base.merged(include_dev_dependencies=None) == base

    def test_scalar_replaced(self):
        merged = ReplOptions().merged(populate_namespace_with_main=False)
        assert merged.populate_namespace_with_main is False

    def test_ignore_mappings_overlay(self):
        base = ReplOptions(ignore_files={"a", "b"})
        merged = base.merged(ignore_files={"b": False, "c": True})
        assert merged.ignore_files == {"a": True, "b": False, "c": True}

    def test_globs_extend(self):
        merged = ReplOptions(ignore_globs=["x/*"]).merged(ignore_globs=("y/*",))
        assert merged.ignore_globs == ("x/*", "y/*")


def test_ignore_flags():
    assert ignore_flags(None) == {}
    assert ignore_flags({"a"}) == {"a": True}
    assert ignore_flags(["a", "b"]) == {"a": True, "b": True}
    assert ignore_flags({"a": False}) == {"a": False}
