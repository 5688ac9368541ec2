"""Tests for project_repl.ignore policy merging."""

from project_repl.config import ReplOptions
from project_repl.ignore import (
    BUILTIN_IGNORED_FILES,
    IgnorePolicy,
    build_ignore_policy,
    canonical_module_name,
)
from project_repl.manifest import IgnoreConfig, Manifest


def _manifest(**ignore) -> Manifest:
    return Manifest(ignore=IgnoreConfig(**ignore))


class TestBuiltins:

    def test_defaults(self):
        policy = build_ignore_policy(Manifest(), ReplOptions())
        assert "__tests__" in policy.files
        assert set(BUILTIN_IGNORED_FILES) <= policy.files
        assert policy.ignores_module("project-repl")
        assert policy.path_patterns == ()

    def test_tool_ignored_under_any_spelling(self):
        policy = build_ignore_policy(Manifest(), ReplOptions())
        assert policy.ignores_module("Project_Repl")
        assert policy.ignores_module("project.repl")


class TestLayers:

    def test_manifest_entries_added(self):
        policy = build_ignore_policy(
            _manifest(files=("migrations",), modules=("uvloop",), path_patterns=("scripts/*",)),
            ReplOptions(),
        )
        assert "migrations" in policy.files
        assert policy.ignores_module("uvloop")
        assert policy.path_patterns == ("scripts/*",)

    def test_caller_entries_added(self):
        policy = build_ignore_policy(
            _manifest(files=("migrations",)),
            ReplOptions(ignore_files={"docs"}, ignore_modules=["boto3"]),
        )
        assert {"migrations", "docs"} <= policy.files
        assert policy.ignores_module("boto3")

    def test_caller_can_re_enable_manifest_entry(self):
        policy = build_ignore_policy(
            _manifest(files=("migrations",), modules=("uvloop",)),
            ReplOptions(ignore_files={"migrations": False}, ignore_modules={"UVLoop": False}),
        )
        assert "migrations" not in policy.files
        assert not policy.ignores_module("uvloop")

    def test_caller_can_re_enable_builtin(self):
        policy = build_ignore_policy(Manifest(), ReplOptions(ignore_files={"__tests__": False}))
        assert "__tests__" not in policy.files

    def test_caller_globs_follow_manifest_patterns(self):
        policy = build_ignore_policy(
            _manifest(path_patterns=("a/*",)),
            ReplOptions(ignore_globs=["b/*"]),
        )
        assert policy.path_patterns == ("a/*", "b/*")


def test_policy_is_immutable():
    policy = IgnorePolicy(files=frozenset({"x"}))
    assert isinstance(policy.files, frozenset)
    assert hash(policy) == hash(IgnorePolicy(files=frozenset({"x"})))


def test_canonical_module_name():
    assert canonical_module_name("Foo__Bar.baz") == "foo-bar-baz"
