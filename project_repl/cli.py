"""
CLI interface for project-repl.

Provides commands to load a project into an interactive console, preview
what would be loaded, and set up the user config and launcher script.
"""


import asyncio
import json
import logging
from pathlib import Path

import click

from project_repl import __version__

logger = logging.getLogger(__name__)

PROJECT_DIR = click.Path(exists=True, file_okay=False, path_type=Path)


@click.group()
@click.version_option(version=__version__, prog_name="project-repl")
@click.pass_context
def main(ctx):
    """
    project-repl - Import a project and its dependencies into a REPL.
    """
    from project_repl.config import load_config
    from project_repl.errors import ConfigError

    ctx.ensure_object(dict)
    try:
        ctx.obj["options"] = load_config()
    except ConfigError as e:
        # init must still work with a broken config; other commands check
        ctx.obj["config_error"] = str(e)


def _options(ctx, **overrides):
    """User config merged with command-line overrides."""
    if "options" not in ctx.obj:
        click.echo(f"✗ Config not loaded: {ctx.obj.get('config_error', 'Unknown error')}", err=True)
        click.echo("Run 'project-repl init --force' to write a fresh configuration file.", err=True)
        raise SystemExit(1)
    cleaned = {k: (v or None) if isinstance(v, tuple) else v for k, v in overrides.items()}
    return ctx.obj["options"].merged(**cleaned)


def _ignore_options(f):
    f = click.option("--ignore-glob", "ignore_globs", multiple=True, help="Skip paths matching this pattern (repeatable)")(f)
    f = click.option("--ignore-module", "ignore_modules", multiple=True, help="Skip this dependency (repeatable)")(f)
    f = click.option("--ignore-file", "ignore_files", multiple=True, help="Skip this file, directory or relative path (repeatable)")(f)
    f = click.option("--dev/--no-dev", "include_dev", default=None, help="Also import development dependencies")(f)
    return f


@main.command("run")
@click.argument("directory", default=".", type=PROJECT_DIR)
@_ignore_options
@click.option("--no-main-exports", is_flag=True, help="Don't copy the main file's exports into the namespace")
@click.option("--strict-names", is_flag=True, help="Fail when two items mangle to the same name")
@click.option("--interact/--no-interact", default=True, show_default=True, help="Open a console after loading")
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Log every import")
@click.pass_context
def run(ctx, directory: Path, include_dev, ignore_files, ignore_modules, ignore_globs,
        no_main_exports: bool, strict_names: bool, interact: bool, as_json: bool, verbose: bool):
    """
    Import DIRECTORY's dependencies and source files, then open a console.

    Examples:

        project-repl run

        project-repl run path/to/project --dev

        project-repl run --ignore-file migrations --no-interact
    """
    from project_repl.loader import ImportlibLoader
    from project_repl.repl import launch_console, new_namespace
    from project_repl.report import render_report
    from project_repl.requirer import Requirer
    from project_repl.utils import setup_logging

    options = _options(
        ctx,
        include_dev_dependencies=include_dev,
        ignore_files=ignore_files,
        ignore_modules=ignore_modules,
        ignore_globs=ignore_globs,
        populate_namespace_with_main=False if no_main_exports else None,
        on_collision="error" if strict_names else None,
    )
    setup_logging("DEBUG" if verbose else options.log_level)

    namespace = new_namespace()
    requirer = Requirer(directory, ImportlibLoader(directory), options)
    try:
        report = asyncio.run(requirer.require(namespace))
    except Exception as e:
        logger.debug("Load failed", exc_info=True)
        click.echo(f"✗ Failed to load {directory}: {type(e).__name__}: {e}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        render_report(report, directory, options)

    if interact:
        launch_console(namespace)


@main.command("list")
@click.argument("directory", default=".", type=PROJECT_DIR)
@_ignore_options
@click.option("--json", "as_json", is_flag=True, help="Print the lists as JSON")
@click.pass_context
def list_items(ctx, directory: Path, include_dev, ignore_files, ignore_modules, ignore_globs, as_json: bool):
    """Show what `run` would import, without importing anything."""
    from project_repl.loader import ImportlibLoader
    from project_repl.requirer import Requirer

    options = _options(
        ctx,
        include_dev_dependencies=include_dev,
        ignore_files=ignore_files,
        ignore_modules=ignore_modules,
        ignore_globs=ignore_globs,
    )

    # plan() never calls the loader
    plan = asyncio.run(Requirer(directory, ImportlibLoader(directory), options).plan())

    if as_json:
        click.echo(json.dumps({"modules": plan.modules, "files": plan.files, "main": plan.main_path}, indent=2))
        return

    click.echo(f"modules ({len(plan.modules)}):")
    for m in plan.modules:
        click.echo(f"  {m}")
    click.echo(f"files ({len(plan.files)}):")
    for f in plan.files:
        marker = "  (main)" if f == plan.main_path else ""
        click.echo(f"  {f}{marker}")


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize project-repl user configuration."""
    from project_repl.config import default_config_dict, get_repl_home
    import yaml

    home = get_repl_home()
    if not home.exists():
        home.mkdir(parents=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    cfg_path.write_text(yaml.safe_dump(default_config_dict(), sort_keys=False))
    click.echo(f"Initialized project-repl config at {cfg_path}")


@main.command("make-script")
@click.argument("file", default="repl", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def make_script_cmd(file: Path, force: bool):
    """Write an executable FILE (default: ./repl) that starts a session."""
    from project_repl.repl import make_script

    if file.exists() and not force:
        click.echo(f"{file} already exists. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    make_script(file)
    click.echo(f"✓ Wrote {file}")


if __name__ == "__main__":
    main()
