"""
Human-readable rendering of a RunReport.

    // my-app v1.2.0 // python 3.12.1
    3 modules and 12 files imported in 412ms
    requests(201ms) yaml(35ms) leftPad
    my_app/cli(58ms) my_app/__init__ my_app/util
    main run_app
"""

import platform
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.text import Text

from project_repl import utils
from project_repl.config import ReplOptions
from project_repl.schemas import RunReport


def format_durations(durations: dict[str, float], threshold: float) -> Text:
    """
    Names sorted slowest first, with '(Nms)' for those at or above threshold.
    """
    ordered = sorted(durations.items(), key=lambda item: item[1], reverse=True)
    text = Text()
    for i, (name, ms) in enumerate(ordered):
        if i:
            text.append(" ")
        if ms >= threshold:
            text.append(name)
            text.append(f"({round(ms)}ms)", style="yellow")
        else:
            text.append(name, style="dim")
    return text


def banner(report: RunReport, root: Path) -> str:
    name = report.project_name or Path(root).resolve().name
    version = report.project_version or ""
    return f"// {name} v{version} // python {platform.python_version()}"


def render_report(
    report: RunReport,
    root: Path,
    options: ReplOptions,
    console: Optional[Console] = None,
) -> None:
    """Print the report the way a REPL session starts."""
    console = console or utils.console

    console.print(banner(report, root), style="bold", highlight=False)
    console.print(
        f"{len(report.module_durations)} modules and {len(report.file_durations)} files "
        f"imported in {round(report.total_ms)}ms",
        highlight=False,
    )
    console.print(format_durations(report.module_durations, options.modules_threshold))
    console.print(format_durations(report.file_durations, options.files_threshold))
    if report.main_exports:
        console.print(" ".join(report.main_exports), style="cyan", highlight=False)
    if options.startup_message:
        console.print(options.startup_message, highlight=False)
