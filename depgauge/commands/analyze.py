"""Analyze command implementation for depgauge.

Loads ``package.json`` and ``package-lock.json``, resolves the latest
versions of the top-level dependencies (and of the installed packages
that could block them), and reports each dependency as safe to upgrade,
blocked by another installed package, or needing a major version jump.

Typical usage::

    # Rich tables for the project in the current directory
    $ depgauge analyze

    # Machine-readable JSON output
    $ depgauge analyze path/to/project --format json > report.json
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from pathlib import Path
from typing import Any, Dict, List

from depgauge.core import ProjectAnalyzer
from depgauge.commands import report_error
from depgauge.exceptions import DepGaugeError
from depgauge.context import pass_context, DepGaugeContext
from depgauge.models import AnalysisReport, ClassifiedDependency
from depgauge.utils import (
    RichProgressSink,
    colorize_update_type,
    get_logger,
    get_raw_console,
    get_update_type,
    print_error,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.analyze")


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@pass_context
def analyze(ctx: DepGaugeContext, path: Path, output_format: str) -> None:
    """Classify the dependencies of an npm project.

    PATH is the project directory (default: current directory).

    Exits 0 when every dependency is current, 1 when upgrades are
    available or an error occurred.
    """
    try:
        has_updates = asyncio.run(_analyze_async(ctx, path, output_format.lower()))
        sys.exit(1 if has_updates else 0)

    except DepGaugeError as e:
        report_error(e)
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in analyze command")
        sys.exit(1)


async def _analyze_async(ctx: DepGaugeContext, path: Path, output_format: str) -> bool:
    """Run the analysis and render it; return whether upgrades exist."""
    show_progress = output_format == "table"
    config = ctx.config

    analyzer = ProjectAnalyzer(
        path,
        cache=ctx.cache,
        registry_url=config.registry_url,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        progress=RichProgressSink() if show_progress else None,
    )

    logger.info("Analyzing %s", path)
    report = await analyzer.analyze()

    if output_format == "json":
        click.echo(json.dumps(report.to_json(), indent=2))
        return report.has_updates

    _display_report(report)
    return report.has_updates


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_report(report: AnalysisReport) -> None:
    if not report.all_dependencies:
        print_warning("No installed top-level dependencies found")
        return

    if report.safe:
        _display_bucket("Safe Updates", report.safe)
    if report.major_jump:
        _display_bucket("Major Version Updates", report.major_jump)
    if report.blocked:
        _display_bucket("Blocked Updates", report.blocked, show_blocker=True)

    console = get_raw_console()
    console.print(
        f"\n[bold]{len(report.all_dependencies)}[/bold] dependencies analyzed: "
        f"[green]{len(report.safe)} safe[/green], "
        f"[yellow]{len(report.major_jump)} major[/yellow], "
        f"[red]{len(report.blocked)} blocked[/red]"
    )

    unresolved = [dep.name for dep in report.all_dependencies if dep.lookup_failed]
    if unresolved:
        print_warning(f"Could not resolve latest version for: {', '.join(unresolved)}")

    if not report.has_updates:
        print_success("All dependencies are up to date!")


def _display_bucket(
    title: str,
    dependencies: List[ClassifiedDependency],
    *,
    show_blocker: bool = False,
) -> None:
    data: List[Dict[str, Any]] = []
    for dep in dependencies:
        row: Dict[str, Any] = {
            "Package": dep.name,
            "Requested": dep.requested_range or "-",
            "Current": dep.resolved_version,
            "Latest": dep.latest_version,
            "Update Type": colorize_update_type(
                get_update_type(dep.resolved_version, dep.latest_version)
            ),
        }
        if show_blocker:
            row["Blocked By"] = dep.blocker_name or "-"
        data.append(row)

    column_styles: Dict[str, Dict[str, Any]] = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Requested": {"justify": "center", "style": "dim"},
        "Current": {"justify": "center", "style": "dim"},
        "Latest": {"justify": "center", "style": "bold green"},
        "Update Type": {"justify": "center"},
        "Blocked By": {"style": "red"},
    }

    print_table(data, title=title, column_styles=column_styles)
