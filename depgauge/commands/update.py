"""Update command implementation for depgauge.

Plans updates from a fresh analysis, shows the plan, and applies it
through ``npm install name@version``:

1. **Validate** the project (and warn about uncommitted changes).
2. **Back up** ``package.json`` and ``package-lock.json``.
3. **Test** with ``npm test`` (skipped when there is no test script).
4. **Install** each selected package; failures do not stop the batch.
5. **Re-validate** and **re-test**.

Nothing is rolled back automatically; the backup path is printed so a
failed run can be undone with ``depgauge restore``.

Typical usage::

    # Update everything that is not blocked
    $ depgauge update

    # Preview without touching the project
    $ depgauge update --dry-run

    # Only in-major updates for two packages, no prompt
    $ depgauge update --safe-only -p lodash -p express -y
"""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Tuple

import click

from depgauge.core import UpdateManager
from depgauge.commands import report_error
from depgauge.exceptions import DepGaugeError
from depgauge.context import pass_context, DepGaugeContext
from depgauge.models import UpdateCategory, UpdateOptions, UpdatePlan, UpdateResult
from depgauge.utils import (
    RichProgressSink,
    colorize_category,
    colorize_update_type,
    confirm,
    get_logger,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_table,
    print_warning,
)

logger = get_logger("commands.update")


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--packages",
    "-p",
    multiple=True,
    help="Update only specific packages (can be repeated).",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Validate and preview without installing anything.",
)
@click.option(
    "--safe-only",
    is_flag=True,
    help="Only plan updates within the current major version.",
)
@click.option(
    "--no-backup",
    is_flag=True,
    help="Do not back up package.json and package-lock.json first.",
)
@click.option(
    "--no-tests",
    is_flag=True,
    help="Do not run npm test before and after updating.",
)
@click.option(
    "--include-dev/--exclude-dev",
    default=True,
    help="Include dependencies declared only in devDependencies.",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompt.",
)
@pass_context
def update(
    ctx: DepGaugeContext,
    path: Path,
    packages: Tuple[str, ...],
    dry_run: bool,
    safe_only: bool,
    no_backup: bool,
    no_tests: bool,
    include_dev: bool,
    yes: bool,
) -> None:
    """Update dependencies of an npm project.

    PATH is the project directory (default: current directory). Blocked
    packages are reported but never installed.

    Exits 0 when the run succeeded (or there was nothing to do), 1 otherwise.
    """
    options = UpdateOptions(
        safe_only=safe_only,
        include_dev=include_dev,
        dry_run=dry_run,
        backup=not no_backup,
        run_tests=ctx.config.run_tests and not no_tests,
    )

    try:
        ok = asyncio.run(_update_async(ctx, path, list(packages), options, yes))
        sys.exit(0 if ok else 1)

    except DepGaugeError as e:
        report_error(e)
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in update command")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _update_async(
    ctx: DepGaugeContext,
    path: Path,
    package_filter: List[str],
    options: UpdateOptions,
    skip_confirm: bool,
) -> bool:
    """Plan, confirm and apply; return whether the run succeeded."""
    config = ctx.config
    manager = UpdateManager(
        path,
        cache=ctx.cache,
        registry_url=config.registry_url,
        timeout=config.request_timeout,
        max_retries=config.max_retries,
        backup_keep=config.backup_keep,
        progress=RichProgressSink(),
    )

    plan = await manager.preview_update(options)

    if not plan.packages:
        print_success("All dependencies are up to date!")
        return True

    _display_plan(plan, options.dry_run)

    selected = _select_packages(plan, package_filter)
    if not selected:
        print_warning("Nothing to update")
        return True

    if not options.dry_run and not skip_confirm:
        plural = "package" if len(selected) == 1 else "packages"
        if not confirm(f"\nUpdate {len(selected)} {plural}?", default=True):
            logger.info("Update cancelled by user")
            return True

    result = await manager.update(selected, options, plan=plan)
    _display_result(result, options.dry_run)
    return result.success


def _select_packages(plan: UpdatePlan, package_filter: List[str]) -> List[str]:
    """Names to update: the ``-p`` list, or every non-blocked planned update."""
    if package_filter:
        missing = [name for name in package_filter if plan.get(name) is None]
        if missing:
            print_warning(f"No planned update for: {', '.join(missing)}")
        return [name for name in package_filter if name not in missing]

    return [pkg.name for pkg in plan.packages if pkg.category is not UpdateCategory.BLOCKED]


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _display_plan(plan: UpdatePlan, dry_run: bool) -> None:
    title = "Update Plan (Dry Run)" if dry_run else "Update Plan"

    data: List[Dict[str, Any]] = []
    for phase in plan.phases:
        for pkg in phase.packages:
            data.append(
                {
                    "Package": pkg.name,
                    "Current": pkg.current_version,
                    "New Version": f"[bold green]{pkg.target_version}[/bold green]",
                    "Change": colorize_update_type(pkg.update_type),
                    "Category": colorize_category(pkg.category.value),
                    "Blocked By": pkg.blocker or "-",
                }
            )

    column_styles = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Current": {"justify": "center", "style": "dim"},
        "New Version": {"justify": "center"},
        "Change": {"justify": "center"},
        "Category": {"justify": "center"},
    }

    print_table(data, title=title, column_styles=column_styles)

    minutes = max(round(plan.estimated_time / 60), 1)
    print_info(f"{plan.total_packages} package(s), estimated time ~{minutes} min")
    for risk in plan.risks:
        print_warning(risk)


def _display_result(result: UpdateResult, dry_run: bool) -> None:
    console = get_raw_console()

    if result.backup_path:
        print_info(f"Backup created: {result.backup_path}")

    for warning in result.warnings:
        print_warning(warning)

    if dry_run and result.success:
        print_warning("\nDry run mode - no changes applied")
        if result.updated:
            console.print(f"Would update: {', '.join(result.updated)}")
        return

    if result.updated:
        print_success(f"Updated {len(result.updated)} package(s): {', '.join(result.updated)}")
    if result.blocked:
        print_warning(f"Skipped blocked package(s): {', '.join(result.blocked)}")
    if result.failed:
        print_error(f"Failed to update: {', '.join(result.failed)}")

    for error in result.errors:
        print_error(error)

    if not result.success and result.backup_path:
        console.print(f"\nRestore with: depgauge restore {result.backup_path}")
