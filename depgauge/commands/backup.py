"""Backup commands for depgauge.

``depgauge backups`` lists the backups created by ``depgauge update``
and can prune old ones; ``depgauge restore`` copies a backup's
``package.json`` and ``package-lock.json`` back into the project.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List

import click

from depgauge.core import BackupManager
from depgauge.commands import report_error
from depgauge.exceptions import DepGaugeError
from depgauge.context import pass_context, DepGaugeContext
from depgauge.utils import get_logger, print_error, print_info, print_success, print_table

logger = get_logger("commands.backup")


@click.command()
@click.argument(
    "backup_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@pass_context
def restore(ctx: DepGaugeContext, backup_dir: Path, path: Path) -> None:
    """Restore package.json and package-lock.json from BACKUP_DIR.

    PATH is the project directory (default: current directory). Run
    ``npm install`` afterwards to bring node_modules back in line.
    """
    try:
        manager = BackupManager(path)
        if not manager.has_changes_since_backup(backup_dir):
            print_info("Project files already match the backup")
        record = manager.restore_backup(backup_dir)
        print_success(f"Restored backup from {record.timestamp}")
        print_info('Run "npm install" to sync node_modules')
        sys.exit(0)

    except DepGaugeError as e:
        report_error(e)
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in restore command")
        sys.exit(1)


@click.command()
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--prune",
    is_flag=True,
    help="Delete all but the most recent backups (see backup_keep).",
)
@pass_context
def backups(ctx: DepGaugeContext, path: Path, prune: bool) -> None:
    """List backups of a project, newest first.

    PATH is the project directory (default: current directory).
    """
    try:
        manager = BackupManager(path)

        if prune:
            removed = manager.cleanup_backups(ctx.config.backup_keep)
            print_success(f"Removed {len(removed)} old backup(s)")

        records = manager.list_backups()
        if not records:
            print_info("No backups found")
            sys.exit(0)

        data: List[Dict[str, Any]] = [
            {
                "Backup": Path(record.path).name,
                "Created": record.timestamp,
                "package.json": (record.manifest_hash or "-")[:12],
                "package-lock.json": (record.lockfile_hash or "-")[:12],
            }
            for record in records
        ]
        print_table(
            data,
            title="Backups",
            column_styles={"Backup": {"style": "bold cyan", "no_wrap": True}},
        )
        sys.exit(0)

    except DepGaugeError as e:
        report_error(e)
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in backups command")
        sys.exit(1)
