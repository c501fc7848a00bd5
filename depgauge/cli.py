"""
Command-line interface for depgauge.

This module provides the main CLI entry point and handles global options,
configuration loading, and command registration.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click

from depgauge.config import load_config
from depgauge.__version__ import __version__
from depgauge.context import DepGaugeContext
from depgauge.exceptions import ConfigError, DepGaugeError
from depgauge.utils.logger import get_logger, level_for_verbosity, setup_logging
from depgauge.utils.console import (
    print_error,
    print_suggestions,
    print_warning,
    reconfigure_console,
)

logger = get_logger("cli")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file.",
    envvar="DEPGAUGE_CONFIG",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv).",
)
@click.option(
    "--color/--no-color",
    default=True,
    help="Enable or disable colored output.",
    envvar="DEPGAUGE_COLOR",
)
@click.version_option(
    version=__version__,
    prog_name="depgauge",
    message="%(prog)s %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """depgauge — upgrade-risk analysis for npm projects.

    \b
    Available commands:
      depgauge analyze             Classify pending upgrades
      depgauge update              Plan and apply upgrades
      depgauge backups             List (and prune) update backups
      depgauge restore             Restore a backup

    \b
    Examples:
      depgauge analyze
      depgauge analyze --format json
      depgauge update --dry-run
      depgauge -v update --safe-only -y

    Use ``depgauge COMMAND --help`` for command-specific options.
    """
    level = level_for_verbosity(verbose)
    setup_logging(level=level)
    logger.debug("Logging initialized at %s level", logging.getLevelName(level))

    try:
        loaded_config = load_config(config)
    except ConfigError as exc:
        print_error(str(exc))
        print_suggestions(exc.suggestions)
        raise SystemExit(1) from exc

    gauge_ctx = DepGaugeContext()
    gauge_ctx.config_path = config or loaded_config.source_path
    gauge_ctx.color = color
    gauge_ctx.verbose = verbose
    gauge_ctx.config = loaded_config
    ctx.obj = gauge_ctx

    if color:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()

    logger.debug("depgauge v%s", __version__)
    logger.debug("Config path: %s", gauge_ctx.config_path)
    if loaded_config.source_path:
        logger.debug("Loaded configuration: %s", loaded_config.to_log_dict())
    logger.debug("Verbosity: %s | Color: %s", verbose, color)


from depgauge.commands.analyze import analyze  # noqa: E402
from depgauge.commands.update import update  # noqa: E402
from depgauge.commands.backup import backups, restore  # noqa: E402

cli.add_command(analyze)
cli.add_command(update)
cli.add_command(backups)
cli.add_command(restore)


def main() -> int:
    """Main entry point for the depgauge CLI.

    Returns:
        Exit code:
            0   Success
            1   Unhandled or application error
            2   Usage error (Click)
            130 Interrupted by user (Ctrl+C)
    """
    try:
        result = cli(standalone_mode=False)
        return result if isinstance(result, int) else 0

    except click.ClickException as exc:
        exc.show()
        return exc.exit_code

    except click.exceptions.Abort:
        print_warning("\nOperation cancelled by user")
        return 130

    except DepGaugeError as exc:
        print_error(str(exc))
        print_suggestions(exc.suggestions)
        logger.debug(
            "DepGaugeError details: %s",
            exc.details or "<none>",
            exc_info=True,
        )
        return 1

    except KeyboardInterrupt:
        print_warning("\nOperation cancelled by user")
        return 130

    except Exception as exc:
        print_error(f"Unexpected error: {exc}")
        logger.exception("Unhandled exception in CLI")
        return 1


if __name__ == "__main__":
    sys.exit(main())
