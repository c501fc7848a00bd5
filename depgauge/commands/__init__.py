"""CLI subcommands for depgauge."""

from __future__ import annotations

from depgauge.exceptions import DepGaugeError
from depgauge.utils.logger import get_logger
from depgauge.utils.console import print_error, print_suggestions

logger = get_logger("commands")


def report_error(exc: DepGaugeError) -> None:
    """Print a depgauge error with its remediation hints."""
    print_error(str(exc))
    print_suggestions(exc.suggestions)
    logger.debug("%s details: %s", type(exc).__name__, exc.details or "<none>")
