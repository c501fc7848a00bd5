"""
Utility helpers for depgauge.

This package provides reusable utilities used across depgauge, including:

- Console output helpers (Rich-based)
- Logging configuration and retrieval
- Filesystem safety helpers
- Async HTTP client utilities
- npm version and range helpers
- Progress reporting

Only symbols listed in ``__all__`` are considered part of the public API.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Filesystem utilities
# ---------------------------------------------------------------------------

from depgauge.utils.filesystem import (
    copy_file,
    file_exists,
    file_sha256,
    remove_tree,
    safe_read_file,
    safe_write_file,
)

# ---------------------------------------------------------------------------
# Logging utilities
# ---------------------------------------------------------------------------

from depgauge.utils.logger import (
    disable_logging,
    get_logger,
    is_logging_configured,
    level_for_verbosity,
    setup_logging,
)

# ---------------------------------------------------------------------------
# Console utilities
# ---------------------------------------------------------------------------

from depgauge.utils.console import (
    colorize_category,
    colorize_update_type,
    confirm,
    get_raw_console,
    print_error,
    print_info,
    print_success,
    print_suggestions,
    print_table,
    print_warning,
    reconfigure_console,
)

# ---------------------------------------------------------------------------
# HTTP utilities
# ---------------------------------------------------------------------------

from depgauge.utils.http import HTTPClient

# ---------------------------------------------------------------------------
# Version utilities
# ---------------------------------------------------------------------------

from depgauge.utils.version_utils import (
    compare_versions,
    get_update_type,
    major_of,
    parse_range,
    parse_version,
    satisfies,
)

# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

from depgauge.utils.progress import ProgressSink, RichProgressSink

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    # Console
    "confirm",
    "print_info",
    "print_error",
    "print_table",
    "print_success",
    "print_warning",
    "print_suggestions",
    "get_raw_console",
    "reconfigure_console",
    "colorize_category",
    "colorize_update_type",
    # Logging
    "get_logger",
    "setup_logging",
    "disable_logging",
    "level_for_verbosity",
    "is_logging_configured",
    # Filesystem
    "copy_file",
    "file_exists",
    "file_sha256",
    "remove_tree",
    "safe_read_file",
    "safe_write_file",
    # HTTP
    "HTTPClient",
    # Version utilities
    "major_of",
    "satisfies",
    "parse_range",
    "parse_version",
    "get_update_type",
    "compare_versions",
    # Progress
    "ProgressSink",
    "RichProgressSink",
]
