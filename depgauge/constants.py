"""
Centralized constants for depgauge.

This module defines immutable configuration values used across depgauge,
including registry settings, project file names, update workflow tuning
and logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Tuple

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "depgauge/{version}"

# ---------------------------------------------------------------------------
# npm registry
# ---------------------------------------------------------------------------

#: Base URL of the npm registry.
DEFAULT_REGISTRY_URL: Final[str] = "https://registry.npmjs.org"

#: Endpoint returning the manifest of the ``latest`` dist-tag.
REGISTRY_LATEST_PATH: Final[str] = "{registry}/{package}/latest"

#: Sentinel stored when the latest version could not be resolved.
UNKNOWN_VERSION: Final[str] = "unknown"

#: Seconds a resolved latest version stays valid in the version cache.
DEFAULT_CACHE_TTL: Final[int] = 5 * 60

#: Lower and upper bounds for in-flight registry lookups per batch.
MIN_CONCURRENCY: Final[int] = 3
MAX_CONCURRENCY: Final[int] = 15

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds for a single registry request.
DEFAULT_TIMEOUT: Final[int] = 10

#: Maximum number of retries for failed HTTP requests.
DEFAULT_MAX_RETRIES: Final[int] = 3

# ---------------------------------------------------------------------------
# Project files
# ---------------------------------------------------------------------------

MANIFEST_FILE: Final[str] = "package.json"
LOCKFILE_FILE: Final[str] = "package-lock.json"

#: Install-path segment that marks a nested package in the lockfile.
NESTING_MARKER: Final[str] = "node_modules/"

#: Maximum allowed file size (in bytes) when reading project files.
MAX_FILE_SIZE: Final[int] = 50 * 1024 * 1024  # 50 MB

# ---------------------------------------------------------------------------
# Backups
# ---------------------------------------------------------------------------

BACKUP_DIR_PREFIX: Final[str] = ".depgauge-backup-"
BACKUP_METADATA_FILE: Final[str] = "backup-info.json"
BACKUP_TIMESTAMP_FORMAT: Final[str] = "%Y%m%d_%H%M%S_%f"

#: Number of backups kept after an update run.
DEFAULT_BACKUP_KEEP: Final[int] = 5

# ---------------------------------------------------------------------------
# Update workflow
# ---------------------------------------------------------------------------

#: Rough number of seconds needed to apply one package update.
SECONDS_PER_PACKAGE: Final[int] = 30

#: Per-phase estimates used when ordering an update plan.
PHASE_SECONDS_SAFE: Final[int] = 30
PHASE_SECONDS_MAJOR: Final[int] = 60
PHASE_SECONDS_BLOCKED: Final[int] = 90

#: Timeouts (seconds) for external package-manager invocations.
NPM_INSTALL_TIMEOUT: Final[int] = 120
NPM_TEST_TIMEOUT: Final[int] = 60
GIT_TIMEOUT: Final[int] = 15

#: Output fragments that indicate a failing test run even on exit code 0.
TEST_FAILURE_MARKERS: Final[Tuple[str, ...]] = (
    "FAIL",
    "Failed Tests",
    "AssertionError",
    "Test failed",
    "× failed",
)

NO_TEST_SCRIPT_MESSAGE: Final[str] = "No test script found - skipping tests"

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
