"""
Custom exception hierarchy for depgauge.

All exceptions inherit from :class:`DepGaugeError` and support optional
structured metadata via the ``details`` attribute. Every class also
declares a :class:`ErrorKind` and a short list of remediation
``suggestions`` so the CLI can print kind-specific hints without
inspecting messages.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, List, Mapping, MutableMapping, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from depgauge.models.update import ValidationIssue


class ErrorKind(str, Enum):
    """Fixed set of failure kinds surfaced to callers."""

    MALFORMED_INPUT = "malformed_input"
    FILE_ACCESS = "file_access"
    RESOLUTION = "resolution"
    VALIDATION = "validation"
    APPLY = "apply"
    RESTORE = "restore"
    CONFIG = "config"
    INVALID_PROJECT = "invalid_project"
    INTERNAL = "internal"


class DepGaugeError(Exception):
    """Base exception for all depgauge errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    suggestions: Tuple[str, ...] = (
        "Run the command again with -vv for more details",
    )

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        # Internally normalize to a mutable dict
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


def _truncate(text: str, max_length: int = 200) -> str:
    """Truncate long text for safe logging or error reporting."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------


class InvalidProjectError(DepGaugeError):
    """Raised when a directory does not contain an npm project."""

    kind = ErrorKind.INVALID_PROJECT
    suggestions = (
        "Run the command inside an npm project directory",
        "Ensure both package.json and package-lock.json exist",
        'Run "npm install" to generate package-lock.json if it is missing',
    )

    def __init__(self, directory: str) -> None:
        super().__init__(
            f"No npm project found in: {directory}",
            {"directory": directory},
        )
        self.directory = directory


class MalformedInputError(DepGaugeError):
    """Raised when a manifest or lockfile cannot be decoded.

    Args:
        message: Error description.
        file_path: File being decoded, if known.
        entry: Lockfile key or manifest field that failed validation.
    """

    kind = ErrorKind.MALFORMED_INPUT

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        entry: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)
        _add_if(details, "entry", entry)

        super().__init__(message, details)

        self.file_path = file_path
        self.entry = entry


class MalformedManifestError(MalformedInputError):
    """Raised when ``package.json`` is not valid or has the wrong shape."""

    suggestions = (
        "Check that package.json contains valid JSON",
        "Make sure dependencies and devDependencies map names to version ranges",
    )


class MalformedLockfileError(MalformedInputError):
    """Raised when ``package-lock.json`` is not valid or has the wrong shape."""

    suggestions = (
        "Check that package-lock.json contains valid JSON",
        'Run "npm install" to regenerate package-lock.json',
        "Lockfiles created by npm 6 or older need to be upgraded (lockfileVersion >= 2)",
    )


# ---------------------------------------------------------------------------
# Filesystem errors
# ---------------------------------------------------------------------------


class FileOperationError(DepGaugeError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/backup/restore).
        original_error: Original exception that triggered this error.
    """

    kind = ErrorKind.FILE_ACCESS
    suggestions = (
        "Check read and write permissions for the project directory",
        "Ensure the directory path is correct",
        "Check that the disk has sufficient space",
    )

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


# ---------------------------------------------------------------------------
# Network / registry errors
# ---------------------------------------------------------------------------


class NetworkError(DepGaugeError):
    """Raised when HTTP or network operations fail.

    Args:
        message: Error description.
        url: URL being accessed.
        status_code: HTTP status code, if available.
        response_body: Raw response body, truncated for safety.
    """

    kind = ErrorKind.RESOLUTION
    suggestions = (
        "Check your internet connection",
        "If behind a corporate proxy, make sure the npm registry is reachable",
        "Point registry_url at a mirror in depgauge.toml",
    )

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "url", url)
        _add_if(details, "status_code", status_code)

        if response_body is not None:
            details["response"] = _truncate(response_body)

        super().__init__(message, details)

        self.url = url
        self.status_code = status_code
        self.response_body = response_body

    @property
    def retryable(self) -> bool:
        """Whether repeating the request could succeed."""
        return self.status_code is None or self.status_code >= 500 or self.status_code == 429


class RegistryError(NetworkError):
    """Raised for failures related to one package on the npm registry.

    Args:
        message: Error description.
        package_name: Name of the package involved.
        **kwargs: Additional arguments forwarded to ``NetworkError``.
    """

    def __init__(
        self,
        message: str,
        *,
        package_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)

        self.package_name = package_name
        if package_name is not None:
            self.details["package"] = package_name


class ResolutionError(DepGaugeError):
    """Raised when a whole registry resolution stage cannot run.

    Individual package failures never raise; they resolve to ``unknown``.

    Args:
        message: Error description.
        stage: Resolution stage that failed (``"top-level"`` / ``"blockers"``).
    """

    kind = ErrorKind.RESOLUTION
    suggestions = NetworkError.suggestions

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "stage", stage)
        super().__init__(message, details)
        self.stage = stage


# ---------------------------------------------------------------------------
# Update workflow errors
# ---------------------------------------------------------------------------


class ValidationError(DepGaugeError):
    """Raised when validation finds error-severity issues.

    Args:
        message: Error description.
        issues: Every issue found, warnings included.
        stage: Validation stage (``"pre-update"``, ``"selection"``, ``"post-update"``).
    """

    kind = ErrorKind.VALIDATION
    suggestions = (
        "Fix the reported problems and run the update again",
        "Use --dry-run to preview the update without touching any files",
    )

    def __init__(
        self,
        message: str,
        *,
        issues: Sequence["ValidationIssue"] = (),
        stage: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "stage", stage)
        super().__init__(message, details)
        self.issues: List["ValidationIssue"] = list(issues)
        self.stage = stage


class UpdateFailedError(DepGaugeError):
    """Raised when the package manager fails to update one package.

    Args:
        package_name: Package that failed to update.
        target_version: Version that was requested.
        output: Combined output of the failing command.
    """

    kind = ErrorKind.APPLY
    suggestions = (
        "Run the npm command shown above manually to inspect the failure",
        "Restore the backup with: depgauge restore <backup-dir>",
    )

    def __init__(
        self,
        package_name: str,
        *,
        target_version: Optional[str] = None,
        output: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {"package": package_name}
        _add_if(details, "target", target_version)
        if output:
            details["output"] = _truncate(output)

        super().__init__(f"Failed to update {package_name}", details)

        self.package_name = package_name
        self.target_version = target_version
        self.output = output


class RestoreError(DepGaugeError):
    """Raised when a backup is missing, unreadable or fails verification.

    Args:
        message: Error description.
        backup_path: Backup directory involved.
    """

    kind = ErrorKind.RESTORE
    suggestions = (
        "List available backups with: depgauge backups",
        "Restore package.json and package-lock.json from version control",
    )

    def __init__(self, message: str, *, backup_path: Optional[str] = None) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "backup", backup_path)
        super().__init__(message, details)
        self.backup_path = backup_path


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


class ConfigError(DepGaugeError):
    """Raised when the configuration file is invalid.

    Args:
        message: Error description.
        config_path: Path to the configuration file.
        option: Offending option name, if any.
    """

    kind = ErrorKind.CONFIG
    suggestions = (
        "Check depgauge.toml (or [tool.depgauge] in pyproject.toml) for typos",
    )

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "config", config_path)
        _add_if(details, "option", option)
        super().__init__(message, details)
        self.config_path = config_path
        self.option = option
