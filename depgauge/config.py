"""Configuration file loader for depgauge.

Handles discovery, loading, parsing, and validation of configuration files.
Supports two formats:

- ``depgauge.toml`` — settings under ``[depgauge]`` table
- ``pyproject.toml`` — settings under ``[tool.depgauge]`` table

Discovery order:

1. Explicit path from ``--config`` or ``DEPGAUGE_CONFIG``
2. ``depgauge.toml`` in current directory
3. ``pyproject.toml`` with ``[tool.depgauge]`` section

Configuration precedence: defaults < config file < CLI args.

Typical usage::

    config = load_config()  # Auto-discover
    config = load_config(Path("custom.toml"))  # Explicit path

Example (``depgauge.toml``)::

    [depgauge]
    registry_url = "https://registry.npmjs.org"
    cache_ttl = 300
    request_timeout = 10
    max_retries = 3
    backup_keep = 5
    run_tests = true
"""

from __future__ import annotations

import tomli as tomllib
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from depgauge.exceptions import ConfigError
from depgauge.utils.logger import get_logger
from depgauge.constants import (
    DEFAULT_BACKUP_KEEP,
    DEFAULT_CACHE_TTL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_TIMEOUT,
)

logger = get_logger("config")


@dataclass
class DepGaugeConfig:
    """Parsed and validated depgauge configuration.

    All fields have defaults, so empty config files are valid.

    Attributes:
        registry_url: Base URL of the npm registry (or a mirror).
        cache_ttl: Seconds a resolved latest version stays cached.
        request_timeout: Per-request registry timeout in seconds.
        max_retries: Retries per registry lookup.
        backup_keep: Number of backups kept after an update.
        run_tests: Run ``npm test`` before and after updating.
        source_path: Path to loaded config file, or ``None`` if using defaults.
    """

    registry_url: str = DEFAULT_REGISTRY_URL
    cache_ttl: int = DEFAULT_CACHE_TTL
    request_timeout: int = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    backup_keep: int = DEFAULT_BACKUP_KEEP
    run_tests: bool = True

    # Metadata (not a user-facing option)
    source_path: Optional[Path] = field(default=None, repr=False)

    def to_log_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary for debug logging."""
        return {
            "registry_url": self.registry_url,
            "cache_ttl": self.cache_ttl,
            "request_timeout": self.request_timeout,
            "max_retries": self.max_retries,
            "backup_keep": self.backup_keep,
            "run_tests": self.run_tests,
        }


def discover_config_file(explicit_path: Optional[Path] = None) -> Optional[Path]:
    """Find the configuration file to load.

    Args:
        explicit_path: Explicit config path. If provided, must exist.

    Returns:
        Resolved path to config file, or ``None`` if not found.

    Raises:
        ConfigError: Explicit path provided but does not exist.
    """
    if explicit_path is not None:
        resolved = explicit_path.resolve()
        if not resolved.is_file():
            raise ConfigError(
                f"Configuration file not found: {explicit_path}",
                config_path=str(explicit_path),
            )
        logger.debug("Using explicit config: %s", resolved)
        return resolved

    cwd = Path.cwd()

    depgauge_toml = cwd / "depgauge.toml"
    if depgauge_toml.is_file():
        logger.debug("Found depgauge.toml: %s", depgauge_toml)
        return depgauge_toml

    pyproject_toml = cwd / "pyproject.toml"
    if pyproject_toml.is_file() and _pyproject_has_depgauge_section(pyproject_toml):
        logger.debug("Found [tool.depgauge] in pyproject.toml: %s", pyproject_toml)
        return pyproject_toml

    logger.debug("No configuration file found")
    return None


def _pyproject_has_depgauge_section(path: Path) -> bool:
    """Check if pyproject.toml contains a [tool.depgauge] section.

    A pyproject.toml that cannot be parsed is treated as having no
    section, since it may belong to an unrelated project.
    """
    try:
        raw = _read_toml(path)
    except ConfigError as exc:
        logger.debug("Ignoring unreadable %s: %s", path, exc)
        return False
    tool = raw.get("tool", {})
    return isinstance(tool, dict) and "depgauge" in tool


def load_config(config_path: Optional[Path] = None) -> DepGaugeConfig:
    """Load and validate depgauge configuration.

    Args:
        config_path: Explicit path to config file. If ``None``, uses
            auto-discovery (see :func:`discover_config_file`).

    Returns:
        Validated :class:`DepGaugeConfig` with values from file or defaults.

    Raises:
        ConfigError: File cannot be parsed, has unknown keys, or invalid values.
    """
    resolved = discover_config_file(config_path)

    if resolved is None:
        logger.debug("No config file found, using defaults")
        return DepGaugeConfig()

    logger.info("Loading configuration from %s", resolved)
    raw = _read_toml(resolved)

    if resolved.name == "pyproject.toml":
        section = raw.get("tool", {}).get("depgauge", {})
    else:
        section = raw.get("depgauge", {})

    if not section:
        logger.debug("Config file found but no depgauge section, using defaults")
        return DepGaugeConfig(source_path=resolved)

    if not isinstance(section, dict):
        raise ConfigError("depgauge settings must be a table", config_path=str(resolved))

    config = _parse_section(section, config_path=str(resolved))
    config.source_path = resolved

    logger.debug("Loaded configuration: %s", config.to_log_dict())
    return config


def _read_toml(path: Path) -> Dict[str, Any]:
    """Read and parse a TOML file.

    Raises:
        ConfigError: File cannot be read or is not valid TOML.
    """
    try:
        with open(path, "rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(
            f"Invalid TOML in {path.name}: {exc}",
            config_path=str(path),
        ) from exc
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {path}: {exc}",
            config_path=str(path),
        ) from exc


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


#: option -> (type check, type name, range check, range description)
_OPTIONS: Dict[str, Tuple[Callable[[Any], bool], str, Callable[[Any], bool], str]] = {
    "registry_url": (
        lambda v: isinstance(v, str),
        "a string",
        lambda v: v.startswith(("http://", "https://")),
        "an http(s) URL",
    ),
    "cache_ttl": (_is_int, "an integer", lambda v: v >= 0, ">= 0"),
    "request_timeout": (_is_int, "an integer", lambda v: v > 0, "> 0"),
    "max_retries": (_is_int, "an integer", lambda v: v >= 0, ">= 0"),
    "backup_keep": (_is_int, "an integer", lambda v: v >= 1, ">= 1"),
    "run_tests": (lambda v: isinstance(v, bool), "a boolean", lambda v: True, ""),
}


def _parse_section(
    section: Dict[str, Any],
    *,
    config_path: str,
) -> DepGaugeConfig:
    """Parse and validate the ``[depgauge]`` or ``[tool.depgauge]`` table.

    Raises:
        ConfigError: Unknown keys, wrong types, or out-of-range values.
    """
    unknown = set(section) - set(_OPTIONS)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys: {', '.join(sorted(unknown))}",
            config_path=config_path,
        )

    config = DepGaugeConfig()

    for option, (type_ok, type_name, range_ok, range_desc) in _OPTIONS.items():
        if option not in section:
            continue
        value = section[option]
        if not type_ok(value):
            raise ConfigError(
                f"{option} must be {type_name}, got {type(value).__name__}",
                config_path=config_path,
                option=option,
            )
        if not range_ok(value):
            raise ConfigError(
                f"{option} must be {range_desc}, got {value!r}",
                config_path=config_path,
                option=option,
            )
        setattr(config, option, value.rstrip("/") if option == "registry_url" else value)

    return config
