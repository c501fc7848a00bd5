"""
Shared context object for depgauge CLI commands.

This module defines the global Click context used to share configuration
and runtime options across CLI subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from depgauge.config import DepGaugeConfig
from depgauge.core.registry import VersionCache


class DepGaugeContext:
    """Global context object for depgauge CLI commands.

    An instance of this class is created once per CLI invocation and
    passed to commands using Click's context mechanism.

    Attributes:
        config_path: Path to the depgauge configuration file, if provided.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Loaded configuration (defaults when no file was found).
        cache: Version cache shared by every command of this invocation.
    """

    __slots__ = ("config_path", "verbose", "color", "config", "_cache")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: DepGaugeConfig = DepGaugeConfig()
        self._cache: Optional[VersionCache] = None

    @property
    def cache(self) -> VersionCache:
        if self._cache is None:
            self._cache = VersionCache(ttl=self.config.cache_ttl)
        return self._cache


#: Click decorator for injecting :class:`DepGaugeContext` into commands.
pass_context = click.make_pass_decorator(DepGaugeContext, ensure=True)
