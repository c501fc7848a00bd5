"""Latest-version resolution against the npm registry.

:class:`VersionResolver` answers one question per package: *what is the
latest published version?* It asks ``GET {registry}/{name}/latest`` through
:class:`~depgauge.utils.http.HTTPClient` (retries, backoff and timeouts
live there) and remembers successful answers in a :class:`VersionCache`.

Failures for individual packages never raise: the package resolves to
``"unknown"`` and analysis carries on. Only a failure of the whole stage
(an unusable registry URL, or a registry that cannot be reached at
all) raises :class:`~depgauge.exceptions.ResolutionError`.

Typical usage::

    async with HTTPClient() as client:
        resolver = VersionResolver(client, cache=VersionCache())
        versions = await resolver.resolve_many(["react", "lodash"])
        print(versions["react"])   # e.g. "18.3.1"
"""

from __future__ import annotations

import math
import time
import asyncio
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import httpx

from depgauge.utils.http import HTTPClient
from depgauge.utils.logger import get_logger
from depgauge.utils.progress import ProgressSink
from depgauge.core.loader import is_valid_package_name
from depgauge.exceptions import NetworkError, ResolutionError
from depgauge.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_REGISTRY_URL,
    MAX_CONCURRENCY,
    MIN_CONCURRENCY,
    REGISTRY_LATEST_PATH,
    UNKNOWN_VERSION,
)

logger = get_logger("registry")

__all__ = ["VersionCache", "VersionResolver", "concurrency_for"]


def concurrency_for(count: int) -> int:
    """Number of lookups run together for a stage of ``count`` packages.

    Examples:
        >>> concurrency_for(5)
        3
        >>> concurrency_for(120)
        12
        >>> concurrency_for(1000)
        15
    """
    return min(max(math.ceil(count / 10), MIN_CONCURRENCY), MAX_CONCURRENCY)


def _is_unreachable(exc: NetworkError) -> bool:
    """True when no HTTP response was received (refused, DNS, timeout)."""
    return exc.status_code is None and isinstance(exc.__cause__, httpx.TransportError)


class VersionCache:
    """TTL cache of ``name -> latest version``.

    Entries expire ``ttl`` seconds after they were stored. A ``ttl`` of 0
    disables caching. ``clock`` is injectable for tests.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    def get(self, name: str) -> Optional[str]:
        entry = self._entries.get(name)
        if entry is None:
            return None

        version, stored_at = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[name]
            return None
        return version

    def set(self, name: str, version: str) -> None:
        if self.ttl <= 0:
            return
        self._entries[name] = (version, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> Dict[str, float]:
        return {"size": len(self._entries), "ttl": self.ttl}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        return len(self._entries)


class VersionResolver:
    """Resolve latest versions with caching and bounded concurrency.

    Args:
        http_client: Open :class:`HTTPClient`; the resolver does not close it.
        registry_url: Registry base URL, without a trailing slash.
        cache: Shared cache; a private one is created when omitted.
    """

    def __init__(
        self,
        http_client: HTTPClient,
        *,
        registry_url: str = DEFAULT_REGISTRY_URL,
        cache: Optional[VersionCache] = None,
    ) -> None:
        self.http_client = http_client
        self.registry_url = registry_url.rstrip("/")
        self.cache = cache if cache is not None else VersionCache()

    def latest_url(self, name: str) -> str:
        return REGISTRY_LATEST_PATH.format(registry=self.registry_url, package=name)

    async def resolve_one(self, name: str) -> str:
        """Return the latest version of ``name`` or ``"unknown"``.

        Raises:
            httpx.HTTPError: Transport failures the HTTP client does not
                retry, such as an unsupported URL scheme.
        """
        version, _ = await self._lookup(name)
        return version

    async def _lookup(self, name: str) -> Tuple[str, bool]:
        """Resolve ``name``; the flag is False when the registry was unreachable."""
        if not name or not name.strip():
            logger.warning("Invalid package name %r, not looked up", name)
            return UNKNOWN_VERSION, True

        cached = self.cache.get(name)
        if cached is not None:
            logger.debug("Cache hit for %s: %s", name, cached)
            return cached, True

        try:
            data = await self.http_client.get_json(self.latest_url(name))
        except NetworkError as exc:
            logger.warning("Failed to fetch latest version for %s: %s", name, exc)
            return UNKNOWN_VERSION, not _is_unreachable(exc)

        version = data.get("version")
        if not isinstance(version, str) or not version:
            logger.warning("No version in registry response for %s", name)
            return UNKNOWN_VERSION, True

        self.cache.set(name, version)
        return version, True

    async def resolve_many(
        self,
        names: Iterable[str],
        *,
        progress: Optional[ProgressSink] = None,
        label: str = "Fetching latest versions",
    ) -> Dict[str, str]:
        """Resolve a batch of names.

        Names are deduplicated and invalid names are dropped before any
        request is made. Lookups run in sequential chunks sized by
        :func:`concurrency_for`; ``progress.advance`` fires once per name,
        whether the lookup succeeded or not. Every lookup of a chunk
        settles before the next chunk starts or an error is raised.

        Returns:
            ``{name: version_or_unknown}`` for every valid name.

        Raises:
            ResolutionError: The stage could not run at all: the client
                rejected the request, or every lookup of the first chunk
                failed without reaching the registry.
        """
        unique: List[str] = []
        seen = set()
        for name in names:
            if name in seen:
                continue
            seen.add(name)
            if is_valid_package_name(name):
                unique.append(name)
            else:
                logger.debug("Skipping invalid package name %r", name)

        results: Dict[str, str] = {}
        if not unique:
            return results

        chunk_size = concurrency_for(len(unique))
        logger.info("%s: %d packages, %d at a time", label, len(unique), chunk_size)

        if progress is not None:
            progress.begin(len(unique), label)

        async def lookup(name: str) -> Tuple[str, bool]:
            try:
                return await self._lookup(name)
            finally:
                if progress is not None:
                    progress.advance(name)

        reached = False
        try:
            for start in range(0, len(unique), chunk_size):
                chunk = unique[start : start + chunk_size]
                outcomes = await asyncio.gather(
                    *(lookup(name) for name in chunk), return_exceptions=True
                )
                for outcome in outcomes:
                    if isinstance(outcome, BaseException):
                        raise outcome

                for name, (version, answered) in zip(chunk, outcomes):
                    results[name] = version
                    reached = reached or answered

                if not reached:
                    raise ResolutionError(
                        f"Could not reach the registry at {self.registry_url}",
                        stage=label,
                    )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ResolutionError(
                f"Could not query the registry at {self.registry_url}: {exc}",
                stage=label,
            ) from exc
        finally:
            if progress is not None:
                progress.end()

        failed = sum(1 for version in results.values() if version == UNKNOWN_VERSION)
        if failed:
            logger.warning("%d of %d packages could not be resolved", failed, len(results))

        return results
