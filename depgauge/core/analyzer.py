"""Project analysis: loader, two-stage resolution, graph and classifier.

Resolution is selective so that large lockfiles do not turn into
thousands of registry calls:

* **Stage 1** resolves the top-level dependencies.
* A top-level dependency whose latest version falls outside its
  requested range is *potentially blocked*.
* **Stage 2** resolves only the transitive packages that declare a range
  on a potentially blocked name.

Everything else keeps ``latest_version=None`` and is still available to
the classifier as an installed consumer.

Typical usage::

    analyzer = ProjectAnalyzer("path/to/project")
    report = await analyzer.analyze()
    for dep in report.blocked:
        print(dep.name, "blocked by", dep.blocker_name)
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Union

from depgauge.utils.http import HTTPClient
from depgauge.utils.logger import get_logger
from depgauge.utils.progress import ProgressSink
from depgauge.utils.version_utils import satisfies
from depgauge.core.graph import DependencyGraph
from depgauge.core.classifier import BlockerClassifier
from depgauge.core.registry import VersionCache, VersionResolver
from depgauge.core.loader import ProjectSnapshot, load_project, top_level_names
from depgauge.models.package import AnalysisReport, PackageRecord
from depgauge.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_TIMEOUT,
)

logger = get_logger("analyzer")

STAGE_TOP_LEVEL = "Fetching latest versions for top-level dependencies"
STAGE_BLOCKERS = "Fetching latest versions for blocker analysis"


class ProjectAnalyzer:
    """Analyze one npm project.

    Args:
        project_dir: Directory holding ``package.json`` and ``package-lock.json``.
        cache: Version cache shared across analyses.
        http_client: Open client to reuse; one is created per call otherwise.
        registry_url: Registry base URL.
        timeout: Per-request timeout in seconds.
        max_retries: Retries per registry lookup.
        progress: Optional progress sink notified per resolution stage.
    """

    def __init__(
        self,
        project_dir: Union[str, Path] = ".",
        *,
        cache: Optional[VersionCache] = None,
        http_client: Optional[HTTPClient] = None,
        registry_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.cache = cache if cache is not None else VersionCache()
        self.http_client = http_client
        self.registry_url = registry_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.progress = progress

    async def analyze(self) -> AnalysisReport:
        """Load the project from disk and classify its dependencies."""
        snapshot = load_project(self.project_dir)
        return await self.analyze_snapshot(snapshot)

    async def analyze_snapshot(self, snapshot: ProjectSnapshot) -> AnalysisReport:
        """Classify the dependencies of an already loaded project."""
        if self.http_client is not None:
            return await self._run(snapshot, self.http_client)

        async with HTTPClient(timeout=self.timeout, max_retries=self.max_retries) as client:
            return await self._run(snapshot, client)

    async def _run(self, snapshot: ProjectSnapshot, client: HTTPClient) -> AnalysisReport:
        resolver = VersionResolver(client, registry_url=self.registry_url, cache=self.cache)

        base_records = snapshot.records()
        graph = DependencyGraph.from_records(base_records.values())
        top_level = top_level_names(snapshot.manifest, snapshot.lockfile)

        logger.debug("Dependency graph: %r", graph)

        versions = await resolver.resolve_many(
            top_level, progress=self.progress, label=STAGE_TOP_LEVEL
        )

        suspects = potentially_blocked(base_records, top_level, versions)
        if suspects:
            top_level_set = set(top_level)
            candidates = [
                name for name in graph.requirers_of_any(suspects) if name not in top_level_set
            ]
            logger.info(
                "%d potentially blocked, resolving %d transitive packages",
                len(suspects),
                len(candidates),
            )
            if candidates:
                versions.update(
                    await resolver.resolve_many(
                        candidates, progress=self.progress, label=STAGE_BLOCKERS
                    )
                )

        records = {
            name: record.with_latest(versions.get(name))
            for name, record in base_records.items()
        }
        return BlockerClassifier(records, graph).classify_all(top_level)


def potentially_blocked(
    records: Dict[str, PackageRecord],
    top_level: List[str],
    versions: Dict[str, str],
) -> List[str]:
    """Top-level names whose latest version is outside the requested range."""
    suspects: List[str] = []
    for name in top_level:
        record = records.get(name)
        latest = versions.get(name)
        if record is None or not record.requested_range:
            continue
        if satisfies(latest, record.requested_range) is False:
            suspects.append(name)
    return suspects

