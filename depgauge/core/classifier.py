"""Blocker detection and upgrade classification.

For every top-level dependency ``D`` with a known latest version:

1. Walk ``reverse[D]`` (packages declaring a range on ``D``) in
   lexicographic order. The first package whose range rejects
   ``D``'s latest version blocks ``D``.
2. Without a blocker, ``D`` is *safe* when its latest version stays in
   the same major version, a *major jump* when it crosses one, and not
   actionable at all when it is already current.

This is a single-hop check: it asks whether swapping in the latest ``D``
would break a consumer that is installed right now, and never tries to
upgrade the consumer as well. Each requiring package is visited once per
dependency through the prebuilt reverse index, so classification is
linear in packages plus edges.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

from depgauge.core.graph import DependencyGraph
from depgauge.utils.logger import get_logger
from depgauge.utils.version_utils import compare_versions, major_of, satisfies
from depgauge.models.package import (
    AnalysisReport,
    ClassifiedDependency,
    DependencyCategory,
    PackageRecord,
)

logger = get_logger("classifier")


class BlockerClassifier:
    """Classify top-level dependencies against an installed package table.

    Args:
        records: Every installed package keyed by name, with
            ``latest_version`` filled in where it was resolved.
        graph: Dependency graph built from the same records.
    """

    def __init__(
        self,
        records: Mapping[str, PackageRecord],
        graph: DependencyGraph,
    ) -> None:
        self.records = records
        self.graph = graph

    def find_blocker(self, record: PackageRecord) -> Optional[str]:
        """Return the first installed package rejecting ``record``'s latest version.

        A requiring package whose own registry lookup failed is not
        trusted as a blocker. Ranges that are not npm ranges (git URLs,
        tags, ``file:`` specs) never block.
        """
        latest = record.latest_version
        if not record.has_latest or latest is None:
            return None

        for requirer_name in self.graph.dependents(record.name):
            requirer = self.records.get(requirer_name)
            if requirer is None or requirer.lookup_failed:
                continue

            required_range = requirer.range_for(record.name)
            if not required_range:
                continue

            if satisfies(latest, required_range) is False:
                logger.debug(
                    "%s@%s rejected by %s (%s)",
                    record.name,
                    latest,
                    requirer_name,
                    required_range,
                )
                return requirer_name

        return None

    def classify(self, record: PackageRecord) -> Optional[ClassifiedDependency]:
        """Classify one dependency; ``None`` means no bucket."""
        if not record.has_latest:
            return None

        blocker = self.find_blocker(record)
        if blocker is not None:
            return ClassifiedDependency.from_record(
                record, DependencyCategory.BLOCKED, blocker_name=blocker
            )

        order = compare_versions(record.resolved_version, record.latest_version)
        if order is None:
            logger.debug(
                "Cannot compare %s versions %r and %r",
                record.name,
                record.resolved_version,
                record.latest_version,
            )
            return None
        if order >= 0:
            return None

        current_major = major_of(record.resolved_version)
        latest_major = major_of(record.latest_version)
        if current_major is not None and latest_major is not None and latest_major > current_major:
            return ClassifiedDependency.from_record(record, DependencyCategory.MAJOR_JUMP)

        return ClassifiedDependency.from_record(record, DependencyCategory.SAFE)

    def classify_all(self, top_level_names: Iterable[str]) -> AnalysisReport:
        """Classify every named dependency present in the package table."""
        report = AnalysisReport()

        for name in top_level_names:
            record = self.records.get(name)
            if record is None:
                continue

            report.all_dependencies.append(record)
            classified = self.classify(record)
            if classified is None:
                continue

            if classified.category is DependencyCategory.BLOCKED:
                report.blocked.append(classified)
            elif classified.category is DependencyCategory.MAJOR_JUMP:
                report.major_jump.append(classified)
            else:
                report.safe.append(classified)

        logger.info(
            "Classified %d dependencies: %d safe, %d blocked, %d major",
            len(report.all_dependencies),
            len(report.safe),
            len(report.blocked),
            len(report.major_jump),
        )
        return report


def classify_dependencies(
    records: Mapping[str, PackageRecord],
    top_level_names: Iterable[str],
    graph: Optional[DependencyGraph] = None,
) -> AnalysisReport:
    """Build the graph if needed and classify ``top_level_names``."""
    if graph is None:
        graph = DependencyGraph.from_records(records.values())
    return BlockerClassifier(records, graph).classify_all(top_level_names)
