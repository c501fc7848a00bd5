"""
Package data models for depgauge.

:class:`PackageRecord` is one row of the installed package table decoded
from ``package-lock.json``. :class:`ClassifiedDependency` extends it with
the upgrade-risk classification of a top-level dependency, and
:class:`AnalysisReport` bundles the result of one analysis run.

All records are frozen: they are built once per analysis and never
mutated afterwards.
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional

from depgauge.constants import UNKNOWN_VERSION


class DependencyCategory(str, Enum):
    """Upgrade-risk bucket of a top-level dependency."""

    SAFE = "safe"
    BLOCKED = "blocked"
    MAJOR_JUMP = "majorJump"


@dataclass(frozen=True)
class PackageRecord:
    """One installed package.

    Attributes:
        name: Logical package name (``@scope/name`` kept whole).
        resolved_version: Exact version recorded in the lockfile.
        requested_range: Range declared in ``package.json``; only set for
            top-level dependencies.
        latest_version: Latest published version; ``None`` when it was
            never looked up and ``"unknown"`` when the lookup failed.
        dependency_ranges: This package's own ``dependencies``.
        peer_dependency_ranges: This package's own ``peerDependencies``.
        is_dev: Declared only under ``devDependencies``.
    """

    name: str
    resolved_version: str
    requested_range: Optional[str] = None
    latest_version: Optional[str] = None
    dependency_ranges: Mapping[str, str] = field(default_factory=dict)
    peer_dependency_ranges: Mapping[str, str] = field(default_factory=dict)
    is_dev: bool = False

    @property
    def is_top_level(self) -> bool:
        """True when the manifest requests this package directly."""
        return self.requested_range is not None

    @property
    def has_latest(self) -> bool:
        """True when a usable latest version is known."""
        return self.latest_version is not None and self.latest_version != UNKNOWN_VERSION

    @property
    def lookup_failed(self) -> bool:
        """True when the registry was asked and gave no answer."""
        return self.latest_version == UNKNOWN_VERSION

    def range_for(self, name: str) -> Optional[str]:
        """Return the range this package declares on ``name``.

        Regular dependencies are consulted before peer dependencies; the
        first non-empty range wins.
        """
        return self.dependency_ranges.get(name) or self.peer_dependency_ranges.get(name) or None

    def with_latest(self, latest_version: Optional[str]) -> "PackageRecord":
        """Return a copy carrying ``latest_version``."""
        return replace(self, latest_version=latest_version)

    def to_json(self) -> Dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        entry: Dict[str, Any] = {
            "name": self.name,
            "requested": self.requested_range,
            "resolved": self.resolved_version,
            "latest": self.latest_version or UNKNOWN_VERSION,
        }
        if self.dependency_ranges:
            entry["dependencies"] = dict(self.dependency_ranges)
        if self.peer_dependency_ranges:
            entry["peerDependencies"] = dict(self.peer_dependency_ranges)
        if self.is_dev:
            entry["dev"] = True
        return entry


@dataclass(frozen=True)
class ClassifiedDependency(PackageRecord):
    """A top-level dependency together with its classification.

    Attributes:
        category: Bucket the dependency was placed in.
        blocker_name: Package whose range rejects the latest version;
            only set when ``category`` is ``BLOCKED``.
    """

    category: Optional[DependencyCategory] = None
    blocker_name: Optional[str] = None

    @classmethod
    def from_record(
        cls,
        record: PackageRecord,
        category: DependencyCategory,
        blocker_name: Optional[str] = None,
    ) -> "ClassifiedDependency":
        return cls(
            name=record.name,
            resolved_version=record.resolved_version,
            requested_range=record.requested_range,
            latest_version=record.latest_version,
            dependency_ranges=record.dependency_ranges,
            peer_dependency_ranges=record.peer_dependency_ranges,
            is_dev=record.is_dev,
            category=category,
            blocker_name=blocker_name if category is DependencyCategory.BLOCKED else None,
        )

    def to_json(self) -> Dict[str, Any]:
        entry = super().to_json()
        if self.category is not None:
            entry["category"] = self.category.value
        if self.blocker_name:
            entry["blocker"] = self.blocker_name
        return entry


@dataclass
class AnalysisReport:
    """Result of analyzing one project.

    Attributes:
        safe: Upgrades nothing objects to, within the same major version.
        blocked: Upgrades rejected by an installed package's range.
        major_jump: Unconstrained upgrades crossing a major version.
        all_dependencies: Every top-level dependency found in the
            lockfile, actionable or not, in manifest order.
    """

    safe: List[ClassifiedDependency] = field(default_factory=list)
    blocked: List[ClassifiedDependency] = field(default_factory=list)
    major_jump: List[ClassifiedDependency] = field(default_factory=list)
    all_dependencies: List[PackageRecord] = field(default_factory=list)

    @property
    def has_updates(self) -> bool:
        return bool(self.safe or self.blocked or self.major_jump)

    def classified(self) -> List[ClassifiedDependency]:
        """All classified dependencies: safe, then major, then blocked."""
        return [*self.safe, *self.major_jump, *self.blocked]

    def find(self, name: str) -> Optional[ClassifiedDependency]:
        for dep in self.classified():
            if dep.name == name:
                return dep
        return None

    def to_json(self) -> Dict[str, Any]:
        return {
            "safe": [dep.to_json() for dep in self.safe],
            "blocked": [dep.to_json() for dep in self.blocked],
            "majorJump": [dep.to_json() for dep in self.major_jump],
            "allDependencies": [dep.to_json() for dep in self.all_dependencies],
        }
