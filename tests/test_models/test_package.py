from __future__ import annotations

import dataclasses

import pytest

from depgauge.models.package import (
    AnalysisReport,
    ClassifiedDependency,
    DependencyCategory,
    PackageRecord,
)


@pytest.mark.unit
class TestPackageRecord:
    def test_defaults(self) -> None:
        record = PackageRecord("react", "17.0.2")

        assert record.is_top_level is False
        assert record.has_latest is False
        assert record.lookup_failed is False
        assert record.range_for("anything") is None

    def test_lookup_states(self) -> None:
        unknown = PackageRecord("x", "1.0.0", latest_version="unknown")
        known = unknown.with_latest("2.0.0")

        assert unknown.lookup_failed is True and unknown.has_latest is False
        assert known.has_latest is True and known.lookup_failed is False
        assert unknown.latest_version == "unknown"

    def test_range_for_prefers_dependencies(self) -> None:
        record = PackageRecord(
            "kit",
            "1.0.0",
            dependency_ranges={"react": "^18.0.0"},
            peer_dependency_ranges={"react": "^17.0.0", "react-dom": "^17.0.0"},
        )

        assert record.range_for("react") == "^18.0.0"
        assert record.range_for("react-dom") == "^17.0.0"

    def test_frozen(self) -> None:
        record = PackageRecord("react", "17.0.2")

        with pytest.raises(dataclasses.FrozenInstanceError):
            record.name = "vue"  # type: ignore[misc]

    def test_to_json(self) -> None:
        record = PackageRecord("jest", "29.0.0", "^29.0.0", is_dev=True)

        assert record.to_json() == {
            "name": "jest",
            "requested": "^29.0.0",
            "resolved": "29.0.0",
            "latest": "unknown",
            "dev": True,
        }


@pytest.mark.unit
class TestClassifiedDependency:
    def test_blocker_only_kept_for_blocked(self) -> None:
        record = PackageRecord("react", "17.0.2", "^17.0.0", latest_version="18.3.1")

        safe = ClassifiedDependency.from_record(record, DependencyCategory.SAFE, blocker_name="kit")
        blocked = ClassifiedDependency.from_record(record, DependencyCategory.BLOCKED, blocker_name="kit")

        assert safe.blocker_name is None
        assert blocked.blocker_name == "kit"
        assert blocked.requested_range == "^17.0.0"
        assert blocked.to_json()["category"] == "blocked"

    def test_category_values(self) -> None:
        assert DependencyCategory.MAJOR_JUMP.value == "majorJump"
        assert DependencyCategory("safe") is DependencyCategory.SAFE


@pytest.mark.unit
class TestAnalysisReport:
    def test_empty(self) -> None:
        report = AnalysisReport()

        assert report.has_updates is False
        assert report.find("react") is None
        assert report.to_json() == {"safe": [], "blocked": [], "majorJump": [], "allDependencies": []}

    def test_classified_order(self) -> None:
        def dep(name: str, category: DependencyCategory) -> ClassifiedDependency:
            return ClassifiedDependency.from_record(
                PackageRecord(name, "1.0.0", latest_version="2.0.0"), category
            )

        report = AnalysisReport(
            safe=[dep("a", DependencyCategory.SAFE)],
            blocked=[dep("c", DependencyCategory.BLOCKED)],
            major_jump=[dep("b", DependencyCategory.MAJOR_JUMP)],
        )

        assert [d.name for d in report.classified()] == ["a", "b", "c"]
        assert report.has_updates is True
