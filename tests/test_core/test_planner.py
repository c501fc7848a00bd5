from __future__ import annotations

from typing import Optional

import pytest

from depgauge.core.planner import build_update_plan, collect_updates, suggest_update_order
from depgauge.models.package import AnalysisReport, ClassifiedDependency, DependencyCategory, PackageRecord
from depgauge.models.update import PackageUpdate, UpdateCategory, UpdateOptions


def _dep(name: str, current: str, latest: str, category: DependencyCategory,
         blocker: Optional[str] = None, is_dev: bool = False) -> ClassifiedDependency:
    record = PackageRecord(name, current, f"^{current}", latest_version=latest, is_dev=is_dev)
    return ClassifiedDependency.from_record(record, category, blocker_name=blocker)


def _report() -> AnalysisReport:
    return AnalysisReport(
        safe=[
            _dep("lodash", "4.17.20", "4.17.21", DependencyCategory.SAFE),
            _dep("jest", "29.0.0", "29.7.0", DependencyCategory.SAFE, is_dev=True),
        ],
        major_jump=[_dep("chalk", "4.1.2", "5.3.0", DependencyCategory.MAJOR_JUMP)],
        blocked=[
            _dep("react", "17.0.2", "18.3.1", DependencyCategory.BLOCKED, "old-ui-kit,other-kit"),
            _dep("vue", "2.7.0", "3.4.0", DependencyCategory.BLOCKED, "vuex"),
        ],
    )


@pytest.mark.unit
class TestCollectUpdates:
    def test_maps_categories(self) -> None:
        updates = {u.name: u for u in collect_updates(_report())}

        assert updates["lodash"].category is UpdateCategory.SAFE
        assert updates["lodash"].update_type == "patch"
        assert updates["chalk"].category is UpdateCategory.MAJOR
        assert updates["chalk"].update_type == "major"
        assert updates["react"].category is UpdateCategory.BLOCKED
        assert updates["react"].blocker == "old-ui-kit,other-kit"
        assert updates["react"].target_version == "18.3.1"


@pytest.mark.unit
class TestBuildUpdatePlan:
    def test_full_plan(self) -> None:
        plan = build_update_plan(_report(), UpdateOptions())

        assert plan.total_packages == 5
        assert plan.estimated_time == 150
        assert plan.risks == [
            "1 major version updates may contain breaking changes",
            "2 packages are blocked by dependencies",
        ]
        assert [p.name for p in plan.categories[UpdateCategory.SAFE]] == ["lodash", "jest"]
        assert [phase.name for phase in plan.phases] == [
            "Safe Updates",
            "Major Updates",
            "Blocked Updates",
        ]

    def test_safe_only(self) -> None:
        plan = build_update_plan(_report(), UpdateOptions(safe_only=True))

        assert [p.name for p in plan.packages] == ["lodash", "jest"]
        assert plan.risks == []
        assert plan.categories[UpdateCategory.MAJOR] == []

    def test_exclude_dev(self) -> None:
        plan = build_update_plan(_report(), UpdateOptions(include_dev=False))

        assert plan.get("jest") is None
        assert plan.get("lodash") is not None

    def test_empty_report(self) -> None:
        plan = build_update_plan(AnalysisReport(), UpdateOptions())

        assert plan.packages == [] and plan.phases == [] and plan.risks == []
        assert plan.estimated_time == 0


@pytest.mark.unit
class TestSuggestUpdateOrder:
    def test_phase_times_and_blocked_ordering(self) -> None:
        phases = suggest_update_order(collect_updates(_report()))
        by_name = {phase.name: phase for phase in phases}

        assert by_name["Safe Updates"].estimated_time == 60
        assert by_name["Major Updates"].estimated_time == 60
        assert by_name["Blocked Updates"].estimated_time == 180
        assert [u.name for u in by_name["Blocked Updates"].packages] == ["vue", "react"]

    def test_no_updates(self) -> None:
        assert suggest_update_order([]) == []

    def test_blocker_count(self) -> None:
        update = PackageUpdate("a", "1.0.0", "2.0.0", "major", UpdateCategory.BLOCKED, blocker="x, y,z")

        assert update.blocker_count == 3
