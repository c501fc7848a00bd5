"""Update planning.

Turns an :class:`~depgauge.models.package.AnalysisReport` into an
:class:`~depgauge.models.update.UpdatePlan`. Planning is a pure function
of the report and the options: nothing is fetched or written here.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from depgauge.utils.logger import get_logger
from depgauge.utils.version_utils import get_update_type
from depgauge.models.package import AnalysisReport, ClassifiedDependency
from depgauge.models.update import (
    PackageUpdate,
    UpdateCategory,
    UpdateOptions,
    UpdatePhase,
    UpdatePlan,
)
from depgauge.constants import (
    PHASE_SECONDS_BLOCKED,
    PHASE_SECONDS_MAJOR,
    PHASE_SECONDS_SAFE,
    SECONDS_PER_PACKAGE,
)

logger = get_logger("planner")


def _to_update(dep: ClassifiedDependency, category: UpdateCategory) -> PackageUpdate:
    target = dep.latest_version or ""
    return PackageUpdate(
        name=dep.name,
        current_version=dep.resolved_version,
        target_version=target,
        update_type=get_update_type(dep.resolved_version, target),
        category=category,
        blocker=dep.blocker_name if category is UpdateCategory.BLOCKED else None,
        is_dev=dep.is_dev,
    )


def collect_updates(report: AnalysisReport) -> List[PackageUpdate]:
    """Every actionable dependency as a :class:`PackageUpdate`, safe first."""
    updates = [_to_update(dep, UpdateCategory.SAFE) for dep in report.safe]
    updates += [_to_update(dep, UpdateCategory.MAJOR) for dep in report.major_jump]
    updates += [_to_update(dep, UpdateCategory.BLOCKED) for dep in report.blocked]
    return updates


def build_update_plan(report: AnalysisReport, options: UpdateOptions) -> UpdatePlan:
    """Build the plan for ``report`` honoring ``safe_only`` and ``include_dev``."""
    updates = collect_updates(report)

    if options.safe_only:
        updates = [u for u in updates if u.category is UpdateCategory.SAFE]
    if not options.include_dev:
        updates = [u for u in updates if not u.is_dev]

    categories: Dict[UpdateCategory, List[PackageUpdate]] = {
        category: [u for u in updates if u.category is category]
        for category in UpdateCategory
    }

    risks: List[str] = []
    major_count = len(categories[UpdateCategory.MAJOR])
    blocked_count = len(categories[UpdateCategory.BLOCKED])
    if major_count:
        risks.append(f"{major_count} major version updates may contain breaking changes")
    if blocked_count:
        risks.append(f"{blocked_count} packages are blocked by dependencies")

    plan = UpdatePlan(
        packages=updates,
        categories=categories,
        phases=suggest_update_order(updates),
        estimated_time=len(updates) * SECONDS_PER_PACKAGE,
        risks=risks,
        total_packages=len(updates),
    )
    logger.debug(
        "Plan: %d packages (%d major, %d blocked)",
        plan.total_packages,
        major_count,
        blocked_count,
    )
    return plan


def suggest_update_order(updates: Iterable[PackageUpdate]) -> List[UpdatePhase]:
    """Group updates into phases: safe, then major, then blocked.

    Blocked updates are sorted by how many blockers they have, fewest
    first; the sort is stable so ties keep their incoming order.
    """
    pending = list(updates)
    safe = [u for u in pending if u.category is UpdateCategory.SAFE]
    major = [u for u in pending if u.category is UpdateCategory.MAJOR]
    blocked = sorted(
        (u for u in pending if u.category is UpdateCategory.BLOCKED),
        key=lambda u: u.blocker_count,
    )

    phases: List[UpdatePhase] = []
    if safe:
        phases.append(
            UpdatePhase(
                name="Safe Updates",
                packages=safe,
                estimated_time=len(safe) * PHASE_SECONDS_SAFE,
                description="Updates that can be applied without conflicts",
            )
        )
    if major:
        phases.append(
            UpdatePhase(
                name="Major Updates",
                packages=major,
                estimated_time=len(major) * PHASE_SECONDS_MAJOR,
                description="Major version updates that need careful review",
            )
        )
    if blocked:
        phases.append(
            UpdatePhase(
                name="Blocked Updates",
                packages=blocked,
                estimated_time=len(blocked) * PHASE_SECONDS_BLOCKED,
                description="Updates that need their blockers resolved first",
            )
        )
    return phases
