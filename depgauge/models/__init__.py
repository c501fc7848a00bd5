"""
Unified data model exports for depgauge.

This module re-exports all core data models to provide a stable and
convenient public API. Users can import models directly from
``depgauge.models`` instead of individual submodules.

Example:
    >>> from depgauge.models import PackageRecord, AnalysisReport, UpdatePlan
"""

from __future__ import annotations

from depgauge.models.package import (
    AnalysisReport,
    ClassifiedDependency,
    DependencyCategory,
    PackageRecord,
)
from depgauge.models.update import (
    BackupRecord,
    PackageUpdate,
    Severity,
    UpdateCategory,
    UpdateOptions,
    UpdatePhase,
    UpdatePlan,
    UpdateResult,
    UpdateStage,
    ValidationIssue,
)

__all__ = [
    "PackageRecord",
    "ClassifiedDependency",
    "DependencyCategory",
    "AnalysisReport",
    "PackageUpdate",
    "UpdateCategory",
    "UpdatePhase",
    "UpdatePlan",
    "UpdateOptions",
    "UpdateResult",
    "UpdateStage",
    "Severity",
    "ValidationIssue",
    "BackupRecord",
]
