"""
Update workflow data models for depgauge.

These dataclasses describe what an update run intends to do
(:class:`UpdatePlan`), how it is configured (:class:`UpdateOptions`) and
what actually happened (:class:`UpdateResult`).
"""

from __future__ import annotations

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class UpdateCategory(str, Enum):
    """Category of a planned update."""

    SAFE = "safe"
    MAJOR = "major"
    BLOCKED = "blocked"


class UpdateStage(str, Enum):
    """States of the update workflow, in the order they are reached."""

    VALIDATING = "validating"
    BACKING_UP = "backing-up"
    DRY_RUN = "dry-run"
    TESTING_PRE = "testing-pre"
    APPLYING = "applying"
    VALIDATING_POST = "validating-post"
    TESTING_POST = "testing-post"
    DONE = "done"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """A single problem found while validating a project or an update."""

    severity: Severity
    message: str
    package: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        if self.package:
            return f"{self.package}: {self.message}"
        return self.message


@dataclass(frozen=True)
class PackageUpdate:
    """One package the plan proposes to update.

    Attributes:
        name: Package name.
        current_version: Version currently recorded in the lockfile.
        target_version: Latest published version.
        update_type: ``"patch"``, ``"minor"`` or ``"major"``.
        category: Planning category.
        blocker: Name of the package holding this one back, if blocked.
        is_dev: Whether the package is a dev-only dependency.
    """

    name: str
    current_version: str
    target_version: str
    update_type: str
    category: UpdateCategory
    blocker: Optional[str] = None
    is_dev: bool = False

    @property
    def blocker_count(self) -> int:
        """Number of comma-separated blockers recorded for this update."""
        if not self.blocker:
            return 0
        return len([part for part in self.blocker.split(",") if part.strip()])

    def to_json(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "name": self.name,
            "currentVersion": self.current_version,
            "targetVersion": self.target_version,
            "updateType": self.update_type,
            "category": self.category.value,
        }
        if self.blocker:
            entry["blocker"] = self.blocker
        return entry


@dataclass(frozen=True)
class UpdatePhase:
    """A group of updates applied together, with a rough duration."""

    name: str
    packages: List[PackageUpdate]
    estimated_time: int
    description: str = ""

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "packages": [pkg.name for pkg in self.packages],
            "estimatedTime": self.estimated_time,
        }


@dataclass
class UpdatePlan:
    """Ordered set of proposed updates.

    Attributes:
        packages: Every proposed update (safe, then major, then blocked).
        categories: The same updates grouped by category.
        phases: Suggested order of application.
        estimated_time: Rough duration in seconds.
        risks: Human-readable risk statements.
        total_packages: ``len(packages)``.
    """

    packages: List[PackageUpdate] = field(default_factory=list)
    categories: Dict[UpdateCategory, List[PackageUpdate]] = field(default_factory=dict)
    phases: List[UpdatePhase] = field(default_factory=list)
    estimated_time: int = 0
    risks: List[str] = field(default_factory=list)
    total_packages: int = 0

    def get(self, name: str) -> Optional[PackageUpdate]:
        for pkg in self.packages:
            if pkg.name == name:
                return pkg
        return None

    def to_json(self) -> Dict[str, Any]:
        return {
            "packages": [pkg.to_json() for pkg in self.packages],
            "categories": {
                cat.value: [pkg.name for pkg in pkgs]
                for cat, pkgs in self.categories.items()
            },
            "phases": [phase.to_json() for phase in self.phases],
            "estimatedTime": self.estimated_time,
            "risks": list(self.risks),
            "totalPackages": self.total_packages,
        }


@dataclass(frozen=True)
class UpdateOptions:
    """Knobs controlling planning and application.

    Attributes:
        safe_only: Plan only updates in the ``safe`` category.
        include_dev: Include dependencies declared only in devDependencies.
        dry_run: Stop after validation and backup; change nothing.
        backup: Back up the manifest and lockfile before applying.
        run_tests: Run the project's ``test`` script before and after.
    """

    safe_only: bool = False
    include_dev: bool = True
    dry_run: bool = False
    backup: bool = True
    run_tests: bool = True


@dataclass
class UpdateResult:
    """Outcome of an update run."""

    success: bool = True
    updated: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    blocked: List[str] = field(default_factory=list)
    backup_path: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stage: UpdateStage = UpdateStage.VALIDATING

    def fail(self, message: str) -> None:
        self.success = False
        self.errors.append(message)

    def to_json(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "updated": list(self.updated),
            "failed": list(self.failed),
            "blocked": list(self.blocked),
            "backupPath": self.backup_path,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "stage": self.stage.value,
        }


@dataclass(frozen=True)
class BackupRecord:
    """A backup directory and the hashes of the files it holds."""

    path: str
    timestamp: str
    manifest_hash: Optional[str] = None
    lockfile_hash: Optional[str] = None
    tool: str = "depgauge"
    version: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "packageJsonHash": self.manifest_hash,
            "packageLockHash": self.lockfile_hash,
            "tool": self.tool,
            "version": self.version,
        }
