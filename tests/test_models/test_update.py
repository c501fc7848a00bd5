from __future__ import annotations

import pytest

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


@pytest.mark.unit
class TestValidationIssue:
    def test_str(self) -> None:
        issue = ValidationIssue(Severity.ERROR, "Invalid version format", "react")

        assert issue.is_error is True
        assert str(issue) == "react: Invalid version format"
        assert str(ValidationIssue(Severity.WARNING, "dirty tree")) == "dirty tree"


@pytest.mark.unit
class TestPackageUpdate:
    def test_to_json(self) -> None:
        update = PackageUpdate("react", "17.0.2", "18.3.1", "major", UpdateCategory.BLOCKED, blocker="kit")

        assert update.to_json() == {
            "name": "react",
            "currentVersion": "17.0.2",
            "targetVersion": "18.3.1",
            "updateType": "major",
            "category": "blocked",
            "blocker": "kit",
        }
        assert update.blocker_count == 1

    def test_no_blocker(self) -> None:
        update = PackageUpdate("lodash", "4.17.20", "4.17.21", "patch", UpdateCategory.SAFE)

        assert update.blocker_count == 0
        assert "blocker" not in update.to_json()


@pytest.mark.unit
class TestUpdatePlan:
    def test_lookup_helpers(self) -> None:
        safe = PackageUpdate("lodash", "4.17.20", "4.17.21", "patch", UpdateCategory.SAFE)
        plan = UpdatePlan(
            packages=[safe],
            categories={UpdateCategory.SAFE: [safe]},
            phases=[UpdatePhase("Safe Updates", [safe], 30)],
            estimated_time=30,
            total_packages=1,
        )

        assert plan.get("lodash") is safe
        assert plan.get("react") is None
        assert plan.to_json()["totalPackages"] == 1


@pytest.mark.unit
class TestUpdateResult:
    def test_defaults(self) -> None:
        options = UpdateOptions()
        result = UpdateResult()

        assert (options.backup, options.run_tests, options.dry_run) == (True, True, False)
        assert result.success is True
        assert result.stage is UpdateStage.VALIDATING

    def test_fail(self) -> None:
        result = UpdateResult()
        result.fail("Pre-update tests failed: boom")

        data = result.to_json()
        assert data["success"] is False
        assert data["errors"] == ["Pre-update tests failed: boom"]
        assert data["stage"] == "validating"


@pytest.mark.unit
class TestBackupRecord:
    def test_to_json_keys(self) -> None:
        record = BackupRecord("/p/.depgauge-backup-x", "2024-05-01T12:00:00+00:00", "a" * 64, None, version="0.3.0")

        assert record.to_json() == {
            "timestamp": "2024-05-01T12:00:00+00:00",
            "packageJsonHash": "a" * 64,
            "packageLockHash": None,
            "tool": "depgauge",
            "version": "0.3.0",
        }
