"""Validation and test execution around an update run.

:class:`UpdateValidator` inspects the project before and after packages
are installed and checks a set of proposed updates against the consumers
installed right now. Findings are :class:`ValidationIssue` values with a
severity; callers decide what an ``error`` aborts.

:class:`TestRunner` runs the project's own ``npm test`` script, when it
has one.
"""

from __future__ import annotations

from pathlib import Path
from dataclasses import dataclass
from typing import Iterable, List, Optional, Union

from depgauge.core.graph import DependencyGraph
from depgauge.core.package_manager import NpmRunner
from depgauge.utils.logger import get_logger
from depgauge.utils.filesystem import file_exists, safe_read_file
from depgauge.utils.version_utils import parse_version, satisfies
from depgauge.exceptions import FileOperationError, MalformedInputError
from depgauge.models.update import PackageUpdate, Severity, ValidationIssue
from depgauge.core.loader import (
    Manifest,
    build_records,
    is_valid_package_name,
    load_lockfile,
    parse_lockfile,
    parse_manifest,
)
from depgauge.constants import (
    LOCKFILE_FILE,
    MANIFEST_FILE,
    NO_TEST_SCRIPT_MESSAGE,
    TEST_FAILURE_MARKERS,
)

logger = get_logger("validation")


def _error(message: str, package: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(Severity.ERROR, message, package)


def _warning(message: str, package: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(Severity.WARNING, message, package)


def errors_in(issues: Iterable[ValidationIssue]) -> List[ValidationIssue]:
    return [issue for issue in issues if issue.is_error]


def warnings_in(issues: Iterable[ValidationIssue]) -> List[ValidationIssue]:
    return [issue for issue in issues if not issue.is_error]


class UpdateValidator:
    """Check a project and a batch of updates.

    Args:
        project_dir: Project directory.
        runner: Used for the ``git status`` check.
    """

    def __init__(self, project_dir: Union[str, Path], runner: Optional[NpmRunner] = None) -> None:
        self.project_dir = Path(project_dir)
        self.runner = runner or NpmRunner(self.project_dir)

    @property
    def manifest_path(self) -> Path:
        return self.project_dir / MANIFEST_FILE

    @property
    def lockfile_path(self) -> Path:
        return self.project_dir / LOCKFILE_FILE

    async def validate_pre_update(self) -> List[ValidationIssue]:
        """Sanity-check the project before anything is touched.

        A missing or unreadable manifest is an error. A missing lockfile
        and uncommitted changes to either file are warnings.
        """
        issues: List[ValidationIssue] = []

        if not file_exists(self.manifest_path):
            issues.append(_error(f"{MANIFEST_FILE} not found", MANIFEST_FILE))
            return issues

        try:
            parse_manifest(safe_read_file(self.manifest_path))
        except (MalformedInputError, FileOperationError) as exc:
            issues.append(_error(f"Invalid {MANIFEST_FILE}: {exc.message}", MANIFEST_FILE))
            return issues

        if not file_exists(self.lockfile_path):
            issues.append(
                _warning(
                    f'{LOCKFILE_FILE} not found - run "npm install" to generate it',
                    LOCKFILE_FILE,
                )
            )

        if await self.runner.has_uncommitted_changes():
            issues.append(
                _warning(
                    f"Uncommitted changes in {MANIFEST_FILE} or {LOCKFILE_FILE} "
                    "- commit changes first",
                    "git",
                )
            )

        return issues

    def validate_updates(self, updates: Iterable[PackageUpdate]) -> List[ValidationIssue]:
        """Check proposed updates.

        Errors: an invalid package name, a target that is not a valid
        version, or a target rejected by an installed consumer's range.
        Warnings: major version updates, or a lockfile that cannot be
        read for the consumer check.
        """
        pending = list(updates)
        issues: List[ValidationIssue] = []

        for update in pending:
            if not is_valid_package_name(update.name):
                issues.append(_error("Invalid package name format", update.name))
                continue
            if parse_version(update.target_version) is None:
                issues.append(
                    _error(f"Invalid version format: {update.target_version!r}", update.name)
                )

        issues.extend(self._check_consumers(pending))

        for update in pending:
            if update.update_type == "major":
                issues.append(
                    _warning(
                        "Major version update may contain breaking changes - review changelog",
                        update.name,
                    )
                )

        return issues

    def _check_consumers(self, updates: List[PackageUpdate]) -> List[ValidationIssue]:
        if not updates:
            return []

        try:
            lockfile = load_lockfile(self.project_dir)
        except (MalformedInputError, FileOperationError) as exc:
            return [_warning(f"Could not validate dependency conflicts: {exc.message}")]

        records = build_records(Manifest(), lockfile)
        graph = DependencyGraph.from_records(records.values())
        issues: List[ValidationIssue] = []

        for update in updates:
            for dependent in graph.dependents(update.name):
                record = records.get(dependent)
                if record is None:
                    continue
                required = record.range_for(update.name)
                if required and satisfies(update.target_version, required) is False:
                    issues.append(
                        _error(
                            "Update would break dependency requirement: "
                            f"{dependent} requires {required}",
                            update.name,
                        )
                    )

        return issues

    def validate_post_update(self) -> List[ValidationIssue]:
        """Make sure installing packages left both files readable."""
        issues: List[ValidationIssue] = []

        try:
            parse_manifest(safe_read_file(self.manifest_path))
        except (MalformedInputError, FileOperationError) as exc:
            issues.append(
                _error(f"{MANIFEST_FILE} became invalid after update: {exc.message}", MANIFEST_FILE)
            )

        if file_exists(self.lockfile_path):
            try:
                parse_lockfile(safe_read_file(self.lockfile_path))
            except (MalformedInputError, FileOperationError) as exc:
                issues.append(
                    _error(
                        f"{LOCKFILE_FILE} became invalid after update: {exc.message}",
                        LOCKFILE_FILE,
                    )
                )

        return issues


@dataclass(frozen=True)
class TestRunResult:
    """Outcome of running the project's tests."""

    __test__ = False

    success: bool
    output: str
    skipped: bool = False


class TestRunner:
    """Run the project's ``test`` script through npm."""

    __test__ = False

    def __init__(self, project_dir: Union[str, Path], runner: Optional[NpmRunner] = None) -> None:
        self.project_dir = Path(project_dir)
        self.runner = runner or NpmRunner(self.project_dir)

    def has_test_script(self) -> bool:
        try:
            manifest = parse_manifest(safe_read_file(self.project_dir / MANIFEST_FILE))
        except (MalformedInputError, FileOperationError) as exc:
            logger.debug("Cannot read test script: %s", exc)
            return False
        return manifest.has_test_script

    async def run_pre_update_tests(self) -> TestRunResult:
        """Run ``npm test``; succeed trivially when there is no test script."""
        if not self.has_test_script():
            return TestRunResult(success=True, output=NO_TEST_SCRIPT_MESSAGE, skipped=True)

        result = await self.runner.run_tests()
        output = result.output

        if not result.success:
            return TestRunResult(success=False, output=f"Tests failed:\n{output}")

        if any(marker in output for marker in TEST_FAILURE_MARKERS):
            return TestRunResult(success=False, output=f"Tests failed:\n{output}")

        return TestRunResult(success=True, output=output)

    async def run_post_update_tests(self) -> TestRunResult:
        """Reinstall dependencies, then run the tests again."""
        install = await self.runner.install_all()
        if not install.success:
            return TestRunResult(
                success=False,
                output=f"Post-update setup failed: {install.output}",
            )
        return await self.run_pre_update_tests()
