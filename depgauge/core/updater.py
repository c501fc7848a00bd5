"""Update orchestration.

:class:`UpdateManager` previews and applies updates for one project. An
update run moves through these stages, recorded on
:attr:`UpdateResult.stage`::

    validating -> backing-up -> dry-run (stop)
                             -> testing-pre -> applying
                                -> validating-post -> testing-post -> done

Validation errors stop the run before anything is modified. A package
that fails to install is recorded and the batch carries on. A failed
post-update check marks the result unsuccessful but leaves the project
as it is; the backup path is reported so the user can restore it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Union

from depgauge.core.backup import BackupManager
from depgauge.core.analyzer import ProjectAnalyzer
from depgauge.core.planner import build_update_plan
from depgauge.core.registry import VersionCache
from depgauge.core.package_manager import NpmRunner
from depgauge.core.validation import TestRunner, UpdateValidator, errors_in, warnings_in
from depgauge.utils.http import HTTPClient
from depgauge.utils.logger import get_logger
from depgauge.utils.progress import ProgressSink
from depgauge.exceptions import DepGaugeError, UpdateFailedError, ValidationError
from depgauge.models.package import AnalysisReport
from depgauge.models.update import (
    BackupRecord,
    PackageUpdate,
    UpdateCategory,
    UpdateOptions,
    UpdatePlan,
    UpdateResult,
    UpdateStage,
    ValidationIssue,
)
from depgauge.constants import (
    DEFAULT_BACKUP_KEEP,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REGISTRY_URL,
    DEFAULT_TIMEOUT,
)

logger = get_logger("updater")


def _issue_messages(issues: Iterable[ValidationIssue], prefix: str = "") -> List[str]:
    return [f"{prefix}{issue.package or 'project'}: {issue.message}" for issue in issues]


class UpdateManager:
    """Preview and apply dependency updates for one npm project.

    Args:
        project_dir: Project directory.
        cache: Version cache shared with other analyses.
        runner: npm/git runner; replaced by a mock in tests.
        http_client: Open HTTP client to reuse for analysis.
        registry_url: Registry base URL.
        timeout: Per-request registry timeout in seconds.
        max_retries: Retries per registry lookup.
        backup_keep: Backups kept after a successful run.
        progress: Optional progress sink for analysis.
    """

    def __init__(
        self,
        project_dir: Union[str, Path] = ".",
        *,
        cache: Optional[VersionCache] = None,
        runner: Optional[NpmRunner] = None,
        http_client: Optional[HTTPClient] = None,
        registry_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backup_keep: int = DEFAULT_BACKUP_KEEP,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.runner = runner or NpmRunner(self.project_dir)
        self.backups = BackupManager(self.project_dir)
        self.validator = UpdateValidator(self.project_dir, self.runner)
        self.tests = TestRunner(self.project_dir, self.runner)
        self.backup_keep = backup_keep
        self.analyzer = ProjectAnalyzer(
            self.project_dir,
            cache=cache,
            http_client=http_client,
            registry_url=registry_url,
            timeout=timeout,
            max_retries=max_retries,
            progress=progress,
        )

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    async def analyze(self) -> AnalysisReport:
        return await self.analyzer.analyze()

    async def preview_update(
        self,
        options: Optional[UpdateOptions] = None,
        report: Optional[AnalysisReport] = None,
    ) -> UpdatePlan:
        """Analyze the project (unless ``report`` is given) and plan updates."""
        if report is None:
            report = await self.analyze()
        return build_update_plan(report, options or UpdateOptions())

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------

    def create_backup(self) -> BackupRecord:
        return self.backups.create_backup()

    def restore_backup(self, backup_path: Union[str, Path]) -> BackupRecord:
        return self.backups.restore_backup(backup_path)

    # ------------------------------------------------------------------
    # Applying
    # ------------------------------------------------------------------

    async def update(
        self,
        selected_names: Iterable[str],
        options: Optional[UpdateOptions] = None,
        plan: Optional[UpdatePlan] = None,
    ) -> UpdateResult:
        """Apply updates for ``selected_names``.

        Structural problems found along the way end the run and are
        reported in ``result.errors``; this method only raises for
        interruption.

        Args:
            selected_names: Packages to update.
            options: Update options; defaults apply when omitted.
            plan: Plan to select from; computed with :meth:`preview_update`
                when omitted.
        """
        options = options or UpdateOptions()
        result = UpdateResult()

        try:
            await self._run(list(dict.fromkeys(selected_names)), options, plan, result)
        except ValidationError as exc:
            result.success = False
            result.errors.extend(_issue_messages(errors_in(exc.issues)))
            result.warnings.extend(_issue_messages(warnings_in(exc.issues)))
        except DepGaugeError as exc:
            logger.debug("Update stopped at %s: %r", result.stage.value, exc)
            result.fail(f"Update operation failed: {exc}")

        return result

    async def _run(
        self,
        selected_names: List[str],
        options: UpdateOptions,
        plan: Optional[UpdatePlan],
        result: UpdateResult,
    ) -> None:
        result.stage = UpdateStage.VALIDATING
        pre_issues = await self.validator.validate_pre_update()
        if errors_in(pre_issues):
            raise ValidationError(
                "Pre-update validation failed",
                issues=pre_issues,
                stage="pre-update",
            )
        result.warnings.extend(_issue_messages(warnings_in(pre_issues)))

        if plan is None:
            plan = await self.preview_update(options)

        selected = self._select(plan, selected_names, result)

        selection_issues = self.validator.validate_updates(selected)
        if errors_in(selection_issues):
            raise ValidationError(
                "Selected updates failed validation",
                issues=selection_issues,
                stage="selection",
            )
        result.warnings.extend(_issue_messages(warnings_in(selection_issues)))

        result.stage = UpdateStage.BACKING_UP
        if options.backup:
            record = self.backups.create_backup()
            result.backup_path = record.path

        if options.dry_run:
            result.stage = UpdateStage.DRY_RUN
            result.updated = [update.name for update in selected]
            return

        if options.run_tests:
            result.stage = UpdateStage.TESTING_PRE
            pre_tests = await self.tests.run_pre_update_tests()
            if not pre_tests.success:
                result.fail(f"Pre-update tests failed: {pre_tests.output}")
                return
            if pre_tests.skipped:
                logger.info(pre_tests.output)

        result.stage = UpdateStage.APPLYING
        for update in selected:
            try:
                await self._apply_one(update)
            except UpdateFailedError as exc:
                logger.warning("%s", exc)
                result.failed.append(exc.package_name)
                result.errors.append(f"{exc.message}: {(exc.output or '').strip()}")
            else:
                result.updated.append(update.name)

        result.stage = UpdateStage.VALIDATING_POST
        post_issues = self.validator.validate_post_update()
        if errors_in(post_issues):
            result.success = False
            result.errors.extend(_issue_messages(errors_in(post_issues), "Post-update error: "))

        if options.run_tests and result.success:
            result.stage = UpdateStage.TESTING_POST
            post_tests = await self.tests.run_post_update_tests()
            if not post_tests.success:
                result.fail(f"Post-update tests failed: {post_tests.output}")
                logger.warning("Post-update tests failed; restore %s to roll back", result.backup_path)

        removed = self.backups.cleanup_backups(self.backup_keep)
        if removed:
            logger.info("Removed %d old backups", len(removed))

        result.stage = UpdateStage.DONE

    def _select(
        self,
        plan: UpdatePlan,
        selected_names: List[str],
        result: UpdateResult,
    ) -> List[PackageUpdate]:
        """Pick the planned updates to apply; blocked ones are set aside."""
        selected: List[PackageUpdate] = []
        for name in selected_names:
            update = plan.get(name)
            if update is None:
                result.warnings.append(f"{name}: no update available")
                continue
            if update.category is UpdateCategory.BLOCKED:
                result.blocked.append(name)
                result.warnings.append(f"{name}: blocked by {update.blocker}")
                continue
            selected.append(update)
        return selected

    async def _apply_one(self, update: PackageUpdate) -> None:
        """Install one update.

        Raises:
            UpdateFailedError: ``npm install`` exited non-zero or timed out.
        """
        logger.info(
            "Updating %s (%s -> %s)",
            update.name,
            update.current_version,
            update.target_version,
        )
        outcome = await self.runner.install_package(update.name, update.target_version)
        if not outcome.success:
            raise UpdateFailedError(
                update.name,
                target_version=update.target_version,
                output=outcome.output,
            )
