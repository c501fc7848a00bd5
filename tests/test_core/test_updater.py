from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest

from depgauge.core.updater import UpdateManager
from depgauge.core.package_manager import CommandResult
from depgauge.models.update import UpdateOptions, UpdateStage

from conftest import lock_entry

REGISTRY = "https://registry.test"

LATEST = {"react": "18.3.1", "lodash": "4.17.21", "old-ui-kit": "1.2.0", "chalk": "5.3.0"}


def _client(versions: Dict[str, str] = LATEST) -> MagicMock:
    async def get_json(url: str):
        return {"version": versions[url[len(REGISTRY) + 1 : -len("/latest")]]}

    client = MagicMock()
    client.get_json = AsyncMock(side_effect=get_json)
    return client


def _runner(*, failing: tuple = ()) -> MagicMock:
    async def install_package(name: str, version: str) -> CommandResult:
        if name in failing:
            return CommandResult(("npm", "install", f"{name}@{version}"), 1, stderr="ETARGET")
        return CommandResult(("npm", "install", f"{name}@{version}"), 0)

    runner = MagicMock()
    runner.has_uncommitted_changes = AsyncMock(return_value=False)
    runner.install_package = AsyncMock(side_effect=install_package)
    runner.install_all = AsyncMock(return_value=CommandResult(("npm", "install"), 0))
    runner.run_tests = AsyncMock(return_value=CommandResult(("npm", "test"), 0, stdout="ok"))
    return runner


@pytest.fixture
def project(write_project: Callable[..., Path]) -> Path:
    return write_project(
        {"react": "^17.0.0", "lodash": "^4.17.0", "old-ui-kit": "^1.0.0"},
        {
            "node_modules/react": lock_entry("17.0.2"),
            "node_modules/lodash": lock_entry("4.17.20"),
            "node_modules/old-ui-kit": lock_entry("1.2.0", peer_dependencies={"react": "^17.0.0"}),
            "node_modules/chalk": lock_entry("4.1.2"),
        },
        dev_dependencies={"chalk": "^4.1.0"},
        scripts={"test": "jest"},
    )


def _manager(project: Path, runner: MagicMock) -> UpdateManager:
    return UpdateManager(project, runner=runner, http_client=_client(), registry_url=REGISTRY)


@pytest.mark.integration
class TestPreviewUpdate:
    @pytest.mark.asyncio
    async def test_plan_categories(self, project: Path) -> None:
        plan = await _manager(project, _runner()).preview_update()

        assert {u.name: u.category.value for u in plan.packages} == {
            "lodash": "safe",
            "chalk": "major",
            "react": "blocked",
        }
        assert plan.get("react").blocker == "old-ui-kit"

    @pytest.mark.asyncio
    async def test_safe_only_without_dev(self, project: Path) -> None:
        plan = await _manager(project, _runner()).preview_update(
            UpdateOptions(safe_only=True, include_dev=False)
        )

        assert [u.name for u in plan.packages] == ["lodash"]


@pytest.mark.integration
class TestUpdate:
    @pytest.mark.asyncio
    async def test_successful_run(self, project: Path) -> None:
        runner = _runner()

        result = await _manager(project, runner).update(["lodash", "chalk"])

        assert result.success is True
        assert result.updated == ["lodash", "chalk"]
        assert result.stage is UpdateStage.DONE
        assert result.backup_path is not None and Path(result.backup_path).is_dir()
        assert any("chalk" in w and "Major version" in w for w in result.warnings)
        runner.run_tests.assert_awaited()
        runner.install_all.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_dry_run_installs_nothing(self, project: Path) -> None:
        runner = _runner()

        result = await _manager(project, runner).update(["lodash"], UpdateOptions(dry_run=True))

        assert result.success is True
        assert result.updated == ["lodash"]
        assert result.stage is UpdateStage.DRY_RUN
        runner.install_package.assert_not_awaited()
        runner.run_tests.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_blocked_selection_is_not_applied(self, project: Path) -> None:
        runner = _runner()

        result = await _manager(project, runner).update(["react", "lodash"])

        assert result.blocked == ["react"]
        assert result.updated == ["lodash"]
        assert "react: blocked by old-ui-kit" in result.warnings
        assert [c.args[0] for c in runner.install_package.await_args_list] == ["lodash"]

    @pytest.mark.asyncio
    async def test_unknown_selection_warns(self, project: Path) -> None:
        result = await _manager(project, _runner()).update(["left-pad"], UpdateOptions(backup=False))

        assert result.updated == []
        assert "left-pad: no update available" in result.warnings

    @pytest.mark.asyncio
    async def test_install_failure_is_recorded(self, project: Path) -> None:
        runner = _runner(failing=("chalk",))

        result = await _manager(project, runner).update(["chalk", "lodash"])

        assert result.failed == ["chalk"]
        assert result.updated == ["lodash"]
        assert result.errors == ["Failed to update chalk: ETARGET"]
        assert result.stage is UpdateStage.DONE

    @pytest.mark.asyncio
    async def test_pre_update_tests_fail(self, project: Path) -> None:
        runner = _runner()
        runner.run_tests.return_value = CommandResult(("npm", "test"), 1, stdout="1 failing")

        result = await _manager(project, runner).update(["lodash"])

        assert result.success is False
        assert result.stage is UpdateStage.TESTING_PRE
        assert result.errors[0].startswith("Pre-update tests failed:")
        runner.install_package.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_tests_option(self, project: Path) -> None:
        runner = _runner()

        result = await _manager(project, runner).update(["lodash"], UpdateOptions(run_tests=False))

        assert result.success is True
        runner.run_tests.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pre_update_validation_error(self, tmp_path: Path) -> None:
        runner = _runner()

        result = await _manager(tmp_path, runner).update(["lodash"])

        assert result.success is False
        assert result.stage is UpdateStage.VALIDATING
        assert result.errors == ["package.json: package.json not found"]
        runner.install_package.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_restore_after_update(self, project: Path) -> None:
        original = (project / "package.json").read_bytes()
        manager = _manager(project, _runner())

        result = await manager.update(["lodash"], UpdateOptions(run_tests=False))
        (project / "package.json").write_text('{"name": "demo", "dependencies": {}}')
        manager.restore_backup(result.backup_path)

        assert (project / "package.json").read_bytes() == original
