from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from depgauge.core.analyzer import (
    STAGE_BLOCKERS,
    STAGE_TOP_LEVEL,
    ProjectAnalyzer,
    potentially_blocked,
)
from depgauge.core.registry import VersionCache
from depgauge.exceptions import (
    InvalidProjectError,
    MalformedLockfileError,
    NetworkError,
    ResolutionError,
)
from depgauge.models.package import PackageRecord

from conftest import lock_entry

REGISTRY = "https://registry.test"


def _client(versions: Dict[str, str]) -> MagicMock:
    async def get_json(url: str):
        name = url[len(REGISTRY) + 1 : -len("/latest")]
        return {"version": versions[name]}

    client = MagicMock()
    client.get_json = AsyncMock(side_effect=get_json)
    return client


def _requested(client: MagicMock) -> list:
    return sorted(call.args[0][len(REGISTRY) + 1 : -len("/latest")] for call in client.get_json.await_args_list)


@pytest.mark.unit
class TestPotentiallyBlocked:
    def test_latest_outside_requested_range(self) -> None:
        records = {
            "react": PackageRecord("react", "17.0.2", "^17.0.0"),
            "lodash": PackageRecord("lodash", "4.17.20", "^4.17.0"),
            "private": PackageRecord("private", "1.0.0", "^1.0.0"),
        }
        versions = {"react": "18.3.1", "lodash": "4.17.21", "private": "unknown"}

        assert potentially_blocked(records, ["react", "lodash", "private"], versions) == ["react"]


@pytest.mark.integration
class TestProjectAnalyzer:
    @pytest.mark.asyncio
    async def test_react_blocked_by_old_ui_kit(self, react_project: Path) -> None:
        client = _client({"react": "18.3.1", "lodash": "4.17.21", "old-ui-kit": "1.2.0"})

        report = await ProjectAnalyzer(react_project, http_client=client, registry_url=REGISTRY).analyze()

        assert [dep.name for dep in report.safe] == ["lodash"]
        assert [(dep.name, dep.blocker_name) for dep in report.blocked] == [("react", "old-ui-kit")]
        assert report.major_jump == []
        assert [dep.name for dep in report.all_dependencies] == ["react", "lodash", "old-ui-kit"]

    @pytest.mark.asyncio
    async def test_transitive_blocker_is_resolved_in_second_stage(
        self, write_project: Callable[..., Path]
    ) -> None:
        project = write_project(
            {"react": "^17.0.0", "design-system": "^2.0.0"},
            {
                "node_modules/react": lock_entry("17.0.2"),
                "node_modules/design-system": lock_entry("2.0.0", {"legacy-modal": "^1.0.0"}),
                "node_modules/legacy-modal": lock_entry("1.0.0", peer_dependencies={"react": "^17.0.0"}),
                "node_modules/unrelated": lock_entry("1.0.0"),
            },
        )
        client = _client({"react": "18.3.1", "design-system": "2.0.0", "legacy-modal": "1.0.0"})
        sink = MagicMock()

        report = await ProjectAnalyzer(
            project, http_client=client, registry_url=REGISTRY, progress=sink
        ).analyze()

        assert report.blocked[0].blocker_name == "legacy-modal"
        assert _requested(client) == ["design-system", "legacy-modal", "react"]
        labels = [call.args[1] for call in sink.begin.call_args_list]
        assert labels == [STAGE_TOP_LEVEL, STAGE_BLOCKERS]

    @pytest.mark.asyncio
    async def test_no_second_stage_when_nothing_is_suspect(
        self, write_project: Callable[..., Path]
    ) -> None:
        project = write_project(
            {"lodash": "^4.17.0"},
            {
                "node_modules/lodash": lock_entry("4.17.20"),
                "node_modules/consumer": lock_entry("1.0.0", {"lodash": "^4.0.0"}),
            },
        )
        client = _client({"lodash": "4.17.21"})

        report = await ProjectAnalyzer(project, http_client=client, registry_url=REGISTRY).analyze()

        assert [dep.name for dep in report.safe] == ["lodash"]
        assert _requested(client) == ["lodash"]

    @pytest.mark.asyncio
    async def test_shared_cache_avoids_repeat_lookups(self, react_project: Path) -> None:
        client = _client({"react": "18.3.1", "lodash": "4.17.21", "old-ui-kit": "1.2.0"})
        cache = VersionCache()
        analyzer = ProjectAnalyzer(react_project, http_client=client, registry_url=REGISTRY, cache=cache)

        first = await analyzer.analyze()
        calls = client.get_json.await_count
        second = await analyzer.analyze()

        assert client.get_json.await_count == calls
        assert first.to_json() == second.to_json()

    @pytest.mark.asyncio
    async def test_missing_project(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidProjectError):
            await ProjectAnalyzer(tmp_path, http_client=_client({})).analyze()

    @pytest.mark.asyncio
    async def test_malformed_lockfile(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text("{}", encoding="utf-8")
        (tmp_path / "package-lock.json").write_text('{"lockfileVersion": 1}', encoding="utf-8")

        with pytest.raises(MalformedLockfileError):
            await ProjectAnalyzer(tmp_path, http_client=_client({})).analyze()

    @pytest.mark.asyncio
    async def test_in_range_upgrade_blocked_by_unresolved_transitive_package(
        self, write_project: Callable[..., Path]
    ) -> None:
        project = write_project(
            {"react": "^18.0.0"},
            {
                "node_modules/react": lock_entry("18.2.0"),
                "node_modules/old-ui-kit": lock_entry("1.0.0", {"react": "^17.0.0"}),
            },
        )
        client = _client({"react": "18.3.0"})

        report = await ProjectAnalyzer(project, http_client=client, registry_url=REGISTRY).analyze()

        assert [(dep.name, dep.blocker_name) for dep in report.blocked] == [("react", "old-ui-kit")]
        assert report.safe == [] and report.major_jump == []
        assert client.get_json.await_count == 1

    @pytest.mark.asyncio
    async def test_unreachable_registry_raises(self, react_project: Path) -> None:
        error = NetworkError("Request failed after 1 attempts")
        error.__cause__ = httpx.ConnectError("All connection attempts failed")
        client = MagicMock()
        client.get_json = AsyncMock(side_effect=error)

        with pytest.raises(ResolutionError) as exc_info:
            await ProjectAnalyzer(react_project, http_client=client, registry_url=REGISTRY).analyze()

        assert exc_info.value.stage == STAGE_TOP_LEVEL
