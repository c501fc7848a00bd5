from __future__ import annotations

import io

import pytest
from rich.console import Console

from depgauge.utils.progress import ProgressSink, RichProgressSink


@pytest.mark.unit
class TestRichProgressSink:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(RichProgressSink(Console(file=io.StringIO())), ProgressSink)

    def test_stage_lifecycle(self) -> None:
        sink = RichProgressSink(Console(file=io.StringIO()))

        sink.begin(2, "Fetching latest versions")
        sink.advance("react")
        sink.advance("lodash")
        task = sink._progress.tasks[0]

        assert task.completed == 2
        assert task.total == 2

        sink.end()
        assert sink._progress is None

    def test_advance_without_stage_is_ignored(self) -> None:
        sink = RichProgressSink(Console(file=io.StringIO()))

        sink.advance("react")
        sink.end()

        assert sink._progress is None

    def test_begin_resets_previous_stage(self) -> None:
        sink = RichProgressSink(Console(file=io.StringIO()))

        sink.begin(3, "first")
        sink.advance("a")
        sink.begin(1, "second")

        assert sink._progress.tasks[0].description == "second"
        assert sink._progress.tasks[0].completed == 0
        sink.end()
