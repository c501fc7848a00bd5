from __future__ import annotations

import io
import logging
from typing import Generator

import pytest

from depgauge.utils.logger import (
    ColoredFormatter,
    disable_logging,
    get_logger,
    is_logging_configured,
    level_for_verbosity,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    yield
    disable_logging()


class FakeTTY(io.StringIO):
    def isatty(self) -> bool:
        return True


@pytest.mark.unit
class TestGetLogger:
    def test_namespaced(self) -> None:
        assert get_logger("registry").name == "depgauge.registry"
        assert get_logger("depgauge.registry") is get_logger("registry")
        assert get_logger().name == "depgauge"

    def test_library_use_is_silent(self) -> None:
        root = logging.getLogger("depgauge")
        root.handlers.clear()

        get_logger("x")

        assert any(isinstance(h, logging.NullHandler) for h in root.handlers)


@pytest.mark.unit
class TestSetupLogging:
    @pytest.mark.parametrize(
        "verbose,level",
        [(0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
    )
    def test_level_for_verbosity(self, verbose: int, level: int) -> None:
        assert level_for_verbosity(verbose) == level

    def test_writes_to_stream(self) -> None:
        stream = io.StringIO()
        setup_logging(level=logging.INFO, stream=stream)

        get_logger("analyzer").info("Analyzing %s", "demo")
        get_logger("analyzer").debug("hidden")

        output = stream.getvalue()
        assert "Analyzing demo" in output
        assert "hidden" not in output
        assert is_logging_configured() is True

    def test_repeated_setup_replaces_handler(self) -> None:
        setup_logging(stream=io.StringIO())
        setup_logging(stream=io.StringIO())

        assert len(logging.getLogger("depgauge").handlers) == 1

    def test_disable_logging(self) -> None:
        setup_logging(stream=io.StringIO())
        disable_logging()

        assert is_logging_configured() is False


@pytest.mark.unit
class TestColoredFormatter:
    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("depgauge", logging.ERROR, __file__, 1, "boom", None, None)

    def test_colors_on_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("CI", raising=False)
        formatter = ColoredFormatter("%(levelname)s %(message)s", stream=FakeTTY())
        record = self._record()

        output = formatter.format(record)

        assert "\033[31m" in output
        assert record.levelname == "ERROR"

    def test_plain_when_no_color(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        formatter = ColoredFormatter("%(levelname)s %(message)s", stream=FakeTTY())

        assert formatter.format(self._record()) == "ERROR boom"
