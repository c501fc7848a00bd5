from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from depgauge.__main__ import main


@pytest.mark.unit
class TestMain:
    """Tests for the ``python -m depgauge`` entry point."""

    @pytest.mark.parametrize(
        "exit_code",
        [0, 1, 130],
        ids=["success", "error", "interrupted"],
    )
    def test_main_returns_cli_exit_code(self, exit_code: int) -> None:
        mock_cli_module = MagicMock()
        mock_cli_module.main = MagicMock(return_value=exit_code)

        with patch.dict("sys.modules", {"depgauge.cli": mock_cli_module}):
            result = main()

        assert result == exit_code
        mock_cli_module.main.assert_called_once_with()
