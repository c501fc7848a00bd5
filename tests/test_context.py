from __future__ import annotations

import click
import pytest
from click.testing import CliRunner

from depgauge.config import DepGaugeConfig
from depgauge.context import DepGaugeContext, pass_context


@pytest.mark.unit
class TestDepGaugeContext:
    def test_defaults(self) -> None:
        ctx = DepGaugeContext()

        assert ctx.config_path is None
        assert ctx.verbose == 0
        assert ctx.color is True
        assert ctx.config == DepGaugeConfig()

    def test_cache_uses_configured_ttl(self) -> None:
        ctx = DepGaugeContext()
        ctx.config = DepGaugeConfig(cache_ttl=42)

        assert ctx.cache.ttl == 42
        assert ctx.cache is ctx.cache

    def test_slots(self) -> None:
        ctx = DepGaugeContext()

        with pytest.raises(AttributeError):
            ctx.unknown = 1  # type: ignore[attr-defined]


@pytest.mark.unit
class TestPassContext:
    def test_injects_context(self) -> None:
        @click.command()
        @pass_context
        def show(ctx: DepGaugeContext) -> None:
            click.echo(f"{type(ctx).__name__} {ctx.verbose}")

        result = CliRunner().invoke(show, [])

        assert result.exit_code == 0
        assert result.output.strip() == "DepGaugeContext 0"
