"""Tests for the command-line interface."""

import pytest
from dependency_injector import providers
from rich.console import Console

from mainnet_monitor.cli import build_config, build_parser, check_endpoints, run
from mainnet_monitor.container import Container
from mainnet_monitor.managers.endpoint_manager import EndpointManager


def parse(*argv):
    return build_parser().parse_args(list(argv))


class TestBuildConfig:
    """Arguments mapped onto Config."""

    def test_endpoints_and_retries(self) -> None:
        args = parse("-e", "wss://a.example", "-f", "wss://b.example", "wss://c.example",
                     "-r", "1", "check")

        config = build_config(args)

        assert config.endpoints == ["wss://a.example", "wss://b.example", "wss://c.example"]
        assert config.max_retries == 1

    def test_run_intervals(self) -> None:
        args = parse("run", "--metrics-interval", "5", "--health-interval", "60")

        config = build_config(args)

        assert config.metrics_interval_seconds == 5
        assert config.health_check_interval_seconds == 60
        assert args.refresh == 2.0

    def test_rippled_config(self, tmp_path) -> None:
        path = tmp_path / "rippled.cfg"
        path.write_text("[port_ws_admin_local]\nport = 6006\n")

        config = build_config(parse("-c", str(path), "check"))

        assert config.primary_endpoint == "ws://localhost:6006"

    def test_explicit_endpoint_beats_rippled_config(self, tmp_path) -> None:
        path = tmp_path / "rippled.cfg"
        path.write_text("[port_ws_admin_local]\nport = 6006\n")

        config = build_config(parse("-e", "wss://a.example", "-c", str(path), "check"))

        assert config.primary_endpoint == "wss://a.example"

    def test_rippled_config_without_port(self, tmp_path) -> None:
        path = tmp_path / "rippled.cfg"
        path.write_text("[server]\n")

        with pytest.raises(ValueError):
            build_config(parse("-c", str(path), "check"))


def test_invalid_configuration_exit_code() -> None:
    assert run(["-r", "-1", "check"]) == 2


class TestCheckEndpoints:
    """The one-shot connectivity check."""

    def make_container(self, config, clients) -> Container:
        container = Container()
        container.config.override(config)
        container.endpoint_manager.override(
            providers.Object(EndpointManager(config, clients=clients))
        )
        return container

    @pytest.mark.asyncio
    async def test_all_reachable(self, config, clients) -> None:
        container = self.make_container(config, clients)
        console = Console(record=True, width=200)

        code = await check_endpoints(container, console)

        assert code == 0
        assert all(client.closed for client in clients)
        assert "1,000" in console.export_text()

    @pytest.mark.asyncio
    async def test_primary_unreachable(self, config, clients) -> None:
        clients[0].probe_error = ConnectionError("refused")
        container = self.make_container(config, clients)
        console = Console(record=True, width=200)

        code = await check_endpoints(container, console)

        assert code == 1
        assert "refused" in console.export_text()
