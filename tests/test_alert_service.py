"""Tests for alert creation, deduplication and delivery."""

from datetime import datetime, timedelta

import pytest

from mainnet_monitor.models.monitor_models import AlertCategory, AlertSeverity
from mainnet_monitor.services.alert_service import AlertService
from mainnet_monitor.services.logging_service import LogLevel


class TestCreateAlert:
    """New alerts land in shared state and the log."""

    @pytest.mark.asyncio
    async def test_alert_fields(self, alert_service, state_manager) -> None:
        alert = await alert_service.create_alert(
            AlertCategory.RPC, AlertSeverity.HIGH, "slow", metrics={"rpc_latency": 1200.0}
        )

        assert alert.id.startswith("alert-")
        assert alert.type == AlertCategory.RPC
        assert alert.resolved is False
        assert alert.occurrences == 1
        assert state_manager.recent_alerts(50) == [alert]

    @pytest.mark.asyncio
    async def test_unkeyed_alerts_never_merge(self, alert_service, state_manager) -> None:
        first = await alert_service.create_alert(AlertCategory.SYSTEM, AlertSeverity.LOW, "a")
        second = await alert_service.create_alert(AlertCategory.SYSTEM, AlertSeverity.LOW, "a")

        assert first.id != second.id
        assert len(state_manager.recent_alerts(50)) == 2

    @pytest.mark.asyncio
    async def test_log_level_follows_severity(self, alert_service, logging_service) -> None:
        lines = []
        logging_service.add_handler(lambda message, level: lines.append((level, message)))

        await alert_service.create_alert(AlertCategory.NETWORK, AlertSeverity.CRITICAL, "down")
        await alert_service.create_alert(AlertCategory.PERFORMANCE, AlertSeverity.MEDIUM, "slow")

        assert (LogLevel.ERROR, "CRITICAL Alert: down") in [
            (level, message.split(" - ")[-1]) for level, message in lines
        ]
        assert (LogLevel.WARNING, "MEDIUM Alert: slow") in [
            (level, message.split(" - ")[-1]) for level, message in lines
        ]


class TestDeduplication:
    """Repeats of an ongoing condition fold into one alert."""

    @pytest.mark.asyncio
    async def test_repeat_updates_existing(self, alert_service, state_manager) -> None:
        first = await alert_service.create_alert(
            AlertCategory.RPC, AlertSeverity.MEDIUM, "latency 1200", key="rpc:rpc_latency"
        )
        again = await alert_service.create_alert(
            AlertCategory.RPC,
            AlertSeverity.MEDIUM,
            "latency 1400",
            metrics={"rpc_latency": 1400.0},
            key="rpc:rpc_latency",
        )

        assert again is first
        assert first.occurrences == 2
        assert first.message == "latency 1400"
        assert first.metrics == {"rpc_latency": 1400.0}
        assert len(state_manager.recent_alerts(50)) == 1

    @pytest.mark.asyncio
    async def test_lower_severity_folds(self, alert_service, state_manager) -> None:
        first = await alert_service.create_alert(
            AlertCategory.RPC,
            AlertSeverity.CRITICAL,
            "very slow",
            metrics={"rpc_latency": 3500.0},
            key="rpc:rpc_latency",
        )
        again = await alert_service.create_alert(
            AlertCategory.RPC,
            AlertSeverity.MEDIUM,
            "slow",
            metrics={"rpc_latency": 1500.0},
            key="rpc:rpc_latency",
        )

        assert again is first
        assert first.severity == AlertSeverity.CRITICAL
        assert first.message == "very slow"
        assert first.metrics == {"rpc_latency": 3500.0}
        assert first.occurrences == 2
        assert len(state_manager.recent_alerts(50)) == 1

    @pytest.mark.asyncio
    async def test_escalation_creates_new_alert(self, alert_service, state_manager) -> None:
        first = await alert_service.create_alert(
            AlertCategory.RPC, AlertSeverity.MEDIUM, "slow", key="rpc:rpc_latency"
        )
        escalated = await alert_service.create_alert(
            AlertCategory.RPC, AlertSeverity.CRITICAL, "very slow", key="rpc:rpc_latency"
        )

        assert escalated is not first
        assert len(state_manager.recent_alerts(50)) == 2

    @pytest.mark.asyncio
    async def test_cooldown_expiry(self, alert_service, state_manager) -> None:
        first = await alert_service.create_alert(
            AlertCategory.RPC, AlertSeverity.MEDIUM, "slow", key="rpc:rpc_latency"
        )
        first.last_seen = datetime.now() - timedelta(seconds=301)

        again = await alert_service.create_alert(
            AlertCategory.RPC, AlertSeverity.MEDIUM, "slow", key="rpc:rpc_latency"
        )

        assert again is not first

    @pytest.mark.asyncio
    async def test_resolved_alert_does_not_suppress(self, alert_service) -> None:
        first = await alert_service.create_alert(
            AlertCategory.NETWORK, AlertSeverity.CRITICAL, "down", key="network:health"
        )
        await alert_service.resolve_alert(first.id)

        again = await alert_service.create_alert(
            AlertCategory.NETWORK, AlertSeverity.CRITICAL, "down", key="network:health"
        )

        assert again is not first

    @pytest.mark.asyncio
    async def test_zero_cooldown_disables(
        self, config, state_manager, logging_service
    ) -> None:
        config = config.model_copy(update={"alert_cooldown_seconds": 0})
        service = AlertService(config, state_manager, logging_service)

        for _ in range(3):
            await service.create_alert(
                AlertCategory.RPC, AlertSeverity.MEDIUM, "slow", key="rpc:rpc_latency"
            )

        assert len(state_manager.recent_alerts(50)) == 3


class TestSinksAndResolution:
    """Delivery to subscribers and operator resolution."""

    @pytest.mark.asyncio
    async def test_sync_and_async_sinks(self, alert_service) -> None:
        received = []

        async def async_sink(alert):
            received.append(("async", alert.id))

        alert_service.subscribe(lambda alert: received.append(("sync", alert.id)))
        alert_service.subscribe(async_sink)

        alert = await alert_service.create_alert(AlertCategory.SYSTEM, AlertSeverity.LOW, "x")

        assert received == [("sync", alert.id), ("async", alert.id)]

    @pytest.mark.asyncio
    async def test_failing_sink_does_not_block_others(self, alert_service) -> None:
        received = []

        def broken(alert):
            raise RuntimeError("webhook down")

        alert_service.subscribe(broken)
        alert_service.subscribe(received.append)

        alert = await alert_service.create_alert(AlertCategory.SYSTEM, AlertSeverity.LOW, "x")

        assert received == [alert]

    @pytest.mark.asyncio
    async def test_suppressed_repeat_not_delivered(self, alert_service) -> None:
        received = []
        alert_service.subscribe(received.append)

        for _ in range(3):
            await alert_service.create_alert(
                AlertCategory.RPC, AlertSeverity.MEDIUM, "slow", key="rpc:rpc_latency"
            )

        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, alert_service) -> None:
        received = []
        sink = alert_service.subscribe(received.append)
        alert_service.unsubscribe(sink)

        await alert_service.create_alert(AlertCategory.SYSTEM, AlertSeverity.LOW, "x")

        assert received == []

    @pytest.mark.asyncio
    async def test_resolve_alert(self, alert_service, state_manager) -> None:
        alert = await alert_service.create_alert(AlertCategory.SYSTEM, AlertSeverity.LOW, "x")

        assert await alert_service.resolve_alert(alert.id) is True
        assert alert.resolved is True
        assert state_manager.active_alerts() == []
        assert await alert_service.resolve_alert("alert-unknown") is False
