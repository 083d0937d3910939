"""
Background metrics collection, health checks and threshold alerting
"""

import asyncio
import time
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Sequence

import psutil

from ..clients.base import LedgerClient
from ..config import MetricThreshold
from ..models.monitor_models import (
    AlertCategory,
    AlertSeverity,
    ConnectionReport,
    PerformanceDashboard,
    PerformanceMetrics,
    SystemStatus,
)
from ..utils.formatters import classify_network_health, format_duration, mask_sensitive_url
from ..utils.parsers import parse_ledger_ranges

# Type hints only - these are injected via DI
if TYPE_CHECKING:
    from ..config import Config
    from ..managers.endpoint_manager import EndpointManager
    from ..managers.state_manager import StateManager
    from .alert_service import AlertService
    from .logging_service import LoggingService


METRIC_LABELS = {
    "rpc_latency": "endpoint latency",
    "response_time": "response time",
    "error_rate": "error rate",
    "success_rate": "success rate",
}

METRIC_CATEGORIES = {
    "rpc_latency": AlertCategory.RPC,
}


def evaluate_threshold(value: float, threshold: MetricThreshold) -> Optional[AlertSeverity]:
    """Severity for a sample, or None when it is inside the normal range"""
    if threshold.direction == "below":
        critical = value <= threshold.critical
        warning = value <= threshold.warning
    else:
        critical = value >= threshold.critical
        warning = value >= threshold.warning

    if critical:
        return AlertSeverity.CRITICAL
    if warning:
        return AlertSeverity.MEDIUM
    return None


def calculate_trend(values: Sequence[float]) -> float:
    """Relative change of the second half's mean over the first half's"""
    if len(values) < 2:
        return 0.0

    middle = len(values) // 2
    first_avg = sum(values[:middle]) / middle
    second_avg = sum(values[middle:]) / (len(values) - middle)
    if first_avg == 0:
        return 0.0
    return (second_avg - first_avg) / first_avg


class MonitoringService:
    """Runs the metrics and health loops against the primary endpoint"""

    def __init__(
        self,
        config: "Config",
        state_manager: "StateManager",
        endpoint_manager: "EndpointManager",
        alert_service: "AlertService",
        logging_service: "LoggingService",
    ):
        self.config = config
        self.state_manager = state_manager
        self.endpoint_manager = endpoint_manager
        self.alert_service = alert_service
        self.logger = logging_service

        self._shutdown_event = asyncio.Event()
        self._tasks: List[asyncio.Task] = []
        self._process = psutil.Process()

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self):
        """Start the collection and health-check loops"""
        if self.is_running:
            return

        self._shutdown_event.clear()
        self._tasks = [
            asyncio.create_task(
                self._run_periodically(
                    self.config.metrics_interval_seconds, self.run_collection_cycle, "Metrics"
                )
            ),
            asyncio.create_task(
                self._run_periodically(
                    self.config.health_check_interval_seconds,
                    self.perform_network_health_check,
                    "Health check",
                )
            ),
        ]
        self.logger.info(
            f"Performance monitoring started "
            f"({format_duration(self.config.metrics_interval_seconds)} metrics, "
            f"{format_duration(self.config.health_check_interval_seconds)} health checks)"
        )

    async def stop(self):
        """Stop both loops and wait for them to exit"""
        self.logger.info("Stopping performance monitoring...")
        self._shutdown_event.set()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def _run_periodically(
        self, interval: float, job: Callable[[], Awaitable[object]], name: str
    ):
        while not self._shutdown_event.is_set():
            try:
                await job()
            except Exception as e:
                self.logger.error(f"{name} loop error: {e}", exc_info=True)

            try:
                await asyncio.wait_for(self._shutdown_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def run_collection_cycle(self):
        """One tick of the metrics loop: collect, look for trends, check thresholds"""
        await self.collect_performance_metrics()
        await self.analyze_performance_trends()
        await self.check_performance_thresholds()

    async def collect_performance_metrics(self) -> Optional[PerformanceMetrics]:
        """Probe the primary endpoint and append a snapshot to the history"""
        primary = self.endpoint_manager.primary
        start_time = time.monotonic()

        try:
            probe_start = time.monotonic()
            await primary.get_latest_reference_point()
            rpc_latency = (time.monotonic() - probe_start) * 1000

            window = await primary.get_recent_performance_window()
            network_congestion = window.transactions_per_second if window else 0.0

            return await self.state_manager.record_snapshot(
                rpc_latency=rpc_latency,
                network_congestion=network_congestion,
                response_time=(time.monotonic() - start_time) * 1000,
            )

        except Exception as e:
            self.logger.error(f"Failed to collect performance metrics: {e}")
            await self.alert_service.create_alert(
                AlertCategory.PERFORMANCE,
                AlertSeverity.MEDIUM,
                f"Failed to collect performance metrics: {e}",
                key="performance:collection",
            )
            return None

    async def analyze_performance_trends(self):
        """Raise alerts for a sustained rise in latency or response time"""
        history = self.state_manager.get_history()
        window = self.config.trend_window
        if len(history) < window:
            return

        recent = history[-window:]
        latencies = [m.rpc_latency for m in recent]
        response_times = [m.response_time for m in recent]
        average_latency = sum(latencies) / len(latencies)
        average_response_time = sum(response_times) / len(response_times)

        if (
            calculate_trend(latencies) > self.config.latency_trend_fraction
            and average_latency > self.config.latency_trend_floor_ms
        ):
            await self.alert_service.create_alert(
                AlertCategory.PERFORMANCE,
                AlertSeverity.MEDIUM,
                f"RPC latency increasing trend detected. Average: {average_latency:.0f}ms",
                metrics={"rpc_latency": average_latency},
                key="trend:rpc_latency",
            )

        if (
            calculate_trend(response_times) > self.config.response_trend_fraction
            and average_response_time > self.config.response_trend_floor_ms
        ):
            await self.alert_service.create_alert(
                AlertCategory.PERFORMANCE,
                AlertSeverity.HIGH,
                f"Response time degradation detected. Average: {average_response_time:.0f}ms",
                metrics={"response_time": average_response_time},
                key="trend:response_time",
            )

    async def check_performance_thresholds(self, metrics: Optional[PerformanceMetrics] = None):
        """Compare a snapshot (the current one by default) with the thresholds"""
        metrics = metrics or self.state_manager.get_metrics()

        for metric, threshold in self.config.thresholds.items():
            value = getattr(metrics, metric, None)
            if value is None:
                continue

            severity = evaluate_threshold(value, threshold)
            if severity is None:
                continue

            label = METRIC_LABELS.get(metric, metric)
            prefix = "Critical" if severity == AlertSeverity.CRITICAL else "Warning"
            category = METRIC_CATEGORIES.get(metric, AlertCategory.PERFORMANCE)
            await self.alert_service.create_alert(
                category,
                severity,
                f"{prefix} {label} threshold exceeded: {value:.1f}",
                metrics={metric: value},
                key=f"{category.value}:{metric}",
            )

    async def perform_network_health_check(self) -> bool:
        """Check health, version and ledger progress of the primary endpoint"""
        primary = self.endpoint_manager.primary
        try:
            health, version, epoch_info = await asyncio.gather(
                primary.get_health(),
                primary.get_version(),
                primary.get_epoch_info(),
                return_exceptions=True,
            )

            healthy = not isinstance(health, BaseException) and health == "ok"
            if not healthy:
                detail = health if isinstance(health, str) else f"{type(health).__name__}: {health}"
                await self.alert_service.create_alert(
                    AlertCategory.NETWORK,
                    AlertSeverity.CRITICAL,
                    f"Network health check failed - RPC endpoint may be unhealthy ({detail})",
                    key="network:health",
                )

            summary = f"Network health check completed: {health if healthy else 'unhealthy'}"
            if isinstance(epoch_info, dict):
                summary += f", ledger {epoch_info.get('ledger_index')}"
                history = parse_ledger_ranges(epoch_info.get("complete_ledgers", ""))
                summary += f" ({history:,} ledgers of history)"
            if isinstance(version, dict):
                summary += f", version {version.get('build_version')}"
            self.logger.info(summary)
            return healthy

        except Exception as e:
            self.logger.error(f"Network health check error: {e}")
            await self.alert_service.create_alert(
                AlertCategory.NETWORK,
                AlertSeverity.CRITICAL,
                f"Network health check error: {e}",
                key="network:health",
            )
            return False

    async def validate_connection(self, client: Optional[LedgerClient] = None) -> ConnectionReport:
        """One-shot connectivity check with a latency grade"""
        client = client or self.endpoint_manager.primary
        start_time = time.monotonic()
        try:
            ledger_index, epoch_info, version = await asyncio.gather(
                client.get_latest_reference_point(),
                client.get_epoch_info(),
                client.get_version(),
            )
        except Exception as e:
            self.logger.warning(
                f"Connection check against {mask_sensitive_url(client.endpoint)} failed: {e}"
            )
            return ConnectionReport(endpoint=client.endpoint, success=False, error=str(e))

        latency_ms = (time.monotonic() - start_time) * 1000
        ledger_index = ledger_index or epoch_info.get("ledger_index")
        if not ledger_index:
            return ConnectionReport(
                endpoint=client.endpoint,
                success=False,
                latency_ms=latency_ms,
                error="Invalid network response",
            )

        return ConnectionReport(
            endpoint=client.endpoint,
            success=True,
            latency_ms=latency_ms,
            ledger_index=int(ledger_index),
            ledger_count=parse_ledger_ranges(epoch_info.get("complete_ledgers", "")),
            version=version.get("build_version"),
            network_health=classify_network_health(latency_ms),
        )

    def get_system_status(self) -> SystemStatus:
        active_alerts = self.state_manager.active_alerts()
        if any(a.severity == AlertSeverity.CRITICAL for a in active_alerts):
            return SystemStatus.CRITICAL
        error_rate = self.state_manager.get_metrics().error_rate
        if active_alerts or error_rate > self.config.degraded_error_rate:
            return SystemStatus.DEGRADED
        return SystemStatus.OPTIMAL

    def get_uptime(self) -> float:
        """Seconds since this process started"""
        return max(0.0, time.time() - self._process.create_time())

    def get_performance_dashboard(self) -> PerformanceDashboard:
        """Read-only snapshot for dashboards"""
        alerts = self.state_manager.recent_alerts(self.config.dashboard_alert_limit)
        batches = self.state_manager.recent_batches(self.config.dashboard_batch_limit)
        return PerformanceDashboard(
            metrics=self.state_manager.get_metrics().model_copy(),
            alerts=[a.model_copy() for a in alerts],
            batches=[b.model_copy() for b in batches],
            system_status=self.get_system_status(),
            uptime=self.get_uptime(),
        )
