"""
Rich renderables for the performance dashboard and connection reports
"""

from typing import List

from rich.console import Group
from rich.table import Table
from rich.text import Text

from ..models.monitor_models import (
    AlertSeverity,
    ConnectionReport,
    PerformanceDashboard,
    SystemStatus,
)
from ..services.logging_service import LogLevel
from ..utils.formatters import format_duration, format_ms, mask_sensitive_url

STATUS_STYLES = {
    SystemStatus.OPTIMAL: "bold green",
    SystemStatus.DEGRADED: "bold yellow",
    SystemStatus.CRITICAL: "bold red",
}

SEVERITY_STYLES = {
    AlertSeverity.LOW: "dim",
    AlertSeverity.MEDIUM: "yellow",
    AlertSeverity.HIGH: "red",
    AlertSeverity.CRITICAL: "bold red",
}

LOG_STYLES = {
    LogLevel.ERROR: "red",
    LogLevel.WARNING: "yellow",
    LogLevel.INFO: None,
    LogLevel.DEBUG: "dim",
    LogLevel.CRITICAL: "bold red",
}

# Alerts shown on screen; the dashboard itself carries more
VISIBLE_ALERTS = 8


def render_metrics(dashboard: PerformanceDashboard) -> Table:
    """Current metrics as a two column table"""
    metrics = dashboard.metrics
    table = Table(show_header=True, header_style="bold cyan", box=None, expand=True)
    table.add_column("Metric", style="yellow", ratio=2)
    table.add_column("Value", justify="right", style="green", ratio=1)

    table.add_row("Endpoint latency", format_ms(metrics.rpc_latency))
    table.add_row("Response time", format_ms(metrics.response_time))
    table.add_row("Confirmation time", format_ms(metrics.transaction_confirmation_time))
    table.add_row("Success rate", f"{metrics.success_rate:.1f}%")
    table.add_row("Error rate", f"{metrics.error_rate:.1f}%")
    table.add_row("Throughput", f"{metrics.throughput:.2f} tx/s")
    table.add_row("Network congestion", f"{metrics.network_congestion:.1f} tx/s")
    return table


def render_alerts(dashboard: PerformanceDashboard) -> Table:
    """Most recent alerts, newest first"""
    table = Table(show_header=True, header_style="bold cyan", box=None, expand=True)
    table.add_column("Time", style="blue", ratio=1)
    table.add_column("Severity", ratio=1)
    table.add_column("Type", style="magenta", ratio=1)
    table.add_column("Message", ratio=5)
    table.add_column("Seen", justify="right", ratio=1)

    for alert in reversed(dashboard.alerts[-VISIBLE_ALERTS:]):
        table.add_row(
            alert.timestamp.strftime("%H:%M:%S"),
            Text(alert.severity.value, style=SEVERITY_STYLES.get(alert.severity)),
            alert.type.value,
            Text(alert.message, style="dim" if alert.resolved else None),
            str(alert.occurrences),
        )
    return table


def render_batches(dashboard: PerformanceDashboard) -> Table:
    table = Table(show_header=True, header_style="bold cyan", box=None, expand=True)
    table.add_column("Batch", style="yellow", ratio=2)
    table.add_column("Status", ratio=1)
    table.add_column("Done", justify="right", style="green", ratio=1)
    table.add_column("Failed", justify="right", style="red", ratio=1)
    table.add_column("Avg confirm", justify="right", style="blue", ratio=1)

    for batch in reversed(dashboard.batches):
        table.add_row(
            batch.batch_id,
            batch.status.value,
            f"{batch.completed_transactions}/{batch.total_transactions}",
            str(batch.failed_transactions),
            format_ms(batch.average_confirmation_time),
        )
    return table


def render_dashboard(dashboard: PerformanceDashboard) -> Group:
    """Full dashboard: status line, metrics, alerts and batches"""
    status = Text.assemble(
        ("Status: ", "bold"),
        (dashboard.system_status.value.upper(), STATUS_STYLES[dashboard.system_status]),
        f"   Uptime: {format_duration(dashboard.uptime)}",
        f"   Alerts: {len(dashboard.alerts)}",
    )
    parts: List = [status, Text(""), render_metrics(dashboard)]
    if dashboard.alerts:
        parts += [Text(""), Text("Recent alerts", style="bold"), render_alerts(dashboard)]
    if dashboard.batches:
        parts += [Text(""), Text("Batches", style="bold"), render_batches(dashboard)]
    return Group(*parts)


def render_connection_reports(reports: List[ConnectionReport]) -> Table:
    """Connection check results, one row per endpoint"""
    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Endpoint", style="yellow", ratio=3)
    table.add_column("Result", ratio=1)
    table.add_column("Latency", justify="right", ratio=1)
    table.add_column("Ledger", justify="right", ratio=1)
    table.add_column("History", justify="right", ratio=1)
    table.add_column("Health", ratio=1)
    table.add_column("Detail", ratio=3)

    for report in reports:
        table.add_row(
            mask_sensitive_url(report.endpoint),
            Text("ok", style="green") if report.success else Text("failed", style="red"),
            format_ms(report.latency_ms) if report.latency_ms is not None else "-",
            f"{report.ledger_index:,}" if report.ledger_index else "-",
            f"{report.ledger_count:,}" if report.ledger_count is not None else "-",
            report.network_health.value,
            report.error or report.version or "",
        )
    return table
