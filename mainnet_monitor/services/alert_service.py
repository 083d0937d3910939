"""
Alert creation, deduplication and delivery to subscribed sinks
"""

import asyncio
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Optional, Union

from ..models.monitor_models import AlertCategory, AlertSeverity, SystemAlert

# Type hints only - these are injected via DI
if TYPE_CHECKING:
    from ..config import Config
    from ..managers.state_manager import StateManager
    from .logging_service import LoggingService


AlertSink = Callable[[SystemAlert], Union[None, Awaitable[None]]]


class AlertService:
    """Creates alerts in the shared state and fans them out to sinks.

    Alerts carrying a ``key`` are deduplicated: while an unresolved alert with
    the same key was last seen less than ``alert_cooldown_seconds`` ago, a
    repeat at the same or lower severity updates that alert instead of
    appending a new one. Only a same-severity repeat replaces the message and
    metrics. Escalations always create a new alert.
    """

    def __init__(
        self,
        config: "Config",
        state_manager: "StateManager",
        logging_service: "LoggingService",
    ):
        self.config = config
        self.state_manager = state_manager
        self.logger = logging_service
        self._sinks: list = []

    def subscribe(self, sink: AlertSink) -> AlertSink:
        """Register a delivery channel for new alerts"""
        self._sinks.append(sink)
        return sink

    def unsubscribe(self, sink: AlertSink):
        if sink in self._sinks:
            self._sinks.remove(sink)

    async def create_alert(
        self,
        category: AlertCategory,
        severity: AlertSeverity,
        message: str,
        metrics: Optional[Dict[str, float]] = None,
        key: Optional[str] = None,
    ) -> SystemAlert:
        """Record an alert, or fold it into the ongoing one with the same key"""
        if key is not None:
            existing = self._suppressing_alert(key, severity)
            if existing is not None:
                if severity == existing.severity:
                    await self.state_manager.touch_alert(existing, message, metrics)
                else:
                    # Lower severity repeat; the reading behind the severity stays
                    await self.state_manager.touch_alert(existing)
                self.logger.debug(
                    f"Suppressed repeat alert {existing.id} ({key}), seen {existing.occurrences} times"
                )
                return existing

        alert = SystemAlert(
            id=f"alert-{uuid.uuid4().hex[:12]}",
            type=category,
            severity=severity,
            message=message,
            metrics=metrics,
            key=key,
        )
        await self.state_manager.add_alert(alert)

        log_line = f"{severity.value.upper()} Alert: {message}"
        if severity in (AlertSeverity.HIGH, AlertSeverity.CRITICAL):
            self.logger.error(log_line)
        else:
            self.logger.warning(log_line)

        await self._deliver(alert)
        return alert

    async def resolve_alert(self, alert_id: str) -> bool:
        """Manual resolution by an operator"""
        resolved = await self.state_manager.resolve_alert(alert_id)
        if resolved:
            self.logger.info(f"Alert {alert_id} resolved")
        return resolved

    def _suppressing_alert(self, key: str, severity: AlertSeverity) -> Optional[SystemAlert]:
        cooldown = self.config.alert_cooldown_seconds
        if cooldown <= 0:
            return None

        existing = self.state_manager.find_open_alert(key)
        if existing is None or severity.rank > existing.severity.rank:
            return None

        age = (datetime.now() - existing.last_seen).total_seconds()
        return existing if age < cooldown else None

    async def _deliver(self, alert: SystemAlert):
        for sink in list(self._sinks):
            try:
                result = sink(alert)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                self.logger.error(f"Alert sink error: {e}")
