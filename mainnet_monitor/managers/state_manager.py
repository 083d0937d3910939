"""
Centralized state for metrics, alerts and batches
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, Dict, List, Optional

from ..config import Config
from ..models.monitor_models import (
    BatchStatus,
    PerformanceMetrics,
    SystemAlert,
    TransactionBatch,
)


@dataclass
class MonitorState:
    """Current monitor state"""

    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    history: Deque[PerformanceMetrics] = field(default_factory=lambda: deque(maxlen=100))

    # Append-only; resolution flips the flag in place
    alerts: List[SystemAlert] = field(default_factory=list)

    # Insertion ordered, oldest first
    batches: Dict[str, TransactionBatch] = field(default_factory=dict)

    # Throughput bookkeeping between two metric collections
    confirmed_since_collection: int = 0
    last_collection_at: float = field(default_factory=time.monotonic)


class StateManager:
    """Single owner of the monitor's mutable state.

    All mutation happens under one asyncio lock so a handler never observes a
    half-applied update.
    """

    def __init__(self, config: Config):
        self.config = config
        self.state = MonitorState(history=deque(maxlen=config.history_size))
        self._lock = asyncio.Lock()

    async def record_transaction_outcome(self, duration_ms: float, success: bool):
        """Nudge the rolling success/error rates after a submission"""
        async with self._lock:
            metrics = self.state.metrics
            if success:
                metrics.transaction_confirmation_time = duration_ms
                metrics.success_rate = min(100.0, metrics.success_rate + 0.1)
                metrics.error_rate = max(0.0, metrics.error_rate - 0.1)
                self.state.confirmed_since_collection += 1
            else:
                metrics.error_rate = min(100.0, metrics.error_rate + 1)
                metrics.success_rate = max(0.0, metrics.success_rate - 1)

    async def record_snapshot(
        self, rpc_latency: float, network_congestion: float, response_time: float
    ) -> PerformanceMetrics:
        """Replace the current metrics and append them to the bounded history"""
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self.state.last_collection_at
            throughput = self.state.confirmed_since_collection / elapsed if elapsed > 0 else 0.0

            snapshot = self.state.metrics.model_copy(
                update={
                    "rpc_latency": rpc_latency,
                    "network_congestion": network_congestion,
                    "response_time": response_time,
                    "throughput": throughput,
                    "timestamp": datetime.now(),
                }
            )

            self.state.metrics = snapshot
            self.state.history.append(snapshot.model_copy())
            self.state.confirmed_since_collection = 0
            self.state.last_collection_at = now
            return snapshot

    async def add_alert(self, alert: SystemAlert):
        async with self._lock:
            self.state.alerts.append(alert)

    async def touch_alert(
        self,
        alert: SystemAlert,
        message: Optional[str] = None,
        metrics: Optional[dict] = None,
    ):
        """Fold a repeat of an ongoing condition into its existing alert.

        Without a message the alert keeps its text and metrics and only the
        repeat is counted.
        """
        async with self._lock:
            alert.occurrences += 1
            alert.last_seen = datetime.now()
            if message is not None:
                alert.message = message
                if metrics is not None:
                    alert.metrics = metrics

    def find_open_alert(self, key: str) -> Optional[SystemAlert]:
        """Most recent unresolved alert with the given dedup key"""
        for alert in reversed(self.state.alerts):
            if alert.key == key and not alert.resolved:
                return alert
        return None

    async def resolve_alert(self, alert_id: str) -> bool:
        """Mark an alert resolved; returns False for unknown ids"""
        async with self._lock:
            for alert in self.state.alerts:
                if alert.id == alert_id:
                    alert.resolved = True
                    return True
            return False

    async def register_batch(self, batch: TransactionBatch):
        async with self._lock:
            self.state.batches[batch.batch_id] = batch

    async def record_batch_result(self, batch: TransactionBatch, success: bool):
        async with self._lock:
            if success:
                batch.completed_transactions += 1
            else:
                batch.failed_transactions += 1

    async def complete_batch(self, batch: TransactionBatch, confirmation_times: List[float]):
        """Close out a batch; average covers successful submissions only"""
        async with self._lock:
            batch.average_confirmation_time = (
                sum(confirmation_times) / len(confirmation_times) if confirmation_times else 0.0
            )
            batch.end_time = datetime.now()
            batch.status = BatchStatus.COMPLETED

    def get_batch(self, batch_id: str) -> Optional[TransactionBatch]:
        return self.state.batches.get(batch_id)

    def get_metrics(self) -> PerformanceMetrics:
        return self.state.metrics

    def get_history(self) -> List[PerformanceMetrics]:
        return list(self.state.history)

    def recent_alerts(self, limit: int) -> List[SystemAlert]:
        return self.state.alerts[-limit:] if limit > 0 else []

    def recent_batches(self, limit: int) -> List[TransactionBatch]:
        batches = list(self.state.batches.values())
        return batches[-limit:] if limit > 0 else []

    def active_alerts(self) -> List[SystemAlert]:
        return [a for a in self.state.alerts if not a.resolved]
