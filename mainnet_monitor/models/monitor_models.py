"""
Data models for transaction submission and performance monitoring
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Commitment = Literal["processed", "confirmed", "finalized"]


class AlertCategory(str, Enum):
    """What part of the system an alert is about"""

    PERFORMANCE = "performance"
    NETWORK = "network"
    RPC = "rpc"
    TRANSACTION = "transaction"
    SYSTEM = "system"


class AlertSeverity(str, Enum):
    """Coarse ranking for operator attention"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    AlertSeverity.LOW: 0,
    AlertSeverity.MEDIUM: 1,
    AlertSeverity.HIGH: 2,
    AlertSeverity.CRITICAL: 3,
}


class BatchStatus(str, Enum):
    """Lifecycle of a transaction batch"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"  # systemic fault only; never set for individual failures


class SystemStatus(str, Enum):
    """Overall status shown on the dashboard"""

    OPTIMAL = "optimal"
    DEGRADED = "degraded"
    CRITICAL = "critical"


class NetworkHealth(str, Enum):
    """Latency classification of a connection check"""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class PerformanceMetrics(BaseModel):
    """Point-in-time performance snapshot"""

    response_time: float = 0.0  # ms, duration of the last metrics collection
    throughput: float = 0.0  # confirmed transactions per second
    error_rate: float = 0.0  # %
    success_rate: float = 100.0  # %
    rpc_latency: float = 0.0  # ms, round trip of one light probe
    transaction_confirmation_time: float = 0.0  # ms, last successful submission
    network_congestion: float = 0.0  # network transactions per second
    timestamp: datetime = Field(default_factory=datetime.now)


class SystemAlert(BaseModel):
    """A threshold breach or terminal failure"""

    id: str
    type: AlertCategory
    severity: AlertSeverity
    message: str
    timestamp: datetime = Field(default_factory=datetime.now)
    resolved: bool = False
    metrics: Optional[Dict[str, float]] = None

    # Deduplication bookkeeping
    key: Optional[str] = None
    occurrences: int = 1
    last_seen: datetime = Field(default_factory=datetime.now)


class TransactionBatch(BaseModel):
    """A set of transactions submitted in throttled chunks"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    batch_id: str
    transactions: List[Any] = Field(default_factory=list, exclude=True)
    status: BatchStatus = BatchStatus.PENDING
    total_transactions: int = 0
    completed_transactions: int = 0
    failed_transactions: int = 0
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    average_confirmation_time: float = 0.0  # ms, successful submissions only


class SubmitOptions(BaseModel):
    """Per-call overrides for submit()"""

    max_retries: Optional[int] = Field(default=None, ge=0)
    skip_preflight: bool = False
    commitment: Optional[Commitment] = None


class SubmissionResult(BaseModel):
    """Outcome of a successful submit()"""

    signature: str
    confirmation_time: float  # ms from submit() call to confirmation
    rpc_endpoint: str
    retry_count: int  # attempts consumed on the succeeding endpoint, minus one


class ConfirmationResult(BaseModel):
    """What the ledger reported for a submitted transaction"""

    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PerformanceWindow(BaseModel):
    """Recent network throughput sample"""

    num_transactions: int
    sample_period_secs: float

    @property
    def transactions_per_second(self) -> float:
        if self.sample_period_secs <= 0:
            return 0.0
        return self.num_transactions / self.sample_period_secs


class PerformanceDashboard(BaseModel):
    """Read-only view for dashboards"""

    metrics: PerformanceMetrics
    alerts: List[SystemAlert]
    batches: List[TransactionBatch]
    system_status: SystemStatus
    uptime: float  # seconds


class ConnectionReport(BaseModel):
    """Result of a one-shot connection validation"""

    endpoint: str
    success: bool
    latency_ms: Optional[float] = None
    ledger_index: Optional[int] = None
    ledger_count: Optional[int] = None  # ledgers of history the node holds
    version: Optional[str] = None
    network_health: NetworkHealth = NetworkHealth.POOR
    error: Optional[str] = None
