"""
Data models for the mainnet monitor
"""

from .monitor_models import (
    AlertCategory,
    AlertSeverity,
    BatchStatus,
    Commitment,
    ConfirmationResult,
    ConnectionReport,
    NetworkHealth,
    PerformanceDashboard,
    PerformanceMetrics,
    PerformanceWindow,
    SubmissionResult,
    SubmitOptions,
    SystemAlert,
    SystemStatus,
    TransactionBatch,
)

__all__ = [
    'AlertCategory',
    'AlertSeverity',
    'BatchStatus',
    'Commitment',
    'ConfirmationResult',
    'ConnectionReport',
    'NetworkHealth',
    'PerformanceDashboard',
    'PerformanceMetrics',
    'PerformanceWindow',
    'SubmissionResult',
    'SubmitOptions',
    'SystemAlert',
    'SystemStatus',
    'TransactionBatch',
]
