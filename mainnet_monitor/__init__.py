"""
Resilient ledger transaction submission with performance monitoring
"""

from .config import Config, MetricThreshold
from .container import Container
from .exceptions import (
    LedgerTransportError,
    MonitorError,
    SubmissionExhaustedError,
    TransactionExecutionError,
)

__version__ = "1.0.0"

__all__ = [
    'Config',
    'Container',
    'LedgerTransportError',
    'MetricThreshold',
    'MonitorError',
    'SubmissionExhaustedError',
    'TransactionExecutionError',
]
