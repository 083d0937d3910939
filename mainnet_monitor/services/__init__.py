"""
Service layer for the mainnet monitor
"""

from .alert_service import AlertService
from .logging_service import LoggingService
from .monitoring_service import MonitoringService
from .submission_service import SubmissionService

__all__ = [
    'AlertService',
    'LoggingService',
    'MonitoringService',
    'SubmissionService',
]
