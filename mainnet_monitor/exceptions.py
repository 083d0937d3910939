"""
Exceptions raised by the transaction submitter
"""

from typing import Optional


class MonitorError(Exception):
    """Base class for mainnet monitor errors"""


class LedgerTransportError(MonitorError):
    """Endpoint unreachable, timed out or rejected the request; safe to retry"""

    def __init__(self, message: str, endpoint: Optional[str] = None):
        super().__init__(message)
        self.endpoint = endpoint


class TransactionExecutionError(MonitorError):
    """Transaction reached the ledger but its execution failed"""

    def __init__(self, signature: str, error: str, endpoint: Optional[str] = None):
        super().__init__(f"Transaction {signature} failed: {error}")
        self.signature = signature
        self.error = error
        self.endpoint = endpoint


class SubmissionExhaustedError(MonitorError):
    """Every attempt on every endpoint failed"""

    def __init__(self, attempts: int, endpoints: int, last_error: Optional[BaseException]):
        detail = str(last_error) if last_error else "no error recorded"
        super().__init__(
            f"Transaction failed after {attempts} attempts across {endpoints} RPC endpoints: {detail}"
        )
        self.attempts = attempts
        self.endpoints = endpoints
        self.last_error = last_error
