"""
Ledger client interface used by the submitter and the monitor
"""

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..models.monitor_models import (
    Commitment,
    ConfirmationResult,
    PerformanceWindow,
    SubmitOptions,
)


@runtime_checkable
class LedgerClient(Protocol):
    """Connection to a single ledger RPC endpoint.

    Transport problems are raised as ``LedgerTransportError``. An on-chain
    execution failure is not raised by ``confirm_transaction``; it is reported
    through ``ConfirmationResult.error``.
    """

    endpoint: str

    async def submit_transaction(self, transaction: Any, options: SubmitOptions) -> str:
        """Submit a signed transaction and return its signature/hash."""
        ...

    async def confirm_transaction(
        self, signature: str, commitment: Commitment
    ) -> ConfirmationResult:
        """Wait until the transaction reaches the given commitment level."""
        ...

    async def get_latest_reference_point(self) -> Any:
        """Cheap request used to measure round-trip latency."""
        ...

    async def get_recent_performance_window(self) -> Optional[PerformanceWindow]:
        """Recent network throughput sample, if the node can provide one."""
        ...

    async def get_health(self) -> str:
        """Return "ok" when the node is healthy, otherwise a short state name."""
        ...

    async def get_version(self) -> Dict[str, Any]:
        ...

    async def get_epoch_info(self) -> Dict[str, Any]:
        ...

    async def close(self) -> None:
        ...
