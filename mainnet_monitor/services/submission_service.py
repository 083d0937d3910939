"""
Resilient transaction submission with per-endpoint backoff and fallback
"""

import asyncio
import time
import uuid
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, List, Optional

from ..exceptions import SubmissionExhaustedError, TransactionExecutionError
from ..models.monitor_models import (
    AlertCategory,
    AlertSeverity,
    BatchStatus,
    SubmissionResult,
    SubmitOptions,
    TransactionBatch,
)
from ..utils.formatters import format_ms, mask_sensitive_url

# Type hints only - these are injected via DI
if TYPE_CHECKING:
    from ..config import Config
    from ..managers.endpoint_manager import EndpointManager
    from ..managers.state_manager import StateManager
    from .alert_service import AlertService
    from .logging_service import LoggingService


class SubmissionService:
    """Submits transactions across the configured endpoints"""

    def __init__(
        self,
        config: "Config",
        state_manager: "StateManager",
        endpoint_manager: "EndpointManager",
        alert_service: "AlertService",
        logging_service: "LoggingService",
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ):
        self.config = config
        self.state_manager = state_manager
        self.endpoint_manager = endpoint_manager
        self.alert_service = alert_service
        self.logger = logging_service
        self._sleep = sleep or asyncio.sleep

    def backoff_delay(self, attempt: int) -> float:
        """Delay in ms before retrying after the given 0-based attempt"""
        delay = self.config.base_delay_ms * (self.config.backoff_multiplier**attempt)
        return min(delay, self.config.max_delay_ms)

    async def submit(
        self, transaction: Any, options: Optional[SubmitOptions] = None
    ) -> SubmissionResult:
        """Submit and confirm one transaction.

        Each endpoint, primary first, gets ``max_retries + 1`` attempts with
        exponential backoff in between. Moving to the next endpoint resets the
        attempt counter. Raises ``SubmissionExhaustedError`` once every endpoint
        has been tried, or ``TransactionExecutionError`` as soon as the ledger
        reports the transaction itself failed (unless execution errors are
        configured to be retried).
        """
        options = options or SubmitOptions()
        max_retries = (
            options.max_retries if options.max_retries is not None else self.config.max_retries
        )
        commitment = options.commitment or self.config.default_commitment
        clients = self.endpoint_manager.ordered()

        start_time = time.monotonic()
        total_attempts = 0
        last_error: Optional[BaseException] = None

        for client in clients:
            endpoint = mask_sensitive_url(client.endpoint)

            for attempt in range(max_retries + 1):
                total_attempts += 1
                try:
                    signature = await client.submit_transaction(transaction, options)
                    confirmation = await client.confirm_transaction(signature, commitment)
                    if not confirmation.ok:
                        raise TransactionExecutionError(
                            signature, confirmation.error, client.endpoint
                        )

                    confirmation_time = (time.monotonic() - start_time) * 1000
                    await self.state_manager.record_transaction_outcome(confirmation_time, True)
                    self.logger.debug(
                        f"Transaction {signature} confirmed on {endpoint} "
                        f"in {format_ms(confirmation_time)} (attempt {attempt + 1})"
                    )
                    return SubmissionResult(
                        signature=signature,
                        confirmation_time=confirmation_time,
                        rpc_endpoint=client.endpoint,
                        retry_count=attempt,
                    )

                except TransactionExecutionError as e:
                    if not self.config.retry_execution_errors:
                        await self._record_execution_failure(e, start_time)
                        raise
                    last_error = e
                    self.logger.warning(
                        f"Transaction attempt {attempt + 1} failed on {endpoint}: {e}"
                    )

                except Exception as e:
                    last_error = e
                    self.logger.warning(
                        f"Transaction attempt {attempt + 1} failed on {endpoint}: {e}"
                    )

                if attempt < max_retries:
                    await self._sleep(self.backoff_delay(attempt) / 1000)

        elapsed = (time.monotonic() - start_time) * 1000
        await self.state_manager.record_transaction_outcome(elapsed, False)
        error = SubmissionExhaustedError(total_attempts, len(clients), last_error)
        await self.alert_service.create_alert(
            AlertCategory.TRANSACTION,
            AlertSeverity.HIGH,
            str(error),
            key="transaction:exhausted",
        )
        raise error from last_error

    async def _record_execution_failure(self, error: TransactionExecutionError, start_time: float):
        elapsed = (time.monotonic() - start_time) * 1000
        await self.state_manager.record_transaction_outcome(elapsed, False)
        self.logger.error(f"Transaction {error.signature} failed on-chain: {error.error}")
        await self.alert_service.create_alert(
            AlertCategory.TRANSACTION,
            AlertSeverity.MEDIUM,
            str(error),
            key="transaction:execution",
        )

    async def submit_batch(
        self, transactions: Iterable[Any], batch_size: Optional[int] = None
    ) -> TransactionBatch:
        """Submit transactions in concurrent chunks of ``batch_size``.

        A chunk starts only after the previous one settled, with a short pause in
        between. Individual failures are counted, never raised; the batch always
        ends up completed.
        """
        batch_size = batch_size if batch_size is not None else self.config.batch_size
        if batch_size < 1:
            raise ValueError(f"Invalid batch size: {batch_size}")

        pending = list(transactions)
        batch = TransactionBatch(
            batch_id=f"batch-{uuid.uuid4().hex[:12]}",
            transactions=pending,
            total_transactions=len(pending),
        )
        await self.state_manager.register_batch(batch)
        batch.status = BatchStatus.PROCESSING

        self.logger.info(f"Processing batch {batch.batch_id} with {len(pending)} transactions")

        confirmation_times: List[float] = []

        async def run_one(transaction: Any):
            try:
                result = await self.submit(transaction)
            except Exception as e:
                await self.state_manager.record_batch_result(batch, False)
                self.logger.error(f"Batch transaction failed: {e}")
                return
            confirmation_times.append(result.confirmation_time)
            await self.state_manager.record_batch_result(batch, True)

        for i in range(0, len(pending), batch_size):
            chunk = pending[i : i + batch_size]
            await asyncio.gather(*(run_one(tx) for tx in chunk))

            if i + batch_size < len(pending):
                await self._sleep(self.config.batch_pause_ms / 1000)

        await self.state_manager.complete_batch(batch, confirmation_times)

        self.logger.info(
            f"Batch {batch.batch_id} completed: "
            f"{batch.completed_transactions}/{batch.total_transactions} successful"
        )
        self.logger.info(f"Average confirmation time: {format_ms(batch.average_confirmation_time)}")
        return batch

    def get_batch_status(self, batch_id: str) -> Optional[TransactionBatch]:
        return self.state_manager.get_batch(batch_id)
