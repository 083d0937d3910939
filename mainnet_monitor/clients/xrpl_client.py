"""
XRPL ledger client over websocket or JSON-RPC
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional, Union

from xrpl.asyncio.clients import AsyncJsonRpcClient, AsyncWebsocketClient
from xrpl.core.binarycodec import encode
from xrpl.models import Response
from xrpl.models.requests import Ledger, LedgerCurrent, ServerInfo, SubmitOnly, Tx
from xrpl.models.requests.request import Request
from xrpl.models.transactions import Transaction

from ..exceptions import LedgerTransportError
from ..models.monitor_models import (
    Commitment,
    ConfirmationResult,
    PerformanceWindow,
    SubmitOptions,
)
from ..utils.formatters import mask_sensitive_url

logger = logging.getLogger(__name__)

# server_state values that mean the node is synced with the network
HEALTHY_SERVER_STATES = {"full", "proposing", "validating"}

# engine_result prefixes for transactions that were not applied
REJECTED_RESULT_PREFIXES = ("tem", "tef", "tel")


def encode_transaction(transaction: Union[Transaction, str, bytes]) -> str:
    """Turn a signed transaction into the hex blob accepted by submit"""
    if isinstance(transaction, Transaction):
        return encode(transaction.to_xrpl())
    if isinstance(transaction, (bytes, bytearray)):
        return bytes(transaction).hex().upper()
    if isinstance(transaction, str):
        return transaction
    raise TypeError(f"Unsupported transaction type: {type(transaction).__name__}")


class XrplLedgerClient:
    """LedgerClient backed by xrpl-py.

    ``ws://`` and ``wss://`` endpoints use a persistent websocket connection that
    is opened lazily; ``http(s)://`` endpoints use JSON-RPC.
    """

    def __init__(
        self,
        endpoint: str,
        confirmation_timeout: float = 60.0,
        poll_interval: float = 1.0,
    ):
        self.endpoint = endpoint
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self._is_websocket = endpoint.startswith(("ws://", "wss://"))
        self._client: Optional[Union[AsyncWebsocketClient, AsyncJsonRpcClient]] = None
        self._lock = asyncio.Lock()

    async def connect(self) -> Union[AsyncWebsocketClient, AsyncJsonRpcClient]:
        """Get or create the underlying xrpl client"""
        async with self._lock:
            if not self._is_websocket:
                if self._client is None:
                    self._client = AsyncJsonRpcClient(self.endpoint)
                return self._client

            if self._client and self._client.is_open():
                return self._client

            logger.info(f"Opening websocket connection to {mask_sensitive_url(self.endpoint)}")
            client = AsyncWebsocketClient(self.endpoint)
            try:
                await client.open()
            except Exception as e:
                raise LedgerTransportError(
                    f"Failed to connect to {mask_sensitive_url(self.endpoint)}: {e}", self.endpoint
                ) from e
            self._client = client
            return client

    async def close(self) -> None:
        """Close the websocket connection, if any"""
        async with self._lock:
            if self._is_websocket and self._client and self._client.is_open():
                logger.info(f"Closing websocket connection to {mask_sensitive_url(self.endpoint)}")
                await self._client.close()
            self._client = None

    async def _request(self, request: Request) -> Response:
        client = await self.connect()
        try:
            return await client.request(request)
        except LedgerTransportError:
            raise
        except Exception as e:
            raise LedgerTransportError(
                f"{type(request).__name__} request to {mask_sensitive_url(self.endpoint)} failed: {e}",
                self.endpoint,
            ) from e

    async def _result(self, request: Request) -> Dict[str, Any]:
        response = await self._request(request)
        if not response.is_successful():
            raise LedgerTransportError(
                f"{type(request).__name__} request failed: {response.result}", self.endpoint
            )
        return response.result

    async def submit_transaction(self, transaction: Any, options: SubmitOptions) -> str:
        """Submit a signed transaction, returning its hash.

        ``skip_preflight`` maps to ``fail_hard``: unless preflight is skipped the
        node will not relay a transaction that fails local checks.
        """
        tx_blob = encode_transaction(transaction)
        result = await self._result(SubmitOnly(tx_blob=tx_blob, fail_hard=not options.skip_preflight))

        engine_result = result.get("engine_result", "")
        if engine_result.startswith(REJECTED_RESULT_PREFIXES):
            raise LedgerTransportError(
                f"Transaction rejected with {engine_result}: {result.get('engine_result_message', '')}",
                self.endpoint,
            )

        tx_hash = result.get("tx_json", {}).get("hash")
        if not tx_hash:
            raise LedgerTransportError(f"Submit response carried no hash: {result}", self.endpoint)
        return tx_hash

    async def confirm_transaction(
        self, signature: str, commitment: Commitment
    ) -> ConfirmationResult:
        """Poll until the transaction is validated (or seen, for "processed")"""
        deadline = time.monotonic() + self.confirmation_timeout

        while True:
            response = await self._request(Tx(transaction=signature))
            if response.is_successful():
                result = response.result
                validated = bool(result.get("validated"))
                if validated or commitment == "processed":
                    tx_result = result.get("meta", {}).get("TransactionResult")
                    if tx_result and tx_result != "tesSUCCESS":
                        return ConfirmationResult(error=tx_result)
                    return ConfirmationResult()
            elif response.result.get("error") != "txnNotFound":
                raise LedgerTransportError(
                    f"Tx lookup for {signature} failed: {response.result}", self.endpoint
                )

            if time.monotonic() >= deadline:
                raise LedgerTransportError(
                    f"Transaction {signature} not confirmed within {self.confirmation_timeout}s",
                    self.endpoint,
                )
            await asyncio.sleep(self.poll_interval)

    async def get_latest_reference_point(self) -> int:
        result = await self._result(LedgerCurrent())
        return int(result.get("ledger_current_index", 0))

    async def get_recent_performance_window(self) -> Optional[PerformanceWindow]:
        """Transactions in the last validated ledger over its close time"""
        ledger_result, info = await asyncio.gather(
            self._result(Ledger(ledger_index="validated", transactions=True)),
            self._server_info(),
        )
        transactions = ledger_result.get("ledger", {}).get("transactions") or []
        converge_time = info.get("last_close", {}).get("converge_time_s")
        if not converge_time:
            return None
        return PerformanceWindow(
            num_transactions=len(transactions), sample_period_secs=float(converge_time)
        )

    async def _server_info(self) -> Dict[str, Any]:
        result = await self._result(ServerInfo())
        return result.get("info", {})

    async def get_health(self) -> str:
        state = (await self._server_info()).get("server_state", "unknown")
        return "ok" if state in HEALTHY_SERVER_STATES else state

    async def get_version(self) -> Dict[str, Any]:
        info = await self._server_info()
        return {"build_version": info.get("build_version")}

    async def get_epoch_info(self) -> Dict[str, Any]:
        """Ledger progress; XRPL has no epochs so this reports validated ledgers"""
        info = await self._server_info()
        validated = info.get("validated_ledger", {})
        return {
            "ledger_index": validated.get("seq"),
            "complete_ledgers": info.get("complete_ledgers", "empty"),
        }

    def is_connected(self) -> bool:
        if not self._is_websocket:
            return self._client is not None
        return self._client is not None and self._client.is_open()
