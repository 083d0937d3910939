"""Shared test fixtures: fake ledger clients and wired-up services."""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from mainnet_monitor.config import Config
from mainnet_monitor.exceptions import LedgerTransportError
from mainnet_monitor.managers.endpoint_manager import EndpointManager
from mainnet_monitor.managers.state_manager import StateManager
from mainnet_monitor.models.monitor_models import (
    ConfirmationResult,
    PerformanceWindow,
    SubmitOptions,
)
from mainnet_monitor.services.alert_service import AlertService
from mainnet_monitor.services.logging_service import LoggingService
from mainnet_monitor.services.monitoring_service import MonitoringService
from mainnet_monitor.services.submission_service import SubmissionService

OK = "ok"
TRANSPORT = "transport"
EXECUTION = "execution"


class FakeLedgerClient:
    """Scripted LedgerClient.

    ``outcomes`` is consumed one entry per submission attempt; once exhausted
    ``default`` is used. Outcomes: "ok", "transport" (submit raises) or
    "execution" (confirmation reports an on-chain error).
    """

    def __init__(self, endpoint: str, outcomes: Optional[List[str]] = None, default: str = OK):
        self.endpoint = endpoint
        self.outcomes = list(outcomes or [])
        self.default = default
        self.submit_calls = 0
        self.submitted: List[Any] = []
        self.options: List[SubmitOptions] = []
        self.commitments: List[str] = []
        self._pending: Dict[str, str] = {}

        self.in_flight = 0
        self.max_in_flight = 0

        self.health: Any = "ok"
        self.version: Any = {"build_version": "2.3.0"}
        self.epoch_info: Any = {
            "ledger_index": 90_000_000,
            "complete_ledgers": "89999001-90000000",
        }
        self.reference_point: Any = 90_000_001
        self.window_calls = 0
        self.probe_error: Optional[Exception] = None
        self.closed = False

    async def submit_transaction(self, transaction: Any, options: SubmitOptions) -> str:
        self.submit_calls += 1
        self.submitted.append(transaction)
        self.options.append(options)
        outcome = self.outcomes.pop(0) if self.outcomes else self.default

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
        finally:
            self.in_flight -= 1

        if outcome == TRANSPORT:
            raise LedgerTransportError(f"{self.endpoint} unreachable", self.endpoint)
        signature = f"{self.endpoint}-sig-{self.submit_calls}"
        self._pending[signature] = outcome
        return signature

    async def confirm_transaction(self, signature: str, commitment: str) -> ConfirmationResult:
        self.commitments.append(commitment)
        if self._pending.pop(signature, OK) == EXECUTION:
            return ConfirmationResult(error="tecUNFUNDED_PAYMENT")
        return ConfirmationResult()

    async def get_latest_reference_point(self) -> Any:
        if self.probe_error:
            raise self.probe_error
        return self.reference_point

    async def get_recent_performance_window(self) -> Optional[PerformanceWindow]:
        self.window_calls += 1
        return PerformanceWindow(num_transactions=self.window_calls, sample_period_secs=1.0)

    async def get_health(self) -> str:
        if isinstance(self.health, Exception):
            raise self.health
        return self.health

    async def get_version(self) -> Dict[str, Any]:
        return self.version

    async def get_epoch_info(self) -> Dict[str, Any]:
        return self.epoch_info

    async def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and returns at once"""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def config() -> Config:
    return Config(
        primary_endpoint="wss://primary.example",
        fallback_endpoints=["wss://fallback-1.example", "wss://fallback-2.example"],
    )


@pytest.fixture
def clients(config: Config) -> List[FakeLedgerClient]:
    return [FakeLedgerClient(endpoint) for endpoint in config.endpoints]


@pytest.fixture
def logging_service() -> LoggingService:
    return LoggingService()


@pytest.fixture
def state_manager(config: Config) -> StateManager:
    return StateManager(config)


@pytest.fixture
def endpoint_manager(config: Config, clients: List[FakeLedgerClient]) -> EndpointManager:
    return EndpointManager(config, clients=clients)


@pytest.fixture
def alert_service(config, state_manager, logging_service) -> AlertService:
    return AlertService(config, state_manager, logging_service)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def submission_service(
    config, state_manager, endpoint_manager, alert_service, logging_service, sleep
) -> SubmissionService:
    return SubmissionService(
        config, state_manager, endpoint_manager, alert_service, logging_service, sleep=sleep
    )


@pytest.fixture
def monitoring_service(
    config, state_manager, endpoint_manager, alert_service, logging_service
) -> MonitoringService:
    return MonitoringService(config, state_manager, endpoint_manager, alert_service, logging_service)
