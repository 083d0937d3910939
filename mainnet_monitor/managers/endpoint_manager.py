"""
Ordered set of ledger endpoints: one primary plus fallbacks
"""

import asyncio
import logging
from typing import Callable, List, Optional

from ..clients.base import LedgerClient
from ..clients.xrpl_client import XrplLedgerClient
from ..config import Config
from ..utils.formatters import mask_sensitive_url

logger = logging.getLogger(__name__)


class EndpointManager:
    """Owns the ledger clients the submitter walks through, in priority order"""

    def __init__(
        self,
        config: Config,
        clients: Optional[List[LedgerClient]] = None,
        client_factory: Optional[Callable[[str], LedgerClient]] = None,
    ):
        self.config = config

        if clients is None:
            factory = client_factory or self._default_factory
            clients = [factory(endpoint) for endpoint in config.endpoints]
        if not clients:
            raise ValueError("At least one ledger endpoint is required")

        self._clients: List[LedgerClient] = list(clients)
        logger.info(
            f"Initialized {len(self._clients) - 1} fallback RPC connection(s) behind "
            f"{mask_sensitive_url(self._clients[0].endpoint)}"
        )

    def _default_factory(self, endpoint: str) -> LedgerClient:
        return XrplLedgerClient(
            endpoint,
            confirmation_timeout=self.config.confirmation_timeout_seconds,
            poll_interval=self.config.confirmation_poll_interval,
        )

    @property
    def primary(self) -> LedgerClient:
        return self._clients[0]

    @property
    def fallbacks(self) -> List[LedgerClient]:
        return self._clients[1:]

    def ordered(self) -> List[LedgerClient]:
        """Primary first, then fallbacks in configured order"""
        return list(self._clients)

    async def close_all(self):
        """Close every client; one failing close does not stop the others"""
        results = await asyncio.gather(
            *(client.close() for client in self._clients), return_exceptions=True
        )
        for client, result in zip(self._clients, results):
            if isinstance(result, Exception):
                logger.error(f"Error closing {mask_sensitive_url(client.endpoint)}: {result}")
