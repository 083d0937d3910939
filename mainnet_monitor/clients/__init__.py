"""
Ledger clients for the mainnet monitor
"""

from .base import LedgerClient
from .xrpl_client import XrplLedgerClient

__all__ = [
    'LedgerClient',
    'XrplLedgerClient',
]
