"""
Utility functions for the mainnet monitor
"""

from .formatters import classify_network_health, format_duration, format_ms, mask_sensitive_url
from .parsers import endpoint_from_rippled_config, parse_ledger_ranges

__all__ = [
    # Parsers
    'endpoint_from_rippled_config',
    'parse_ledger_ranges',
    # Formatters
    'classify_network_health',
    'format_duration',
    'format_ms',
    'mask_sensitive_url',
]
