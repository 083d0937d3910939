"""
Formatting utilities for the mainnet monitor
"""

import re

from ..models.monitor_models import NetworkHealth

_API_KEY_PATTERN = re.compile(r"api-key=[^&]+")


def mask_sensitive_url(url: str) -> str:
    """Hide API keys embedded in endpoint URLs before they are logged"""
    return _API_KEY_PATTERN.sub("api-key=***", url)


def format_duration(seconds: float) -> str:
    """Format duration in seconds to a readable format like 01m:30.5s or 01h:05m:30s"""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = seconds % 60
        return f"{minutes:02d}m:{secs:04.1f}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        secs = seconds % 60
        return f"{hours:02d}h:{minutes:02d}m:{secs:02.0f}s"


def format_ms(milliseconds: float) -> str:
    """Format a millisecond value, switching to seconds above one second"""
    if milliseconds < 1000:
        return f"{milliseconds:.0f}ms"
    return f"{milliseconds / 1000:.2f}s"


def classify_network_health(latency_ms: float) -> NetworkHealth:
    """Bucket a round-trip latency into a health grade"""
    if latency_ms < 100:
        return NetworkHealth.EXCELLENT
    elif latency_ms < 300:
        return NetworkHealth.GOOD
    elif latency_ms < 500:
        return NetworkHealth.FAIR
    return NetworkHealth.POOR
