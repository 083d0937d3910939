"""
Manager components for the mainnet monitor
"""

from .endpoint_manager import EndpointManager
from .state_manager import MonitorState, StateManager

__all__ = [
    'EndpointManager',
    'MonitorState',
    'StateManager',
]
