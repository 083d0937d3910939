"""
Terminal rendering for the mainnet monitor
"""

from .dashboard import render_connection_reports, render_dashboard

__all__ = [
    'render_connection_reports',
    'render_dashboard',
]
