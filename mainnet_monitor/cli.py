#!/usr/bin/env python3
"""
Command-line interface for the mainnet monitor
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.live import Live
from rich.text import Text

from .config import Config
from .container import Container
from .services.logging_service import LogLevel
from .ui.dashboard import LOG_STYLES, render_connection_reports, render_dashboard
from .utils.parsers import endpoint_from_rippled_config

DEFAULT_REFRESH_SECONDS = 2.0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Submit and monitor ledger transactions across fallback RPC endpoints'
    )
    parser.add_argument('--endpoint', '-e', type=str,
                        help='Primary RPC endpoint (ws://, wss://, http:// or https://)')
    parser.add_argument('--fallback', '-f', nargs='+', dest='fallbacks',
                        help='Fallback endpoints, tried in the given order')
    parser.add_argument('--rippled-config', '-c', type=str,
                        help='Derive a local primary endpoint from a rippled config file')
    parser.add_argument('--max-retries', '-r', type=int,
                        help='Attempts per endpoint minus one (default: 3)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Show debug log lines')

    subparsers = parser.add_subparsers(dest='command')

    run_parser = subparsers.add_parser('run', help='Run the monitoring loops with a live dashboard')
    run_parser.add_argument('--metrics-interval', type=float,
                            help='Seconds between metric collections (default: 30)')
    run_parser.add_argument('--health-interval', type=float,
                            help='Seconds between health checks (default: 300)')
    run_parser.add_argument('--refresh', type=float, default=DEFAULT_REFRESH_SECONDS,
                            help=f'Dashboard refresh in seconds (default: {DEFAULT_REFRESH_SECONDS})')

    subparsers.add_parser('check', help='Validate connectivity of every endpoint once')
    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Turn CLI arguments into a Config; unset options fall back to env/defaults"""
    overrides = {}

    endpoint = args.endpoint
    if not endpoint and args.rippled_config:
        endpoint = endpoint_from_rippled_config(args.rippled_config)
        if not endpoint:
            raise ValueError(f"No usable port found in {args.rippled_config}")
    if endpoint:
        overrides['primary_endpoint'] = endpoint
    if args.fallbacks is not None:
        overrides['fallback_endpoints'] = args.fallbacks
    if args.max_retries is not None:
        overrides['max_retries'] = args.max_retries
    if getattr(args, 'metrics_interval', None) is not None:
        overrides['metrics_interval_seconds'] = args.metrics_interval
    if getattr(args, 'health_interval', None) is not None:
        overrides['health_check_interval_seconds'] = args.health_interval

    return Config(**overrides)


def attach_console(container: Container, console: Console, verbose: bool):
    """Route log lines from the logging service to the console"""

    def log_handler(message: str, level: LogLevel):
        console.print(Text(message, style=LOG_STYLES.get(level)))

    min_level = LogLevel.DEBUG if verbose else LogLevel.INFO
    container.logging_service().add_handler(log_handler, min_level=min_level)


async def run_dashboard(container: Container, console: Console, refresh: float):
    monitoring_service = container.monitoring_service()
    await monitoring_service.start()
    try:
        dashboard = monitoring_service.get_performance_dashboard()
        with Live(render_dashboard(dashboard), console=console, refresh_per_second=4) as live:
            while True:
                await asyncio.sleep(refresh)
                live.update(render_dashboard(monitoring_service.get_performance_dashboard()))
    finally:
        await monitoring_service.stop()
        await container.endpoint_manager().close_all()


async def check_endpoints(container: Container, console: Console) -> int:
    monitoring_service = container.monitoring_service()
    endpoint_manager = container.endpoint_manager()
    try:
        reports = [
            await monitoring_service.validate_connection(client)
            for client in endpoint_manager.ordered()
        ]
    finally:
        await endpoint_manager.close_all()

    console.print(render_connection_reports(reports))
    return 0 if reports[0].success else 1


def run(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)
    console = Console()

    try:
        config = build_config(args)
    except (ValidationError, ValueError) as e:
        console.print(Text(f"Invalid configuration: {e}", style="red"))
        return 2

    container = Container()
    container.config.override(config)
    attach_console(container, console, args.verbose)

    if args.command == 'check':
        return asyncio.run(check_endpoints(container, console))

    refresh = getattr(args, 'refresh', DEFAULT_REFRESH_SECONDS)
    try:
        asyncio.run(run_dashboard(container, console, refresh))
    except KeyboardInterrupt:
        console.print("Stopped.")
    return 0


if __name__ == '__main__':
    sys.exit(run())
