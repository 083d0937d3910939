"""
Parsing utilities for the mainnet monitor
"""

import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Port sections in rippled/xahaud config files, in order of preference
WEBSOCKET_PORT_SECTIONS = ("port_ws_admin_local", "port_ws_public")
RPC_PORT_SECTIONS = ("port_rpc_admin_local", "port_rpc_public")


def _read_sections(config_path: str) -> Dict[str, Dict[str, str]]:
    """Read the key = value pairs of every [section] in a rippled config"""
    sections: Dict[str, Dict[str, str]] = {}
    current_section = None

    with open(config_path, "r") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            if line.startswith("[") and line.endswith("]"):
                current_section = line[1:-1]
                sections.setdefault(current_section, {})
            elif current_section and "=" in line:
                key, value = line.split("=", 1)
                sections[current_section][key.strip()] = value.strip()

    return sections


def _first_port(sections: Dict[str, Dict[str, str]], candidates) -> Optional[int]:
    for name in candidates:
        port = sections.get(name, {}).get("port")
        if port:
            try:
                return int(port)
            except ValueError:
                logger.warning(f"Ignoring invalid port {port!r} in [{name}]")
    return None


def endpoint_from_rippled_config(config_path: str, host: str = "localhost") -> Optional[str]:
    """Derive a local endpoint URL from a rippled configuration file.

    Prefers the websocket admin port, then the public websocket port, then the
    JSON-RPC ports. Returns None when the file is missing or has no usable port.
    """
    if not Path(config_path).exists():
        return None

    try:
        sections = _read_sections(config_path)
    except OSError as e:
        logger.warning(f"Could not read rippled config {config_path}: {e}")
        return None

    ws_port = _first_port(sections, WEBSOCKET_PORT_SECTIONS)
    if ws_port:
        return f"ws://{host}:{ws_port}"

    rpc_port = _first_port(sections, RPC_PORT_SECTIONS)
    if rpc_port:
        return f"http://{host}:{rpc_port}"

    return None


def parse_ledger_ranges(complete_ledgers: str) -> int:
    """Count the ledgers in a server_info ``complete_ledgers`` value.

    ``"empty"`` -> 0, ``"100-200"`` -> 101, ``"100-200,305"`` -> 102.
    Malformed segments are skipped.
    """
    if not complete_ledgers or complete_ledgers == "empty":
        return 0

    total = 0
    for segment in filter(None, (s.strip() for s in complete_ledgers.split(","))):
        first, _, last = segment.partition("-")
        try:
            start = int(first)
            end = int(last) if last else start
        except ValueError:
            logger.warning(f"Ignoring malformed ledger range {segment!r}")
            continue
        if end >= start:
            total += end - start + 1
    return total
