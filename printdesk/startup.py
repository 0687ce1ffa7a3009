"""
Startup checks and validation.

Run before starting the server to catch configuration issues early.
"""

import asyncio
import logging
import socket
import sys
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from printdesk.config import get_gateway_config, get_server_config, get_storage_dir
from printdesk.errors import GatewayUnreachable
from printdesk.gateway.client import GatewayClient
from printdesk.storage import ConfigStore, LocalStorage

logger = logging.getLogger(__name__)


def check_port_available(host: str, port: int) -> tuple[bool, Optional[str]]:
    """
    Check if a port is available for binding.

    Returns:
        (True, None) if available
        (False, error_message) if not
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.bind((host, port))
        return True, None
    except socket.error as e:
        if e.errno == 10048 or e.errno == 98:  # Windows / Linux "address in use"
            return False, f"Port {port} is already in use. Another service may be running on this port."
        elif e.errno == 10049 or e.errno == 99:  # Can't assign address
            return False, f"Cannot bind to {host}:{port}. Check if the host address is valid."
        elif e.errno == 10013 or e.errno == 13:  # Permission denied
            return False, f"Permission denied for port {port}. Ports below 1024 require admin/root privileges."
        else:
            return False, f"Cannot bind to {host}:{port}: {e}"
    finally:
        sock.close()


def check_storage_writable(directory: Path) -> tuple[bool, Optional[str]]:
    """Check printer settings can be saved in the storage directory."""
    try:
        directory.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(dir=directory):
            pass
        return True, None
    except OSError as e:
        return False, f"Cannot write printer settings to {directory}: {e}"


def validate_config(config: dict) -> list[str]:
    """
    Validate configuration and return list of warnings/errors.

    Returns:
        List of warning/error messages (empty if all good)
    """
    issues = []

    # Check server config
    port = get_server_config(config)["port"]

    if not isinstance(port, int) or port < 1 or port > 65535:
        issues.append(f"Invalid port: {port}. Must be between 1 and 65535.")
    elif port < 1024:
        issues.append(f"Port {port} is a privileged port. Consider using a port >= 1024.")

    # Check gateway config
    try:
        gateway = get_gateway_config(config)
    except (TypeError, ValueError):
        issues.append("Invalid gateway timeout_sec. Must be a number.")
    else:
        parsed = urlparse(gateway["default_address"])
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            issues.append(f"Invalid gateway address: '{gateway['default_address']}'. Expected http(s)://host:port.")
        if gateway["timeout_sec"] <= 0:
            issues.append(f"Invalid gateway timeout: {gateway['timeout_sec']}. Must be positive.")

    # Check triggers config
    triggers = config.get("triggers") or {}
    if not triggers:
        issues.append("No triggers configured. Only ad-hoc printing via /v1/print is available.")

    for trigger_id, target in triggers.items():
        if isinstance(target, str):
            continue
        if not isinstance(target, dict):
            issues.append(f"Trigger '{trigger_id}' has an unsupported format.")
        elif not target.get("mime_type"):
            issues.append(f"Trigger '{trigger_id}' has no 'mime_type'; application/octet-stream will be used.")

    return issues


async def probe_gateway(address: str, timeout_sec: float) -> Optional[str]:
    """Best-effort check that the gateway answers. Returns a warning or None."""
    destinations_url = f"{address.rstrip('/')}/print/all"
    client = GatewayClient(timeout_sec=timeout_sec)
    try:
        destinations = await client.list_destinations(address)
    except GatewayUnreachable as e:
        return f"Print gateway not reachable at {destinations_url}: {e}"

    logger.info(f"Print gateway at {address} lists {len(destinations)} printer(s)")
    return None


def run_startup_checks(config: dict) -> None:
    """
    Run all startup checks. Exits with error if critical issues found.

    Args:
        config: Loaded configuration dict
    """
    logger.info("Running startup checks...")

    errors = []
    warnings = []

    # Check port availability
    server = get_server_config(config)
    available, port_error = check_port_available(server["host"], server["port"])
    if not available:
        errors.append(port_error)

    # Validate config
    for issue in validate_config(config):
        if issue.startswith("Invalid"):
            errors.append(issue)
        else:
            warnings.append(issue)

    # Check storage
    storage_dir = get_storage_dir(config)
    writable, storage_error = check_storage_writable(storage_dir)
    if not writable:
        warnings.append(f"{storage_error}. Printer choice will not survive restarts.")

    # Probe the gateway the operator will actually use
    if not errors:
        gateway = get_gateway_config(config)
        store = ConfigStore(LocalStorage(storage_dir), default_address=gateway["default_address"])
        gateway_warning = asyncio.run(probe_gateway(store.load().address, gateway["timeout_sec"]))
        if gateway_warning:
            warnings.append(gateway_warning)

    # Report warnings
    for warning in warnings:
        logger.warning(f"  ⚠ {warning}")

    # Report errors and exit if any
    if errors:
        logger.error("Startup checks failed:")
        for error in errors:
            logger.error(f"  ✗ {error}")
        logger.error("")
        logger.error("Fix these issues and try again.")
        sys.exit(1)

    if warnings:
        logger.info(f"Startup checks passed with {len(warnings)} warning(s)")
    else:
        logger.info("Startup checks passed ✓")


def print_startup_banner(config: dict, triggers: dict[str, dict]) -> None:
    """Print a startup banner with useful info."""
    server = get_server_config(config)
    port = server["port"]
    storage_dir = get_storage_dir(config)
    store = ConfigStore(LocalStorage(storage_dir), default_address=get_gateway_config(config)["default_address"])
    settings = store.load()

    print("")
    print("=" * 50)
    print("  Print Desk")
    print("=" * 50)
    print("")
    print(f"  Local URL:    http://localhost:{port}")
    print(f"  API Docs:     http://localhost:{port}/docs")
    print(f"  Gateway:      {settings.address}")
    print(f"  Printer:      {settings.default_destination or '(choose on first print)'}")
    print("")
    print("  Triggers:")
    for trigger_id, info in triggers.items():
        auth = " [auth]" if info.get("requires_auth") else ""
        print(f"    • {trigger_id} ({info.get('mime_type')}){auth}")
    print("")
    print("  Endpoints:")
    print("    POST /v1/triggers/<id>          - Print with a trigger")
    print("    GET  /v1/state                  - Dialog state and notices")
    print("    POST /v1/destinations/select    - Choose printer")
    print("    POST /v1/credentials            - Authenticate print")
    print("")
    print("=" * 50)
    print("")
