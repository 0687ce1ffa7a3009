"""
Print Desk entry point.
"""

import argparse
import logging
import sys

import uvicorn

from printdesk.api.server import create_app
from printdesk.config import get_server_config, load_config, setup_orchestrator, setup_triggers
from printdesk.gateway.mock import MockGateway, create_mock_gateway_app
from printdesk.orchestrator import NoticeBoard
from printdesk.startup import print_startup_banner, run_startup_checks

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def run_mock_gateway(host: str, port: int) -> None:
    """Serve a fake print gateway for development without printers."""
    logger.info(f"Starting mock print gateway on {host}:{port}")
    uvicorn.run(create_mock_gateway_app(MockGateway()), host=host, port=port, log_level="info")


def main():
    parser = argparse.ArgumentParser(description="Print Desk - operator printing via the local print gateway")
    parser.add_argument(
        "-c", "--config",
        help="Path to config file (default: config/default.yaml)"
    )
    parser.add_argument(
        "--host",
        help="Override host from config"
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Override port from config"
    )
    parser.add_argument(
        "--gateway",
        metavar="URL",
        help="Override the default print gateway address (used until a printer is saved)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )
    parser.add_argument(
        "--skip-checks",
        action="store_true",
        help="Skip startup checks (not recommended)"
    )
    parser.add_argument(
        "--mock-gateway",
        action="store_true",
        help="Run a mock print gateway instead of the print desk (default port 9090)"
    )
    args = parser.parse_args()

    if args.mock_gateway:
        run_mock_gateway(args.host or "127.0.0.1", args.port or 9090)
        return

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        sys.exit(1)

    # Apply CLI overrides before validation
    if args.host:
        config.setdefault("server", {})["host"] = args.host
    if args.port:
        config.setdefault("server", {})["port"] = args.port
    if args.gateway:
        config.setdefault("gateway", {})["default_address"] = args.gateway
    if args.debug:
        config.setdefault("server", {})["debug"] = True

    if config.get("server", {}).get("debug"):
        logging.getLogger().setLevel(logging.DEBUG)

    # Run startup checks
    if not args.skip_checks:
        run_startup_checks(config)

    notices = NoticeBoard()
    orchestrator = setup_orchestrator(config, notices)
    triggers = setup_triggers(config)

    server_config = get_server_config(config)

    app = create_app(
        orchestrator=orchestrator,
        triggers=triggers,
        notices=notices,
        cors_origins=server_config.get("cors_origins"),
        debug=server_config.get("debug", False)
    )

    print_startup_banner(config, triggers.list_triggers())

    try:
        uvicorn.run(
            app,
            host=server_config["host"],
            port=server_config["port"],
            log_level="debug" if server_config.get("debug") else "info"
        )
    except Exception as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
