"""
Configuration loading and orchestrator setup.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from printdesk.gateway.client import GatewayClient
from printdesk.orchestrator import NoticeBoard, PrintOrchestrator
from printdesk.storage import DEFAULT_ADDRESS, ConfigStore, LocalStorage
from printdesk.triggers import TriggerRegistry

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = "~/.printdesk"


def load_config(config_path: Optional[str] = None) -> dict:
    """
    Load configuration from YAML file.

    Looks for config in order:
    1. Explicit path if provided
    2. CONFIG_FILE environment variable
    3. ./config/local.yaml
    4. ./config/default.yaml
    """
    search_paths = []

    if config_path:
        search_paths.append(Path(config_path))

    if env_path := os.environ.get("CONFIG_FILE"):
        search_paths.append(Path(env_path))

    # Default paths relative to project root
    project_root = Path(__file__).parent.parent
    search_paths.extend([
        project_root / "config" / "local.yaml",
        project_root / "config" / "default.yaml",
    ])

    for path in search_paths:
        if path.exists():
            logger.info(f"Loading config from {path}")
            with open(path) as f:
                return yaml.safe_load(f) or {}

    logger.warning("No config file found, using defaults")
    return {}


def get_server_config(config: dict) -> dict:
    """Extract server configuration."""
    server = config.get("server") or {}
    return {
        "host": server.get("host", "127.0.0.1"),
        "port": server.get("port", 5080),
        "debug": server.get("debug", False),
        "cors_origins": server.get("cors_origins", None),
    }


def get_gateway_config(config: dict) -> dict:
    """Extract print gateway configuration."""
    gateway = config.get("gateway") or {}
    return {
        "default_address": gateway.get("default_address", DEFAULT_ADDRESS),
        "timeout_sec": float(gateway.get("timeout_sec", 5.0)),
    }


def get_storage_dir(config: dict) -> Path:
    storage = config.get("storage") or {}
    return Path(storage.get("directory", DEFAULT_STORAGE_DIR)).expanduser()


def setup_orchestrator(config: dict, notices: Optional[NoticeBoard] = None) -> PrintOrchestrator:
    """
    Build the print orchestrator from configuration.

    Config format:
        gateway:
          default_address: http://localhost:9090
          timeout_sec: 5
        storage:
          directory: ~/.printdesk
    """
    gateway_config = get_gateway_config(config)
    storage_dir = get_storage_dir(config)

    store = ConfigStore(LocalStorage(storage_dir), default_address=gateway_config["default_address"])
    client = GatewayClient(timeout_sec=gateway_config["timeout_sec"])

    logger.info(f"Printer settings stored in {storage_dir}")
    return PrintOrchestrator(store, client, on_notice=notices.post if notices is not None else None)


def setup_triggers(config: dict) -> TriggerRegistry:
    registry = TriggerRegistry()
    registry.load_config(config)
    return registry
