"""
Local persistence for operator settings.

LocalStorage is a small key-value store: each key is one YAML file in a state
directory, replaced atomically on write. ConfigStore keeps the gateway
settings record on top of it and owns the "corrupt data means defaults" rule.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from printdesk.errors import ConfigUnavailable

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS = "http://localhost:9090"
SETTINGS_KEY = "gateway_settings"


class LocalStorage:
    """YAML-backed key-value storage rooted at a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.yaml"

    def get_item(self, key: str) -> Optional[Any]:
        """
        Read a stored value.

        Returns None when the key was never written.
        Raises ConfigUnavailable when the record exists but cannot be read.
        """
        path = self._path(key)
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                return yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigUnavailable(key, str(e)) from e

    def set_item(self, key: str, value: Any) -> None:
        """Write a value, replacing the previous record in one step."""
        self.directory.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self.directory, prefix=f".{key}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(value, f, default_flow_style=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self._path(key))
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def remove_item(self, key: str) -> None:
        """Delete a stored value if present."""
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


@dataclass
class GatewayConfig:
    address: str = DEFAULT_ADDRESS
    default_destination: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> "GatewayConfig":
        """Parse the persisted record. Raises ConfigUnavailable if malformed."""
        if not isinstance(data, dict):
            raise ConfigUnavailable(SETTINGS_KEY, f"expected a mapping, got {type(data).__name__}")

        address = data.get("address")
        if not isinstance(address, str) or not address:
            raise ConfigUnavailable(SETTINGS_KEY, "missing gateway address")

        destination = data.get("defaultDestination")
        if destination is not None and not isinstance(destination, str):
            raise ConfigUnavailable(SETTINGS_KEY, "defaultDestination must be a string")

        return cls(address=address, default_destination=destination or None)

    def to_dict(self) -> dict:
        record = {"address": self.address}
        if self.default_destination:
            record["defaultDestination"] = self.default_destination
        return record


class ConfigStore:
    """
    Persists the gateway address and the operator's default destination.

    Every read returns a fresh GatewayConfig; callers may mutate it freely.
    """

    def __init__(self, storage: LocalStorage, default_address: str = DEFAULT_ADDRESS):
        self._storage = storage
        self.default_address = default_address
        self._corruption_reported = False

    def load_saved(self) -> Optional[GatewayConfig]:
        """
        Return the persisted config, or None if nothing valid is stored.

        A corrupt record is reported at WARNING once; repeat reads log at DEBUG
        until the record is saved or cleared.
        """
        try:
            data = self._storage.get_item(SETTINGS_KEY)
            if data is None:
                return None
            return GatewayConfig.from_dict(data)
        except ConfigUnavailable as e:
            if self._corruption_reported:
                logger.debug(f"Ignoring stored gateway settings: {e}")
            else:
                logger.warning(f"Ignoring stored gateway settings: {e}")
                self._corruption_reported = True
            return None

    def load(self) -> GatewayConfig:
        """Return the persisted config, falling back to defaults."""
        saved = self.load_saved()
        if saved is not None:
            return saved
        return GatewayConfig(address=self.default_address)

    def save(self, config: GatewayConfig) -> bool:
        """Persist config. Returns False if the write failed."""
        try:
            self._storage.set_item(SETTINGS_KEY, config.to_dict())
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to save gateway settings: {e}")
            return False

        self._corruption_reported = False
        logger.info(
            f"Saved gateway settings: address={config.address} "
            f"destination={config.default_destination or '-'}"
        )
        return True

    def clear(self) -> None:
        """Forget the stored settings."""
        try:
            self._storage.remove_item(SETTINGS_KEY)
        except OSError as e:
            logger.error(f"Failed to clear gateway settings: {e}")
            return
        self._corruption_reported = False
