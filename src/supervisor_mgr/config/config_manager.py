"""Configuration loading for the server list file."""

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Union

import structlog
import yaml

from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from ..management.server_registry import ServerRegistry

logger = structlog.get_logger(__name__)

REQUIRED_SERVER_KEYS = ("name", "url")


class ConfigurationManager:
    """Loads and validates the list of supervisord servers.

    The file holds a top-level ``servers`` list; each entry carries
    ``name``, ``url`` and optionally ``username`` and ``password``::

        servers:
          - name: web
            url: http://10.0.0.5:9001/RPC2
            username: admin
            password: secret
    """

    def load_registry(self, config_file: Union[str, Path]) -> "ServerRegistry":
        """Load the configuration file into a server registry.

        Args:
            config_file: Path to the YAML or JSON configuration file

        Returns:
            ServerRegistry with servers in file order

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        from ..management.server_registry import ServerEndpoint, ServerRegistry

        file_path = Path(config_file)
        config = self._load_config_file(file_path)

        errors = self.validate_configuration(config)
        if errors:
            raise ConfigurationError(
                "Configuration validation failed",
                file_path,
                {"validation_errors": errors},
            )

        endpoints = [ServerEndpoint.from_dict(entry) for entry in config["servers"]]
        logger.debug(
            "Configuration loaded", config_file=str(file_path), servers=len(endpoints)
        )
        return ServerRegistry(endpoints)

    def validate_configuration(self, config: Any) -> List[str]:
        """Return human-readable validation errors, empty when valid."""
        if not isinstance(config, dict):
            return ["Configuration root must be a mapping"]

        servers = config.get("servers")
        if servers is None:
            return ["Missing required 'servers' list"]
        if not isinstance(servers, list):
            return ["'servers' must be a list"]

        errors = []
        for index, entry in enumerate(servers):
            if not isinstance(entry, dict):
                errors.append(f"servers[{index}] must be a mapping")
                continue
            for key in REQUIRED_SERVER_KEYS:
                if not entry.get(key):
                    errors.append(f"servers[{index}] is missing '{key}'")
        return errors

    def _load_config_file(self, file_path: Path) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                content = f.read()

            if file_path.suffix.lower() == ".json":
                return json.loads(content)
            return yaml.safe_load(content) or {}

        except FileNotFoundError:
            raise ConfigurationError(
                "Configuration file not found",
                file_path,
                {"suggestion": "Pass the server list with --config"},
            )
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                "Invalid configuration file format",
                file_path,
                {"parse_error": str(e)},
            )
        except OSError as e:
            raise ConfigurationError(
                "Failed to read configuration file",
                file_path,
                {"error": str(e)},
            )
