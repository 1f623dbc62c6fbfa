"""Configuration package: server list loading, settings and logging."""

from .config_manager import ConfigurationManager
from .exceptions import ConfigurationError
from .logging import configure_logging, get_logger
from .settings import Settings, load_settings

__all__ = [
    "ConfigurationManager",
    "ConfigurationError",
    "Settings",
    "configure_logging",
    "get_logger",
    "load_settings",
]
