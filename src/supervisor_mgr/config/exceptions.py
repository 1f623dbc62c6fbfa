"""Errors raised while loading the server list."""

from pathlib import Path
from typing import Any, Dict, Optional, Union


class ConfigurationError(Exception):
    """The server list file is missing, unreadable or invalid.

    Always fatal: no server is contacted once this is raised.
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[Union[str, Path]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.config_file = str(config_file) if config_file is not None else None
        self.details = details or {}
        super().__init__(message)
