"""Server registry holding the configured supervisord endpoints."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, Iterator, List

import structlog

from ..config.logging import sanitize_log_data

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ServerEndpoint:
    """A configured supervisord server reachable over XML-RPC."""

    name: str
    url: str
    username: str = ""
    password: str = ""

    def to_dict(self, redact: bool = True) -> Dict[str, Any]:
        """Convert to dictionary, masking the password by default."""
        data = asdict(self)
        if redact:
            data = sanitize_log_data(data)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServerEndpoint":
        """Create an endpoint from one configuration entry."""
        return cls(
            name=str(data["name"]),
            url=str(data["url"]),
            username=str(data.get("username") or ""),
            password=str(data.get("password") or ""),
        )


class ServerRegistry:
    """Ordered, read-only collection of configured servers.

    Order is the order of the configuration file. Names are not required
    to be unique; lookups return every endpoint with a matching name.
    """

    def __init__(self, endpoints: Iterable[ServerEndpoint] = ()):
        self._endpoints = tuple(endpoints)
        logger.debug(
            "Server registry loaded",
            servers=[endpoint.to_dict() for endpoint in self._endpoints],
        )

    def get_all_servers(self) -> List[ServerEndpoint]:
        """Get all configured servers in registry order."""
        return list(self._endpoints)

    def get_servers_by_name(self, name: str) -> List[ServerEndpoint]:
        """Get every server whose name equals ``name`` exactly.

        Args:
            name: Server name to search for

        Returns:
            List[ServerEndpoint]: Matching servers in registry order
        """
        return [endpoint for endpoint in self._endpoints if endpoint.name == name]

    def names(self) -> List[str]:
        """Unique server names in order of first appearance."""
        seen: List[str] = []
        for endpoint in self._endpoints:
            if endpoint.name not in seen:
                seen.append(endpoint.name)
        return seen

    def __len__(self) -> int:
        return len(self._endpoints)

    def __iter__(self) -> Iterator[ServerEndpoint]:
        return iter(self._endpoints)

    def __contains__(self, name: object) -> bool:
        return any(endpoint.name == name for endpoint in self._endpoints)
