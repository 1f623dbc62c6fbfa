"""Server management package: registry, XML-RPC client, dispatch and commands."""

from .exceptions import RemoteCallError, ServerError, StateChangeError, UsageError
from .server_registry import ServerEndpoint, ServerRegistry

__all__ = [
    "ServerEndpoint",
    "ServerRegistry",
    "ServerError",
    "RemoteCallError",
    "StateChangeError",
    "UsageError",
]
