"""XML-RPC client for a single supervisord server."""

import http.client
import time
import xmlrpc.client
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlsplit, urlunsplit
from xml.parsers.expat import ExpatError

import structlog

from ..config.logging import log_remote_call
from .exceptions import RemoteCallError
from .server_registry import ServerEndpoint

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0

STATE_CHANGE_METHODS = {
    "start": "startProcess",
    "stop": "stopProcess",
}

_REMOTE_ERRORS = (
    OSError,
    http.client.HTTPException,
    xmlrpc.client.Error,
    ExpatError,
)


@dataclass(frozen=True)
class ProcessRecord:
    """One process as reported by ``supervisor.getAllProcessInfo``."""

    name: str
    state_name: str
    pid: int
    start: int

    @classmethod
    def from_rpc(cls, info: Dict[str, Any]) -> "ProcessRecord":
        """Create a record from a supervisord process info struct."""
        return cls(
            name=info.get("name", ""),
            state_name=info.get("statename", ""),
            pid=int(info.get("pid", 0) or 0),
            start=int(info.get("start", 0) or 0),
        )


class _TimeoutTransport(xmlrpc.client.Transport):
    """HTTP transport applying a fixed timeout to every connection."""

    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout

    def make_connection(self, host):
        connection = super().make_connection(host)
        connection.timeout = self.timeout
        return connection


class _SafeTimeoutTransport(xmlrpc.client.SafeTransport):
    """HTTPS transport applying a fixed timeout to every connection."""

    def __init__(self, timeout: float):
        super().__init__()
        self.timeout = timeout

    def make_connection(self, host):
        connection = super().make_connection(host)
        connection.timeout = self.timeout
        return connection


def build_server_url(endpoint: ServerEndpoint) -> str:
    """Return the endpoint URL with credentials embedded for basic auth.

    ``xmlrpc.client`` turns ``user:password@host`` into an Authorization
    header. Endpoints without a username are returned unchanged.
    """
    if not endpoint.username:
        return endpoint.url

    parts = urlsplit(endpoint.url)
    # Keep the netloc as written so IPv6 brackets and the port survive
    host = parts.netloc.rpartition("@")[2]
    userinfo = quote(endpoint.username, safe="")
    if endpoint.password:
        userinfo = f"{userinfo}:{quote(endpoint.password, safe='')}"
    return urlunsplit(
        (parts.scheme, f"{userinfo}@{host}", parts.path, parts.query, parts.fragment)
    )


class SupervisorClient:
    """Client for the supervisord XML-RPC control API of one server."""

    def __init__(self, endpoint: ServerEndpoint, timeout: float = DEFAULT_TIMEOUT):
        """Initialize the client.

        Args:
            endpoint: Server to talk to
            timeout: Connect and response timeout in seconds
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self._proxy: Optional[xmlrpc.client.ServerProxy] = None

    @property
    def proxy(self) -> xmlrpc.client.ServerProxy:
        """Lazily created XML-RPC proxy."""
        if self._proxy is None:
            url = build_server_url(self.endpoint)
            if urlsplit(url).scheme == "https":
                transport = _SafeTimeoutTransport(self.timeout)
            else:
                transport = _TimeoutTransport(self.timeout)
            self._proxy = xmlrpc.client.ServerProxy(url, transport=transport)
        return self._proxy

    def get_all_process_info(self) -> List[ProcessRecord]:
        """List every process known to the server.

        Raises:
            RemoteCallError: On transport, timeout or protocol failure,
                or when the reply is not a list of process structs
        """
        result = self._call("getAllProcessInfo")
        if not isinstance(result, list) or not all(isinstance(i, dict) for i in result):
            raise self._malformed("getAllProcessInfo")
        try:
            return [ProcessRecord.from_rpc(info) for info in result]
        except (TypeError, ValueError) as e:
            raise self._malformed("getAllProcessInfo") from e

    def change_process_state(self, action: str, process_name: str) -> bool:
        """Request a process state change.

        Args:
            action: ``start`` or ``stop``
            process_name: Supervisord process name (``group:name`` allowed)

        Returns:
            bool: Whether the server reports the change took effect

        Raises:
            ValueError: If ``action`` is not supported
            RemoteCallError: On transport, timeout or protocol failure
        """
        if action not in STATE_CHANGE_METHODS:
            raise ValueError(f"Unsupported process action: {action}")

        result = self._call(
            STATE_CHANGE_METHODS[action],
            process_name,
            process_name=process_name,
            action=action,
        )
        return bool(result)

    def _call(
        self,
        method: str,
        *args: Any,
        process_name: Optional[str] = None,
        action: Optional[str] = None,
    ) -> Any:
        """Invoke ``supervisor.<method>`` and normalize failures."""
        started = time.perf_counter()
        try:
            result = getattr(self.proxy.supervisor, method)(*args)
        except xmlrpc.client.Fault as e:
            self._log(method, started, False, process_name)
            raise RemoteCallError(
                self.endpoint.name,
                self.endpoint.url,
                f"fault {e.faultCode}: {e.faultString}",
                process_name=process_name,
                action=action,
            ) from e
        except xmlrpc.client.ProtocolError as e:
            self._log(method, started, False, process_name)
            raise RemoteCallError(
                self.endpoint.name,
                self.endpoint.url,
                f"HTTP {e.errcode} {e.errmsg}",
                process_name=process_name,
                action=action,
            ) from e
        except _REMOTE_ERRORS as e:
            self._log(method, started, False, process_name)
            raise RemoteCallError(
                self.endpoint.name,
                self.endpoint.url,
                str(e) or type(e).__name__,
                process_name=process_name,
                action=action,
            ) from e

        self._log(method, started, True, process_name)
        return result

    def _malformed(self, method: str) -> RemoteCallError:
        logger.warning(
            "Malformed reply", server_name=self.endpoint.name, method=f"supervisor.{method}"
        )
        return RemoteCallError(
            self.endpoint.name, self.endpoint.url, f"malformed {method} reply"
        )

    def _log(
        self, method: str, started: float, success: bool, process_name: Optional[str]
    ) -> None:
        log_remote_call(
            logger,
            f"supervisor.{method}",
            self.endpoint.name,
            (time.perf_counter() - started) * 1000,
            success,
            process_name=process_name,
        )
