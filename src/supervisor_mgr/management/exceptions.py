"""Errors raised while dispatching commands to supervisord servers."""

from typing import Any, Dict, Optional


class ServerError(Exception):
    """Server management error with user-friendly messages."""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}
        super().__init__(message)


class UsageError(ServerError):
    """Command invoked with missing or malformed arguments."""


class RemoteCallError(ServerError):
    """Transport, timeout, HTTP or XML-RPC fault talking to a server."""

    def __init__(
        self,
        server_name: str,
        url: str,
        reason: str,
        process_name: Optional[str] = None,
        action: Optional[str] = None,
    ):
        """Initialize remote call error.

        Args:
            server_name: Configured name of the server
            url: XML-RPC endpoint URL
            reason: Underlying error text
            process_name: Process the call targeted, if any
            action: State change requested, if any
        """
        target = f"{server_name}/{process_name}" if process_name else server_name
        prefix = f"{action} {target}" if action else target
        super().__init__(
            f"[{prefix}] {reason}",
            details={
                "server_name": server_name,
                "url": url,
                "process_name": process_name,
                "action": action,
                "error_type": "remote_call_error",
            },
        )
        self.server_name = server_name
        self.process_name = process_name
        self.action = action


class StateChangeError(ServerError):
    """The server answered but reported the state change did not happen."""

    def __init__(self, server_name: str, process_name: str, action: str):
        super().__init__(
            f"{action} fail [{server_name}/{process_name}]",
            details={
                "server_name": server_name,
                "process_name": process_name,
                "action": action,
                "error_type": "state_change_error",
            },
        )
        self.server_name = server_name
        self.process_name = process_name
        self.action = action
