"""Resolve target server names and apply an operation to each match."""

from typing import Callable, Iterable, Sequence

import structlog

from .exceptions import ServerError
from .server_registry import ServerEndpoint, ServerRegistry

logger = structlog.get_logger(__name__)

Operation = Callable[[ServerEndpoint], None]


def dispatch(
    registry: ServerRegistry,
    target_names: Sequence[str],
    continue_on_error: bool,
    operation: Operation,
) -> None:
    """Invoke ``operation`` on every server matching each target name.

    Target names are visited in the given order; for each name every
    registry entry with that exact name is a target, in registry order.
    Runs strictly sequentially.

    Args:
        registry: Configured servers
        target_names: Server names to resolve
        continue_on_error: Keep going after a failed operation
        operation: Callable raising ``ServerError`` on failure; it is
            expected to report its own failures

    Raises:
        ServerError: The first failure, unmodified, when not continuing
    """
    for name in target_names:
        matches = registry.get_servers_by_name(name)
        if not matches:
            # Unknown names are not an error; only visible at debug level.
            logger.debug("No configured server matches name", server_name=name)
            continue
        _run(matches, continue_on_error, operation)


def dispatch_all(
    registry: ServerRegistry,
    continue_on_error: bool,
    operation: Operation,
) -> None:
    """Invoke ``operation`` on every configured server in registry order."""
    _run(registry.get_all_servers(), continue_on_error, operation)


def _run(
    endpoints: Iterable[ServerEndpoint],
    continue_on_error: bool,
    operation: Operation,
) -> None:
    for endpoint in endpoints:
        logger.debug("Dispatching to server", server_name=endpoint.name)
        try:
            operation(endpoint)
        except ServerError as e:
            if not continue_on_error:
                raise
            logger.info(
                "Operation failed, continuing",
                server_name=endpoint.name,
                error=e.message,
            )
