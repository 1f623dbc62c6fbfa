"""Command handlers binding a report or state change to the dispatcher."""

import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, Sequence

import structlog

from ..reporting.output import OutputSink
from ..reporting.status_reporter import JsonRenderer, TableRenderer
from .dispatcher import dispatch, dispatch_all
from .exceptions import RemoteCallError, StateChangeError, UsageError
from .rpc_client import ProcessRecord, SupervisorClient
from .server_registry import ServerEndpoint, ServerRegistry

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[ServerEndpoint], SupervisorClient]
Clock = Callable[[], float]

USAGE_MESSAGE = "server name and process name needed"


class Command(ABC):
    """A CLI command executed against the configured servers."""

    name = ""
    usage = ""

    def __init__(
        self,
        registry: ServerRegistry,
        sink: OutputSink,
        error_sink: OutputSink,
        client_factory: ClientFactory = SupervisorClient,
        clock: Clock = time.time,
    ):
        """Initialize command.

        Args:
            registry: Configured servers
            sink: Destination for reports and success messages
            error_sink: Destination for failure messages
            client_factory: Builds an XML-RPC client for an endpoint
            clock: Returns the current epoch time in seconds
        """
        self.registry = registry
        self.sink = sink
        self.error_sink = error_sink
        self.client_factory = client_factory
        self.clock = clock

    @abstractmethod
    def execute(self, args: Sequence[str]) -> None:
        """Run the command with its positional arguments."""

    def report_error(self, message: str) -> None:
        self.error_sink.write_line(message)
        self.error_sink.flush()


class _StatusCommandBase(Command):
    """Query every target server, reporting failures and continuing."""

    def execute(self, args: Sequence[str]) -> None:
        self.prepare()
        if args:
            dispatch(self.registry, args, True, self.report)
        else:
            dispatch_all(self.registry, True, self.report)

    def prepare(self) -> None:
        """Hook run once before any server is queried."""

    def fetch(self, endpoint: ServerEndpoint) -> Sequence[ProcessRecord]:
        client = self.client_factory(endpoint)
        try:
            return client.get_all_process_info()
        except RemoteCallError as e:
            logger.warning("Status query failed", server_name=endpoint.name, error=e.message)
            self.report_error(e.message)
            raise

    @abstractmethod
    def report(self, endpoint: ServerEndpoint) -> None:
        """Query one server and render its process list."""


class StatusCommand(_StatusCommandBase):
    name = "status"
    usage = "status [SERVER_NAME...]"

    def report(self, endpoint: ServerEndpoint) -> None:
        records = self.fetch(endpoint)
        TableRenderer(self.sink).render(endpoint, records)


class StatusJsonCommand(_StatusCommandBase):
    name = "status_json"
    usage = "status_json [SERVER_NAME...]"

    def __init__(self, *args, ignore_fields: Iterable[str] = (), **kwargs):
        super().__init__(*args, **kwargs)
        self.ignore_fields = tuple(ignore_fields)
        self.now_ts = 0

    def prepare(self) -> None:
        # One snapshot time for every server in this run
        self.now_ts = int(self.clock())

    def report(self, endpoint: ServerEndpoint) -> None:
        records = self.fetch(endpoint)
        JsonRenderer(self.sink, self.ignore_fields).render(endpoint, records, self.now_ts)


class _StateChangeCommand(Command):
    """Apply ``action`` to each named process, stopping at the first failure."""

    action = ""

    def execute(self, args: Sequence[str]) -> None:
        if len(args) < 2:
            self.report_error(USAGE_MESSAGE)
            raise UsageError(
                USAGE_MESSAGE,
                suggestion=f"Usage: supervisor-mgr {self.usage}",
            )

        server_name, process_names = args[0], list(args[1:])
        dispatch(
            self.registry,
            [server_name],
            False,
            lambda endpoint: self.change_all(endpoint, process_names),
        )

    def change_all(self, endpoint: ServerEndpoint, process_names: Sequence[str]) -> None:
        client = self.client_factory(endpoint)
        for process_name in process_names:
            self.change(client, endpoint, process_name)

    def change(
        self, client: SupervisorClient, endpoint: ServerEndpoint, process_name: str
    ) -> None:
        log = logger.bind(
            server_name=endpoint.name, process_name=process_name, action=self.action
        )
        try:
            changed = client.change_process_state(self.action, process_name)
        except RemoteCallError as e:
            log.warning("State change failed", error=e.message)
            self.report_error(e.message)
            raise

        target = f"[{endpoint.name}/{process_name}]"
        if not changed:
            log.warning("State change rejected by server")
            self.report_error(f"{self.action} Fail! {target}")
            raise StateChangeError(endpoint.name, process_name, self.action)

        log.info("State changed")
        self.sink.write_line(f"{self.action} Ok! {target}")
        self.sink.flush()


class StartCommand(_StateChangeCommand):
    name = "start"
    action = "start"
    usage = "start SERVER_NAME PROCESS_NAME [PROCESS_NAME...]"


class StopCommand(_StateChangeCommand):
    name = "stop"
    action = "stop"
    usage = "stop SERVER_NAME PROCESS_NAME [PROCESS_NAME...]"


COMMAND_CLASSES = (StatusCommand, StatusJsonCommand, StartCommand, StopCommand)


def build_command_table(
    registry: ServerRegistry,
    sink: OutputSink,
    error_sink: OutputSink,
    client_factory: ClientFactory = SupervisorClient,
    clock: Clock = time.time,
    ignore_fields: Iterable[str] = (),
) -> Dict[str, Command]:
    """Build the command-name table used to dispatch CLI invocations."""
    table: Dict[str, Command] = {}
    for command_class in COMMAND_CLASSES:
        kwargs = {}
        if command_class is StatusJsonCommand:
            kwargs["ignore_fields"] = ignore_fields
        table[command_class.name] = command_class(
            registry, sink, error_sink, client_factory, clock, **kwargs
        )
    return table
