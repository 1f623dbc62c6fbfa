"""Pytest configuration and shared fixtures."""

from typing import Dict, List, Optional, Sequence, Tuple, Union

import pytest

from supervisor_mgr.management.exceptions import RemoteCallError
from supervisor_mgr.management.rpc_client import ProcessRecord
from supervisor_mgr.management.server_registry import ServerEndpoint, ServerRegistry
from supervisor_mgr.reporting.output import BufferedOutputSink

NOW_TS = 1_700_000_000


class FakeSupervisorClient:
    """In-memory stand-in for ``SupervisorClient``.

    ``processes`` maps a server URL to its process list, or to an exception
    raised by ``get_all_process_info``. ``state_results`` maps
    ``(url, process_name)`` to a bool result or an exception.
    """

    def __init__(
        self,
        endpoint: ServerEndpoint,
        processes: Dict[str, Union[List[ProcessRecord], Exception]],
        state_results: Dict[Tuple[str, str], Union[bool, Exception]],
        calls: List[Tuple],
    ):
        self.endpoint = endpoint
        self._processes = processes
        self._state_results = state_results
        self._calls = calls

    def get_all_process_info(self) -> List[ProcessRecord]:
        self._calls.append(("getAllProcessInfo", self.endpoint.name, self.endpoint.url))
        result = self._processes.get(self.endpoint.url, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    def change_process_state(self, action: str, process_name: str) -> bool:
        self._calls.append((action, self.endpoint.name, process_name))
        result = self._state_results.get((self.endpoint.url, process_name), True)
        if isinstance(result, Exception):
            raise result
        return result


class FakeClientFactory:
    """Builds ``FakeSupervisorClient`` objects sharing one call log."""

    def __init__(self):
        self.processes: Dict[str, Union[List[ProcessRecord], Exception]] = {}
        self.state_results: Dict[Tuple[str, str], Union[bool, Exception]] = {}
        self.calls: List[Tuple] = []
        self.created: List[ServerEndpoint] = []

    def __call__(self, endpoint: ServerEndpoint) -> FakeSupervisorClient:
        self.created.append(endpoint)
        return FakeSupervisorClient(
            endpoint, self.processes, self.state_results, self.calls
        )

    def fail_listing(self, endpoint: ServerEndpoint, reason: str = "connection refused"):
        self.processes[endpoint.url] = RemoteCallError(endpoint.name, endpoint.url, reason)


def make_record(
    name: str, state: str = "RUNNING", pid: int = 100, start: Optional[int] = None
) -> ProcessRecord:
    return ProcessRecord(
        name=name,
        state_name=state,
        pid=pid,
        start=NOW_TS - 60 if start is None else start,
    )


def make_endpoints(*names: str) -> Sequence[ServerEndpoint]:
    return [
        ServerEndpoint(name=name, url=f"http://{name}-{index}:9001/RPC2")
        for index, name in enumerate(names)
    ]


@pytest.fixture
def endpoints():
    """Three servers, two of which share the name ``web``."""
    return make_endpoints("web", "db", "web")


@pytest.fixture
def registry(endpoints):
    return ServerRegistry(endpoints)


@pytest.fixture
def client_factory():
    return FakeClientFactory()


@pytest.fixture
def sink():
    return BufferedOutputSink()


@pytest.fixture
def error_sink():
    return BufferedOutputSink()


@pytest.fixture
def clock():
    return lambda: float(NOW_TS)
