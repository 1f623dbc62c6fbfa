"""Tests for the status, status_json, start and stop command handlers."""

import json
from unittest.mock import MagicMock

import pytest

from conftest import NOW_TS, make_endpoints, make_record
from supervisor_mgr.management.commands import (
    USAGE_MESSAGE,
    Command,
    StartCommand,
    StatusCommand,
    StatusJsonCommand,
    StopCommand,
    build_command_table,
)
from supervisor_mgr.management.exceptions import (
    RemoteCallError,
    StateChangeError,
    UsageError,
)
from supervisor_mgr.management.rpc_client import SupervisorClient
from supervisor_mgr.management.server_registry import ServerRegistry


def json_lines(sink):
    return [json.loads(line) for line in sink.lines]


class TestCommandTable:
    """Test the command-name table."""

    def test_table_holds_all_commands(self, registry, sink, error_sink, client_factory):
        table = build_command_table(registry, sink, error_sink, client_factory)

        assert set(table) == {"status", "status_json", "start", "stop"}
        assert isinstance(table["status"], StatusCommand)
        assert isinstance(table["status_json"], StatusJsonCommand)
        assert isinstance(table["start"], StartCommand)
        assert isinstance(table["stop"], StopCommand)

    def test_ignore_fields_reach_status_json(self, registry, sink, error_sink, client_factory):
        table = build_command_table(
            registry, sink, error_sink, client_factory, ignore_fields=["now_ts"]
        )

        assert table["status_json"].ignore_fields == ("now_ts",)

    def test_base_command_is_abstract(self, registry, sink, error_sink):
        with pytest.raises(TypeError):
            Command(registry, sink, error_sink)


class TestStatusCommand:
    """Test the table status command."""

    def test_no_names_queries_every_server_in_order(
        self, registry, endpoints, sink, error_sink, client_factory
    ):
        command = StatusCommand(registry, sink, error_sink, client_factory)

        command.execute([])

        assert client_factory.created == list(endpoints)
        assert [line for line in sink.lines if line.startswith("Server:")] == [
            f"Server:{e.name} :{e.url}" for e in endpoints
        ]
        assert sink.flush_count == 3

    def test_named_servers_include_duplicates(
        self, registry, endpoints, sink, error_sink, client_factory
    ):
        command = StatusCommand(registry, sink, error_sink, client_factory)

        command.execute(["web"])

        assert client_factory.created == [endpoints[0], endpoints[2]]

    def test_failure_is_reported_and_next_server_rendered(
        self, registry, endpoints, sink, error_sink, client_factory
    ):
        web, db, _ = endpoints
        client_factory.fail_listing(web)
        client_factory.processes[db.url] = [make_record("postgres")]
        command = StatusCommand(registry, sink, error_sink, client_factory)

        command.execute(["web", "db"])

        headers = [line for line in sink.lines if line.startswith("Server:")]
        assert error_sink.lines == ["[web] connection refused"]
        assert headers == [f"Server:web :{endpoints[2].url}", f"Server:db :{db.url}"]
        assert any(line.startswith("postgres") for line in sink.lines)

    def test_malformed_reply_is_reported_and_next_server_rendered(
        self, sink, error_sink
    ):
        a, b = make_endpoints("a", "b")
        replies = {
            a.url: [1, 2],
            b.url: [{"name": "redis", "statename": "RUNNING", "pid": 7, "start": NOW_TS}],
        }

        def client_factory(endpoint):
            client = SupervisorClient(endpoint)
            client._proxy = MagicMock()
            client.proxy.supervisor.getAllProcessInfo.return_value = replies[endpoint.url]
            return client

        command = StatusCommand(ServerRegistry([a, b]), sink, error_sink, client_factory)

        command.execute([])

        assert error_sink.lines == ["[a] malformed getAllProcessInfo reply"]
        assert [line for line in sink.lines if line.startswith("Server:")] == [
            f"Server:b :{b.url}"
        ]
        assert any(line.startswith("redis") for line in sink.lines)

    def test_unknown_server_prints_nothing(self, registry, sink, error_sink, client_factory):
        command = StatusCommand(registry, sink, error_sink, client_factory)

        command.execute(["nope"])

        assert sink.lines == []
        assert error_sink.lines == []
        assert client_factory.calls == []


class TestStatusJsonCommand:
    """Test the JSON status command."""

    def test_scenario_two_servers(self, sink, error_sink, client_factory, clock):
        a, b = make_endpoints("a", "b")
        client_factory.processes[a.url] = [
            make_record("nginx", pid=11, start=NOW_TS - 100),
            make_record("worker", state="STOPPED", pid=0, start=0),
        ]
        client_factory.processes[b.url] = [make_record("redis", pid=22, start=NOW_TS - 5)]
        command = StatusJsonCommand(
            ServerRegistry([a, b]), sink, error_sink, client_factory, clock
        )

        command.execute([])

        documents = json_lines(sink)
        assert [d["server_name"] for d in documents] == ["a", "b"]
        assert documents[0]["now_ts"] == documents[1]["now_ts"] == NOW_TS
        assert documents[0]["services"] == [
            {"Name": "nginx", "State": "RUNNING", "Pid": 11,
             "Started_ts": NOW_TS - 100, "Uptime_seconds": 100},
            {"Name": "worker", "State": "STOPPED", "Pid": 0,
             "Started_ts": 0, "Uptime_seconds": 0},
        ]
        assert documents[1]["services"] == [
            {"Name": "redis", "State": "RUNNING", "Pid": 22,
             "Started_ts": NOW_TS - 5, "Uptime_seconds": 5},
        ]

    def test_failure_is_not_embedded_in_json(self, sink, error_sink, client_factory, clock):
        a, b = make_endpoints("a", "b")
        client_factory.fail_listing(a, "timed out")
        client_factory.processes[b.url] = [make_record("redis")]
        command = StatusJsonCommand(
            ServerRegistry([a, b]), sink, error_sink, client_factory, clock
        )

        command.execute(["a", "b"])

        documents = json_lines(sink)
        assert [d["server_name"] for d in documents] == ["b"]
        assert error_sink.lines == ["[a] timed out"]

    def test_ignore_fields(self, sink, error_sink, client_factory, clock):
        (a,) = make_endpoints("a")
        command = StatusJsonCommand(
            ServerRegistry([a]), sink, error_sink, client_factory, clock,
            ignore_fields=["now_ts"],
        )

        command.execute([])

        assert json_lines(sink) == [{"server_name": "a", "services": []}]


class TestStateChangeCommands:
    """Test start and stop commands."""

    @pytest.mark.parametrize("command_class", [StartCommand, StopCommand])
    @pytest.mark.parametrize("args", [[], ["web"]])
    def test_too_few_arguments_is_usage_error(
        self, command_class, args, registry, sink, error_sink, client_factory
    ):
        command = command_class(registry, sink, error_sink, client_factory)

        with pytest.raises(UsageError) as exc_info:
            command.execute(args)

        assert client_factory.created == []
        assert client_factory.calls == []
        assert error_sink.lines == ["server name and process name needed"]
        assert exc_info.value.message == USAGE_MESSAGE

    def test_start_each_process_in_order(self, sink, error_sink, client_factory):
        (web,) = make_endpoints("web")
        command = StartCommand(ServerRegistry([web]), sink, error_sink, client_factory)

        command.execute(["web", "nginx", "php"])

        assert client_factory.calls == [("start", "web", "nginx"), ("start", "web", "php")]
        assert sink.lines == ["start Ok! [web/nginx]", "start Ok! [web/php]"]

    def test_abort_on_remote_error(self, sink, error_sink, client_factory):
        (web,) = make_endpoints("web")
        client_factory.state_results[(web.url, "p2")] = RemoteCallError(
            "web", web.url, "fault 10: BAD_NAME: p2", process_name="p2", action="stop"
        )
        command = StopCommand(ServerRegistry([web]), sink, error_sink, client_factory)

        with pytest.raises(RemoteCallError):
            command.execute(["web", "p1", "p2", "p3"])

        assert client_factory.calls == [("stop", "web", "p1"), ("stop", "web", "p2")]
        assert sink.lines == ["stop Ok! [web/p1]"]
        assert error_sink.lines == ["[stop web/p2] fault 10: BAD_NAME: p2"]

    def test_abort_on_logical_failure(self, sink, error_sink, client_factory):
        (web,) = make_endpoints("web")
        client_factory.state_results[(web.url, "p2")] = False
        command = StartCommand(ServerRegistry([web]), sink, error_sink, client_factory)

        with pytest.raises(StateChangeError) as exc_info:
            command.execute(["web", "p1", "p2", "p3"])

        assert ("start", "web", "p3") not in client_factory.calls
        assert error_sink.lines == ["start Fail! [web/p2]"]
        assert exc_info.value.process_name == "p2"
        assert exc_info.value.server_name == "web"

    def test_failure_on_first_duplicate_skips_second(
        self, registry, endpoints, sink, error_sink, client_factory
    ):
        first_web = endpoints[0]
        client_factory.state_results[(first_web.url, "nginx")] = False
        command = StartCommand(registry, sink, error_sink, client_factory)

        with pytest.raises(StateChangeError):
            command.execute(["web", "nginx"])

        assert client_factory.created == [first_web]

    def test_duplicate_servers_all_receive_processes(
        self, registry, endpoints, sink, error_sink, client_factory
    ):
        command = StopCommand(registry, sink, error_sink, client_factory)

        command.execute(["web", "nginx"])

        assert client_factory.created == [endpoints[0], endpoints[2]]
        assert client_factory.calls == [("stop", "web", "nginx"), ("stop", "web", "nginx")]

    def test_unknown_server_is_noop(self, registry, sink, error_sink, client_factory):
        command = StartCommand(registry, sink, error_sink, client_factory)

        command.execute(["nope", "nginx"])

        assert client_factory.calls == []
        assert sink.lines == []
