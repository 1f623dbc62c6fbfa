"""Render supervisord process lists as aligned tables or JSON documents."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Sequence

from ..management.rpc_client import ProcessRecord
from ..management.server_registry import ServerEndpoint
from .output import OutputSink

TABLE_HEADER = ("Name", "State", "Pid", "StartAt")
COLUMN_PADDING = 3
COLUMN_SEPARATOR = "|"
START_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def compute_uptime(started_ts: int, now_ts: int) -> int:
    """Seconds a process has been up; 0 when it never started."""
    if started_ts <= 0:
        return 0
    return max(0, now_ts - started_ts)


def format_start_time(started_ts: int) -> str:
    """Format a start epoch in local time."""
    return datetime.fromtimestamp(started_ts).strftime(START_TIME_FORMAT)


@dataclass
class ServiceState:
    """Reporting form of one process at query time."""

    name: str
    state: str
    pid: int
    started_ts: int
    uptime_seconds: int

    @classmethod
    def from_record(cls, record: ProcessRecord, now_ts: int) -> "ServiceState":
        return cls(
            name=record.name,
            state=record.state_name,
            pid=record.pid,
            started_ts=record.start,
            uptime_seconds=compute_uptime(record.start, now_ts),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Name": self.name,
            "State": self.state,
            "Pid": self.pid,
            "Started_ts": self.started_ts,
            "Uptime_seconds": self.uptime_seconds,
        }


@dataclass
class StatusSnapshot:
    """All processes of one server captured at ``now_ts``."""

    server_name: str
    now_ts: int
    services: List[ServiceState] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "server_name": self.server_name,
            "now_ts": self.now_ts,
            "services": [service.to_dict() for service in self.services],
        }


def to_json_string(obj: Dict[str, Any], ignore_fields: Iterable[str] = ()) -> str:
    """Encode ``obj`` as compact JSON without the given top-level keys."""
    ignored = set(ignore_fields)
    if ignored:
        obj = {key: value for key, value in obj.items() if key not in ignored}
    return json.dumps(obj, separators=(",", ":"))


def align_columns(rows: Sequence[Sequence[str]]) -> List[str]:
    """Pad every column but the last to a common width.

    Each padded cell is followed by a ``|`` separator; the last cell is
    written as is.
    """
    if not rows:
        return []

    column_count = max(len(row) for row in rows)
    widths = [0] * column_count
    for row in rows:
        for index, cell in enumerate(row[:-1]):
            widths[index] = max(widths[index], len(cell))

    lines = []
    for row in rows:
        cells = [
            cell.ljust(widths[index] + COLUMN_PADDING) + COLUMN_SEPARATOR
            for index, cell in enumerate(row[:-1])
        ]
        cells.append(row[-1])
        lines.append("".join(cells))
    return lines


class TableRenderer:
    """Human-readable per-server process table."""

    def __init__(self, sink: OutputSink):
        self.sink = sink

    def render(self, endpoint: ServerEndpoint, records: Sequence[ProcessRecord]) -> None:
        """Write one server block and flush it."""
        rows = [TABLE_HEADER]
        for record in records:
            rows.append(
                (
                    record.name,
                    record.state_name,
                    str(record.pid),
                    format_start_time(record.start),
                )
            )

        self.sink.write_line(f"Server:{endpoint.name} :{endpoint.url}")
        for line in align_columns(rows):
            self.sink.write_line(line)
        self.sink.write_line()
        self.sink.flush()


class JsonRenderer:
    """One compact JSON document per server, one per line."""

    def __init__(self, sink: OutputSink, ignore_fields: Iterable[str] = ()):
        self.sink = sink
        self.ignore_fields = tuple(ignore_fields)

    def build_snapshot(
        self,
        endpoint: ServerEndpoint,
        records: Sequence[ProcessRecord],
        now_ts: int,
    ) -> StatusSnapshot:
        # Keep the order the server returned
        return StatusSnapshot(
            server_name=endpoint.name,
            now_ts=now_ts,
            services=[ServiceState.from_record(record, now_ts) for record in records],
        )

    def render(
        self,
        endpoint: ServerEndpoint,
        records: Sequence[ProcessRecord],
        now_ts: int,
    ) -> StatusSnapshot:
        """Write the snapshot as a single JSON line and return it."""
        snapshot = self.build_snapshot(endpoint, records, now_ts)
        self.sink.write_line(to_json_string(snapshot.to_dict(), self.ignore_fields))
        self.sink.flush()
        return snapshot
