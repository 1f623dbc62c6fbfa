"""Status reporting: table and JSON renderers over an output sink."""

from .output import BufferedOutputSink, ClickOutputSink, OutputSink
from .status_reporter import (
    JsonRenderer,
    ServiceState,
    StatusSnapshot,
    TableRenderer,
    compute_uptime,
    to_json_string,
)

__all__ = [
    "OutputSink",
    "ClickOutputSink",
    "BufferedOutputSink",
    "TableRenderer",
    "JsonRenderer",
    "ServiceState",
    "StatusSnapshot",
    "compute_uptime",
    "to_json_string",
]
