"""Output sinks the status renderers write through."""

import sys
from typing import IO, List, Optional, Protocol

import click


class OutputSink(Protocol):
    """Append-only line output with explicit flushing."""

    def write_line(self, text: str = "") -> None:
        ...

    def flush(self) -> None:
        ...


class ClickOutputSink:
    """Writes lines through ``click.echo`` to stdout, stderr or a stream."""

    def __init__(self, file: Optional[IO[str]] = None, err: bool = False):
        self.file = file
        self.err = err

    def write_line(self, text: str = "") -> None:
        click.echo(text, file=self.file, err=self.err)

    def flush(self) -> None:
        stream = self.file or (sys.stderr if self.err else sys.stdout)
        stream.flush()


class BufferedOutputSink:
    """Collects lines in memory."""

    def __init__(self):
        self.lines: List[str] = []
        self.flush_count = 0

    def write_line(self, text: str = "") -> None:
        self.lines.append(text)

    def flush(self) -> None:
        self.flush_count += 1
