"""Fan-out sink for clever CLI output.

One :class:`OutputSink` is built per pipeline run. Every destination gets its
own writer thread and FIFO queue, so a slow or broken destination never holds
up the others while each destination still sees chunks in source order.

The console destination re-emits annotation lines without the CLI's leading
timestamp, because the runner only recognizes ``::notice``/``::error``/
``::warning`` commands at the very start of a line.
"""

from __future__ import annotations

import logging
import queue
import sys
import threading
from pathlib import Path
from typing import BinaryIO, List, Optional, Protocol

__all__ = [
    "ANNOTATION_PREFIXES",
    "AnnotationTransform",
    "MAX_PENDING_CHUNKS",
    "ConsoleDestination",
    "FileDestination",
    "OutputMultiplexer",
    "OutputSink",
    "TIMESTAMP_WIDTH",
]

logger = logging.getLogger(__name__)

ANNOTATION_PREFIXES = (b"::notice ", b"::error ", b"::warning ")
# "2024-10-28T09:26:49.839Z: "
TIMESTAMP_WIDTH = 26
_CLOSE_TIMEOUT_SECONDS = 5.0
# Chunks waiting per destination; a destination further behind loses output.
MAX_PENDING_CHUNKS = 1024


class Destination(Protocol):
    name: str

    def write(self, chunk: bytes) -> None: ...

    def close(self) -> None: ...


class AnnotationTransform:
    """Split a byte stream into lines and duplicate annotation lines.

    The line separator starts as ``\\n`` and switches to ``\\r\\n`` for the
    rest of the stream once such a line ending is seen.
    """

    def __init__(self) -> None:
        self.separator = b"\n"
        self._pending = b""

    def feed(self, chunk: bytes) -> bytes:
        lines = (self._pending + chunk).split(b"\n")
        self._pending = lines.pop()
        out = bytearray()
        for line in lines:
            if line.endswith(b"\r"):
                line = line[:-1]
                self.separator = b"\r\n"
            out += self._render(line)
        return bytes(out)

    def flush(self) -> bytes:
        if not self._pending:
            return b""
        line, self._pending = self._pending, b""
        return self._render(line.rstrip(b"\r"))

    def _render(self, line: bytes) -> bytes:
        rendered = line + self.separator
        message = line[TIMESTAMP_WIDTH:]
        if message.startswith(ANNOTATION_PREFIXES):
            rendered += message + self.separator
        return rendered


class ConsoleDestination:
    """Forward output to a binary console stream, optionally annotating."""

    name = "console"

    def __init__(
        self, stream: BinaryIO, transform: Optional[AnnotationTransform] = None
    ) -> None:
        self._stream = stream
        self._transform = transform

    def write(self, chunk: bytes) -> None:
        data = self._transform.feed(chunk) if self._transform else chunk
        if data:
            self._stream.write(data)
            self._stream.flush()

    def close(self) -> None:
        # The console stream is shared; only drain buffered partial lines.
        if self._transform is None:
            return
        data = self._transform.flush()
        if data:
            self._stream.write(data)
            self._stream.flush()


class FileDestination:
    """Duplicate output verbatim into a file truncated at open."""

    def __init__(self, path: Path) -> None:
        self.name = f"log file {path}"
        self._handle = open(path, "wb")

    def write(self, chunk: bytes) -> None:
        self._handle.write(chunk)
        self._handle.flush()

    def close(self) -> None:
        self._handle.close()


class _DestinationWriter:
    """Drain queued chunks into one destination from a daemon thread."""

    def __init__(self, destination: Destination, max_pending: int) -> None:
        self.destination = destination
        self.failed = False
        self._overflowed = False
        self._queue: "queue.Queue[Optional[bytes]]" = queue.Queue(max_pending)
        self._thread = threading.Thread(
            target=self._drain, name=f"output-{destination.name}", daemon=True
        )
        self._thread.start()

    def submit(self, chunk: bytes) -> None:
        if self.failed:
            return
        try:
            self._queue.put_nowait(chunk)
        except queue.Full:
            if not self._overflowed:
                self._overflowed = True
                logger.warning(
                    "Output destination %s is falling behind, dropping output",
                    self.destination.name,
                )

    def close(self, timeout: float) -> None:
        try:
            self._queue.put(None, timeout=timeout)
        except queue.Full:
            # Still stalled; reported below.
            pass
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning(
                "Output destination %s did not drain within %.0fs",
                self.destination.name,
                timeout,
            )

    def _drain(self) -> None:
        while True:
            chunk = self._queue.get()
            if chunk is None:
                break
            if self.failed:
                continue
            try:
                self.destination.write(chunk)
            except (OSError, ValueError) as exc:
                self.failed = True
                logger.warning(
                    "Disabling output destination %s: %s", self.destination.name, exc
                )
        try:
            self.destination.close()
        except (OSError, ValueError) as exc:
            logger.warning(
                "Failed to close output destination %s: %s",
                self.destination.name,
                exc,
            )


class OutputSink:
    """Writable fan-out over zero or more destinations.

    With no destinations every write is discarded. Writes after
    :meth:`close` are dropped, as are chunks offered to a destination that
    already has ``max_pending`` chunks waiting.
    """

    def __init__(
        self,
        destinations: Optional[List[Destination]] = None,
        *,
        max_pending: int = MAX_PENDING_CHUNKS,
    ) -> None:
        self._writers = [
            _DestinationWriter(d, max_pending) for d in destinations or []
        ]
        self._closed = False

    @property
    def destinations(self) -> List[str]:
        return [writer.destination.name for writer in self._writers]

    @property
    def closed(self) -> bool:
        return self._closed

    def write(self, chunk: bytes) -> None:
        if self._closed or not chunk:
            return
        for writer in self._writers:
            writer.submit(chunk)

    def close(self, timeout: float = _CLOSE_TIMEOUT_SECONDS) -> None:
        if self._closed:
            return
        self._closed = True
        for writer in self._writers:
            writer.close(timeout)

    def __enter__(self) -> "OutputSink":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class OutputMultiplexer:
    """Build per-run output sinks over a console stream and a log file."""

    def __init__(self, console: Optional[BinaryIO] = None) -> None:
        self._console = console

    def build(
        self,
        *,
        quiet: bool,
        log_file: Optional[Path] = None,
        annotate: bool = True,
    ) -> OutputSink:
        destinations: List[Destination] = []
        if not quiet:
            transform = AnnotationTransform() if annotate else None
            destinations.append(ConsoleDestination(self._console_stream(), transform))
        if log_file is not None:
            try:
                destinations.append(FileDestination(log_file))
            except OSError as exc:
                logger.warning("Unable to open log file %s: %s", log_file, exc)
        return OutputSink(destinations)

    def _console_stream(self) -> BinaryIO:
        if self._console is not None:
            return self._console
        return sys.stdout.buffer
