from __future__ import annotations

import threading
from typing import BinaryIO, Callable, Iterator, Optional

from graceterm.cli.formatter import OutputFormatter
from graceterm.core.models import LINE_TERMINATOR
from graceterm.runtime.handle import ChildInputHandle
from graceterm.utils.diagnostics import RelayWriteError


def iter_source_lines(source: BinaryIO) -> Iterator[bytes]:
    """Yield lines from ``source`` without their terminator until EOF."""
    while True:
        line = source.readline()
        if not line:
            return
        if line.endswith(b"\n"):
            line = line[:-1]
            if line.endswith(b"\r"):
                line = line[:-1]
        yield line


class InputRelay:
    """Forwards the wrapper's stdin to the child's stdin one line at a time.

    End of input and read errors end the relay quietly. A failed write to
    the child is reported through ``on_failure`` and also ends the relay.
    """

    def __init__(
        self,
        source: BinaryIO,
        handle: ChildInputHandle,
        on_failure: Optional[Callable[[RelayWriteError], None]] = None,
    ) -> None:
        self.source = source
        self.handle = handle
        self.on_failure = on_failure
        self.lines_forwarded = 0
        self.failure: Optional[RelayWriteError] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> threading.Thread:
        """Run the relay loop on a daemon thread."""
        self._thread = threading.Thread(target=self.run, name="graceterm-relay", daemon=True)
        self._thread.start()
        return self._thread

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def run(self) -> None:
        lines = iter_source_lines(self.source)
        while True:
            try:
                line = next(lines)
            except StopIteration:
                OutputFormatter.log(
                    f"Input closed after {self.lines_forwarded} line(s); relay stopped.",
                    severity="info",
                )
                return
            except (OSError, ValueError) as exc:
                OutputFormatter.log(f"Input read failed, relay stopped: {exc}", severity="warning")
                return

            try:
                self.handle.write(line + LINE_TERMINATOR)
            except (OSError, ValueError) as exc:
                self.failure = RelayWriteError(f"Failed to forward input to child: {exc}")
                if self.on_failure is not None:
                    self.on_failure(self.failure)
                return

            self.lines_forwarded += 1
