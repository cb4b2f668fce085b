from __future__ import annotations

import queue
import signal
from typing import Any, Optional

from graceterm.runtime.contracts import SupervisorEvent


class TerminationSignal:
    """One-shot bridge from an OS signal to the supervisor event queue.

    Only the first delivery posts ``SupervisorEvent.TERMINATE``. The handler
    stays installed afterwards so repeat deliveries are counted and dropped
    instead of falling back to the default action and killing the wrapper.

    With ``register=False`` no OS handler is installed and deliveries come
    only from ``deliver()``.
    """

    def __init__(self, signum: int = signal.SIGTERM, register: bool = True) -> None:
        self.signum = signum
        self.register = register
        self.deliveries = 0
        self._fired = False
        self._sink: Optional[queue.SimpleQueue] = None

    @property
    def fired(self) -> bool:
        return self._fired

    def install(self, sink: queue.SimpleQueue) -> None:
        """Attach the event queue and register the OS handler (main thread only)."""
        if self._sink is not None:
            raise RuntimeError("Termination signal is already installed.")
        self._sink = sink
        if self.register:
            signal.signal(self.signum, self._handle)

    def deliver(self) -> bool:
        """Record one delivery; returns True only for the one that wakes the supervisor."""
        self.deliveries += 1
        if self._fired or self._sink is None:
            return False
        self._fired = True
        # SimpleQueue.put is reentrant, so this is safe inside a signal handler.
        self._sink.put((SupervisorEvent.TERMINATE, None))
        return True

    def _handle(self, signum: int, frame: Any) -> None:
        self.deliver()
