from __future__ import annotations

import queue
import subprocess
import threading
from typing import Any, BinaryIO, Callable, List, Optional, Sequence

from graceterm.cli.formatter import OutputFormatter
from graceterm.core.models import WrapperSettings
from graceterm.runtime.contracts import (
    SupervisorEvent,
    SupervisorState,
    transition_supervisor_state,
)
from graceterm.runtime.handle import ChildInputHandle
from graceterm.runtime.relay import InputRelay
from graceterm.runtime.sequencer import ShutdownSequencer
from graceterm.runtime.signals import TerminationSignal
from graceterm.utils.diagnostics import (
    ChildWaitError,
    GracetermError,
    InputHandleError,
    RelayWriteError,
    SpawnError,
)

Spawner = Callable[..., Any]

RELAY_FAILURE_GRACE_SECONDS = 1.0


def exit_code_from_returncode(returncode: int) -> int:
    """Map a Popen returncode to a shell-style exit code (signal N -> 128 + N)."""
    if returncode < 0:
        return 128 - returncode
    return returncode


class Supervisor:
    """Runs one child process and turns SIGTERM into a stdin shutdown sequence.

    Lifecycle: STARTING -> RUNNING -> SHUTTING_DOWN -> WAITING -> DONE.
    ``run`` returns the exit code to mirror and raises GracetermError for
    any fatal condition.
    """

    def __init__(
        self,
        argv: Sequence[str],
        settings: WrapperSettings,
        source: BinaryIO,
        termination: Optional[TerminationSignal] = None,
        spawn: Spawner = subprocess.Popen,
    ) -> None:
        if not argv:
            raise ValueError("Supervisor requires a child executable.")
        self.argv = list(argv)
        self.settings = settings
        self.source = source
        self.termination = termination or TerminationSignal()
        self.spawn = spawn

        self.state = SupervisorState.STARTING
        self.history: List[SupervisorState] = [self.state]
        self.process: Any = None
        self.handle: Optional[ChildInputHandle] = None
        self.relay: Optional[InputRelay] = None
        self.sequencer = ShutdownSequencer(settings.shutdown)
        self._events: queue.SimpleQueue = queue.SimpleQueue()

    def run(self) -> int:
        try:
            return self._run()
        except GracetermError:
            if self.state != SupervisorState.DONE:
                self._advance(SupervisorEvent.FATAL)
            raise

    def _run(self) -> int:
        self.termination.install(self._events)
        self._start_child()
        self._advance(SupervisorEvent.SPAWNED)

        self.relay = InputRelay(self.source, self.handle, on_failure=self._on_relay_failure)
        self.relay.start()
        threading.Thread(target=self._watch_child, name="graceterm-exit-watcher", daemon=True).start()

        event, detail = self._events.get()
        if event == SupervisorEvent.RELAY_FAILED and self._child_exited_within(RELAY_FAILURE_GRACE_SECONDS):
            # The pipe broke because the child went away; mirror its status instead.
            event = SupervisorEvent.CHILD_EXITED
        self._advance(event)

        if event == SupervisorEvent.RELAY_FAILED:
            raise detail

        if event == SupervisorEvent.TERMINATE:
            OutputFormatter.log("Termination signal received; taking over child stdin.", severity="info")
            claim = self.handle.claim()
            self.sequencer.run(claim)
            self._advance(SupervisorEvent.SEQUENCE_WRITTEN)
            OutputFormatter.log("Shutdown sequence written. Waiting for child to exit...", severity="info")
        else:
            OutputFormatter.log("Child exited before any termination signal.", severity="warning")

        returncode = self._wait_child()
        self._advance(SupervisorEvent.CHILD_EXITED)
        OutputFormatter.log(f"Child process ended with status {returncode}.", severity="success")

        if self.settings.exit_zero:
            return 0
        return exit_code_from_returncode(returncode)

    def _advance(self, event: SupervisorEvent) -> None:
        self.state = transition_supervisor_state(self.state, event)
        self.history.append(self.state)

    def _start_child(self) -> None:
        try:
            self.process = self.spawn(self.argv, stdin=subprocess.PIPE)
        except (OSError, ValueError) as exc:
            raise SpawnError(self.argv[0], exc) from exc

        if self.process.stdin is None:
            raise InputHandleError(f"Child pid={self.process.pid} has no stdin pipe.")
        self.handle = ChildInputHandle(self.process.stdin)
        OutputFormatter.log(f"Started child pid={self.process.pid}: {' '.join(self.argv)}", severity="info")

    def _on_relay_failure(self, error: RelayWriteError) -> None:
        self._events.put((SupervisorEvent.RELAY_FAILED, error))

    def _watch_child(self) -> None:
        try:
            self.process.wait()
        except OSError as exc:
            # Surfaced again as ChildWaitError by the main thread's own wait.
            self._events.put((SupervisorEvent.CHILD_EXITED, exc))
            return
        self._events.put((SupervisorEvent.CHILD_EXITED, None))

    def _wait_child(self) -> int:
        try:
            return self.process.wait()
        except OSError as exc:
            raise ChildWaitError(f"Waiting for child pid={self.process.pid} failed: {exc}") from exc

    def _child_exited_within(self, timeout: float) -> bool:
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return False
        except OSError as exc:
            raise ChildWaitError(f"Waiting for child pid={self.process.pid} failed: {exc}") from exc
        return True
