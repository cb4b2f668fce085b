from __future__ import annotations

from enum import Enum


class SupervisorState(str, Enum):
    """Lifecycle states of the supervisor."""

    STARTING = "starting"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    WAITING = "waiting"
    DONE = "done"


class SupervisorEvent(str, Enum):
    """Events that drive supervisor state transitions."""

    SPAWNED = "spawned"
    TERMINATE = "terminate"
    SEQUENCE_WRITTEN = "sequence_written"
    CHILD_EXITED = "child_exited"
    RELAY_FAILED = "relay_failed"
    FATAL = "fatal"


def transition_supervisor_state(current: SupervisorState, event: SupervisorEvent) -> SupervisorState:
    """Compute the next supervisor state for a given event.

    Any state except DONE may move straight to DONE on FATAL. A TERMINATE
    arriving after shutdown has begun leaves the state unchanged, so repeat
    signal deliveries are absorbed. Invalid transitions raise ValueError.
    """

    if current == SupervisorState.DONE:
        raise ValueError(f"Invalid supervisor transition: {current} -> {event}")

    if event == SupervisorEvent.FATAL:
        return SupervisorState.DONE

    if current == SupervisorState.STARTING:
        if event == SupervisorEvent.SPAWNED:
            return SupervisorState.RUNNING
        raise ValueError(f"Invalid supervisor transition: {current} -> {event}")

    if current == SupervisorState.RUNNING:
        if event == SupervisorEvent.TERMINATE:
            return SupervisorState.SHUTTING_DOWN
        if event == SupervisorEvent.CHILD_EXITED:
            return SupervisorState.WAITING
        if event == SupervisorEvent.RELAY_FAILED:
            return SupervisorState.DONE
        raise ValueError(f"Invalid supervisor transition: {current} -> {event}")

    if current == SupervisorState.SHUTTING_DOWN:
        if event == SupervisorEvent.TERMINATE:
            return current
        if event == SupervisorEvent.SEQUENCE_WRITTEN:
            return SupervisorState.WAITING
        raise ValueError(f"Invalid supervisor transition: {current} -> {event}")

    if current == SupervisorState.WAITING:
        if event == SupervisorEvent.TERMINATE:
            return current
        if event == SupervisorEvent.CHILD_EXITED:
            return SupervisorState.DONE
        raise ValueError(f"Invalid supervisor transition: {current} -> {event}")

    raise ValueError(f"Unknown supervisor state: {current}")
