"""Supervision runtime: shared child stdin, input relay, shutdown sequence and state machine."""

from graceterm.runtime.contracts import SupervisorEvent, SupervisorState, transition_supervisor_state
from graceterm.runtime.handle import ChildInputHandle, HandleClaim
from graceterm.runtime.relay import InputRelay, iter_source_lines
from graceterm.runtime.sequencer import ShutdownSequencer
from graceterm.runtime.signals import TerminationSignal
from graceterm.runtime.supervisor import Supervisor, exit_code_from_returncode

__all__ = [
	"ChildInputHandle",
	"HandleClaim",
	"InputRelay",
	"ShutdownSequencer",
	"Supervisor",
	"SupervisorEvent",
	"SupervisorState",
	"TerminationSignal",
	"exit_code_from_returncode",
	"iter_source_lines",
	"transition_supervisor_state",
]
