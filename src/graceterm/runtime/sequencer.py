from __future__ import annotations

from typing import List

from graceterm.cli.formatter import OutputFormatter
from graceterm.core.models import ShutdownConfig
from graceterm.runtime.handle import HandleClaim
from graceterm.utils.diagnostics import ShutdownWriteError


class ShutdownSequencer:
    """Writes the configured shutdown sequence through a permanent handle claim."""

    def __init__(self, config: ShutdownConfig) -> None:
        self.config = config
        self.written_steps: List[str] = []
        self._started = False

    def run(self, claim: HandleClaim) -> None:
        """Write each enabled step in order. The first failure is fatal and not retried."""
        if self._started:
            raise RuntimeError("Shutdown sequence has already been written.")
        self._started = True

        steps = self.config.steps()
        if not steps:
            OutputFormatter.log("Shutdown sequence is empty; nothing written to child.", severity="info")
            return

        OutputFormatter.log(f"Shutdown sequence: {self.config.payload()!r}", severity="info")
        for name, chunk in steps:
            OutputFormatter.log(f"Writing shutdown step '{name}' ({len(chunk)} byte(s)).", severity="info")
            try:
                claim.write(chunk)
            except (OSError, ValueError) as exc:
                raise ShutdownWriteError(name, exc) from exc
            self.written_steps.append(name)
