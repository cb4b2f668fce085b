from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, TextIO

from rich.console import Console
from rich.markup import escape

# Create a stderr console for logging
error_console = Console(stderr=True)

ALWAYS_SHOWN = {"error", "critical"}


class OutputFormatter:
    """
    Routes wrapper diagnostics to stderr.
    The child owns stdout, so nothing here ever writes to it.
    """

    debug: bool = False
    _log_stream: Optional[TextIO] = None
    _log_console: Optional[Console] = None

    @classmethod
    def configure(cls, debug: bool = False, log_file: Optional[Path] = None) -> None:
        """Enable debug output and/or mirror every message into ``log_file``."""
        cls.close()
        cls.debug = debug
        if log_file is not None:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            cls._log_stream = open(log_file, "a", encoding="utf-8")
            cls._log_console = Console(file=cls._log_stream, no_color=True, width=240)

    @classmethod
    def close(cls) -> None:
        if cls._log_stream is not None:
            cls._log_stream.close()
        cls._log_stream = None
        cls._log_console = None
        cls.debug = False

    @classmethod
    def log(cls, message: str, severity: str = "info") -> None:
        """
        Print system messages to stderr with color coding.
        Only errors are shown unless debug is enabled.
        """
        style = "white"
        prefix = "[GRACETERM]"

        if severity == "warning":
            style = "yellow"
        elif severity == "error":
            style = "red"
        elif severity == "critical":
            style = "bold red"
        elif severity == "success":
            style = "green"

        if cls.debug or severity in ALWAYS_SHOWN:
            error_console.print(f"[{style}]{prefix} {escape(message)}[/{style}]", soft_wrap=True)

        if cls._log_console is not None:
            stamp = datetime.now(timezone.utc).isoformat()
            cls._log_console.print(f"{stamp} {severity.upper()} {escape(message)}", soft_wrap=True)
            cls._log_stream.flush()
