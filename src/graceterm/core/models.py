from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LINE_TERMINATOR = b"\n"


class ShutdownConfig(BaseModel):
    """
    Shutdown sequence written to the child's stdin on SIGTERM
    (the 'shutdown' section in graceterm.yaml).
    """
    model_config = ConfigDict(frozen=True, extra="forbid")

    # Absent means "press enter": only the enabled newlines are written.
    command: Optional[str] = None
    newline_before: bool = True
    newline_after: bool = True

    def steps(self) -> List[tuple[str, bytes]]:
        """Return the enabled (step name, payload) pairs in write order."""
        ordered: List[tuple[str, bytes]] = []
        if self.newline_before:
            ordered.append(("newline_before", LINE_TERMINATOR))
        if self.command is not None:
            ordered.append(("command", self.command.encode("utf-8")))
        if self.newline_after:
            ordered.append(("newline_after", LINE_TERMINATOR))
        return ordered

    def payload(self) -> bytes:
        """Concatenated bytes of every enabled step."""
        return b"".join(chunk for _, chunk in self.steps())


class WrapperSettings(BaseSettings):
    """
    Wrapper-level settings. Values come from graceterm.yaml, then
    GRACETERM_* environment variables, then CLI flags.
    """
    model_config = SettingsConfigDict(env_prefix="GRACETERM_", extra="ignore")

    debug: bool = False
    log_file: Optional[Path] = None
    exit_zero: bool = False
    shutdown: ShutdownConfig = Field(default_factory=ShutdownConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # File values arrive as init kwargs; environment wins over them.
        return (env_settings, init_settings)
