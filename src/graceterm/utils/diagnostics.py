from typing import Optional


class GracetermError(Exception):
    """
    Fatal supervision error. Carries the exit code the wrapper should
    terminate with.
    """
    def __init__(self, message: str, exit_code: int = 1):
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


class ConfigError(GracetermError):
    """Raised when the settings file or environment cannot be parsed."""


class SpawnError(GracetermError):
    """
    Raised when the child executable cannot be started (missing,
    not executable, permission denied).
    """
    def __init__(self, executable: str, cause: Optional[BaseException] = None):
        self.executable = executable
        self.cause = cause
        reason = f": {cause}" if cause else ""
        super().__init__(f"Failed to spawn '{executable}'{reason}")


class InputHandleError(GracetermError):
    """Raised when the child's stdin pipe is unavailable."""


class RelayWriteError(GracetermError):
    """Raised when forwarding a line to the child's stdin fails."""


class ShutdownWriteError(GracetermError):
    """
    Raised when a step of the shutdown sequence cannot be written.
    Partial sequences are never retried.
    """
    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"Shutdown sequence failed at step '{step}': {cause}")


class ChildWaitError(GracetermError):
    """Raised when waiting on the child's exit status fails."""
