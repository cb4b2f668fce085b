import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, List, Optional

import typer
from typer.core import TyperCommand

from graceterm import __version__
from graceterm.cli.formatter import OutputFormatter
from graceterm.config.loader import DEFAULT_CONFIG_NAME, build_settings, load_config
from graceterm.core.models import WrapperSettings
from graceterm.runtime.supervisor import Supervisor
from graceterm.utils.diagnostics import ConfigError, GracetermError

app = typer.Typer(name="graceterm", help="Graceful SIGTERM wrapper", rich_markup_mode=None, add_completion=False)

RAW_ARGS_KEY = "graceterm.raw_args"


class RawArgsCommand(TyperCommand):
    """Keeps the untouched argv so a literal `--` reaches the wrapper parser.

    Click drops the first `--` while collecting extra args, which would let
    `graceterm --debug -- -weird` read `-weird` as a wrapper option.
    """

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        ctx.meta[RAW_ARGS_KEY] = list(args)
        return super().parse_args(ctx, args)


@dataclass
class WrapperArgs:
    child_argv: List[str] = field(default_factory=list)
    shutdown_command: Optional[str] = None
    no_newline_before: bool = False
    no_newline_after: bool = False
    debug: bool = False
    log_file: Optional[Path] = None
    config_path: Optional[Path] = None
    exit_zero: bool = False
    show_version: bool = False


def _read_option_value(tokens: list[str], index: int, option_name: str) -> tuple[str, int]:
    if index + 1 >= len(tokens):
        raise typer.BadParameter(f"Option {option_name} requires a value.")
    return tokens[index + 1], index + 2


def _parse_wrapper_args(tokens: list[str]) -> WrapperArgs:
    """Parse wrapper options up to the first positional; everything after belongs to the child."""
    args = WrapperArgs()
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token == "--":
            args.child_argv = list(tokens[index + 1:])
            break
        if token in ("--command", "-c"):
            args.shutdown_command, index = _read_option_value(tokens, index, token)
            continue
        if token.startswith("--command="):
            args.shutdown_command = token.split("=", 1)[1]
            index += 1
            continue
        if token == "--no-newline-before":
            args.no_newline_before = True
            index += 1
            continue
        if token == "--no-newline-after":
            args.no_newline_after = True
            index += 1
            continue
        if token in ("--debug", "-d"):
            args.debug = True
            index += 1
            continue
        if token == "--log-file":
            log_value, index = _read_option_value(tokens, index, token)
            args.log_file = Path(log_value)
            continue
        if token.startswith("--log-file="):
            args.log_file = Path(token.split("=", 1)[1])
            index += 1
            continue
        if token == "--config":
            config_value, index = _read_option_value(tokens, index, token)
            args.config_path = Path(config_value)
            continue
        if token.startswith("--config="):
            args.config_path = Path(token.split("=", 1)[1])
            index += 1
            continue
        if token == "--exit-zero":
            args.exit_zero = True
            index += 1
            continue
        if token == "--version":
            args.show_version = True
            index += 1
            continue
        if token.startswith("-"):
            raise typer.BadParameter(f"Unknown option: {token}")
        args.child_argv = list(tokens[index:])
        break

    return args


def _resolve_settings(args: WrapperArgs) -> WrapperSettings:
    """Layer CLI flags over graceterm.yaml and GRACETERM_* environment values."""
    if args.config_path is not None and not args.config_path.exists():
        raise ConfigError(f"Config file '{args.config_path}' does not exist.")
    config_path = args.config_path or Path.cwd() / DEFAULT_CONFIG_NAME
    settings = build_settings(load_config(config_path))

    shutdown_updates = {}
    if args.shutdown_command is not None:
        shutdown_updates["command"] = args.shutdown_command
    if args.no_newline_before:
        shutdown_updates["newline_before"] = False
    if args.no_newline_after:
        shutdown_updates["newline_after"] = False
    shutdown = settings.shutdown.model_copy(update=shutdown_updates)

    if shutdown.command is None and (args.no_newline_before or args.no_newline_after):
        raise typer.BadParameter("--no-newline-before and --no-newline-after require --command.")

    return settings.model_copy(
        update={
            "shutdown": shutdown,
            "debug": settings.debug or args.debug,
            "log_file": args.log_file or settings.log_file,
            "exit_zero": settings.exit_zero or args.exit_zero,
        }
    )


def _open_relay_source() -> BinaryIO:
    # A private reader over fd 0 keeps the parked relay off sys.stdin's buffer lock.
    try:
        return open(sys.stdin.fileno(), "rb", closefd=False)
    except (AttributeError, OSError, ValueError):
        return sys.stdin.buffer


@app.command(
    cls=RawArgsCommand,
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
def run(
    ctx: typer.Context,
):
    """
    Run COMMAND and turn SIGTERM into a graceful stdin shutdown sequence.

    Usage: graceterm [OPTIONS] [--] EXECUTABLE [ARGS]...

    \b
    Options:
      -c, --command TEXT     Shutdown command written to the child on SIGTERM.
      --no-newline-before    Do not write a newline before the command.
      --no-newline-after     Do not write a newline after the command.
      -d, --debug            Print diagnostics to stderr.
      --log-file PATH        Append diagnostics to PATH.
      --config PATH          Settings file (default: ./graceterm.yaml).
      --exit-zero            Exit 0 once the child has exited.
      --version              Show the version and exit.
    """
    args = _parse_wrapper_args(list(ctx.meta.get(RAW_ARGS_KEY, ctx.args)))

    if args.show_version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if not args.child_argv:
        raise typer.BadParameter("Missing child executable.")

    try:
        settings = _resolve_settings(args)
        OutputFormatter.configure(debug=settings.debug, log_file=settings.log_file)
    except ConfigError as e:
        OutputFormatter.log(f"Error: {e.message}", severity="error")
        raise typer.Exit(code=e.exit_code)
    except OSError as e:
        OutputFormatter.log(f"Error: Unable to open log file: {e}", severity="error")
        raise typer.Exit(code=1)

    try:
        supervisor = Supervisor(args.child_argv, settings, source=_open_relay_source())
        exit_code = supervisor.run()
    except GracetermError as e:
        OutputFormatter.log(f"Error: {e.message}", severity="critical")
        raise typer.Exit(code=e.exit_code)
    finally:
        OutputFormatter.close()

    raise typer.Exit(code=exit_code)


if __name__ == "__main__":
    app()
