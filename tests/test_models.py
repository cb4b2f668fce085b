import pytest
from pydantic import ValidationError

from graceterm.core.models import ShutdownConfig, WrapperSettings


@pytest.mark.parametrize(
    "before,command,after,expected",
    [
        (True, "exit", True, b"\nexit\n"),
        (True, "exit", False, b"\nexit"),
        (False, "exit", True, b"exit\n"),
        (False, "exit", False, b"exit"),
        (True, None, True, b"\n\n"),
        (True, None, False, b"\n"),
        (False, None, True, b"\n"),
        (False, None, False, b""),
    ],
)
def test_shutdown_payload_follows_enabled_steps(before, command, after, expected):
    config = ShutdownConfig(command=command, newline_before=before, newline_after=after)

    assert config.payload() == expected


def test_shutdown_steps_are_named_in_write_order():
    config = ShutdownConfig(command="stop")

    assert config.steps() == [
        ("newline_before", b"\n"),
        ("command", b"stop"),
        ("newline_after", b"\n"),
    ]


def test_shutdown_command_is_encoded_as_utf8():
    config = ShutdownConfig(command="arrêt", newline_before=False, newline_after=False)

    assert config.payload() == "arrêt".encode("utf-8")


def test_shutdown_config_is_frozen():
    config = ShutdownConfig(command="exit")

    with pytest.raises(ValidationError):
        config.command = "quit"


def test_shutdown_config_rejects_unknown_keys():
    with pytest.raises(ValidationError):
        ShutdownConfig(command="exit", newline_middle=True)


def test_wrapper_settings_defaults(monkeypatch):
    for name in ("GRACETERM_DEBUG", "GRACETERM_LOG_FILE", "GRACETERM_EXIT_ZERO"):
        monkeypatch.delenv(name, raising=False)

    settings = WrapperSettings()

    assert settings.debug is False
    assert settings.log_file is None
    assert settings.exit_zero is False
    assert settings.shutdown == ShutdownConfig()


def test_wrapper_settings_environment_overrides_file_values(monkeypatch):
    monkeypatch.setenv("GRACETERM_DEBUG", "true")
    monkeypatch.setenv("GRACETERM_EXIT_ZERO", "1")

    settings = WrapperSettings(debug=False, exit_zero=False, shutdown={"command": "exit"})

    assert settings.debug is True
    assert settings.exit_zero is True
    assert settings.shutdown.command == "exit"
