import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError

from graceterm.core.models import WrapperSettings
from graceterm.utils.diagnostics import ConfigError

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]+))?\}")
ALLOWED_KEYS = {"shutdown", "debug", "log_file", "exit_zero"}
DEFAULT_CONFIG_NAME = "graceterm.yaml"


def interpolate_env_vars(content: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variables."""
    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, content)


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load graceterm.yaml with environment variable interpolation.

    Only the keys shutdown, debug, log_file and exit_zero are kept.
    A missing file yields an empty mapping.
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text(encoding="utf-8")
        full_config = yaml.safe_load(interpolate_env_vars(content)) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Unable to read config '{path}': {exc}") from exc

    if not isinstance(full_config, dict):
        raise ConfigError(f"Config '{path}' must contain a mapping at the top level.")

    return {k: v for k, v in full_config.items() if k in ALLOWED_KEYS}


def build_settings(config_data: Dict[str, Any]) -> WrapperSettings:
    """Validate file data into WrapperSettings, layering GRACETERM_* env vars on top."""
    try:
        return WrapperSettings(**config_data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
