from pathlib import Path
from typing import Any

import click
from tomlkit import parse
from tomlkit.exceptions import TOMLKitError

LOCAL_CONFIG_DIR_NAME = ".faasbuild"

# Local project configuration file. Tests point this at a specific path.
LOCAL_CONFIG_FILE: Path | None = None


def find_local_config_file(start: Path | None = None) -> Path | None:
    """
    Find the nearest .faasbuild/config.toml searching the start directory and its parents.
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current] + list(current.parents):
        config_file = parent / LOCAL_CONFIG_DIR_NAME / "config.toml"
        if config_file.is_file():
            return config_file
    return None


def load_local_config() -> dict[str, Any]:
    """
    Load configuration from the local project .faasbuild/config.toml file.

    If LOCAL_CONFIG_FILE is set (e.g., in tests), uses that path directly.
    Otherwise, searches upward from current directory.
    """
    config_file = (
        LOCAL_CONFIG_FILE if LOCAL_CONFIG_FILE is not None else find_local_config_file()
    )
    if config_file is None or not config_file.exists():
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return parse(f.read())
    except TOMLKitError as e:
        raise click.ClickException(f"Invalid configuration file {config_file}: {e}")


def get_nested_value(config: dict[str, Any], key: str) -> Any:
    """Get a nested configuration value using dot notation."""
    keys = key.split(".")
    value = config
    for k in keys:
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return None
    return value
