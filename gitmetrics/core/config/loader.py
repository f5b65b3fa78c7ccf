"""
Configuration loader — merges gitmetrics.yml and CLI flags into Settings.

Precedence: CLI flag > config file > built-in default. The config file
is optional; when present it may hold the same keys as the CLI, either
flat or nested under a ``gitmetrics:`` key:

    gitmetrics:
      command: "make -s && stat -c %s build/app"
      working_dir: ../app
      branch: main
      window: 200
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from gitmetrics.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "gitmetrics.yml"

_PATH_KEYS = ("working_dir", "ledger_path")


class ConfigError(Exception):
    """Raised when the run configuration is invalid or incomplete."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for gitmetrics.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to gitmetrics.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a config file into a plain dict.

    Relative paths in the file are resolved against the file's directory.

    Raises:
        ConfigError: If the file is unreadable or not a YAML mapping.
    """
    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "gitmetrics" key or be flat
    values = data.get("gitmetrics", data)
    if not isinstance(values, dict):
        raise ConfigError(f"Expected a mapping under 'gitmetrics' in {path}")

    values = dict(values)
    base = path.parent.resolve()
    for key in _PATH_KEYS:
        if key in values and values[key] is not None:
            p = Path(str(values[key])).expanduser()
            values[key] = p if p.is_absolute() else base / p
    return values


def resolve_settings(
    overrides: dict[str, Any] | None = None,
    config_path: Path | None = None,
) -> Settings:
    """Build the run Settings.

    Args:
        overrides: Values from CLI flags. ``None`` values are ignored.
        config_path: Explicit config file. If None, searches upward from cwd.

    Returns:
        Validated, frozen Settings.

    Raises:
        ConfigError: If the command is missing, a value is invalid, or the
            working directory doesn't exist.
    """
    if config_path is not None and not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")
    if config_path is None:
        config_path = find_config_file()

    values: dict[str, Any] = {}
    if config_path is not None:
        values.update(load_config_file(config_path))

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    if not values.get("command"):
        raise ConfigError("No measurement command given. Pass --cmd or set 'command' in gitmetrics.yml.")

    try:
        settings = Settings.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if not settings.working_dir.is_dir():
        raise ConfigError(f"Working directory does not exist: {settings.working_dir}")

    logger.info(
        "Settings: dir=%s branch=%s window=%d ledger=%s interactive=%s",
        settings.working_dir,
        settings.branch,
        settings.window,
        settings.ledger_path,
        settings.interactive,
    )
    return settings
