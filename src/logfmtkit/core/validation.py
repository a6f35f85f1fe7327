"""Configuration validation helpers."""

from __future__ import annotations

import logging

from ..config.schema import LogfmtConfig
from .errors import ConfigurationError
from .quoting import is_valid_key

__all__ = ["ConfigurationError", "resolve_level", "validate_configuration"]


def resolve_level(value: str | int) -> int:
    """Return the numeric logging level for ``value``."""

    if isinstance(value, int):
        return value
    name = value.strip().upper()
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelName(name)
    if isinstance(resolved, int):
        return resolved
    raise ConfigurationError(f"Unknown logging level '{value}'")


def validate_configuration(config: LogfmtConfig) -> None:
    """Ensure configuration values are usable."""

    if config.decoder.max_line_size <= 0:
        raise ConfigurationError(
            f"decoder.max_line_size must be positive, got {config.decoder.max_line_size}"
        )

    fmt = config.formatter
    names = {
        "time_key": fmt.time_key,
        "level_key": fmt.level_key,
        "name_key": fmt.name_key,
        "message_key": fmt.message_key,
    }
    for option, name in names.items():
        if not is_valid_key(name):
            raise ConfigurationError(f"formatter.{option} '{name}' is not a valid logfmt key")
    if len(set(names.values())) != len(names):
        raise ConfigurationError("formatter key names must be distinct")

    for key in fmt.keys:
        if not is_valid_key(key):
            raise ConfigurationError(f"formatter.keys entry '{key}' is not a valid logfmt key")

    resolve_level(config.log_level)
