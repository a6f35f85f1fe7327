"""Configuration schema definition for logfmtkit."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

DEFAULT_MAX_LINE_SIZE = 64 * 1024

DEFAULT_CONFIG: Dict[str, Any] = {
    "decoder": {
        "max_line_size": DEFAULT_MAX_LINE_SIZE,
        "strict_keys": False,
        "skip_invalid": False,
    },
    "formatter": {
        "keys": [],
        "datefmt": "%Y-%m-%dT%H:%M:%S%z",
        "time_key": "ts",
        "level_key": "level",
        "name_key": "logger",
        "message_key": "msg",
    },
    "logging": {
        "level": "WARNING",
    },
}


def default_config() -> Dict[str, Any]:
    """Return a deep copy of the default configuration mapping."""

    return deepcopy(DEFAULT_CONFIG)


@dataclass(slots=True)
class DecoderConfig:
    max_line_size: int = DEFAULT_MAX_LINE_SIZE
    strict_keys: bool = False
    skip_invalid: bool = False


@dataclass(slots=True)
class FormatterConfig:
    keys: List[str] = field(default_factory=list)
    datefmt: str | None = "%Y-%m-%dT%H:%M:%S%z"
    time_key: str = "ts"
    level_key: str = "level"
    name_key: str = "logger"
    message_key: str = "msg"

    def options(self) -> Dict[str, Any]:
        """Keyword arguments for :class:`~logfmtkit.formatters.logfmt.LogFmtFormatter`."""

        return {
            "keys": list(self.keys),
            "datefmt": self.datefmt,
            "time_key": self.time_key,
            "level_key": self.level_key,
            "name_key": self.name_key,
            "message_key": self.message_key,
        }


@dataclass(slots=True)
class LogfmtConfig:
    decoder: DecoderConfig
    formatter: FormatterConfig
    log_level: str | int
    raw: Dict[str, Any] = field(repr=False)


def _to_decoder(data: Mapping[str, Any]) -> DecoderConfig:
    return DecoderConfig(
        max_line_size=int(data.get("max_line_size", DEFAULT_MAX_LINE_SIZE)),
        strict_keys=bool(data.get("strict_keys", False)),
        skip_invalid=bool(data.get("skip_invalid", False)),
    )


def _to_formatter(data: Mapping[str, Any]) -> FormatterConfig:
    keys_raw = data.get("keys", [])
    if isinstance(keys_raw, str):
        keys = [part for part in keys_raw.replace(",", " ").split() if part]
    elif isinstance(keys_raw, Iterable):
        keys = [str(item) for item in keys_raw]
    else:
        keys = []
    datefmt = data.get("datefmt", "%Y-%m-%dT%H:%M:%S%z")
    return FormatterConfig(
        keys=keys,
        datefmt=str(datefmt) if datefmt else None,
        time_key=str(data.get("time_key", "ts")),
        level_key=str(data.get("level_key", "level")),
        name_key=str(data.get("name_key", "logger")),
        message_key=str(data.get("message_key", "msg")),
    )


def build_config(data: Mapping[str, Any]) -> LogfmtConfig:
    decoder = _to_decoder(data.get("decoder", {}))
    formatter = _to_formatter(data.get("formatter", {}))
    logging_data = data.get("logging", {})
    if not isinstance(logging_data, Mapping):
        logging_data = {}
    log_level = logging_data.get("level", "WARNING")

    raw_copy: Dict[str, Any] = deepcopy({k: v for k, v in data.items()})

    return LogfmtConfig(
        decoder=decoder,
        formatter=formatter,
        log_level=log_level,
        raw=raw_copy,
    )
