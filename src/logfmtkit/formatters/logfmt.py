"""logfmt formatter for the stdlib logging module."""

from __future__ import annotations

import io
import json
import logging
from typing import Any, Iterable, List, Mapping, Tuple

from ..core.encoder import Encoder
from ..core.errors import InvalidKeyError, UnsupportedTypeError

__all__ = ["LogFmtFormatter"]

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "asctime",
        "message",
    }
)


def _as_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)


class LogFmtFormatter(logging.Formatter):
    """Render records into logfmt (key=value) form."""

    def __init__(
        self,
        *,
        keys: Iterable[str] | None = None,
        datefmt: str | None = "%Y-%m-%dT%H:%M:%S%z",
        time_key: str = "ts",
        level_key: str = "level",
        name_key: str = "logger",
        message_key: str = "msg",
    ) -> None:
        super().__init__(datefmt=datefmt)
        self.extra_keys = list(keys or [])
        self.time_key = time_key
        self.level_key = level_key
        self.name_key = name_key
        self.message_key = message_key

    def _extras(self, record: logging.LogRecord) -> List[Tuple[str, Any]]:
        data: Mapping[str, Any] = record.__dict__
        if self.extra_keys:
            return [(key, data[key]) for key in self.extra_keys if key in data]
        return [
            (key, value)
            for key, value in data.items()
            if key not in _STANDARD_ATTRS and not key.startswith("_")
        ]

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        buffer = io.BytesIO()
        encoder = Encoder(buffer)
        encoder.encode_keyval(self.time_key, self.formatTime(record, self.datefmt))
        encoder.encode_keyval(self.level_key, record.levelname)
        encoder.encode_keyval(self.name_key, record.name)
        encoder.encode_keyval(self.message_key, record.getMessage())

        for key, value in self._extras(record):
            try:
                encoder.encode_keyval(key, value)
            except UnsupportedTypeError:
                encoder.encode_keyval(key, _as_json(value))
            except InvalidKeyError:
                continue

        if record.exc_info:
            encoder.encode_keyval("exc", self.formatException(record.exc_info))
        elif record.exc_text:
            encoder.encode_keyval("exc", record.exc_text)
        if record.stack_info:
            encoder.encode_keyval("stack", self.formatStack(record.stack_info))

        return buffer.getvalue().decode("utf-8")
