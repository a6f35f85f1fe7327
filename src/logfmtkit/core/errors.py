"""Exception taxonomy for logfmtkit."""

from __future__ import annotations

__all__ = [
    "LogfmtError",
    "LogfmtSyntaxError",
    "LineTooLongError",
    "UnescapeError",
    "EncodeError",
    "NilKeyError",
    "InvalidKeyError",
    "UnsupportedTypeError",
    "ConfigurationError",
]


class LogfmtError(Exception):
    """Base class for every error raised by logfmtkit."""


class LogfmtSyntaxError(LogfmtError, ValueError):
    """A single lexical fault found while decoding.

    ``line`` and ``column`` are 1-based and point at the offending byte.
    """

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(message, line, column)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return f"logfmt syntax error at line {self.line}, column {self.column}: {self.message}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LogfmtSyntaxError):
            return NotImplemented
        return (self.message, self.line, self.column) == (other.message, other.line, other.column)

    def __hash__(self) -> int:
        return hash((self.message, self.line, self.column))


class LineTooLongError(LogfmtError, ValueError):
    """Raised when an input line exceeds the configured maximum size."""

    def __init__(self, line: int, limit: int) -> None:
        super().__init__(f"line {line} exceeds {limit} bytes")
        self.line = line
        self.limit = limit


class UnescapeError(LogfmtError, ValueError):
    """Raised when a quoted value holds a malformed escape sequence."""


class EncodeError(LogfmtError, ValueError):
    """Base class for per-call encoding failures."""


class NilKeyError(EncodeError):
    """The key is ``None`` or a holder whose referent is gone."""

    def __init__(self, message: str = "nil key") -> None:
        super().__init__(message)


class InvalidKeyError(EncodeError):
    """The key is empty or contains a character a key may not hold."""

    def __init__(self, key: str) -> None:
        super().__init__(f"invalid key: {key!r}")
        self.key = key


class UnsupportedTypeError(EncodeError, TypeError):
    """The key or value is a composite that has no textual form."""

    def __init__(self, value: object) -> None:
        super().__init__(f"unsupported type: {type(value).__name__}")
        self.value_type = type(value)


class ConfigurationError(LogfmtError, ValueError):
    """Raised when configuration validation fails."""
