"""logfmt encoder."""

from __future__ import annotations

from typing import Any

from .errors import InvalidKeyError, NilKeyError, UnsupportedTypeError
from .kinds import ValueKind, classify, dereference, generic_text, try_display, try_render
from .quoting import NIL, as_text, escape, is_valid_key

__all__ = ["Encoder", "format_key", "format_value"]

_NIL_BYTES = NIL.encode("ascii")


def _key_bytes(text: str) -> bytes:
    if not is_valid_key(text):
        raise InvalidKeyError(text)
    return text.encode("utf-8")


def format_key(key: Any) -> bytes:
    """Return the wire form of ``key``.

    Raises :class:`NilKeyError`, :class:`InvalidKeyError` or
    :class:`UnsupportedTypeError`.
    """

    kind = classify(key)
    if kind is ValueKind.NULL:
        raise NilKeyError()
    if kind is ValueKind.TEXT:
        return _key_bytes(as_text(key))
    if kind is ValueKind.RENDERABLE or kind is ValueKind.DISPLAYABLE:
        text = try_render(key) if kind is ValueKind.RENDERABLE else try_display(key)
        if text is None:
            raise NilKeyError()
        return _key_bytes(text)
    if kind is ValueKind.COMPOSITE:
        raise UnsupportedTypeError(key)
    if kind is ValueKind.NULLABLE:
        target = dereference(key)
        if target is None:
            raise NilKeyError()
        return format_key(target)
    return _key_bytes(generic_text(key))


def format_value(value: Any) -> bytes:
    """Return the wire form of ``value``, quoted and escaped as needed.

    ``None`` and holders with nothing to render become ``nil``. Raises
    :class:`UnsupportedTypeError` for composite values.
    """

    kind = classify(value)
    if kind is ValueKind.NULL:
        return _NIL_BYTES
    if kind is ValueKind.TEXT:
        return escape(value)
    if kind is ValueKind.RENDERABLE or kind is ValueKind.DISPLAYABLE:
        text = try_render(value) if kind is ValueKind.RENDERABLE else try_display(value)
        if text is None:
            return _NIL_BYTES
        return escape(text)
    if kind is ValueKind.COMPOSITE:
        raise UnsupportedTypeError(value)
    if kind is ValueKind.NULLABLE:
        return format_value(dereference(value))
    return escape(generic_text(value))


class Encoder:
    """Write logfmt records to a binary sink.

    Each :meth:`encode_keyval` call formats the pair completely before writing
    it with a single ``sink.write`` call, so a rejected pair leaves no output
    behind. Errors are per call; the encoder stays usable afterwards.
    """

    def __init__(self, sink: Any) -> None:
        self._sink = sink
        self._need_sep = False

    def encode_keyval(self, key: Any, value: Any) -> None:
        """Write ``key=value``, preceded by a space unless it starts the record."""

        if key is None:
            raise NilKeyError()
        parts = [format_key(key), b"=", format_value(value)]
        if self._need_sep:
            parts.insert(0, b" ")
        self._sink.write(b"".join(parts))
        self._need_sep = True

    def encode_keyvals(self, *keyvals: Any) -> None:
        """Write an alternating key/value sequence; a trailing key gets ``None``."""

        for index in range(0, len(keyvals), 2):
            value = keyvals[index + 1] if index + 1 < len(keyvals) else None
            self.encode_keyval(keyvals[index], value)

    def end_record(self) -> None:
        """Terminate the current record with a newline."""

        self._sink.write(b"\n")
        self._need_sep = False

    def reset(self) -> None:
        """Start a new record without writing anything."""

        self._need_sep = False
