"""Streaming logfmt decoder.

The decoder reads one line per record and runs a small state machine over its
bytes. Callers pull tokens::

    decoder = Decoder(stream)
    while decoder.advance_record():
        while (key := decoder.scan_key()) is not None:
            value = decoder.scan_value()
            ...
    if decoder.last_error() is not None:
        ...

A syntax error stops tokenizing for the rest of its line and is cleared when
the next line is read. A failure of the underlying stream is fatal.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..config.schema import DecoderConfig
from .errors import LineTooLongError, LogfmtSyntaxError, UnescapeError
from .quoting import unescape

__all__ = ["Decoder", "Keyval", "Position"]

logger = logging.getLogger(__name__)

_SPACE = 0x20
_EQUAL = 0x3D
_QUOTE = 0x22
_BACKSLASH = 0x5C

Keyval = Tuple[bytes, Optional[bytes]]


@dataclass(frozen=True, slots=True)
class Position:
    """1-based location of the decoder cursor."""

    line: int
    column: int


class _State(enum.Enum):
    SKIP = "skip"
    KEY = "key"
    EQUAL = "equal"
    NO_VALUE = "no_value"
    UNQUOTED = "unquoted"
    QUOTED = "quoted"
    DONE = "done"
    ERROR = "error"


class _Token(enum.Enum):
    NONE = "none"
    KEY = "key"
    VALUE = "value"
    QUOTED_VALUE = "quoted_value"


_TERMINAL = frozenset({_State.DONE, _State.ERROR})

_Step = Tuple[_State, _Token, Optional[LogfmtSyntaxError]]


def _lex_skip(dec: "Decoder") -> _Step:
    line = dec._line
    while dec._pos < len(line):
        c = line[dec._pos]
        if c == _EQUAL or c == _QUOTE:
            return _State.ERROR, _Token.NONE, dec._unexpected(c)
        if c > _SPACE:
            return _State.KEY, _Token.NONE, None
        dec._pos += 1
    return _State.DONE, _Token.NONE, None


def _lex_key(dec: "Decoder") -> _Step:
    line = dec._line
    dec._start = dec._pos
    while dec._pos < len(line):
        c = line[dec._pos]
        if c == _QUOTE:
            return _State.ERROR, _Token.NONE, dec._unexpected(c)
        if c == _EQUAL:
            return dec._close_key(_State.EQUAL)
        if c <= _SPACE:
            return dec._close_key(_State.NO_VALUE)
        dec._pos += 1
    return dec._close_key(_State.NO_VALUE)


def _lex_equal(dec: "Decoder") -> _Step:
    dec._pos += 1
    dec._start = dec._end = dec._pos
    if dec._pos >= len(dec._line):
        return _State.DONE, _Token.VALUE, None
    c = dec._line[dec._pos]
    if c == _QUOTE:
        return _State.QUOTED, _Token.NONE, None
    if c > _SPACE:
        return _State.UNQUOTED, _Token.NONE, None
    return _State.SKIP, _Token.VALUE, None


def _lex_no_value(dec: "Decoder") -> _Step:
    dec._start = dec._end = dec._pos
    return _State.SKIP, _Token.VALUE, None


def _lex_unquoted(dec: "Decoder") -> _Step:
    line = dec._line
    dec._start = dec._pos
    while dec._pos < len(line):
        c = line[dec._pos]
        if c == _EQUAL or c == _QUOTE:
            return _State.ERROR, _Token.NONE, dec._unexpected(c)
        if c <= _SPACE:
            dec._end = dec._pos
            return _State.SKIP, _Token.VALUE, None
        dec._pos += 1
    dec._end = dec._pos
    return _State.DONE, _Token.VALUE, None


def _lex_quoted(dec: "Decoder") -> _Step:
    line = dec._line
    dec._pos += 1
    dec._start = dec._pos
    escaped = False
    while dec._pos < len(line):
        c = line[dec._pos]
        if escaped:
            escaped = False
        elif c == _BACKSLASH:
            escaped = True
        elif c == _QUOTE:
            dec._end = dec._pos
            dec._pos += 1
            following = _State.SKIP if dec._pos < len(line) else _State.DONE
            return following, _Token.QUOTED_VALUE, None
        dec._pos += 1
    return _State.ERROR, _Token.NONE, dec._syntax_error("unterminated quoted value")


def _lex_terminal(dec: "Decoder") -> _Step:
    return dec._state, _Token.NONE, None


_TRANSITIONS: Dict[_State, Callable[["Decoder"], _Step]] = {
    _State.SKIP: _lex_skip,
    _State.KEY: _lex_key,
    _State.EQUAL: _lex_equal,
    _State.NO_VALUE: _lex_no_value,
    _State.UNQUOTED: _lex_unquoted,
    _State.QUOTED: _lex_quoted,
    _State.DONE: _lex_terminal,
    _State.ERROR: _lex_terminal,
}


class Decoder:
    """Read logfmt records from a byte stream.

    ``source`` needs a ``readline(size)`` method. Lines from text streams are
    encoded as UTF-8 before scanning. Returned keys and values are ``bytes``
    copies and stay valid after the next :meth:`advance_record` call.
    """

    def __init__(self, source: Any, *, config: DecoderConfig | None = None) -> None:
        cfg = config or DecoderConfig()
        self._source = source
        self._max_line_size = cfg.max_line_size
        self._strict_keys = cfg.strict_keys
        self._skip_invalid = cfg.skip_invalid
        self._line = b""
        self._line_num = 0
        self._pos = 0
        self._start = 0
        self._end = 0
        self._state = _State.DONE
        self._error: LogfmtSyntaxError | None = None
        self._fatal: Exception | None = None

    # -- Record API ---------------------------------------------------------
    def advance_record(self) -> bool:
        """Load the next line. Return ``False`` at end of input or after a stream fault."""

        if self._fatal is not None:
            return False
        try:
            line = self._read_line()
        except (OSError, ValueError) as exc:
            self._fatal = exc
            self._state = _State.ERROR
            logger.warning("logfmt input stream failed after line %d: %s", self._line_num, exc)
            return False
        if line is None:
            self._state = _State.DONE
            return False

        self._line = line
        self._line_num += 1
        self._pos = 0
        self._start = self._end = 0
        self._error = None
        self._state = _State.SKIP
        return True

    def scan_key(self) -> bytes | None:
        """Return the next key of the current record, or ``None`` when there is none."""

        token = _Token.NONE
        while self._state not in _TERMINAL and token is not _Token.KEY:
            token = self._step()
        if token is not _Token.KEY:
            return None
        return self._line[self._start : self._end]

    def scan_value(self) -> bytes | None:
        """Return the value following the last key, or ``None`` if it has none."""

        token = _Token.NONE
        while self._state not in _TERMINAL and token not in (_Token.VALUE, _Token.QUOTED_VALUE):
            token = self._step()
        if token is _Token.VALUE:
            if self._start == self._end:
                return None
            return self._line[self._start : self._end]
        if token is _Token.QUOTED_VALUE:
            try:
                return unescape(self._line[self._start : self._end])
            except UnescapeError as exc:
                self._fail(self._syntax_error("invalid quoted value"))
                logger.debug("Rejected quoted value on line %d: %s", self._line_num, exc)
        return None

    def last_error(self) -> Exception | None:
        """Return the stream fault, else the current line's syntax error."""

        return self._fatal or self._error

    @property
    def position(self) -> Position:
        return Position(line=self._line_num, column=self._pos + 1)

    # -- Iteration helpers --------------------------------------------------
    def keyvals(self) -> Iterator[Keyval]:
        """Yield the key/value pairs of the current record."""

        while True:
            key = self.scan_key()
            if key is None:
                return
            value = self.scan_value()
            if self._error is not None:
                return
            yield key, value

    def records(self, *, skip_invalid: bool | None = None) -> Iterator[List[Keyval]]:
        """Yield every remaining record as a list of key/value pairs.

        A syntax error is raised unless ``skip_invalid`` is set, in which case
        the offending line is logged and dropped. A stream fault is raised
        once no more lines can be read.
        """

        skip = self._skip_invalid if skip_invalid is None else skip_invalid
        while self.advance_record():
            record = list(self.keyvals())
            error = self._error
            if error is None:
                yield record
                continue
            if not skip:
                raise error
            logger.warning("Skipping invalid logfmt record: %s", error)
        if self._fatal is not None:
            raise self._fatal

    def __iter__(self) -> Iterator[List[Keyval]]:
        return self.records()

    # -- Internals ----------------------------------------------------------
    def _read_line(self) -> bytes | None:
        # room for the content plus a "\r\n" terminator
        raw = self._source.readline(self._max_line_size + 2)
        if not raw:
            return None
        if isinstance(raw, str):
            raw = raw.encode("utf-8", "surrogateescape")
        if raw.endswith(b"\n"):
            raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        if len(raw) > self._max_line_size:
            raise LineTooLongError(self._line_num + 1, self._max_line_size)
        return bytes(raw)

    def _step(self) -> _Token:
        state, token, error = _TRANSITIONS[self._state](self)
        self._state = state
        if error is not None:
            self._fail(error)
        return token

    def _fail(self, error: LogfmtSyntaxError) -> None:
        self._state = _State.ERROR
        self._error = error
        logger.debug("%s", error)

    def _close_key(self, following: _State) -> _Step:
        self._end = self._pos
        if self._strict_keys and not _is_text_key(self._line[self._start : self._end]):
            return _State.ERROR, _Token.NONE, self._syntax_error("invalid key")
        return following, _Token.KEY, None

    def _syntax_error(self, message: str) -> LogfmtSyntaxError:
        return LogfmtSyntaxError(message, self._line_num, self._pos + 1)

    def _unexpected(self, c: int) -> LogfmtSyntaxError:
        return self._syntax_error(f"unexpected {chr(c)!r}")


def _is_text_key(key: bytes) -> bool:
    try:
        text = key.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return "\ufffd" not in text
