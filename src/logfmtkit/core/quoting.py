"""Quoting and escaping rules shared by the decoder and the encoder.

Text is handled as ``str``. Byte strings are decoded as UTF-8 with the
``surrogateescape`` error handler, so an invalid byte ``0xNN`` shows up as the
lone surrogate ``U+DCNN``. Such characters are always escaped on output
(``\\udcNN``) and turned back into the raw byte by :func:`unescape`, which keeps
``unescape(quote(v)[1:-1]) == v`` true for arbitrary bytes while the encoded
stream stays valid text. Any other lone surrogate in a ``str`` is written as
the escaped bytes of its ``surrogatepass`` encoding. The empty string is
always quoted so that it reads back as empty rather than absent.
"""

from __future__ import annotations

import re
import string

from .errors import UnescapeError

__all__ = [
    "NIL",
    "as_text",
    "escape",
    "is_valid_key",
    "needs_quoting",
    "quote",
    "unescape",
]

NIL = "nil"

_UNSAFE = re.compile(r'[\x00-\x20="\ufffd\ud800-\udfff]')
_ESCAPED = re.compile(r'[\x00-\x1f"\\\ud800-\udfff]')

_SHORT_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_UNESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_HEX_DIGITS = frozenset(string.hexdigits)


def as_text(value: str | bytes | bytearray | memoryview) -> str:
    """Return ``value`` as ``str``, mapping invalid UTF-8 to lone surrogates."""

    if isinstance(value, str):
        return str.__str__(value)
    return bytes(value).decode("utf-8", "surrogateescape")


def needs_quoting(text: str) -> bool:
    """Return ``True`` if ``text`` cannot be written as an unquoted value."""

    return not text or text == NIL or _UNSAFE.search(text) is not None


def is_valid_key(text: str) -> bool:
    """Return ``True`` if ``text`` may be written as a key."""

    return bool(text) and _UNSAFE.search(text) is None


def _escape_char(match: re.Match[str]) -> str:
    ch = match.group()
    short = _SHORT_ESCAPES.get(ch)
    if short is not None:
        return short
    if "\ud800" <= ch <= "\udfff" and not "\udc80" <= ch <= "\udcff":
        # other lone surrogates travel as the bytes they would have been read from
        return "".join(f"\\udc{byte:02x}" for byte in ch.encode("utf-8", "surrogatepass"))
    return f"\\u{ord(ch):04x}"


def quote(value: str | bytes) -> str:
    """Return ``value`` wrapped in double quotes with escapes applied."""

    text = as_text(value)
    return '"' + _ESCAPED.sub(_escape_char, text) + '"'


def escape(value: str | bytes) -> bytes:
    """Return the wire form of a value, quoting it only when required."""

    text = as_text(value)
    if needs_quoting(text):
        text = quote(text)
    return text.encode("utf-8")


def _hex4(text: str, start: int) -> int:
    digits = text[start : start + 4]
    if len(digits) != 4 or not _HEX_DIGITS.issuperset(digits):
        raise UnescapeError(f"invalid \\u escape at offset {start - 2}")
    return int(digits, 16)


def unescape(content: str | bytes) -> bytes:
    """Decode the escapes of a quoted value's content (without the quotes).

    Raises :class:`UnescapeError` for unknown or truncated escapes, invalid
    hex digits, unpaired surrogates, raw double quotes and raw control
    characters.
    """

    text = as_text(content)
    if "\\" not in text and _ESCAPED.search(text) is None:
        return text.encode("utf-8", "surrogateescape")

    out: list[str] = []
    i = 0
    end = len(text)
    while i < end:
        ch = text[i]
        if ch != "\\":
            if ch == '"':
                raise UnescapeError(f"unescaped quote at offset {i}")
            if ch < " ":
                raise UnescapeError(f"control character at offset {i}")
            if "\ud800" <= ch <= "\udfff" and not "\udc80" <= ch <= "\udcff":
                raise UnescapeError(f"unpaired surrogate at offset {i}")
            out.append(ch)
            i += 1
            continue

        if i + 1 >= end:
            raise UnescapeError("truncated escape sequence")
        letter = text[i + 1]
        simple = _UNESCAPES.get(letter)
        if simple is not None:
            out.append(simple)
            i += 2
            continue
        if letter != "u":
            raise UnescapeError(f"invalid escape {letter!r} at offset {i}")

        code = _hex4(text, i + 2)
        i += 6
        if 0xD800 <= code < 0xDC00:
            if text.startswith("\\u", i):
                low = _hex4(text, i + 2)
                if 0xDC00 <= low < 0xE000:
                    out.append(chr(0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)))
                    i += 6
                    continue
            raise UnescapeError(f"unpaired high surrogate \\u{code:04x}")
        if 0xDC00 <= code < 0xDC80:
            raise UnescapeError(f"unpaired low surrogate \\u{code:04x}")
        # \udc80-\udcff stand for the raw bytes 0x80-0xff
        out.append(chr(code))

    return "".join(out).encode("utf-8", "surrogateescape")
