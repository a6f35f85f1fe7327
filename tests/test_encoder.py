from __future__ import annotations

import io
import weakref
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable

import pytest

from logfmtkit.core.decoder import Decoder
from logfmtkit.core.encoder import Encoder, format_key, format_value
from logfmtkit.core.errors import InvalidKeyError, NilKeyError, UnsupportedTypeError
from logfmtkit.core.kinds import ValueKind, classify, try_display, try_render


class Rendered:
    def __init__(self, text: object) -> None:
        self.text = text

    def __logfmt__(self) -> object:
        return self.text


class Displayed:
    def __init__(self, text: str) -> None:
        self.text = text

    def __str__(self) -> str:
        return self.text


class Plain:
    pass


@dataclass
class Point:
    x: int
    y: int


class Faulty:
    def __str__(self) -> str:
        raise ReferenceError("referent vanished elsewhere")


def _dead_proxy() -> object:
    target = Displayed("gone")
    proxy = weakref.proxy(target)
    del target
    return proxy


@pytest.mark.parametrize(
    ("value", "kind"),
    [
        (None, ValueKind.NULL),
        ("s", ValueKind.TEXT),
        (b"b", ValueKind.TEXT),
        (weakref.ref(Plain), ValueKind.NULLABLE),
        (Rendered("r"), ValueKind.RENDERABLE),
        (Displayed("d"), ValueKind.DISPLAYABLE),
        ([1, 2], ValueKind.COMPOSITE),
        ({"a": 1}, ValueKind.COMPOSITE),
        (len, ValueKind.COMPOSITE),
        (Point(1, 2), ValueKind.COMPOSITE),
        (Plain(), ValueKind.COMPOSITE),
        (True, ValueKind.GENERIC),
        (3.5, ValueKind.GENERIC),
        (Decimal("1.10"), ValueKind.DISPLAYABLE),
    ],
)
def test_classify(value: object, kind: ValueKind) -> None:
    assert classify(value) is kind


def test_classify_proxies() -> None:
    target = Displayed("alive")
    assert classify(weakref.proxy(target)) is ValueKind.DISPLAYABLE
    assert classify(_dead_proxy()) is ValueKind.NULLABLE


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, b"nil"),
        ("nil", b'"nil"'),
        ("", b'""'),
        ("hello world", b'"hello world"'),
        (b"raw", b"raw"),
        (bytearray(b"a=b"), b'"a=b"'),
        (1, b"1"),
        (-2.5, b"-2.5"),
        (True, b"true"),
        (False, b"false"),
        (Decimal("1.10"), b"1.10"),
        (Rendered("r v"), b'"r v"'),
        (Rendered(b"bytes"), b"bytes"),
        (Rendered(None), b"nil"),
        (Displayed("shown"), b"shown"),
        (Displayed(""), b'""'),
    ],
)
def test_format_value(value: object, expected: bytes) -> None:
    assert format_value(value) == expected


def test_format_value_dereferences_holders() -> None:
    target = Displayed("alive")
    ref = weakref.ref(target)
    proxy = weakref.proxy(target)

    assert format_value(ref) == b"alive"
    assert format_value(proxy) == b"alive"
    del target
    assert format_value(ref) == b"nil"
    assert format_value(proxy) == b"nil"


@pytest.mark.parametrize("value", [[1], {"a": 1}, (1, 2), {1}, Point(1, 2), Plain(), len])
def test_format_value_rejects_composites(value: object) -> None:
    with pytest.raises(UnsupportedTypeError) as excinfo:
        format_value(value)
    assert excinfo.value.value_type is type(value)
    assert isinstance(excinfo.value, TypeError)


def test_render_hook_must_return_text() -> None:
    with pytest.raises(TypeError):
        format_value(Rendered(42))


def test_format_key() -> None:
    assert format_key("k") == b"k"
    assert format_key(b"k") == b"k"
    assert format_key(1) == b"1"
    assert format_key(Rendered("rk")) == b"rk"
    assert format_key(Displayed("dk")) == b"dk"
    assert format_key("ƒ") == "ƒ".encode("utf-8")


@pytest.mark.parametrize(
    "make_key",
    [lambda: None, lambda: Rendered(None), lambda: weakref.ref(Plain()), _dead_proxy],
)
def test_format_key_nil(make_key: Callable[[], object]) -> None:
    key = make_key()
    with pytest.raises(NilKeyError):
        format_key(key)


@pytest.mark.parametrize("key", ["", " ", "a b", "k=", '"', "\n", "\x00", b"\x80", Displayed("a=b")])
def test_format_key_invalid(key: object) -> None:
    with pytest.raises(InvalidKeyError):
        format_key(key)


def test_format_key_rejects_composites() -> None:
    with pytest.raises(UnsupportedTypeError):
        format_key(["k"])


def test_hooks_on_dead_proxy_report_no_text() -> None:
    proxy = _dead_proxy()

    assert try_display(proxy) is None
    assert try_render(proxy) is None


def test_reference_error_from_live_value_propagates() -> None:
    with pytest.raises(ReferenceError):
        try_display(Faulty())
    with pytest.raises(ReferenceError):
        format_value(Faulty())


def test_encoder_writes_separated_pairs() -> None:
    sink = io.BytesIO()
    enc = Encoder(sink)

    enc.encode_keyval("a", 1)
    enc.encode_keyval("b", "two words")
    enc.end_record()
    enc.encode_keyvals("c", None, "d")
    enc.end_record()

    assert sink.getvalue() == b'a=1 b="two words"\nc=nil d=nil\n'


def test_encoder_reset_drops_separator() -> None:
    sink = io.BytesIO()
    enc = Encoder(sink)

    enc.encode_keyval("a", 1)
    enc.reset()
    enc.encode_keyval("b", 2)

    assert sink.getvalue() == b"a=1b=2"


@pytest.mark.parametrize(
    ("key", "value", "error"),
    [
        (None, "v", NilKeyError),
        ("bad key", "v", InvalidKeyError),
        ("k", ["v"], UnsupportedTypeError),
        (["k"], "v", UnsupportedTypeError),
    ],
)
def test_failed_pair_writes_nothing(key: object, value: object, error: type) -> None:
    sink = io.BytesIO()
    enc = Encoder(sink)
    enc.encode_keyval("a", 1)

    with pytest.raises(error):
        enc.encode_keyval(key, value)
    enc.encode_keyval("b", 2)

    assert sink.getvalue() == b"a=1 b=2"


def test_nil_key_is_checked_before_value() -> None:
    sink = io.BytesIO()

    with pytest.raises(NilKeyError):
        Encoder(sink).encode_keyval(None, ["composite"])
    assert sink.getvalue() == b""


def test_encoded_records_decode_to_same_pairs() -> None:
    pairs = [
        ("msg", "hello \"world\"\n\ttabbed"),
        ("ctrl", "\x01\x7f"),
        ("uni", "ƒ µ \U0001F600"),
        ("nil", "nil"),
        ("bin", b"\x80\xff"),
        ("eq", "a=b"),
        ("empty", ""),
    ]
    sink = io.BytesIO()
    enc = Encoder(sink)
    for key, value in pairs:
        enc.encode_keyval(key, value)
    enc.end_record()

    sink.seek(0)
    decoded = list(Decoder(sink))
    expected = [
        (key.encode("utf-8"), value if isinstance(value, bytes) else value.encode("utf-8"))
        for key, value in pairs
    ]
    assert decoded == [expected]


def test_encoder_writes_nil_for_dead_proxy_value() -> None:
    sink = io.BytesIO()
    enc = Encoder(sink)

    enc.encode_keyval("k", _dead_proxy())
    with pytest.raises(NilKeyError):
        enc.encode_keyval(_dead_proxy(), "v")

    assert sink.getvalue() == b"k=nil"


@pytest.mark.parametrize("value", ["a\ud800b", "a\udc00b", "\udfff"])
def test_lone_surrogates_decode_as_their_utf8_bytes(value: str) -> None:
    sink = io.BytesIO()
    enc = Encoder(sink)
    enc.encode_keyval("k", value)
    enc.end_record()

    sink.seek(0)
    dec = Decoder(sink)
    assert list(dec) == [[(b"k", value.encode("utf-8", "surrogatepass"))]]
    assert dec.last_error() is None
