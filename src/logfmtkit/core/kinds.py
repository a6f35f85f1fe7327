"""Classification of keys and values into the kinds the encoder knows.

Every object the encoder receives is resolved once into a :class:`ValueKind`:

``NULL``
    ``None``.
``TEXT``
    ``str`` (including subclasses), ``bytes``, ``bytearray`` and ``memoryview``.
``NULLABLE``
    A ``weakref.ref`` or a weak proxy whose referent is gone. References are
    dereferenced and the referent is classified again.
``RENDERABLE``
    The class defines ``__logfmt__()``, returning ``str``, ``bytes`` or
    ``None`` when there is nothing to render.
``DISPLAYABLE``
    The class defines its own ``__str__``.
``COMPOSITE``
    Iterables, mappings, callables, dataclass instances and plain objects
    without a textual representation of their own.
``GENERIC``
    Numbers and anything else with a ``repr`` of its own.

Live weak proxies are classified by their referent's class and hooks are
invoked through the proxy. If the referent disappears while a hook runs, the
resulting ``ReferenceError`` is reported as "no text" instead of an error.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import weakref
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Optional

from .quoting import as_text

__all__ = [
    "ValueKind",
    "classify",
    "dereference",
    "generic_text",
    "try_display",
    "try_render",
]

logger = logging.getLogger(__name__)

RENDER_HOOK = "__logfmt__"

_TEXT_TYPES = (str, bytes, bytearray, memoryview)
_SCALAR_TYPES = (bool, int, float, complex)
_PROXY_TYPES = tuple(weakref.ProxyTypes)


class ValueKind(enum.Enum):
    NULL = "null"
    TEXT = "text"
    NULLABLE = "nullable"
    RENDERABLE = "renderable"
    DISPLAYABLE = "displayable"
    COMPOSITE = "composite"
    GENERIC = "generic"


def _is_proxy(value: Any) -> bool:
    return type(value) in _PROXY_TYPES


def _is_ref(value: Any) -> bool:
    # isinstance() would ask a dead proxy for __class__
    return not _is_proxy(value) and issubclass(type(value), weakref.ref)


def _referent_class(proxy: Any) -> type | None:
    try:
        return proxy.__class__
    except ReferenceError:
        return None


def _is_dead(value: Any) -> bool:
    if _is_proxy(value):
        return _referent_class(value) is None
    return _is_ref(value) and value() is None


def _is_composite(cls: type) -> bool:
    if issubclass(cls, (Mapping, Iterable, Callable)):
        return True
    if dataclasses.is_dataclass(cls):
        return True
    return cls.__repr__ is object.__repr__


def classify(value: Any) -> ValueKind:
    """Return the :class:`ValueKind` used to format ``value``."""

    if value is None:
        return ValueKind.NULL
    if _is_ref(value):
        return ValueKind.NULLABLE
    if _is_proxy(value):
        cls = _referent_class(value)
        if cls is None:
            return ValueKind.NULLABLE
    else:
        cls = type(value)

    if issubclass(cls, _TEXT_TYPES):
        return ValueKind.TEXT
    if callable(getattr(cls, RENDER_HOOK, None)):
        return ValueKind.RENDERABLE
    if issubclass(cls, _SCALAR_TYPES):
        return ValueKind.GENERIC
    if cls.__str__ is not object.__str__:
        return ValueKind.DISPLAYABLE
    if _is_composite(cls):
        return ValueKind.COMPOSITE
    return ValueKind.GENERIC


def dereference(value: Any) -> Any:
    """Return the object a nullable holder points at, or ``None``."""

    if _is_ref(value):
        return value()
    if _is_dead(value):
        return None
    return value


def _safe_invoke(value: Any, hook: Callable[[], Any]) -> Any:
    try:
        return hook()
    except ReferenceError:
        if _is_dead(value):
            logger.debug("Hook invoked through a dead %s; treating as no text", type(value).__name__)
            return None
        raise


def _to_text(result: Any, hook_name: str) -> Optional[str]:
    if result is None:
        return None
    if isinstance(result, _TEXT_TYPES):
        return as_text(result)
    raise TypeError(f"{hook_name} returned {type(result).__name__}, expected str or bytes")


def try_render(value: Any) -> Optional[str]:
    """Call ``value.__logfmt__()``; ``None`` means there is nothing to render."""

    result = _safe_invoke(value, lambda: getattr(value, RENDER_HOOK)())
    return _to_text(result, RENDER_HOOK)


def try_display(value: Any) -> Optional[str]:
    """Call ``str(value)``; ``None`` means the holder's referent is gone."""

    return _safe_invoke(value, lambda: str(value))


def generic_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
