"""Public API surface for logfmtkit."""

from __future__ import annotations

import io
import logging
from typing import Any, Dict, List

from .config.loader import load_configuration
from .config.schema import LogfmtConfig
from .core.decoder import Decoder, Keyval
from .core.encoder import Encoder
from .core.validation import resolve_level, validate_configuration
from .formatters.logfmt import LogFmtFormatter

logger = logging.getLogger(__name__)

_CONFIG: LogfmtConfig | None = None


def configure(overrides: Dict[str, Any] | None = None) -> LogfmtConfig:
    """Load, validate and apply configuration with the provided overrides."""

    global _CONFIG
    config = load_configuration(overrides or {})
    validate_configuration(config)
    logging.getLogger("logfmtkit").setLevel(resolve_level(config.log_level))
    _CONFIG = config
    logger.debug("logfmtkit configured: %r", config)
    return config


def _ensure_configured() -> LogfmtConfig:
    if _CONFIG is None:
        return configure({})
    return _CONFIG


def get_config() -> LogfmtConfig:
    """Return the active configuration, loading it on first use."""

    return _ensure_configured()


def get_decoder(source: Any) -> Decoder:
    """Return a :class:`Decoder` reading from ``source``."""

    return Decoder(source, config=_ensure_configured().decoder)


def get_encoder(sink: Any) -> Encoder:
    """Return an :class:`Encoder` writing to ``sink``."""

    return Encoder(sink)


def get_formatter(**options: Any) -> LogFmtFormatter:
    """Return a logging formatter; ``options`` override configured values."""

    merged = _ensure_configured().formatter.options()
    merged.update(options)
    return LogFmtFormatter(**merged)


def marshal_keyvals(*keyvals: Any) -> bytes:
    """Return the logfmt encoding of an alternating key/value sequence.

    No newline is appended. An odd trailing key is paired with ``None``.
    """

    if not keyvals:
        return b""
    buffer = io.BytesIO()
    Encoder(buffer).encode_keyvals(*keyvals)
    return buffer.getvalue()


def decode_records(data: bytes | str, *, skip_invalid: bool | None = None) -> List[List[Keyval]]:
    """Decode every record of ``data``."""

    if isinstance(data, str):
        data = data.encode("utf-8", "surrogateescape")
    decoder = get_decoder(io.BytesIO(data))
    return list(decoder.records(skip_invalid=skip_invalid))
