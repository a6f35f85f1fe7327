"""logfmtkit public API."""

from .api import (
    configure,
    decode_records,
    get_config,
    get_decoder,
    get_encoder,
    get_formatter,
    marshal_keyvals,
)
from .core.decoder import Decoder, Position
from .core.encoder import Encoder
from .core.errors import (
    ConfigurationError,
    EncodeError,
    InvalidKeyError,
    LineTooLongError,
    LogfmtError,
    LogfmtSyntaxError,
    NilKeyError,
    UnescapeError,
    UnsupportedTypeError,
)
from .formatters.logfmt import LogFmtFormatter
from .version import __version__

__all__ = [
    "configure",
    "decode_records",
    "get_config",
    "get_decoder",
    "get_encoder",
    "get_formatter",
    "marshal_keyvals",
    "Decoder",
    "Encoder",
    "Position",
    "LogFmtFormatter",
    "ConfigurationError",
    "EncodeError",
    "InvalidKeyError",
    "LineTooLongError",
    "LogfmtError",
    "LogfmtSyntaxError",
    "NilKeyError",
    "UnescapeError",
    "UnsupportedTypeError",
    "__version__",
]
