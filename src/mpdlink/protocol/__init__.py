"""mpdlink protocol - quoting, decoding and errors for the MPD text protocol."""

from .binary import ALBUM_ART, READ_PICTURE, fetch_binary
from .decoder import LIST_OK, OK, ResponseDecoder
from .errors import (
    NO_INDEX,
    ErrorCode,
    MalformedResponseError,
    MPDError,
    NoArtworkError,
    ProtocolError,
    TransportError,
    parse_ack,
)
from .messages import Attrs, BinaryChunk, Sticker
from .quoting import quote, quote_args, split_args
from .transport import LineTransport

__all__ = [
    "ALBUM_ART",
    "READ_PICTURE",
    "NO_INDEX",
    "OK",
    "LIST_OK",
    "Attrs",
    "BinaryChunk",
    "Sticker",
    "ErrorCode",
    "MPDError",
    "TransportError",
    "MalformedResponseError",
    "ProtocolError",
    "NoArtworkError",
    "LineTransport",
    "ResponseDecoder",
    "parse_ack",
    "quote",
    "quote_args",
    "split_args",
    "fetch_binary",
]
