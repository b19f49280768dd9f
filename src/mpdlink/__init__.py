"""mpdlink - client for the Music Player Daemon text protocol."""

from .client import Client, Command, CommandList, Promise
from .config import Config, load_config, resolve_address
from .protocol import (
    NO_INDEX,
    Attrs,
    BinaryChunk,
    ErrorCode,
    MalformedResponseError,
    MPDError,
    NoArtworkError,
    ProtocolError,
    Sticker,
    TransportError,
    quote,
    quote_args,
)
from .watcher import Watcher

__version__ = "0.1.0"

__all__ = [
    "Client",
    "Command",
    "CommandList",
    "Promise",
    "Watcher",
    "Config",
    "load_config",
    "resolve_address",
    "NO_INDEX",
    "Attrs",
    "BinaryChunk",
    "Sticker",
    "ErrorCode",
    "MPDError",
    "TransportError",
    "MalformedResponseError",
    "ProtocolError",
    "NoArtworkError",
    "quote",
    "quote_args",
]
