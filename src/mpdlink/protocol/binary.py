"""Chunked retrieval of binary objects (album art, embedded pictures)."""

from __future__ import annotations

import logging
from typing import Callable

from .errors import ErrorCode, MalformedResponseError, NoArtworkError, ProtocolError
from .messages import BinaryChunk

_logger = logging.getLogger("mpdlink.binary")

ALBUM_ART = "albumart"
READ_PICTURE = "readpicture"

# Performs one round trip: (command, uri, offset) -> chunk
ChunkReader = Callable[[str, str, int], BinaryChunk]


def fetch_binary(execute: ChunkReader, command: str, uri: str) -> bytes:
    """Fetch a whole binary object, one chunk per round trip.

    Raises NoArtworkError when the daemon reports the song does not exist
    (or has no art) on the first request. A response with size 0 is not an
    error and yields ``b""``. Nothing is returned on failure, partially
    read data is dropped.
    """
    buffer = bytearray()
    offset = 0

    while True:
        try:
            chunk = execute(command, uri, offset)
        except ProtocolError as exc:
            if offset == 0 and exc.kind == ErrorCode.NO_EXIST:
                raise NoArtworkError.from_error(exc) from exc
            raise

        if offset == 0 and chunk.size == 0:
            _logger.debug(f"{command} {uri!r}: no data")
            return b""

        if chunk.length == 0:
            raise MalformedResponseError(
                f"{command} {uri!r}: empty chunk at offset {offset} of {chunk.size}"
            )

        buffer += chunk.data
        offset = len(buffer)
        _logger.debug(f"{command} {uri!r}: {offset}/{chunk.size} bytes")

        if offset >= chunk.size:
            return bytes(buffer[:chunk.size])
