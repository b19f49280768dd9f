"""Response decoder: turns reply lines into records, lists and chunks."""

from __future__ import annotations

from typing import Iterator

from .errors import MalformedResponseError, is_ack, parse_ack
from .messages import Attrs, BinaryChunk, parse_int
from .transport import LineTransport


OK = "OK"
LIST_OK = "list_OK"


class ResponseDecoder:
    """Consumes one response from a transport.

    Every decoding mode reads up to ``terminator`` (``OK``, or ``list_OK``
    inside a command list). An ACK line raises the parsed ProtocolError,
    anything that does not fit the expected shape raises
    MalformedResponseError.
    """

    def __init__(self, transport: LineTransport):
        self.transport = transport

    def _pairs(self, terminator: str) -> Iterator[tuple[str, str]]:
        while True:
            line = self.transport.read_line()
            if line == terminator:
                return
            if is_ack(line):
                raise parse_ack(line)
            key, sep, value = line.partition(": ")
            if not sep:
                raise MalformedResponseError(f"can't parse line: {line!r}")
            yield key, value

    def ok(self, terminator: str = OK) -> None:
        for key, value in self._pairs(terminator):
            raise MalformedResponseError(f"unexpected line: {key}: {value}")

    def attrs(self, boundary_keys: tuple[str, ...] = (), terminator: str = OK) -> Attrs:
        """Decode the whole response as one record.

        If ``boundary_keys`` is given the response must describe a single
        entity: a second boundary line is an error.
        """
        attrs: Attrs = {}
        seen = 0
        for key, value in self._pairs(terminator):
            if key in boundary_keys:
                seen += 1
                if seen > 1:
                    raise MalformedResponseError(
                        f"expected one entity, got a second {key!r}"
                    )
            attrs[key] = value
        return attrs

    def attrs_list(self, *boundary_keys: str, terminator: str = OK) -> list[Attrs]:
        """Decode a list of records, starting a new one at each boundary key."""
        records: list[Attrs] = []
        for key, value in self._pairs(terminator):
            if key in boundary_keys:
                records.append({})
            if not records:
                raise MalformedResponseError(f"unexpected: {key}: {value}")
            records[-1][key] = value
        return records

    def strings(self, key: str, terminator: str = OK) -> list[str]:
        """Decode a list of values that all share ``key``."""
        values = []
        wanted = key.lower()
        for got, value in self._pairs(terminator):
            if got.lower() != wanted:
                raise MalformedResponseError(f"expected {key!r}, got {got!r}")
            values.append(value)
        return values

    def binary(self, terminator: str = OK) -> BinaryChunk:
        """Decode a ``size``/``binary`` response and its raw payload."""
        attrs: Attrs = {}
        data = b""
        size = None

        for key, value in self._pairs(terminator):
            if key == "size":
                size = parse_int({key: value}, key)
            elif key == "binary":
                count = parse_int({key: value}, key)
                if count < 0:
                    raise MalformedResponseError(f"negative binary length: {count}")
                data = self.transport.read_bytes(count)
                trailer = self.transport.read_line()
                if trailer:
                    raise MalformedResponseError(
                        f"expected newline after binary payload, got {trailer!r}"
                    )
            else:
                attrs[key] = value

        if size is None:
            if data:
                raise MalformedResponseError("binary payload without size")
            size = 0
        return BinaryChunk(size=size, data=data, attrs=attrs)
