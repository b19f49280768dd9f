"""Line transport over a socket connection to the daemon."""

from __future__ import annotations

import socket
from typing import BinaryIO

from .errors import MalformedResponseError, TransportError


GREETING_PREFIX = "OK MPD "
ENCODING = "utf-8"


class LineTransport:
    """Reads and writes newline-terminated lines, plus raw byte runs."""

    def __init__(self, reader: BinaryIO, writer: BinaryIO, sock: socket.socket | None = None):
        self._reader = reader
        self._writer = writer
        self._sock = sock

    @classmethod
    def open(cls, network: str, address: str, timeout: float | None = None) -> LineTransport:
        """Dial ``tcp`` (``host:port``) or ``unix`` (socket path)."""
        try:
            if network == "unix":
                sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                sock.settimeout(timeout)
                sock.connect(address)
            elif network == "tcp":
                host, _, port = address.rpartition(":")
                if not host or not port.isdigit():
                    raise ValueError(f"tcp address must be host:port, got {address!r}")
                sock = socket.create_connection((host.strip("[]"), int(port)), timeout=timeout)
            else:
                raise ValueError(f"unsupported network: {network!r}")
        except OSError as exc:
            raise TransportError(f"can't connect to {network}:{address}: {exc}") from exc

        stream = sock.makefile("rwb")
        return cls(stream, stream, sock)

    def read_line(self) -> str:
        try:
            raw = self._reader.readline()
        except OSError as exc:
            raise TransportError(f"read failed: {exc}") from exc

        if not raw.endswith(b"\n"):
            raise TransportError("connection closed")
        return raw[:-1].decode(ENCODING, errors="surrogateescape")

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` raw bytes, not line-delimited."""
        try:
            data = self._reader.read(count)
        except OSError as exc:
            raise TransportError(f"read failed: {exc}") from exc

        if len(data) != count:
            raise MalformedResponseError(
                f"binary payload truncated: wanted {count} bytes, got {len(data)}"
            )
        return data

    def write_line(self, line: str) -> None:
        try:
            self._writer.write(line.encode(ENCODING, errors="surrogateescape") + b"\n")
            self._writer.flush()
        except OSError as exc:
            raise TransportError(f"write failed: {exc}") from exc

    def read_greeting(self) -> str:
        """Consume the ``OK MPD <version>`` line and return the version."""
        line = self.read_line()
        if not line.startswith(GREETING_PREFIX):
            raise MalformedResponseError(f"unexpected greeting: {line!r}")
        return line[len(GREETING_PREFIX):]

    def shutdown(self) -> None:
        """Unblock a reader in another thread by shutting the socket down."""
        if self._sock is not None:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # Already disconnected.
                pass

    def close(self) -> None:
        streams = [self._reader]
        if self._writer is not self._reader:
            streams.append(self._writer)
        for stream in streams:
            try:
                stream.close()
            except OSError:
                # Peer already gone; nothing left to flush to.
                pass
        if self._sock is not None:
            self._sock.close()
            self._sock = None
