"""Pytest configuration and fixtures for mpdlink tests."""

from __future__ import annotations

import io
import re
import socketserver
import threading
from typing import Any, Callable, Generator

import pytest

from mpdlink.protocol.quoting import split_args
from mpdlink.protocol.transport import LineTransport


_ACK_INDEX_RE = re.compile(rb"^ACK \[(\d+)@\d+\]")


def ack(code: int, command: str, message: str) -> bytes:
    return f"ACK [{code}@0] {{{command}}} {message}\n".encode()


def serve_binary(files: dict[str, bytes], chunk_size: int) -> Callable[[list[str]], bytes]:
    """Responder for albumart/readpicture that slices ``files`` into chunks."""

    def respond(args: list[str]) -> bytes:
        uri, offset = args[0], int(args[1])
        if uri not in files:
            return ack(50, "albumart", "No file exists")
        data = files[uri]
        part = data[offset:offset + chunk_size]
        return b"size: %d\nbinary: %d\n" % (len(data), len(part)) + part + b"\nOK\n"

    return respond


class _Handler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        fake: FakeMPDServer = self.server.fake  # type: ignore[attr-defined]
        self.wfile.write(f"OK MPD {fake.version}\n".encode())
        self.wfile.flush()

        batch: list[str] | None = None
        while True:
            raw = self.rfile.readline()
            if not raw:
                return
            line = raw.decode().rstrip("\n")
            fake.received.append(line)

            if line == "close":
                return
            if line == "command_list_ok_begin":
                batch = []
                continue
            if batch is not None:
                if line == "command_list_end":
                    self.wfile.write(fake.reply_batch(batch))
                    self.wfile.flush()
                    batch = None
                else:
                    batch.append(line)
                continue

            reply = fake.reply(line)
            if reply:
                self.wfile.write(reply)
                self.wfile.flush()


class FakeMPDServer:
    """Scripted daemon on a loopback port.

    ``responses`` maps an exact command line, or a bare command name, to
    the reply: bytes are sent as is, a list is consumed one reply per
    request (an exhausted list sends nothing, like a pending ``idle``),
    and a callable gets the unquoted arguments.
    """

    def __init__(self, version: str = "0.23.5"):
        self.version = version
        self.received: list[str] = []
        self.responses: dict[str, Any] = {
            "ping": b"OK\n",
            "noidle": b"OK\n",
        }
        self._server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), _Handler)
        self._server.daemon_threads = True
        self._server.fake = self  # type: ignore[attr-defined]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def port(self) -> int:
        return self._server.server_address[1]

    @property
    def address(self) -> str:
        return f"127.0.0.1:{self.port}"

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()

    def reply(self, line: str) -> bytes:
        name, _, rest = line.partition(" ")
        response = self.responses.get(line, self.responses.get(name))
        if response is None:
            return ack(5, name, f'unknown command "{name}"')
        if isinstance(response, list):
            return response.pop(0) if response else b""
        if callable(response):
            return response(split_args(rest))
        return response

    def reply_batch(self, lines: list[str]) -> bytes:
        out = b""
        for index, line in enumerate(lines):
            reply = self.reply(line)
            if reply.startswith(b"ACK"):
                return out + _ACK_INDEX_RE.sub(b"ACK [\\1@%d]" % index, reply)
            out += reply[: -len(b"OK\n")] + b"list_OK\n"
        return out + b"OK\n"


@pytest.fixture
def mpd_server() -> Generator[FakeMPDServer, None, None]:
    """A running fake daemon."""
    server = FakeMPDServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def client(mpd_server):
    """A client connected to the fake daemon."""
    from mpdlink.client import Client

    cli = Client.dial("tcp", mpd_server.address, timeout=5.0)
    yield cli
    cli.close()


@pytest.fixture
def make_transport() -> Callable[[bytes], LineTransport]:
    """Build a transport that reads the given bytes."""

    def factory(data: bytes) -> LineTransport:
        return LineTransport(io.BytesIO(data), io.BytesIO())

    return factory


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the user's config and MPD_* variables out of the tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("MPD_HOST", raising=False)
    monkeypatch.delenv("MPD_PORT", raising=False)
