"""Client for the Music Player Daemon.

One ``Client`` owns one connection. Every command is a full
write-then-read cycle taken under a lock, so a client may be shared
between threads but never has two responses in flight.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from .config import DEFAULT_HOST, DEFAULT_PORT, Config, resolve_address
from .protocol.binary import ALBUM_ART, READ_PICTURE, fetch_binary
from .protocol.decoder import LIST_OK, OK, ResponseDecoder
from .protocol.errors import MalformedResponseError, MPDError, TransportError
from .protocol.messages import Attrs, BinaryChunk, Sticker, parse_int
from .protocol.quoting import quote_args
from .protocol.transport import LineTransport

_logger = logging.getLogger("mpdlink.client")

# Decoding step run after a command line is written: (decoder, terminator) -> result
Decode = Callable[[ResponseDecoder, str], Any]
Runner = Callable[[str, Decode], Any]

_SECRET_COMMANDS = {"password"}


def _window(start: int, end: int) -> list[str]:
    """Range argument: nothing, a single position, or ``start:end``."""
    if start < 0:
        if end >= 0:
            raise ValueError("negative start index")
        return []
    if end < 0:
        return [str(start)]
    return [f"{start}:{end}"]


class Command:
    """A command line ready to send. Pick how to decode its response."""

    def __init__(self, line: str, runner: Runner):
        self.line = line
        self._runner = runner

    def ok(self) -> Any:
        return self._runner(self.line, lambda d, t: d.ok(t))

    def attrs(self, *boundary_keys: str) -> Any:
        return self._runner(self.line, lambda d, t: d.attrs(boundary_keys, t))

    def attrs_list(self, *boundary_keys: str) -> Any:
        return self._runner(self.line, lambda d, t: d.attrs_list(*boundary_keys, terminator=t))

    def strings(self, key: str) -> Any:
        return self._runner(self.line, lambda d, t: d.strings(key, t))

    def binary(self) -> Any:
        return self._runner(self.line, lambda d, t: d.binary(t))


class Promise:
    """Result slot for a command queued in a command list."""

    def __init__(self, line: str):
        self.line = line
        self._value: Any = None
        self._resolved = False

    def _resolve(self, value: Any) -> None:
        self._value = value
        self._resolved = True

    @property
    def resolved(self) -> bool:
        return self._resolved

    def result(self) -> Any:
        if not self._resolved:
            raise RuntimeError(f"command list has not produced a result for {self.line!r}")
        return self._value


class CommandList:
    """Batch of commands sent with ``command_list_ok_begin``.

    Each queued command returns a Promise that is filled in by ``end()``.
    An ACK aborts the rest of the batch; its ``index`` is the position of
    the failing command.
    """

    def __init__(self, client: Client):
        self._client = client
        self._queued: list[tuple[Promise, Decode]] = []
        self._done = False

    def command(self, name: str, *args: Any) -> Command:
        return Command(_build_line(name, args), self._queue)

    def _queue(self, line: str, decode: Decode) -> Promise:
        if self._done:
            raise RuntimeError("command list already sent")
        promise = Promise(line)
        self._queued.append((promise, decode))
        return promise

    def __len__(self) -> int:
        return len(self._queued)

    def end(self) -> None:
        """Send the batch and decode every sub-response."""
        if self._done:
            raise RuntimeError("command list already sent")
        self._done = True
        if not self._queued:
            return
        self._client._run_batch(self._queued)


def _build_line(name: str, args: tuple[Any, ...]) -> str:
    values = [str(arg) for arg in args]
    for value in values:
        if "\n" in value:
            raise ValueError(f"argument for {name!r} contains a newline")
    if not values:
        return name
    return f"{name} {quote_args(values)}"


def _log_line(line: str) -> str:
    name = line.split(" ", 1)[0]
    return f"{name} ***" if name in _SECRET_COMMANDS else line


class Client:
    """Connection to one daemon."""

    def __init__(self, transport: LineTransport, version: str):
        self._transport: LineTransport | None = transport
        self._decoder = ResponseDecoder(transport)
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self.version = version

    @classmethod
    def dial(
        cls,
        network: str = "tcp",
        address: str = f"{DEFAULT_HOST}:{DEFAULT_PORT}",
        password: str | None = None,
        timeout: float | None = 10.0,
    ) -> Client:
        """Connect, read the greeting, and authenticate if a password is given."""
        transport = LineTransport.open(network, address, timeout)
        try:
            version = transport.read_greeting()
            client = cls(transport, version)
            if password:
                client.password(password)
        except MPDError:
            transport.close()
            raise

        _logger.info(f"Connected to {network}:{address} (MPD {version})")
        return client

    @classmethod
    def from_config(cls, config: Config) -> Client:
        addr = resolve_address(config)
        return cls.dial(addr.network, addr.address, addr.password, config.connection.timeout)

    def __enter__(self) -> Client:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._transport is None

    def close(self) -> None:
        """Say goodbye to the daemon and drop the connection."""
        with self._lock:
            transport = self._transport
            if transport is None:
                return
            self._transport = None
            try:
                transport.write_line("close")
            except TransportError as exc:
                _logger.debug(f"close: {exc}")
            transport.close()

    def interrupt(self) -> None:
        """Shut the connection down under a blocked call in another thread.

        The blocked call fails with TransportError; call close() afterwards.
        """
        transport = self._transport
        if transport is not None:
            transport.shutdown()

    # Core request cycle

    def command(self, name: str, *args: Any) -> Command:
        """Build ``name`` with quoted ``args``; call a decode method to send it."""
        return Command(_build_line(name, args), self._execute)

    def _write(self, line: str) -> None:
        transport = self._transport
        if transport is None:
            raise TransportError("client is closed")
        _logger.debug(f"> {_log_line(line)}")
        with self._write_lock:
            transport.write_line(line)

    def _drop(self, exc: TransportError) -> None:
        # The rest of the reply is unread; the stream can't be trusted again.
        _logger.warning(f"Dropping connection: {exc}")
        transport = self._transport
        self._transport = None
        if transport is not None:
            transport.close()

    def _execute(self, line: str, decode: Decode) -> Any:
        with self._lock:
            try:
                self._write(line)
                return decode(self._decoder, OK)
            except TransportError as exc:
                self._drop(exc)
                raise

    def _run_batch(self, queued: list[tuple[Promise, Decode]]) -> None:
        with self._lock:
            try:
                self._write("command_list_ok_begin")
                for promise, _ in queued:
                    self._write(promise.line)
                self._write("command_list_end")
                for promise, decode in queued:
                    promise._resolve(decode(self._decoder, LIST_OK))
                self._decoder.ok()
            except TransportError as exc:
                self._drop(exc)
                raise

    @contextmanager
    def command_list(self) -> Iterator[CommandList]:
        """Queue commands inside the block, send them all on exit."""
        batch = CommandList(self)
        yield batch
        batch.end()

    # Connection

    def ping(self) -> None:
        self.command("ping").ok()

    def password(self, password: str) -> None:
        self.command("password", password).ok()

    def binary_limit(self, size: int) -> None:
        """Set the largest chunk the daemon sends per binary response."""
        self.command("binarylimit", size).ok()

    # Status

    def status(self) -> Attrs:
        return self.command("status").attrs()

    def stats(self) -> Attrs:
        return self.command("stats").attrs()

    def current_song(self) -> Attrs:
        """Attributes of the current song; empty when nothing is queued."""
        return self.command("currentsong").attrs("file")

    # Playback

    def play(self, pos: int = -1) -> None:
        if pos < 0:
            self.command("play").ok()
        else:
            self.command("play", pos).ok()

    def play_id(self, song_id: int) -> None:
        self.command("playid", song_id).ok()

    def pause(self, pause: bool) -> None:
        self.command("pause", int(pause)).ok()

    def stop(self) -> None:
        self.command("stop").ok()

    def next(self) -> None:
        self.command("next").ok()

    def previous(self) -> None:
        self.command("previous").ok()

    def seek(self, pos: int, seconds: float) -> None:
        self.command("seek", pos, seconds).ok()

    def set_volume(self, volume: int) -> None:
        if not 0 <= volume <= 100:
            raise ValueError(f"volume out of range: {volume}")
        self.command("setvol", volume).ok()

    # Queue

    def clear(self) -> None:
        self.command("clear").ok()

    def add(self, uri: str) -> None:
        self.command("add", uri).ok()

    def add_id(self, uri: str, pos: int = -1) -> int:
        """Add ``uri`` (at ``pos`` if given) and return the new song id."""
        args = [uri] if pos < 0 else [uri, pos]
        attrs = self.command("addid", *args).attrs()
        return parse_int(attrs, "Id")

    def delete(self, start: int, end: int = -1) -> None:
        if start < 0:
            raise ValueError("negative start index")
        self.command("delete", *_window(start, end)).ok()

    def delete_id(self, song_id: int) -> None:
        self.command("deleteid", song_id).ok()

    def move(self, start: int, end: int, position: int) -> None:
        if start < 0:
            raise ValueError("negative start index")
        self.command("move", *_window(start, end), position).ok()

    def move_id(self, song_id: int, position: int) -> None:
        self.command("moveid", song_id, position).ok()

    def playlist_info(self, start: int = -1, end: int = -1) -> list[Attrs]:
        """Songs in the queue: all, one position, or the ``start:end`` window."""
        return self.command("playlistinfo", *_window(start, end)).attrs_list("file")

    def playlist_id(self, song_id: int = -1) -> list[Attrs]:
        args = [] if song_id < 0 else [song_id]
        return self.command("playlistid", *args).attrs_list("file")

    def set_priority(self, priority: int, start: int, end: int) -> None:
        if not 0 <= priority <= 255:
            raise ValueError(f"priority out of range: {priority}")
        if start < 0:
            raise ValueError("negative start index")
        self.command("prio", priority, *_window(start, end)).ok()

    def set_priority_id(self, priority: int, song_id: int) -> None:
        if not 0 <= priority <= 255:
            raise ValueError(f"priority out of range: {priority}")
        if song_id < 0:
            raise ValueError(f"negative song id: {song_id}")
        self.command("prioid", priority, song_id).ok()

    # Database

    def list_info(self, uri: str = "") -> list[Attrs]:
        return self.command("lsinfo", uri).attrs_list("file", "directory", "playlist")

    def list_all_info(self, uri: str = "") -> list[Attrs]:
        return self.command("listallinfo", uri).attrs_list("file", "directory")

    def list_all(self, uri: str = "") -> list[str]:
        """File names below ``uri``, directories left out."""
        entries = self.command("listall", uri).attrs_list("file", "directory")
        return [entry["file"] for entry in entries if "file" in entry]

    def get_files(self) -> list[str]:
        return self.command("list", "file").strings("file")

    def list_values(self, tag: str, *filters: str) -> list[str]:
        return self.command("list", tag, *filters).strings(tag)

    def find(self, *filters: str) -> list[Attrs]:
        return self.command("find", *filters).attrs_list("file")

    def search(self, *filters: str) -> list[Attrs]:
        return self.command("search", *filters).attrs_list("file")

    def read_comments(self, uri: str) -> Attrs:
        return self.command("readcomments", uri).attrs()

    def update(self, uri: str = "") -> int:
        """Start a database update and return its job id."""
        return self._update_job("update", uri)

    def rescan(self, uri: str = "") -> int:
        return self._update_job("rescan", uri)

    def _update_job(self, name: str, uri: str) -> int:
        args = [uri] if uri else []
        attrs = self.command(name, *args).attrs()
        return parse_int(attrs, "updating_db")

    # Outputs

    def list_outputs(self) -> list[Attrs]:
        return self.command("outputs").attrs_list("outputid")

    def enable_output(self, output_id: int) -> None:
        self.command("enableoutput", output_id).ok()

    def disable_output(self, output_id: int) -> None:
        self.command("disableoutput", output_id).ok()

    # Stored playlists

    def list_playlists(self) -> list[Attrs]:
        return self.command("listplaylists").attrs_list("playlist")

    def playlist_contents(self, name: str) -> list[Attrs]:
        return self.command("listplaylistinfo", name).attrs_list("file")

    def playlist_load(self, name: str, start: int = -1, end: int = -1) -> None:
        self.command("load", name, *_window(start, end)).ok()

    def playlist_add(self, name: str, uri: str) -> None:
        self.command("playlistadd", name, uri).ok()

    def playlist_clear(self, name: str) -> None:
        self.command("playlistclear", name).ok()

    def playlist_delete(self, name: str, pos: int) -> None:
        self.command("playlistdelete", name, pos).ok()

    def playlist_move(self, name: str, song_id: int, pos: int) -> None:
        self.command("playlistmove", name, song_id, pos).ok()

    def playlist_rename(self, name: str, new_name: str) -> None:
        self.command("rename", name, new_name).ok()

    def playlist_remove(self, name: str) -> None:
        self.command("rm", name).ok()

    def playlist_save(self, name: str) -> None:
        self.command("save", name).ok()

    # Stickers

    def sticker_set(self, uri: str, name: str, value: str) -> None:
        self.command("sticker", "set", "song", uri, name, value).ok()

    def sticker_get(self, uri: str, name: str) -> Sticker:
        values = self.command("sticker", "get", "song", uri, name).strings("sticker")
        if len(values) != 1:
            raise MalformedResponseError(f"expected one sticker, got {len(values)}")
        return Sticker.parse(values[0])

    def sticker_list(self, uri: str) -> list[Sticker]:
        values = self.command("sticker", "list", "song", uri).strings("sticker")
        return [Sticker.parse(value) for value in values]

    def sticker_delete(self, uri: str, name: str) -> None:
        self.command("sticker", "delete", "song", uri, name).ok()

    def sticker_find(self, uri: str, name: str) -> tuple[list[str], list[Sticker]]:
        """Songs below ``uri`` carrying sticker ``name``, with their values."""
        records = self.command("sticker", "find", "song", uri, name).attrs_list("file")
        files, stickers = [], []
        for record in records:
            if "sticker" not in record:
                raise MalformedResponseError(f"no sticker for {record['file']!r}")
            files.append(record["file"])
            stickers.append(Sticker.parse(record["sticker"]))
        return files, stickers

    # Artwork

    def _binary_chunk(self, command: str, uri: str, offset: int) -> BinaryChunk:
        return self.command(command, uri, offset).binary()

    def album_art(self, uri: str) -> bytes:
        """Cover file found next to ``uri`` in the music directory."""
        return fetch_binary(self._binary_chunk, ALBUM_ART, uri)

    def read_picture(self, uri: str) -> bytes:
        """Picture embedded in the tags of ``uri``."""
        return fetch_binary(self._binary_chunk, READ_PICTURE, uri)

    # Idle

    def idle(self, *subsystems: str) -> list[str]:
        """Block until something changes; return the changed subsystems."""
        return self.command("idle", *subsystems).strings("changed")

    def no_idle(self) -> None:
        """Interrupt a pending ``idle`` from another thread.

        Does not take the command lock: the idle call holding it reads the
        response this provokes.
        """
        self._write("noidle")
