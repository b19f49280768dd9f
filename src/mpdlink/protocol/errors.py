"""Error types for the MPD protocol and the ACK line classifier."""

from __future__ import annotations

import re
from enum import IntEnum


NO_INDEX = -1

_ACK_RE = re.compile(r"^ACK \[(\d+)(?:@(\d+))?\] \{([^}]*)\} ?(.*)$")


class ErrorCode(IntEnum):
    """Numeric ACK codes sent by the daemon."""

    NOT_LIST = 1
    ARG = 2
    PASSWORD = 3
    PERMISSION = 4
    UNKNOWN = 5

    NO_EXIST = 50
    PLAYLIST_MAX = 51
    SYSTEM = 52
    PLAYLIST_LOAD = 53
    UPDATE_ALREADY = 54
    PLAYER_SYNC = 55
    EXIST = 56

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ErrorCode.NOT_LIST: "not-list",
    ErrorCode.ARG: "bad-argument",
    ErrorCode.PASSWORD: "bad-password",
    ErrorCode.PERMISSION: "permission-denied",
    ErrorCode.UNKNOWN: "unknown-command",
    ErrorCode.NO_EXIST: "does-not-exist",
    ErrorCode.PLAYLIST_MAX: "playlist-full",
    ErrorCode.SYSTEM: "system-error",
    ErrorCode.PLAYLIST_LOAD: "playlist-load-failed",
    ErrorCode.UPDATE_ALREADY: "already-updating",
    ErrorCode.PLAYER_SYNC: "player-sync-error",
    ErrorCode.EXIST: "already-exists",
}


class MPDError(Exception):
    """Base class for everything raised by mpdlink."""


class TransportError(MPDError):
    """The connection failed, closed, or timed out."""


class MalformedResponseError(TransportError):
    """The daemon sent something that does not fit the protocol."""


class ProtocolError(MPDError):
    """A well-formed ACK line. The connection stays usable."""

    def __init__(self, code: int, index: int, command: str, message: str):
        super().__init__(code, index, command, message)
        self.code = code
        self.index = index
        self.command = command
        self.message = message

    @property
    def kind(self) -> ErrorCode | int:
        """Named error kind, or the raw code if the daemon sent a new one."""
        if self.code in [e.value for e in ErrorCode]:
            return ErrorCode(self.code)
        return self.code

    @property
    def label(self) -> str:
        kind = self.kind
        return kind.label if isinstance(kind, ErrorCode) else f"error-{kind}"

    def __str__(self) -> str:
        if self.command:
            return f"command '{self.command}' failed: {self.message}"
        return self.message or f"error {self.code}"

    @classmethod
    def from_error(cls, error: ProtocolError) -> ProtocolError:
        return cls(error.code, error.index, error.command, error.message)


class NoArtworkError(ProtocolError):
    """The requested song has no artwork of the requested kind."""


def is_ack(line: str) -> bool:
    return line.startswith("ACK ")


def parse_ack(line: str) -> ProtocolError:
    """Parse ``ACK [code@index] {command} message`` into a ProtocolError.

    Raises MalformedResponseError when the line does not have that shape.
    """
    match = _ACK_RE.match(line)
    if match is None:
        raise MalformedResponseError(f"can't parse error line: {line!r}")

    code, index, command, message = match.groups()
    return ProtocolError(
        code=int(code),
        index=int(index) if index is not None else NO_INDEX,
        command=command,
        message=message,
    )
