"""Value types produced by the response decoder."""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import MalformedResponseError


# One logical entity (song, output, playlist...) as sent by the daemon.
Attrs = dict[str, str]


@dataclass
class BinaryChunk:
    """One slice of a binary object fetched with albumart/readpicture."""

    size: int
    data: bytes = b""
    attrs: Attrs = field(default_factory=dict)

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass
class Sticker:
    """A name/value annotation attached to a song."""

    name: str
    value: str

    @classmethod
    def parse(cls, text: str) -> Sticker:
        """Parse the ``name=value`` payload of a ``sticker:`` line."""
        name, sep, value = text.partition("=")
        if not sep:
            raise MalformedResponseError(f"can't parse sticker: {text!r}")
        return cls(name=name, value=value)


def parse_int(attrs: Attrs, key: str) -> int:
    """Read an integer attribute, treating absence or junk as malformed."""
    try:
        return int(attrs[key])
    except KeyError:
        raise MalformedResponseError(f"missing {key!r} in response") from None
    except ValueError:
        raise MalformedResponseError(
            f"expected integer for {key!r}, got {attrs[key]!r}"
        ) from None
