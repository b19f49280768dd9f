"""Output formatting for CLI."""

from __future__ import annotations

import json
import sys
from typing import Any, Callable

from ..protocol.errors import MPDError, ProtocolError


STATE_ICONS = {"play": "▶", "pause": "⏸", "stop": "⏹"}


def format_time(seconds: float) -> str:
    """Format seconds as MM:SS or HH:MM:SS."""
    if seconds < 0:
        return "0:00"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _seconds(value: str | None) -> float:
    try:
        return float(value) if value else 0.0
    except ValueError:
        return 0.0


def format_song(song: dict | None, include_duration: bool = True) -> str:
    """Format song attributes for display."""
    if not song:
        return "(no song)"

    parts = []

    if song.get("Artist"):
        parts.append(song["Artist"])

    if song.get("Title"):
        parts.append(song["Title"])
    elif song.get("file"):
        parts.append(song["file"].split("/")[-1])

    text = " - ".join(parts) if parts else "(unknown)"

    duration = _seconds(song.get("duration") or song.get("Time"))
    if include_duration and duration > 0:
        text += f" [{format_time(duration)}]"

    return text


def format_status(status: dict, song: dict | None = None) -> str:
    """Format status (and optionally the current song) for display."""
    lines = []

    state = status.get("state", "stop")
    lines.append(f"{STATE_ICONS.get(state, '?')} {format_song(song, include_duration=False)}")

    elapsed = _seconds(status.get("elapsed"))
    duration = _seconds(status.get("duration"))
    if song and duration > 0:
        bar_width = 40
        filled = int(bar_width * min(elapsed / duration, 1.0))
        bar = "▓" * filled + "░" * (bar_width - filled)
        lines.append(f"  {bar} {format_time(elapsed)} / {format_time(duration)}")

    modes = [name for name in ("repeat", "random", "single", "consume") if status.get(name) == "1"]
    volume = status.get("volume", "n/a")
    lines.append(f"  Volume: {volume}%  {' '.join(modes)}".rstrip())

    length = int(status.get("playlistlength", "0") or 0)
    if length > 0 and "song" in status:
        lines.append(f"  Queue: {int(status['song']) + 1}/{length}")

    if status.get("error"):
        lines.append(f"  Error: {status['error']}")

    return "\n".join(lines)


def format_outputs(outputs: list[dict]) -> str:
    if not outputs:
        return "(no outputs)"

    lines = []
    for output in outputs:
        mark = "*" if output.get("outputenabled") == "1" else " "
        name = output.get("outputname", "?")
        plugin = output.get("plugin")
        suffix = f" ({plugin})" if plugin else ""
        lines.append(f"{mark} {output.get('outputid', '?')}: {name}{suffix}")
    return "\n".join(lines)


def format_playlists(playlists: list[dict]) -> str:
    if not playlists:
        return "(no playlists)"
    return "\n".join(p.get("playlist", "?") for p in playlists)


def format_entries(entries: list[dict]) -> str:
    """Format an lsinfo listing: directories, songs and playlists."""
    if not entries:
        return "(empty)"

    lines = []
    for entry in entries:
        if "directory" in entry:
            lines.append(f"{entry['directory']}/")
        elif "playlist" in entry:
            lines.append(f"{entry['playlist']} [playlist]")
        else:
            lines.append(f"{entry.get('file', '?')}  {format_song(entry)}")
    return "\n".join(lines)


def print_result(
    data: Any,
    json_output: bool = False,
    formatter: Callable[[Any], str] | None = None,
) -> None:
    """Print a command result to stdout."""
    if json_output:
        print(json.dumps(data, indent=2))
        return

    if formatter:
        print(formatter(data))
    elif isinstance(data, dict):
        for key, value in data.items():
            print(f"{key}: {value}")
    elif data is None:
        print("OK")
    else:
        print(data)


def print_error(error: MPDError) -> None:
    """Print an error to stderr."""
    if isinstance(error, ProtocolError):
        print(f"Error [{error.label}]: {error.message}", file=sys.stderr)
    else:
        print(f"Connection error: {error}", file=sys.stderr)


def print_event(name: str, json_output: bool = False) -> None:
    """Print a change notification to stdout."""
    if json_output:
        print(json.dumps({"changed": name}))
    else:
        print(f"[changed] {name}")
    sys.stdout.flush()
