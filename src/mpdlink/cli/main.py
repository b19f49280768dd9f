"""mpdlink CLI main entry point."""

from __future__ import annotations

import asyncio
import sys
from functools import wraps
from pathlib import Path

import click

from ..client import Client
from ..config import load_config, resolve_address
from ..log import setup_logging
from ..protocol.errors import MPDError
from ..watcher import Watcher
from .output import (
    format_entries,
    format_outputs,
    format_playlists,
    format_status,
    print_error,
    print_event,
    print_result,
)


@click.group()
@click.option("--host", default=None, help="Daemon host or socket path")
@click.option("--port", type=int, default=None, help="Daemon TCP port")
@click.option("--password", default=None, help="Daemon password")
@click.option("--json", "json_output", is_flag=True, help="Output raw JSON")
@click.option("--log-level", default=None, help="debug, info, warning, error")
@click.pass_context
def cli(ctx, host: str | None, port: int | None, password: str | None, json_output: bool, log_level: str | None):
    """mpdlink - Music Player Daemon client

    Talks the MPD text protocol; reads defaults from
    ~/.config/mpdlink/config.toml, MPD_HOST and MPD_PORT.
    """
    config = load_config()
    setup_logging(config.logging, log_level)

    address = resolve_address(config, host=host, port=port)
    if password:
        address.password = password

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["address"] = address
    ctx.obj["json"] = json_output


def connect(ctx) -> Client:
    address = ctx.obj["address"]
    timeout = ctx.obj["config"].connection.timeout
    return Client.dial(address.network, address.address, address.password, timeout)


def handle_errors(func):
    """Report daemon and connection errors on stderr and exit 1."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except MPDError as exc:
            print_error(exc)
            sys.exit(1)

    return wrapper


@cli.command("ping")
@click.pass_context
@handle_errors
def ping(ctx):
    """Check that the daemon answers."""
    with connect(ctx) as client:
        client.ping()
    print_result(None, ctx.obj["json"])


@cli.command("version")
@click.pass_context
@handle_errors
def version(ctx):
    """Show the protocol version announced by the daemon."""
    with connect(ctx) as client:
        print_result({"version": client.version}, ctx.obj["json"])


@cli.command("status")
@click.pass_context
@handle_errors
def status(ctx):
    """Show playback status and the current song."""
    with connect(ctx) as client:
        state = client.status()
        song = client.current_song()

    if ctx.obj["json"]:
        print_result({"status": state, "song": song}, True)
    else:
        print(format_status(state, song))


@cli.command("current")
@click.pass_context
@handle_errors
def current(ctx):
    """Show all tags of the current song."""
    with connect(ctx) as client:
        print_result(client.current_song(), ctx.obj["json"])


@cli.command("outputs")
@click.pass_context
@handle_errors
def outputs(ctx):
    """List audio outputs."""
    with connect(ctx) as client:
        print_result(client.list_outputs(), ctx.obj["json"], format_outputs)


@cli.command("playlists")
@click.pass_context
@handle_errors
def playlists(ctx):
    """List stored playlists."""
    with connect(ctx) as client:
        print_result(client.list_playlists(), ctx.obj["json"], format_playlists)


@cli.command("ls")
@click.argument("uri", required=False, default="")
@click.pass_context
@handle_errors
def ls(ctx, uri: str):
    """List a database directory."""
    with connect(ctx) as client:
        print_result(client.list_info(uri), ctx.obj["json"], format_entries)


def _save_binary(ctx, data: bytes, outfile: str) -> None:
    if not data:
        print("No artwork", file=sys.stderr)
        sys.exit(1)
    Path(outfile).write_bytes(data)
    print_result({"file": outfile, "bytes": len(data)}, ctx.obj["json"])


@cli.command("albumart")
@click.argument("uri")
@click.argument("outfile", type=click.Path(dir_okay=False))
@click.pass_context
@handle_errors
def albumart(ctx, uri: str, outfile: str):
    """Save the cover image stored next to URI."""
    with connect(ctx) as client:
        data = client.album_art(uri)
    _save_binary(ctx, data, outfile)


@cli.command("readpicture")
@click.argument("uri")
@click.argument("outfile", type=click.Path(dir_okay=False))
@click.pass_context
@handle_errors
def readpicture(ctx, uri: str, outfile: str):
    """Save the picture embedded in URI's tags."""
    with connect(ctx) as client:
        data = client.read_picture(uri)
    _save_binary(ctx, data, outfile)


async def _watch(address, subsystems: tuple[str, ...], json_output: bool) -> MPDError | None:
    async with Watcher(address.network, address.address, address.password, subsystems) as watcher:
        async for name in watcher.subscribe():
            print_event(name, json_output)
        if not watcher.errors.empty():
            return watcher.errors.get_nowait()
    return None


@cli.command("watch")
@click.argument("subsystems", nargs=-1)
@click.pass_context
@handle_errors
def watch(ctx, subsystems: tuple[str, ...]):
    """Print subsystems as they change (player, mixer, playlist...)."""
    try:
        error = asyncio.run(_watch(ctx.obj["address"], subsystems, ctx.obj["json"]))
    except KeyboardInterrupt:
        return
    if error is not None:
        raise error


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
