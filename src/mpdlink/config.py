"""Configuration management for mpdlink."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore


DEFAULT_HOST = "localhost"
DEFAULT_PORT = 6600


@dataclass
class ConnectionConfig:
    """Where and how to reach the daemon."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    password: str = ""
    timeout: float = 10.0


@dataclass
class LoggingConfig:
    """Log settings."""

    level: str = "warning"
    file: str = ""


@dataclass
class Config:
    """Full mpdlink configuration."""

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass
class Address:
    """A resolved daemon address."""

    network: str
    address: str
    password: str | None = None


def get_config_dir() -> Path:
    """Get the mpdlink config directory."""
    if xdg_config := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_config) / "mpdlink"
    return Path.home() / ".config" / "mpdlink"


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file."""
    config_file = path or get_config_dir() / "config.toml"

    if not config_file.exists():
        return Config()

    with open(config_file, "rb") as f:
        data = tomllib.load(f)

    return Config(
        connection=ConnectionConfig(**data.get("connection", {})),
        logging=LoggingConfig(**data.get("logging", {})),
    )


def resolve_address(
    config: Config, host: str | None = None, port: int | None = None
) -> Address:
    """Work out the daemon address.

    Explicit ``host``/``port`` win over MPD_HOST/MPD_PORT, which win over
    the config file. MPD_HOST may carry a password as ``password@host``; a
    host starting with ``/`` is a unix socket path.
    """
    conn = config.connection
    host = host or os.environ.get("MPD_HOST") or conn.host
    password = conn.password or None

    if "@" in host and not host.startswith("/"):
        secret, _, host = host.rpartition("@")
        password = secret or password

    if host.startswith("/"):
        return Address(network="unix", address=host, password=password)

    port_text = str(port) if port is not None else os.environ.get("MPD_PORT") or str(conn.port)
    if not port_text.isdigit():
        raise ValueError(f"invalid port: {port_text!r}")
    if ":" in host:
        host = f"[{host}]"
    return Address(network="tcp", address=f"{host}:{port_text}", password=password)
