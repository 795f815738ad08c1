"""Configuration defaults, .env loading, and startup-time resolution.

WHY: The service has exactly two tunable parameters (bind address and the
exiftool path) plus a shutdown grace period. They must be resolved once at
startup and handed to the app explicitly, so request handlers never read
process-wide mutable state.

HOW: python-dotenv loads the .env file on import. Environment variables
provide defaults; the CLI overrides them with flags and calls
build_config(), which validates the bind address and locates the tool.
The result is a frozen ServiceConfig passed into create_app().

RULES:
- Bind address is "host:port"; the port must be an integer in 1-65535
- An explicit tool path must exist and be executable
- Without an explicit path, the tool is looked up on PATH as "exiftool"
- A missing tool is a ConfigurationError (the service refuses to start)
- ServiceConfig is immutable once built
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from taginfo_stream.errors import ConfigurationError

load_dotenv()

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

TOOL_NAME = "exiftool"
TOOL_LIST_ARGS: Tuple[str, ...] = ("-listx",)
"""Arguments that make exiftool print its full tag catalog as XML."""

DEFAULT_BIND_ADDRESS = os.getenv("TAGINFO_BIND_ADDRESS", "127.0.0.1:3000")
DEFAULT_TOOL_PATH = os.getenv("TAGINFO_EXIFTOOL", "")
DEFAULT_SHUTDOWN_GRACE_S = float(os.getenv("TAGINFO_SHUTDOWN_GRACE_S", "45"))
DEFAULT_LOG_LEVEL = os.getenv("TAGINFO_LOG_LEVEL", "INFO")

KEEP_ALIVE_TIMEOUT_S = 5
READ_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class ServiceConfig:
    """Startup-resolved settings shared read-only by every request.

    RULES:
    - tool_path is an absolute, existing, executable path
    - tool_args default to ("-listx",)
    """

    host: str
    port: int
    tool_path: str
    tool_args: Tuple[str, ...] = TOOL_LIST_ARGS
    shutdown_grace_s: float = DEFAULT_SHUTDOWN_GRACE_S
    chunk_size: int = READ_CHUNK_SIZE

    @property
    def bind_address(self) -> str:
        return "{}:{}".format(self.host, self.port)


def parse_bind_address(address: str) -> Tuple[str, int]:
    """Split a "host:port" string into its parts.

    RULES:
    - The last colon separates host and port, so "[::1]:3000" works
    - Brackets around an IPv6 host are stripped
    - An empty host means all interfaces ("0.0.0.0")
    """
    host, sep, port_text = address.strip().rpartition(":")
    if not sep:
        raise ConfigurationError(
            "Invalid bind address '{}': expected host:port".format(address)
        )
    try:
        port = int(port_text)
    except ValueError:
        raise ConfigurationError(
            "Invalid port '{}' in bind address '{}'".format(port_text, address)
        ) from None
    if not 0 < port < 65536:
        raise ConfigurationError(
            "Port {} out of range in bind address '{}'".format(port, address)
        )
    host = host.strip("[]") or "0.0.0.0"
    return host, port


def resolve_tool_path(explicit: Optional[str] = None) -> str:
    """Locate the exiftool executable.

    WHY: A service that cannot run the tool cannot serve a single request,
    so this runs once at startup and fails loudly.

    HOW: An explicit path is checked for existence and the executable bit.
    Otherwise shutil.which() searches PATH.
    """
    if explicit:
        path = Path(explicit).expanduser()
        if not path.is_file():
            raise ConfigurationError("exiftool not found at {}".format(path))
        if not os.access(path, os.X_OK):
            raise ConfigurationError("exiftool at {} is not executable".format(path))
        return str(path.resolve())

    found = shutil.which(TOOL_NAME)
    if found is None:
        raise ConfigurationError(
            "No {} found in your PATH, please provide one".format(TOOL_NAME)
        )
    return found


def build_config(
    bind_address: str = DEFAULT_BIND_ADDRESS,
    tool_path: Optional[str] = None,
    shutdown_grace_s: float = DEFAULT_SHUTDOWN_GRACE_S,
) -> ServiceConfig:
    """Resolve every setting into a ServiceConfig, or raise ConfigurationError."""
    host, port = parse_bind_address(bind_address)
    if shutdown_grace_s < 0:
        raise ConfigurationError("Shutdown grace period must not be negative")
    return ServiceConfig(
        host=host,
        port=port,
        tool_path=resolve_tool_path(tool_path or DEFAULT_TOOL_PATH or None),
        shutdown_grace_s=shutdown_grace_s,
    )
