"""Command-line entry point: resolve configuration and run the HTTP server.

WHY: The service has a two-flag surface (bind address and exiftool path)
and must refuse to start when exiftool is missing rather than accept
requests it cannot serve.

HOW: argparse reads the flags (defaults come from the environment via
taginfo_stream.config), build_config() resolves them once, and uvicorn
serves the app. uvicorn handles SIGINT/SIGTERM: it closes the listening
socket and waits up to the grace period for in-flight streams before
cancelling them.

RULES:
- Configuration errors log an error and exit with status 1
- The server is never started without a resolved exiftool path
- Keep-alive idle timeout is KEEP_ALIVE_TIMEOUT_S seconds
"""

from __future__ import annotations

import argparse
import logging
import math
import sys
from typing import List, Optional

import uvicorn
from rich.markup import escape

from taginfo_stream.config import (
    DEFAULT_BIND_ADDRESS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SHUTDOWN_GRACE_S,
    KEEP_ALIVE_TIMEOUT_S,
    build_config,
)
from taginfo_stream.errors import ConfigurationError
from taginfo_stream.logging_setup import configure_logging
from taginfo_stream.server.app import create_app

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taginfo_stream",
        description="Serve the exiftool tag catalog as a streamed JSON array.",
    )
    parser.add_argument(
        "--bind-address",
        default=DEFAULT_BIND_ADDRESS,
        help="Address to bind the server to (default: %(default)s).",
    )
    parser.add_argument(
        "--exiftool",
        default=None,
        help="Path to exiftool (default: $TAGINFO_EXIFTOOL, then PATH lookup).",
    )
    parser.add_argument(
        "--shutdown-grace",
        type=float,
        default=DEFAULT_SHUTDOWN_GRACE_S,
        help="Seconds to wait for in-flight streams on shutdown (default: %(default)s).",
    )
    parser.add_argument(
        "--log-level",
        default=DEFAULT_LOG_LEVEL,
        help="Logging level (default: %(default)s).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for ``python -m taginfo_stream`` and the console script.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        config = build_config(
            bind_address=args.bind_address,
            tool_path=args.exiftool,
            shutdown_grace_s=args.shutdown_grace,
        )
    except ConfigurationError as exc:
        logger.error("[red]%s[/red]", escape(str(exc)), extra={"markup": True})
        sys.exit(1)

    app = create_app(config)
    logger.info(
        "[green]Accepting requests on address: %s[/green]",
        config.bind_address,
        extra={"markup": True},
    )
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        timeout_keep_alive=KEEP_ALIVE_TIMEOUT_S,
        timeout_graceful_shutdown=math.ceil(config.shutdown_grace_s),
        log_config=None,
    )
    logger.info("[green]Bye.[/green]", extra={"markup": True})


if __name__ == "__main__":
    main()
