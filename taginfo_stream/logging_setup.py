"""Colored console logging for the service process.

WHY: The service runs in a terminal or a container log; colored levels
make startup, shutdown, and failures stand out.

HOW: Installs a rich RichHandler on the root logger. uvicorn's loggers
propagate to it, so access and lifecycle messages share one format.
Individual records may opt into rich markup with extra={"markup": True}.

RULES:
- Call configure_logging() once, from the CLI, before building the app
- Library modules only ever call logging.getLogger(__name__)
"""

from __future__ import annotations

import logging
from typing import Union

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    if isinstance(level, str):
        level = level.upper()
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        log_time_format="[%X]",
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )
