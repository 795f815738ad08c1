"""Exception hierarchy for the tag catalog service.

RULES:
- TaginfoError is the common base
- ConfigurationError is fatal at startup only
- ToolStartError is scoped to one request and never stops the service
"""

from __future__ import annotations


class TaginfoError(Exception):
    """Base class for all service errors."""


class ConfigurationError(TaginfoError):
    """Raised when the service cannot be configured (bad address, no tool)."""


class ToolStartError(TaginfoError):
    """Raised when the external tool cannot be launched.

    HOW: Wraps the OSError from process creation and keeps the tool path
    for logging.
    """

    def __init__(self, tool_path: str, reason: str) -> None:
        self.tool_path = tool_path
        self.reason = reason
        super().__init__("Could not start {}: {}".format(tool_path, reason))
