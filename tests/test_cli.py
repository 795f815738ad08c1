"""Tests for the command-line entry point.

WHY: The CLI is the only place configuration is resolved. It must refuse
to start without exiftool and must hand uvicorn the resolved address and
shutdown grace period.

HOW: uvicorn.run and configure_logging are patched, so no server starts
and the root logger is left alone.
"""

from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI

from taginfo_stream import cli
from taginfo_stream.config import KEEP_ALIVE_TIMEOUT_S


@pytest.fixture
def run_mock():
    with patch("taginfo_stream.cli.uvicorn.run") as mock_run, patch(
        "taginfo_stream.cli.configure_logging"
    ):
        yield mock_run


class TestParser:
    def test_defaults(self):
        args = cli.build_parser().parse_args([])
        assert args.bind_address == cli.DEFAULT_BIND_ADDRESS
        assert args.exiftool is None

    def test_flags(self):
        args = cli.build_parser().parse_args(
            ["--bind-address", "0.0.0.0:8080", "--exiftool", "/x/exiftool", "--shutdown-grace", "3"]
        )
        assert args.bind_address == "0.0.0.0:8080"
        assert args.exiftool == "/x/exiftool"
        assert args.shutdown_grace == 3.0


class TestMain:
    def test_missing_tool_exits_with_error(self, run_mock, missing_tool):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--exiftool", missing_tool])
        assert excinfo.value.code == 1
        run_mock.assert_not_called()

    def test_bad_bind_address_exits_with_error(self, run_mock, make_tool):
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["--exiftool", make_tool(), "--bind-address", "nowhere"])
        assert excinfo.value.code == 1
        run_mock.assert_not_called()

    def test_starts_server_with_resolved_config(self, run_mock, make_tool):
        path = make_tool()
        cli.main(["--exiftool", path, "--bind-address", "127.0.0.1:3100", "--shutdown-grace", "2.5"])

        run_mock.assert_called_once()
        app = run_mock.call_args.args[0]
        kwargs = run_mock.call_args.kwargs
        assert isinstance(app, FastAPI)
        assert app.state.config.tool_path == os.path.realpath(path)
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 3100
        assert kwargs["timeout_graceful_shutdown"] == 3
        assert kwargs["timeout_keep_alive"] == KEEP_ALIVE_TIMEOUT_S


class TestConfigureLogging:
    def test_installs_rich_handler(self):
        import logging

        from rich.logging import RichHandler

        from taginfo_stream.logging_setup import configure_logging

        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("debug")
            assert root.level == logging.DEBUG
            assert any(isinstance(h, RichHandler) for h in root.handlers)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
