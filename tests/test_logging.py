"""Tests for logging configuration module."""

from __future__ import annotations

import io
import logging

import pytest
from mcp.server.fastmcp.exceptions import ToolError

import logging_config
from errors import ForbiddenError


def _capture(name: str) -> io.StringIO:
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter('%(message)s'))

    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    return stream


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_creates_logger(self):
        logging_config._initialized = False
        logger = logging_config.setup_logging(level="INFO")
        assert logger.name == "github_vault"
        assert logger.propagate is False

    def test_writes_to_given_stream(self):
        logging_config._initialized = False
        stream = io.StringIO()
        logger = logging_config.setup_logging(level="WARNING", stream=stream)
        logger.warning("careful")
        assert "careful" in stream.getvalue()
        assert logger.level == logging.WARNING
        logging_config._initialized = False
        logging_config.setup_logging()

    def test_unknown_level_falls_back_to_info(self):
        logging_config._initialized = False
        logger = logging_config.setup_logging(level="LOUD")
        assert logger.level == logging.INFO


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_module_logger(self):
        logger = logging_config.get_logger("test_module")
        assert logger.name == "github_vault.test_module"

    def test_preconfigured_loggers(self):
        assert logging_config.get_server_logger().name.endswith("server")
        assert logging_config.get_gateway_logger().name.endswith("gateway")
        assert logging_config.get_diagnostics_logger().name.endswith("diagnostics")
        assert logging_config.get_history_logger().name.endswith("history")


class TestToolLogger:
    """Tests for ToolLogger context manager."""

    def test_logs_invocation_and_completion(self):
        stream = _capture("github_vault.tools")

        with logging_config.ToolLogger("searchFiles", query="notes", language=None):
            pass

        output = stream.getvalue()
        assert "Tool invoked: searchFiles" in output
        assert "language" not in output
        assert "Tool completed" in output

    def test_logs_error_on_exception(self):
        stream = _capture("github_vault.tools")

        try:
            with logging_config.ToolLogger("searchFiles", query="test"):
                raise ValueError("Test error")
        except ValueError:
            pass

        assert "Tool failed" in stream.getvalue()
        assert "category=ValueError" in stream.getvalue()

    def test_category_comes_from_wrapped_vault_error(self):
        stream = _capture("github_vault.tools")
        tool_log = logging_config.ToolLogger("getFileContents", file_path="a.md")

        with pytest.raises(ToolError):
            with tool_log:
                try:
                    raise ForbiddenError("GitHub API access denied (403): Forbidden.", {"status": 403})
                except ForbiddenError as e:
                    raise ToolError(str(e)) from e

        output = stream.getvalue()
        assert tool_log.category == "ForbiddenError"
        assert "category=ForbiddenError" in output
        assert "details={'status': 403}" in output

    def test_no_category_on_success(self):
        _capture("github_vault.tools")

        with logging_config.ToolLogger("diagnoseSearch") as log:
            pass

        assert log.category is None

    def test_result_count_logged(self):
        stream = _capture("github_vault.tools")

        with logging_config.ToolLogger("getCommitHistory") as log:
            log.set_result_count(5)

        assert "count=5" in stream.getvalue()


class TestLogTiming:
    """Tests for log_timing context manager."""

    def test_logs_start_and_completion(self):
        stream = _capture("github_vault.timing_test")
        logger = logging.getLogger("github_vault.timing_test")

        with logging_config.log_timing("GET /search/code", logger):
            pass

        output = stream.getvalue()
        assert "GET /search/code started" in output
        assert "GET /search/code completed in" in output
