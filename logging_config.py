"""
Structured logging configuration for github-vault.

Provides configurable logging with environment variable control.
Log level can be set via GITHUB_VAULT_LOG_LEVEL environment variable.
Logs always go to stderr: stdout carries the MCP stdio transport.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from contextlib import contextmanager
from typing import TextIO

import errors

# Default log level from environment or INFO
LOG_LEVEL = os.environ.get("GITHUB_VAULT_LOG_LEVEL", "INFO").upper()

# Log format with timestamp, module, level, and message
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "github_vault"

# Track if logging has been initialized
_initialized = False


@contextmanager
def log_timing(operation_name: str, logger: logging.Logger):
    """Context manager to log operation timing.

    Args:
        operation_name: Name of the operation being timed.
        logger: Logger instance to use for logging.

    Example:
        with log_timing("GET /search/code", logger):
            response = await client.get(...)
    """
    start = time.perf_counter()
    logger.debug(f"{operation_name} started")
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug(f"{operation_name} completed in {elapsed:.2f}s")


def setup_logging(level: str = LOG_LEVEL, stream: TextIO = sys.stderr) -> logging.Logger:
    """Configure structured logging for github-vault.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream for logs (default: stderr)

    Returns:
        Configured root logger for github_vault
    """
    global _initialized

    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Avoid adding duplicate handlers
    if _initialized and logger.handlers:
        return logger

    level_value = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level_value)

    handler = logging.StreamHandler(stream)
    handler.setLevel(level_value)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handler.setFormatter(formatter)

    logger.handlers.clear()
    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    _initialized = True
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (e.g., "server", "gateway", "diagnostics")

    Returns:
        Logger instance for the module
    """
    if not _initialized:
        setup_logging()

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class ToolLogger:
    """Context manager that records one tool invocation.

    Logs the parameters on entry. On exit it logs either the result count
    or the failure category. The category is taken from the exception's
    cause, since tools re-raise vault errors as ``ToolError``.

    Usage:
        with ToolLogger("searchFiles", query="notes", search_in="all") as log:
            result = await perform_search()
            log.set_result_count(result.total_count)
    """

    def __init__(self, tool_name: str, **params):
        self.tool_name = tool_name
        self.params = {k: v for k, v in params.items() if v is not None}
        self.logger = get_logger("tools")
        self.started: float | None = None
        self.result_count: int | None = None
        self.failure: dict | None = None

    def __enter__(self) -> ToolLogger:
        self.started = time.perf_counter()
        self.logger.info(f"Tool invoked: {self.tool_name} params={self.params}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_ms = (time.perf_counter() - self.started) * 1000 if self.started else 0.0

        if exc_val is None:
            count = f" count={self.result_count}" if self.result_count is not None else ""
            self.logger.info(f"Tool completed: {self.tool_name}{count} duration={elapsed_ms:.1f}ms")
            return False

        self.failure = errors.format_error(exc_val.__cause__ or exc_val)
        details = f" details={self.failure['details']}" if self.failure["details"] else ""
        self.logger.error(
            f"Tool failed: {self.tool_name} category={self.failure['error_type']} "
            f"error={self.failure['message']}{details} duration={elapsed_ms:.1f}ms"
        )
        return False

    @property
    def category(self) -> str | None:
        """Exception class name of the failure, if the tool failed."""
        return self.failure["error_type"] if self.failure else None

    def set_result_count(self, count: int) -> None:
        self.result_count = count


def get_server_logger() -> logging.Logger:
    """Get logger for server module."""
    return get_logger("server")


def get_gateway_logger() -> logging.Logger:
    """Get logger for the remote gateway."""
    return get_logger("gateway")


def get_diagnostics_logger() -> logging.Logger:
    """Get logger for search diagnostics."""
    return get_logger("diagnostics")


def get_history_logger() -> logging.Logger:
    """Get logger for commit history assembly."""
    return get_logger("history")
