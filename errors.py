"""
Custom exception hierarchy for github-vault.

All exceptions inherit from GithubVaultError for easy catching.
Each exception type maps to one category of the remote error taxonomy
so tool failures can be reported with a consistent, human-readable
message.
"""

from __future__ import annotations


class GithubVaultError(Exception):
    """Base exception for all github-vault errors.

    All custom exceptions should inherit from this class.
    Provides a consistent interface for error handling.
    """

    hint: str | None = None

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert exception to structured error response dict."""
        return {
            "error": True,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details if self.details else None,
        }


class ConfigIncompleteError(GithubVaultError):
    """One or more of GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPO is missing.

    Raised before any network attempt. ``details["missing"]`` names the
    absent settings.
    """

    hint = "Set GITHUB_TOKEN, GITHUB_OWNER and GITHUB_REPO in the environment or a .env file."


class ValidationError(GithubVaultError):
    """Tool argument validation failed.

    Raised when:
    - Invalid search mode
    - Page or page size out of range
    - Day window or commit count out of range
    - Empty file path
    """
    pass


class RemoteError(GithubVaultError):
    """A call to the remote service failed.

    Never retried automatically; always surfaced to the caller.
    """
    pass


class QueryValidationError(RemoteError):
    """The remote service rejected the query as malformed (HTTP 422)."""

    hint = "Try simpler terms or check the query syntax."


class RateLimitedError(RemoteError):
    """The remote service rate limit was exceeded."""

    hint = "Wait a moment and try again."


class ForbiddenError(RemoteError):
    """The credential was rejected or lacks access (HTTP 401/403)."""

    hint = "Check that your token has 'repo' scope for private repositories."


class TransportError(RemoteError):
    """Generic request failure; the underlying message is passed through."""
    pass


class UnexpectedFormatError(RemoteError):
    """The remote payload did not have the expected shape.

    Raised when:
    - A file path resolves to a directory listing instead of raw text
    - A JSON body cannot be decoded
    - A required field is missing from a payload
    """
    pass


def describe_error(error: Exception) -> str:
    """Render any exception as a single human-readable message.

    Includes the category hint for remote errors so the assistant knows
    what to do next.
    """
    if isinstance(error, GithubVaultError):
        if error.hint:
            return f"{error.message} {error.hint}"
        return error.message
    return str(error) or f"An error of type {error.__class__.__name__} occurred"


def format_error(error: Exception) -> dict:
    """Format any exception as a structured error response.

    Args:
        error: Any exception (GithubVaultError or built-in)

    Returns:
        Structured error dict suitable for logging or MCP responses
    """
    if isinstance(error, GithubVaultError):
        return error.to_dict()

    # Handle common built-in exceptions
    error_type = error.__class__.__name__
    message = str(error) or f"An error of type {error_type} occurred"

    return {
        "error": True,
        "error_type": error_type,
        "message": message,
        "details": None,
    }
