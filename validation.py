"""
Input validation for github-vault tools.

Provides validation functions for all tool parameters with
clear error messages. Validation runs before any remote call.
"""

from __future__ import annotations

from errors import ValidationError
from models import SearchMode, SearchRequest

MAX_PER_PAGE = 100  # GitHub search API page size ceiling


def validate_query(query: str | None, min_length: int = 1, max_length: int = 256) -> str:
    """Validate and sanitize query string.

    Args:
        query: Query string to validate
        min_length: Minimum allowed length (0 permits an empty query)
        max_length: Maximum allowed length

    Returns:
        Sanitized query string (stripped whitespace)

    Raises:
        ValidationError: If query is invalid
    """
    if query is None:
        if min_length == 0:
            return ""
        raise ValidationError("Query cannot be None")

    sanitized = query.strip()

    if len(sanitized) < min_length:
        raise ValidationError(
            f"Query too short (minimum {min_length} characters)",
            {"length": len(sanitized), "minimum": min_length}
        )

    if len(sanitized) > max_length:
        raise ValidationError(
            f"Query too long (maximum {max_length} characters)",
            {"length": len(sanitized), "maximum": max_length}
        )

    return sanitized


def validate_search_mode(search_in: str | SearchMode) -> SearchMode:
    """Validate search_in is one of the supported search modes.

    Raises:
        ValidationError: If the mode is unknown
    """
    allowed = [mode.value for mode in SearchMode]
    if not search_in:
        raise ValidationError("searchIn is required", {"allowed_values": allowed})

    try:
        return SearchMode(search_in)
    except ValueError:
        raise ValidationError(
            f"Invalid searchIn: '{search_in}'",
            {"allowed_values": allowed, "provided": search_in}
        )


def validate_int_range(
    value: int,
    name: str,
    min_val: int,
    max_val: int | None = None,
) -> int:
    """Validate an integer parameter against inclusive bounds.

    Args:
        value: Value to validate
        name: Parameter name for error messages
        min_val: Minimum allowed value
        max_val: Maximum allowed value, or None for no upper bound

    Returns:
        The validated value

    Raises:
        ValidationError: If the value is not an int or is out of range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{name} must be an integer",
            {"provided_type": type(value).__name__}
        )

    if value < min_val:
        raise ValidationError(
            f"{name} must be >= {min_val}",
            {"provided": value, "minimum": min_val}
        )

    if max_val is not None and value > max_val:
        raise ValidationError(
            f"{name} must be <= {max_val}",
            {"provided": value, "maximum": max_val}
        )

    return value


def validate_page(value: int, one_based: bool = False) -> int:
    """Validate a page index (0-based unless one_based is set)."""
    return validate_int_range(value, "page", 1 if one_based else 0)


def validate_per_page(value: int) -> int:
    """Validate a page size in 1..100."""
    return validate_int_range(value, "perPage", 1, MAX_PER_PAGE)


def clamp_per_page(value: int) -> int:
    """Validate a page size, capping anything above 100 instead of rejecting it."""
    validate_int_range(value, "perPage", 1)
    return min(value, MAX_PER_PAGE)


def validate_file_path(path: str | None) -> str:
    """Validate a repository-relative file path.

    Leading slashes are dropped; the contents API addresses paths relative
    to the repository root.

    Raises:
        ValidationError: If the path is empty or escapes the repository root
    """
    if not path or not path.strip():
        raise ValidationError("File path cannot be empty")

    normalized = path.strip().lstrip("/")
    if not normalized:
        raise ValidationError(f"Invalid file path: {path}")

    if ".." in normalized.split("/"):
        raise ValidationError(
            f"Path escapes repository root: {path}",
            {"path": path}
        )

    return normalized


def validate_search_request(
    query: str | None,
    search_in: str | SearchMode,
    page: int,
    per_page: int,
) -> SearchRequest:
    """Validate the searchFiles arguments and bundle them.

    The mode is checked first so an unknown mode is reported even when
    other arguments are also wrong.
    """
    mode = validate_search_mode(search_in)
    return SearchRequest(
        query=validate_query(query, min_length=0),
        mode=mode,
        page=validate_page(page),
        per_page=validate_per_page(per_page),
    )
