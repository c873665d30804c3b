"""
Async gateway for the GitHub REST API.

Every remote call made by this server passes through
``RemoteGateway._request``, which:

1. refuses to dispatch while the configuration is incomplete,
2. performs the request with ``httpx``,
3. maps failures onto the error taxonomy in ``errors``,
4. returns only the decoded payload.

Failure classification is a policy table: typed signals (HTTP status and
rate-limit headers) are checked first; substring matching on the error
message is the last resort. Nothing is retried here.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

import logging_config
from api_types import (
    CodeSearchPayload,
    CommitPayload,
    IssueSearchPayload,
    RepositoryPayload,
)
from config import DEFAULT_API_URL, DEFAULT_TIMEOUT, Config
from errors import (
    ConfigIncompleteError,
    ForbiddenError,
    QueryValidationError,
    RateLimitedError,
    RemoteError,
    TransportError,
    UnexpectedFormatError,
)

logger = logging_config.get_gateway_logger()

JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.v3.raw"
API_VERSION = "2022-11-28"
USER_AGENT = "github-vault-mcp"

# ---------------------------------------------------------------------------
# Failure classification policy
# ---------------------------------------------------------------------------

# Consulted only when no typed signal matched. Order matters.
MESSAGE_POLICY: tuple[tuple[str, type[RemoteError]], ...] = (
    ("validation failed", QueryValidationError),
    ("rate limit", RateLimitedError),
    ("forbidden", ForbiddenError),
    ("401", ForbiddenError),
)


def classify_failure(
    status: int | None,
    message: str,
    headers: Mapping[str, str] | None = None,
) -> type[RemoteError]:
    """Pick the error class for a failed call.

    Args:
        status: HTTP status code, or None when no response was received
        message: Error text from the response body or the exception
        headers: Response headers, if any

    Returns:
        The RemoteError subclass to raise
    """
    headers = headers or {}
    lowered = message.lower()

    if status == 422:
        return QueryValidationError
    if status == 429:
        return RateLimitedError
    if status == 403 and (headers.get("x-ratelimit-remaining") == "0" or "rate limit" in lowered):
        return RateLimitedError
    if status in (401, 403):
        return ForbiddenError

    for needle, error_class in MESSAGE_POLICY:
        if needle in lowered:
            return error_class
    return TransportError


def _response_message(response: httpx.Response) -> str:
    """Extract GitHub's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class RemoteGateway:
    """The single entry point for calls to the GitHub REST API.

    Usage:
        async with RemoteGateway(config) as gateway:
            repo = await gateway.get_repository()
    """

    def __init__(
        self,
        config: Config,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        classify: Callable[..., type[RemoteError]] = classify_failure,
    ):
        self.config = config
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.classify = classify
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-initialize the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "Authorization": f"Bearer {self.config.credential}",
                    "Accept": JSON_MEDIA_TYPE,
                    "X-GitHub-Api-Version": API_VERSION,
                    "User-Agent": USER_AGENT,
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> RemoteGateway:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def check_config(self) -> None:
        """Raise ConfigIncompleteError naming every missing setting."""
        missing = self.config.missing_fields()
        if missing:
            raise ConfigIncompleteError(
                f"GitHub configuration incomplete: missing {', '.join(missing)}.",
                {"missing": missing},
            )

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.config.owner}/{self.config.repo}"

    async def _request(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        raw: bool = False,
    ) -> Any:
        """GET ``path`` and return the decoded payload.

        Args:
            path: API path, e.g. "/search/code"
            params: Query parameters
            raw: Request the raw media type and return the body as text

        Raises:
            ConfigIncompleteError: Before dispatch, if configuration is incomplete
            RemoteError: A classified failure of the call
        """
        self.check_config()
        headers = {"Accept": RAW_MEDIA_TYPE} if raw else None
        operation = f"GET {path}"

        try:
            with logging_config.log_timing(operation, logger):
                response = await self.client.get(path, params=params, headers=headers)
        except httpx.RequestError as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning(f"{operation} failed: {message}")
            error_class = self.classify(None, message)
            raise error_class(f"GitHub API error: {message}", {"path": path}) from exc

        if response.is_error:
            self._raise_for_response(response, path, params)

        if raw:
            if response.headers.get("content-type", "").startswith("application/json"):
                raise UnexpectedFormatError(
                    "Received unexpected content format from GitHub API: expected raw file text.",
                    {"path": path},
                )
            return response.text

        try:
            return response.json()
        except ValueError as exc:
            raise UnexpectedFormatError(
                f"GitHub API returned a body that is not valid JSON for {path}",
                {"path": path},
            ) from exc

    def _raise_for_response(
        self,
        response: httpx.Response,
        path: str,
        params: dict[str, Any] | None,
    ) -> None:
        message = _response_message(response)
        status = response.status_code
        logger.warning(f"GET {path} failed: status={status} message={message}")

        error_class = self.classify(status, message, response.headers)
        details: dict[str, Any] = {"status": status, "path": path}
        query = (params or {}).get("q")
        if query is not None:
            details["query"] = query

        if error_class is QueryValidationError and query is not None:
            raise QueryValidationError(f'GitHub search query invalid: "{query}".', details)
        if error_class is RateLimitedError:
            reset = response.headers.get("x-ratelimit-reset")
            if reset:
                details["reset_at"] = reset
            raise RateLimitedError(f"GitHub API rate limit exceeded: {message}.", details)
        if error_class is ForbiddenError:
            raise ForbiddenError(f"GitHub API access denied ({status}): {message}.", details)
        raise error_class(f"GitHub API error ({status}): {message}", details)

    # ── Operations ────────────────────────────────────────────────────────

    async def get_repository(self) -> RepositoryPayload:
        return await self._request(self.repo_path)

    async def search_code(self, query: str, page: int = 1, per_page: int = 30) -> CodeSearchPayload:
        return await self._request(
            "/search/code",
            params={"q": query, "page": page, "per_page": per_page},
        )

    async def search_issues(self, query: str) -> IssueSearchPayload:
        return await self._request("/search/issues", params={"q": query})

    async def list_commits(
        self,
        since: datetime,
        page: int = 0,
        per_page: int = 25,
    ) -> list[CommitPayload]:
        payload = await self._request(
            f"{self.repo_path}/commits",
            params={"since": since.isoformat(), "page": page, "per_page": per_page},
        )
        if not isinstance(payload, list):
            raise UnexpectedFormatError("Expected a list of commits from GitHub API.")
        return payload

    async def get_commit(self, sha: str) -> CommitPayload:
        return await self._request(f"{self.repo_path}/commits/{sha}")

    async def get_file_contents(self, path: str) -> str:
        """Fetch a file's raw text; directories and other shapes are rejected."""
        # '#' and '?' are legal in file names
        encoded = quote(path, safe="/")
        return await self._request(f"{self.repo_path}/contents/{encoded}", raw=True)
