"""Data models and constants for repository search and history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from errors import UnexpectedFormatError

MAX_INDEXED_REPO_SIZE_GB = 50  # GitHub code search does not index larger repositories
MAX_INDEXED_FILE_SIZE_KB = 384  # Larger individual files are skipped by the indexer
MAX_PATCH_LENGTH = 8000  # Characters of diff shown per file
SHORT_SHA_LENGTH = 7


def _field(payload: Any, *keys: str) -> Any:
    """Walk nested keys of a GitHub payload, failing with UnexpectedFormatError."""
    value = payload
    for key in keys:
        try:
            value = value[key]
        except (KeyError, TypeError, IndexError):
            raise UnexpectedFormatError(
                f"GitHub API payload is missing field '{'.'.join(keys)}'",
                {"field": ".".join(keys)},
            )
    return value


class SearchMode(str, Enum):
    """Where a searchFiles query should match."""

    FILENAME = "filename"
    PATH = "path"
    CONTENT = "content"
    ALL = "all"


@dataclass
class SearchRequest:
    query: str
    mode: SearchMode = SearchMode.ALL
    page: int = 0
    per_page: int = 100


@dataclass
class SearchItem:
    name: str
    path: str


@dataclass
class SearchResult:
    """One page of file search results."""

    items: list[SearchItem]
    total_count: int

    @classmethod
    def from_payload(cls, payload: dict) -> SearchResult:
        items = [
            SearchItem(name=_field(item, "name"), path=_field(item, "path"))
            for item in _field(payload, "items")
        ]
        return cls(items=items, total_count=_field(payload, "total_count"))


@dataclass
class CodeSearchItem:
    name: str
    path: str
    html_url: str
    score: float


@dataclass
class CodeSearchResult:
    items: list[CodeSearchItem]
    total_count: int

    @classmethod
    def from_payload(cls, payload: dict) -> CodeSearchResult:
        items = [
            CodeSearchItem(
                name=_field(item, "name"),
                path=_field(item, "path"),
                html_url=item.get("html_url", ""),
                score=float(item.get("score") or 0.0),
            )
            for item in _field(payload, "items")
        ]
        return cls(items=items, total_count=_field(payload, "total_count"))


@dataclass
class IssueItem:
    number: int
    title: str
    html_url: str


@dataclass
class IssueSearchResult:
    items: list[IssueItem]
    total_count: int

    @classmethod
    def from_payload(cls, payload: dict) -> IssueSearchResult:
        items = [
            IssueItem(
                number=_field(item, "number"),
                title=_field(item, "title"),
                html_url=item.get("html_url", ""),
            )
            for item in _field(payload, "items")
        ]
        return cls(items=items, total_count=_field(payload, "total_count"))


@dataclass
class Diagnosis:
    """Outcome of probing why a search returned nothing.

    When the repository metadata fetch fails only ``diagnostic_error`` is
    populated and every other field keeps its default.
    """

    repository_reachable: bool = False
    repo_size_kb: int = 0
    is_private: bool = False
    default_branch: str | None = None
    baseline_search_worked: bool = False
    baseline_match_count: int = 0
    baseline_error: str | None = None
    diagnostic_error: str | None = None

    @property
    def repo_size_gb(self) -> float:
        # GitHub reports repository size in kilobytes
        return self.repo_size_kb / (1024 * 1024)

    @property
    def repo_size_mb(self) -> float:
        return self.repo_size_kb / 1024

    @property
    def is_indexed(self) -> bool:
        return self.baseline_search_worked and self.baseline_match_count > 0

    @property
    def is_oversized(self) -> bool:
        return self.repo_size_gb > MAX_INDEXED_REPO_SIZE_GB

    @property
    def is_within_size_limit(self) -> bool:
        return not self.is_oversized


@dataclass
class CommitHistoryRequest:
    since_days: int
    include_diffs: bool = True
    # Accepted and echoed in reports; not applied as a filter.
    author: str | None = None
    max_commits: int = 25
    page: int = 0


@dataclass
class FileChange:
    filename: str
    additions: int = 0
    deletions: int = 0
    patch: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> FileChange:
        return cls(
            filename=_field(payload, "filename"),
            additions=payload.get("additions") or 0,
            deletions=payload.get("deletions") or 0,
            patch=payload.get("patch") or None,
        )


@dataclass
class CommitSummary:
    sha: str
    message: str
    author_name: str
    author_email: str
    date: str
    url: str

    @property
    def short_sha(self) -> str:
        return self.sha[:SHORT_SHA_LENGTH]

    @staticmethod
    def _common_fields(payload: dict, html_base: str) -> dict[str, Any]:
        sha = _field(payload, "sha")
        message = _field(payload, "commit", "message") or ""
        author = payload["commit"].get("author") or {}
        return {
            "sha": sha,
            "message": message.split("\n")[0],
            "author_name": author.get("name") or "Unknown",
            "author_email": author.get("email") or "",
            "date": author.get("date") or "",
            "url": f"{html_base}/commit/{sha}",
        }

    @classmethod
    def from_payload(cls, payload: dict, html_base: str) -> CommitSummary:
        """Build from a commit list element.

        Args:
            payload: Commit JSON from the commits API
            html_base: Repository web URL, e.g. "https://github.com/owner/repo"
        """
        return cls(**cls._common_fields(payload, html_base))


@dataclass
class CommitDetail(CommitSummary):
    files: list[FileChange] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict, html_base: str) -> CommitDetail:
        files = [FileChange.from_payload(f) for f in payload.get("files") or []]
        return cls(**cls._common_fields(payload, html_base), files=files)


@dataclass
class CommitHistory:
    """Commits found in a time window, in the order GitHub listed them."""

    request: CommitHistoryRequest
    since: datetime
    commits: list[CommitSummary]

    @property
    def since_iso(self) -> str:
        return self.since.isoformat()

    @property
    def is_empty(self) -> bool:
        return not self.commits
