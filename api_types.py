"""
TypedDict definitions for the GitHub REST payloads consumed by the gateway.

Only the fields this server reads are declared; GitHub returns many more.
These types provide:
- IDE autocompletion support
- Static type checking via mypy
- Documentation of the remote contract
"""

from __future__ import annotations

from typing import NotRequired, TypedDict

# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RepositoryPayload(TypedDict):
    """Response of GET /repos/{owner}/{repo}."""

    name: str
    full_name: str
    description: str | None
    private: bool
    default_branch: str
    size: int  # kilobytes
    created_at: str
    updated_at: str
    language: str | None
    topics: NotRequired[list[str]]
    html_url: str


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


class CodeSearchItemPayload(TypedDict):
    """One item of GET /search/code."""

    name: str
    path: str
    sha: str
    html_url: str
    score: float


class CodeSearchPayload(TypedDict):
    """Response of GET /search/code."""

    total_count: int
    incomplete_results: bool
    items: list[CodeSearchItemPayload]


class IssueItemPayload(TypedDict):
    """One item of GET /search/issues."""

    number: int
    title: str
    html_url: str
    state: NotRequired[str]


class IssueSearchPayload(TypedDict):
    """Response of GET /search/issues."""

    total_count: int
    items: list[IssueItemPayload]


# ---------------------------------------------------------------------------
# Commits
# ---------------------------------------------------------------------------


class GitActorPayload(TypedDict):
    name: str
    email: str
    date: str


class GitCommitPayload(TypedDict):
    message: str
    author: GitActorPayload | None


class CommitFilePayload(TypedDict):
    """One changed file of GET /repos/{owner}/{repo}/commits/{sha}."""

    filename: str
    additions: int
    deletions: int
    status: NotRequired[str]
    patch: NotRequired[str]


class CommitPayload(TypedDict):
    """Element of GET /repos/{owner}/{repo}/commits.

    The single-commit endpoint returns the same shape plus ``files``.
    """

    sha: str
    html_url: NotRequired[str]
    commit: GitCommitPayload
    files: NotRequired[list[CommitFilePayload]]
