"""
github-vault MCP Server

Read-only access to a notes vault (or any repository) hosted on GitHub,
exposed via the Model Context Protocol (MCP).  Routing:

    1. "What is in this file?"   → getFileContents
    2. "Where is X?"             → searchFiles / searchCode
    3. "What changed recently?"  → getCommitHistory
    4. "Why does search fail?"   → diagnoseSearch

Every remote call goes through a single RemoteGateway; failures are
raised as ToolError so the client sees a failed invocation with a
human-readable message.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Literal

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations

import commit_history
import diagnostics
import errors
import formatting
import logging_config
import query_builder
import validation as val
from config import get_settings, load_config
from gateway import RemoteGateway
from models import (
    CodeSearchResult,
    CommitHistoryRequest,
    CommitSummary,
    IssueSearchResult,
    SearchResult,
)

# ── Initialize logging ───────────────────────────────────────────────────
logging_config.setup_logging()
logger = logging_config.get_server_logger()

# ── Lazy gateway state ───────────────────────────────────────────────────
_gateway: RemoteGateway | None = None


def get_gateway() -> RemoteGateway:
    """Create the process-wide gateway on first use."""
    global _gateway
    if _gateway is None:
        settings = get_settings()
        config = load_config(settings)
        logger.info(f"Using repository: {config!r}")
        _gateway = RemoteGateway(
            config,
            api_url=settings.github_api_url,
            timeout=settings.github_timeout,
        )
    return _gateway


async def close_gateway() -> None:
    """Release the gateway's HTTP connections; the next call recreates it."""
    global _gateway
    if _gateway is not None:
        await _gateway.close()
        _gateway = None


@asynccontextmanager
async def lifespan(app: FastMCP) -> AsyncIterator[None]:
    try:
        yield
    finally:
        await close_gateway()
        logger.info("Gateway closed")


READ_ONLY = ToolAnnotations(
    readOnlyHint=True,
    destructiveHint=False,
    idempotentHint=True,
    openWorldHint=True,
)

RECENT_ACTIVITY_DAYS = 7
RECENT_ACTIVITY_COMMITS = 10

# ── Initialize the FastMCP server ────────────────────────────────────────
mcp = FastMCP(
    "github-vault",
    instructions="""
Read-only access to a knowledge vault stored in a GitHub repository.

TOOL SELECTION:
- searchFiles: find notes by filename, path or content. Start here.
- searchCode: content search with relevance scores and an optional language filter.
- getFileContents: read a note once you know its path.
- getCommitHistory: see what changed in the last N days, optionally with diffs.
- searchIssues: find issues used for tasks and project tracking.
- diagnoseSearch: run when searches return nothing unexpectedly.

PAGINATION: searchFiles pages start at 0; searchCode pages start at 1.

GitHub only searches the default branch, skips files over 384 KB, and does not
index repositories over 50 GB. An empty searchFiles result is followed by an
automatic diagnosis explaining which of these applies.
""",
    lifespan=lifespan,
)


# ── Tool 1: getFileContents ───────────────────────────────────────────────
@mcp.tool(name="getFileContents", annotations=READ_ONLY)
async def get_file_contents(filePath: str) -> str:
    """Retrieve the raw text of a note, document, or file from the vault repository.

    Args:
        filePath: Path to the file within the repository (e.g. "notes/ideas.md").

    Returns:
        The file's text. Directories and other non-text shapes fail.
    """
    with logging_config.ToolLogger("getFileContents", file_path=filePath) as log:
        try:
            path = val.validate_file_path(filePath)
            text = await get_gateway().get_file_contents(path)
            log.set_result_count(len(text))
            return text
        except errors.GithubVaultError as e:
            raise ToolError(errors.describe_error(e)) from e


# ── Tool 2: searchFiles ───────────────────────────────────────────────────
@mcp.tool(name="searchFiles", annotations=READ_ONLY)
async def search_files(
    query: str = "",
    searchIn: Literal["filename", "path", "content", "all"] = "all",
    page: int = 0,
    perPage: int = 100,
) -> str:
    """Search for notes, documents, and files in the vault by filename, path, or content.

    WHEN TO USE EACH searchIn:
    - "filename": the query is (part of) a file name, e.g. "OKR 2025"
    - "path": the query appears anywhere in the file path, e.g. a folder name
    - "content": the query appears inside files
    - "all": filename, path or content (default)

    An empty query lists files matching only the mode's qualifiers.
    When nothing is found, the repository is diagnosed automatically and
    the report explains whether it is indexed and what to try next.

    Args:
        query: Search term; GitHub search qualifiers are allowed.
        searchIn: One of "filename", "path", "content", "all".
        page: Page number (0-indexed).
        perPage: Results per page (1-100).

    Returns:
        Markdown list of matches with the reason each one matched, or a
        diagnosis report when there are no matches.
    """
    with logging_config.ToolLogger(
        "searchFiles", query=query, search_in=searchIn, page=page, per_page=perPage
    ) as log:
        try:
            request = val.validate_search_request(query, searchIn, page, perPage)

            gateway = get_gateway()
            gateway.check_config()
            config = gateway.config
            qualified = query_builder.build_search_query(
                request.query, request.mode, config.owner, config.repo
            )

            payload = await gateway.search_code(
                qualified, page=request.page, per_page=request.per_page
            )
            result = SearchResult.from_payload(payload)
            log.set_result_count(result.total_count)

            if result.total_count == 0:
                diagnosis = await diagnostics.run_diagnostics(gateway)
                return formatting.format_no_results(request.query, request.mode, diagnosis)

            return formatting.format_search_results(result, request.query, request.mode)

        except errors.GithubVaultError as e:
            raise ToolError(errors.describe_error(e)) from e


# ── Tool 3: searchCode ────────────────────────────────────────────────────
@mcp.tool(name="searchCode", annotations=READ_ONLY)
async def search_code(
    query: str,
    language: str | None = None,
    page: int = 1,
    perPage: int = 30,
) -> str:
    """Search for text or code patterns inside files, similar to `gh search code`.

    Shows matching files with their relevance score. Only the default
    branch and files under 384 KB are searchable.

    Args:
        query: Pattern to search for; GitHub code search syntax is allowed.
        language: Optional language filter (e.g. "markdown", "python").
        page: Page number (1-indexed, following the GitHub API convention).
        perPage: Results per page (max 100).

    Returns:
        Markdown listing with path, URL, and relevance for each match.
    """
    with logging_config.ToolLogger(
        "searchCode", query=query, language=language, page=page, per_page=perPage
    ) as log:
        try:
            query = val.validate_query(query)
            page = val.validate_page(page, one_based=True)
            per_page = val.clamp_per_page(perPage)

            gateway = get_gateway()
            gateway.check_config()
            config = gateway.config
            qualified = query_builder.build_code_query(query, config.owner, config.repo, language)

            payload = await gateway.search_code(qualified, page=page, per_page=per_page)
            result = CodeSearchResult.from_payload(payload)
            log.set_result_count(result.total_count)
            return formatting.format_code_results(result, query, language, page, per_page)

        except errors.GithubVaultError as e:
            raise ToolError(errors.describe_error(e)) from e


# ── Tool 4: searchIssues ──────────────────────────────────────────────────
@mcp.tool(name="searchIssues", annotations=READ_ONLY)
async def search_issues(query: str) -> str:
    """Search issues in the vault repository, useful for tasks and project tracking.

    Args:
        query: Search query using GitHub issue search syntax.

    Returns:
        Markdown list of "#number title (url)" lines.
    """
    with logging_config.ToolLogger("searchIssues", query=query) as log:
        try:
            query = val.validate_query(query, min_length=0)

            gateway = get_gateway()
            gateway.check_config()
            config = gateway.config
            qualified = query_builder.build_issue_query(query, config.owner, config.repo)

            payload = await gateway.search_issues(qualified)
            result = IssueSearchResult.from_payload(payload)
            log.set_result_count(result.total_count)
            return formatting.format_issue_results(result)

        except errors.GithubVaultError as e:
            raise ToolError(errors.describe_error(e)) from e


# ── Tool 5: getCommitHistory ──────────────────────────────────────────────
@mcp.tool(name="getCommitHistory", annotations=READ_ONLY)
async def get_commit_history(
    days: int,
    includeDiffs: bool = True,
    author: str | None = None,
    maxCommits: int = 25,
    page: int = 0,
) -> str:
    """Track how the vault evolved by listing commits from the last N days, with diffs.

    With includeDiffs each commit shows its changed files, line counts and
    the diff itself; diffs longer than 8000 characters are truncated with a
    visible marker.

    Args:
        days: Number of days to look back (1-365).
        includeDiffs: Include per-file changes and diffs (default true).
        author: Author username. Shown in the report; commits are not
            filtered by it.
        maxCommits: Maximum number of commits to return (1-50).
        page: Page number (0-indexed).

    Returns:
        One markdown block per commit, or a "No commits found" message.
    """
    with logging_config.ToolLogger(
        "getCommitHistory",
        days=days,
        include_diffs=includeDiffs,
        author=author,
        max_commits=maxCommits,
        page=page,
    ) as log:
        try:
            request = CommitHistoryRequest(
                since_days=val.validate_int_range(days, "days", 1, 365),
                include_diffs=bool(includeDiffs),
                author=author or None,
                max_commits=val.validate_int_range(maxCommits, "maxCommits", 1, 50),
                page=val.validate_page(page),
            )
            history = await commit_history.assemble_commit_history(get_gateway(), request)
            log.set_result_count(len(history.commits))
            return formatting.format_commit_history(history)

        except errors.GithubVaultError as e:
            raise ToolError(errors.describe_error(e)) from e


# ── Tool 6: diagnoseSearch ────────────────────────────────────────────────
@mcp.tool(name="diagnoseSearch", annotations=READ_ONLY)
async def diagnose_search() -> str:
    """USE THIS TOOL when searches return nothing or behave unexpectedly.

    Verifies repository connectivity, checks whether GitHub has indexed the
    repository for code search, and whether it is within the 50 GB
    indexing limit.

    Returns:
        Markdown report with repository information, search capabilities,
        and recommendations.
    """
    with logging_config.ToolLogger("diagnoseSearch"):
        try:
            gateway = get_gateway()
            gateway.check_config()
            diagnosis = await diagnostics.run_diagnostics(gateway)
            config = gateway.config
            return formatting.format_diagnosis_report(diagnosis, config.owner, config.repo)

        except errors.GithubVaultError as e:
            raise ToolError(errors.describe_error(e)) from e


# ── Resources ─────────────────────────────────────────────────────────────
@mcp.resource(
    "vault://repository/info",
    name="repo-info",
    description="Basic information about the vault repository",
    mime_type="application/json",
)
async def repository_info() -> str:
    try:
        repo_info = await get_gateway().get_repository()
    except errors.GithubVaultError as e:
        return f"Error fetching repository information: {errors.describe_error(e)}"
    return json.dumps(formatting.repository_summary(repo_info), indent=2)


@mcp.resource(
    "vault://repository/activity",
    name="recent-activity",
    description="Summary of recent commits and changes to the vault",
    mime_type="text/markdown",
)
async def recent_activity() -> str:
    gateway = get_gateway()
    try:
        since = commit_history.cutoff(RECENT_ACTIVITY_DAYS)
        payloads = await gateway.list_commits(since, per_page=RECENT_ACTIVITY_COMMITS)
        base = commit_history.html_base(gateway)
        commits = [CommitSummary.from_payload(p, base) for p in payloads]
    except errors.GithubVaultError as e:
        return f"Error fetching recent activity: {errors.describe_error(e)}"
    config = gateway.config
    return formatting.format_recent_activity(commits, config.owner, config.repo, RECENT_ACTIVITY_DAYS)


# ── Prompts ───────────────────────────────────────────────────────────────
def _repo_name() -> str:
    return get_gateway().config.full_name


@mcp.prompt(
    name="explore-vault",
    description="Explore your vault structure, recent changes, and key content",
)
def explore_vault() -> str:
    return f"""Please help me explore my Obsidian vault in the GitHub repository {_repo_name()}.

I'd like to understand:
1. What types of notes and content are in my vault
2. Recent changes and updates (last 7 days)
3. Key topics or themes in my notes
4. Overall structure and organization

Please use the available tools to:
- Search for markdown files to understand the content types
- Check recent commit history to see what's been updated
- Suggest ways to better organize or explore my knowledge base"""


@mcp.prompt(
    name="find-notes-about",
    description="Search your vault for notes related to a specific topic",
)
def find_notes_about(topic: str) -> str:
    return f"""Please search my Obsidian vault ({_repo_name()}) for notes related to "{topic}".

Use the searchFiles tool to:
1. Find files with "{topic}" in the filename
2. Search for "{topic}" in file contents
3. Look for related terms or concepts

Then provide:
- A summary of what you found
- Key insights from the most relevant notes
- Suggestions for related topics to explore"""


@mcp.prompt(
    name="analyze-recent-changes",
    description="Analyze how your knowledge base has evolved recently",
)
def analyze_recent_changes(days: str = "7") -> str:
    try:
        days_num = int(days)
    except ValueError:
        days_num = RECENT_ACTIVITY_DAYS
    return f"""Please analyze how my Obsidian vault ({_repo_name()}) has evolved over the last {days_num} days.

Use the getCommitHistory tool to:
1. Review all commits from the last {days_num} days
2. Identify which notes were created, modified, or deleted
3. Analyze the types of changes (new topics, updates to existing notes, etc.)

Then provide:
- A summary of the main themes or topics you've been working on
- Patterns in your note-taking or knowledge development
- Suggestions for areas that might need more attention or organization"""


# ── Entrypoint ────────────────────────────────────────────────────────────
def main():
    """Entry point for the MCP server when installed as a package."""
    mcp.run()


if __name__ == "__main__":
    main()
