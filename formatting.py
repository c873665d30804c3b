"""
Markdown rendering for tool responses.

Every function here is pure: the same input always renders the same text.
"""

from __future__ import annotations

import math
from typing import Any

import diagnostics
from models import (
    MAX_INDEXED_FILE_SIZE_KB,
    MAX_INDEXED_REPO_SIZE_GB,
    CodeSearchResult,
    CommitDetail,
    CommitHistory,
    CommitSummary,
    Diagnosis,
    IssueSearchResult,
    SearchItem,
    SearchMode,
    SearchResult,
)

FILENAME_MATCH = "📝 filename match"
PATH_MATCH = "📁 path match"
CONTENT_MATCH = "📄 content match"
UNKNOWN_MATCH = "❔ match reason unknown"

_MODE_REASONS = {
    SearchMode.FILENAME: FILENAME_MATCH,
    SearchMode.PATH: PATH_MATCH,
    SearchMode.CONTENT: CONTENT_MATCH,
}


# ---------------------------------------------------------------------------
# File search
# ---------------------------------------------------------------------------

def infer_match_reason(item: SearchItem, query: str, mode: SearchMode) -> str:
    """Why an item matched.

    GitHub does not report which field matched. For a single-field mode the
    answer is the mode itself; for ``all`` it is guessed after the fact
    (filename, then path, then content) and labelled as inferred. An empty
    query matches every name, so no guess is made.
    """
    if mode in _MODE_REASONS:
        return _MODE_REASONS[mode]

    needle = query.strip().lower()
    if not needle:
        return UNKNOWN_MATCH
    if needle in item.name.lower():
        return f"{FILENAME_MATCH} (inferred)"
    if needle in item.path.lower():
        return f"{PATH_MATCH} (inferred)"
    return f"{CONTENT_MATCH} (inferred)"


def format_search_results(result: SearchResult, query: str, mode: SearchMode) -> str:
    header = f"Found {result.total_count} files"
    if mode is not SearchMode.ALL:
        header += f" searching in {mode.value}"

    lines = [
        f"- **{item.name}** ({item.path}) {infer_match_reason(item, query, mode)}"
        for item in result.items
    ]
    return f"{header}:\n\n" + "\n".join(lines)


def format_no_results(query: str, mode: SearchMode, diagnosis: Diagnosis) -> str:
    """Zero-result report: the diagnosis first, then what to try next."""
    header = f'Found 0 files matching "{query}"'
    if mode is not SearchMode.ALL:
        header += f" in {mode.value}"

    sections = [
        header,
        "\n".join(diagnostics.guidance(diagnosis, query)),
        "💡 **Search Tips:**\n" + "\n".join(f"- {tip}" for tip in diagnostics.next_steps(mode)),
    ]
    return "\n\n".join(sections)


# ---------------------------------------------------------------------------
# Code and issue search
# ---------------------------------------------------------------------------

def format_code_results(
    result: CodeSearchResult,
    query: str,
    language: str | None,
    page: int,
    per_page: int,
) -> str:
    language_note = f" in {language} files" if language else ""

    if result.total_count == 0:
        tips = [
            "Try simpler or partial search terms",
            "Remove language filters to broaden search",
            'Use quotes for exact phrases: "exact phrase"',
            f"Remember: only files < {MAX_INDEXED_FILE_SIZE_KB} KB on default branch are searchable",
        ]
        return (
            f'No code matches found for "{query}"{language_note}.\n\n'
            "💡 **Search Tips:**\n" + "\n".join(f"- {tip}" for tip in tips)
        )

    out = [f'Found {result.total_count} code matches for "{query}"{language_note}:\n']
    total_pages = math.ceil(result.total_count / per_page)
    if total_pages > 1:
        out.append(
            f"📄 Showing page {page} of {total_pages} ({len(result.items)} results on this page)\n"
        )

    for item in result.items:
        out.append(
            f"### 📄 {item.name}\n"
            f"- **Path**: `{item.path}`\n"
            f"- **URL**: {item.html_url}\n"
            f"- **Relevance**: {item.score:.2f}\n"
        )

    out.append("---\n")
    out.append("💡 **Next Steps:**")
    out.append("- Use `getFileContents` tool with the file path to view full content")
    if total_pages > page:
        out.append(f"- Use `page: {page + 1}` to see more results")
    out.append("- Refine your search query for more specific matches")
    return "\n".join(out)


def format_issue_results(result: IssueSearchResult) -> str:
    lines = [f"- #{item.number} {item.title} ({item.html_url})" for item in result.items]
    return f"Found {result.total_count} issues:\n" + "\n".join(lines)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

def format_diagnosis_report(diagnosis: Diagnosis, owner: str, repo: str) -> str:
    """Standalone report for the diagnoseSearch tool."""
    if not diagnosis.repository_reachable:
        return (
            f"Failed to diagnose repository: {diagnosis.diagnostic_error}\n\n"
            "Please check your GITHUB_TOKEN, GITHUB_OWNER, and GITHUB_REPO configuration."
        )

    size_gb = diagnosis.repo_size_gb
    out = ["# Repository Search Diagnostics", ""]

    out += [
        "## Repository Information",
        f"- **Repository**: {owner}/{repo}",
        f"- **Visibility**: {'Private' if diagnosis.is_private else 'Public'}",
        f"- **Size**: {size_gb:.3f} GB ({diagnosis.repo_size_mb:.2f} MB)",
        f"- **Default Branch**: {diagnosis.default_branch}",
        "",
    ]

    out += [
        "## Search Capabilities",
        f"- **Search API Access**: {'✅ Working' if diagnosis.baseline_search_worked else '❌ Failed'}",
        f"- **Indexed Branch**: Only '{diagnosis.default_branch}' branch is searchable",
    ]
    if diagnosis.baseline_search_worked:
        out.append(f"- **Markdown Files Found**: {diagnosis.baseline_match_count}")
    elif diagnosis.baseline_error:
        out.append(f"- **Error**: {diagnosis.baseline_error}")
    if diagnosis.is_within_size_limit:
        out.append(
            f"- **Within Size Limit**: Yes ✅ ({size_gb:.3f} GB <= {MAX_INDEXED_REPO_SIZE_GB} GB)"
        )
    else:
        out.append(
            f"- **Within Size Limit**: No ⚠️ ({size_gb:.3f} GB > {MAX_INDEXED_REPO_SIZE_GB} GB)"
        )
    out.append("")

    out.append("## Recommendations")
    if not diagnosis.baseline_search_worked and diagnosis.is_private:
        out.append(
            "- ⚠️ **Private Repository**: Ensure your GitHub token has the 'repo' scope "
            "for full access to private repositories."
        )
    if diagnosis.is_oversized:
        out += [
            f"- ⚠️ **Large Repository**: GitHub's code search doesn't index repositories "
            f"larger than ~{MAX_INDEXED_REPO_SIZE_GB} GB. Consider:",
            "  - Using file path navigation instead of search for specific files",
            "  - Splitting your vault into multiple repositories",
            "  - Using getFileContents tool with known paths",
            f"  - Note: Individual files must be < {MAX_INDEXED_FILE_SIZE_KB} KB to be searchable",
        ]
    if diagnosis.baseline_search_worked and diagnosis.baseline_match_count == 0:
        out.append(
            "- ℹ️ **No Markdown Files**: No .md files found in the default branch. Your vault "
            "might be empty, use different file extensions, or have content in other branches."
        )
    if diagnosis.baseline_search_worked and diagnosis.is_within_size_limit:
        out.append(
            "- ✅ **All Systems Operational**: Repository is properly configured and searchable!"
        )
    return "\n".join(out) + "\n"


# ---------------------------------------------------------------------------
# Commit history
# ---------------------------------------------------------------------------

def _commit_header(commit: CommitSummary, with_full_sha: bool) -> list[str]:
    title = f"## Commit {commit.short_sha}"
    if with_full_sha:
        title += f" ({commit.sha})"
    return [
        title,
        f"**{commit.message}**",
        f"Author: {commit.author_name} <{commit.author_email}>",
        f"Date: {commit.date}",
        f"URL: {commit.url}",
        "",
    ]


def _commit_files(commit: CommitDetail) -> list[str]:
    if not commit.files:
        return ["No file changes detected.", ""]

    out = [f"### Files Changed ({len(commit.files)}):"]
    out += [f"- {f.filename} (+{f.additions}, -{f.deletions})" for f in commit.files]
    out += ["", "### File Changes:", ""]
    for f in commit.files:
        out.append(f"#### {f.filename}")
        if f.patch:
            out += ["```diff", f.patch, "```", ""]
        else:
            out += ["_No diff available (binary file or no changes to display)_", ""]
    return out


def format_commit_history(history: CommitHistory) -> str:
    request = history.request
    author_note = f" from author {request.author}" if request.author else ""

    if history.is_empty:
        return (
            f"No commits found in the last {request.since_days} days "
            f"since {history.since_iso}{author_note}."
        )

    out = [
        f"Found {len(history.commits)} commits in the last {request.since_days} days{author_note}:",
        "",
    ]
    for commit in history.commits:
        if isinstance(commit, CommitDetail):
            out += _commit_header(commit, with_full_sha=True)
            out += _commit_files(commit)
            out += ["---", ""]
        else:
            out += _commit_header(commit, with_full_sha=False)
    return "\n".join(out)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

def repository_summary(repo_info: dict[str, Any]) -> dict[str, Any]:
    """Subset of repository metadata exposed by the repo-info resource."""
    return {
        "name": repo_info.get("name"),
        "fullName": repo_info.get("full_name"),
        "description": repo_info.get("description"),
        "isPrivate": repo_info.get("private"),
        "defaultBranch": repo_info.get("default_branch"),
        "size": f"{(repo_info.get('size') or 0) / 1024:.2f} MB",
        "createdAt": repo_info.get("created_at"),
        "updatedAt": repo_info.get("updated_at"),
        "language": repo_info.get("language"),
        "topics": repo_info.get("topics") or [],
        "htmlUrl": repo_info.get("html_url"),
    }


def format_recent_activity(commits: list[CommitSummary], owner: str, repo: str, days: int) -> str:
    out = [f"# Recent Activity - {owner}/{repo}", "", f"Last {days} days of commits:", ""]
    if not commits:
        out.append(f"_No commits in the last {days} days_")
    for commit in commits:
        day = commit.date[:10] if commit.date else "unknown date"
        out.append(f"- **{day}**: {commit.message} _(by {commit.author_name})_")
    return "\n".join(out) + "\n"
