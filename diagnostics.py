"""
Search diagnostics for repositories that return no results.

GitHub's code search silently returns nothing when a repository has not
been indexed, which looks identical to a query that matched nothing.
``run_diagnostics`` tells the two apart with two follow-up calls:

1. repository metadata (size, visibility, default branch)
2. a baseline search for markdown files, which any indexed vault has

Sub-call failures are recorded on the Diagnosis instead of propagating;
this is the only place in the server that recovers from a remote error.
"""

from __future__ import annotations

import logging_config
import query_builder
from errors import GithubVaultError, describe_error
from gateway import RemoteGateway
from models import (
    MAX_INDEXED_FILE_SIZE_KB,
    MAX_INDEXED_REPO_SIZE_GB,
    Diagnosis,
    SearchMode,
)

logger = logging_config.get_diagnostics_logger()


async def run_diagnostics(gateway: RemoteGateway) -> Diagnosis:
    """Probe the repository's search eligibility.

    Returns:
        A Diagnosis. If the metadata fetch fails, only ``diagnostic_error``
        is set and the baseline search is skipped.
    """
    config = gateway.config
    try:
        repo_info = await gateway.get_repository()
        diagnosis = Diagnosis(
            repository_reachable=True,
            repo_size_kb=repo_info.get("size") or 0,
            is_private=bool(repo_info.get("private")),
            default_branch=repo_info.get("default_branch"),
        )
    except GithubVaultError as e:
        logger.warning(f"Repository metadata fetch failed: {e.message}")
        return Diagnosis(diagnostic_error=describe_error(e))

    try:
        baseline = await gateway.search_code(
            query_builder.baseline_query(config.owner, config.repo),
            page=1,
            per_page=1,
        )
        diagnosis.baseline_search_worked = True
        diagnosis.baseline_match_count = baseline.get("total_count") or 0
    except GithubVaultError as e:
        logger.warning(f"Baseline search failed: {e.message}")
        diagnosis.baseline_search_worked = False
        diagnosis.baseline_error = describe_error(e)
        diagnosis.diagnostic_error = diagnosis.baseline_error

    logger.info(
        f"Diagnostics for {config.full_name}: size={diagnosis.repo_size_gb:.3f}GB "
        f"private={diagnosis.is_private} baseline_worked={diagnosis.baseline_search_worked} "
        f"baseline_matches={diagnosis.baseline_match_count} indexed={diagnosis.is_indexed}"
    )
    return diagnosis


def guidance(diagnosis: Diagnosis, query: str) -> list[str]:
    """Explain a zero-result search, most severe cause first.

    Priority: infrastructure error, then repository not indexed, then
    indexed but nothing matched.
    """
    if diagnosis.diagnostic_error:
        return [f"⚠️ **Search System Issue**: {diagnosis.diagnostic_error}"]

    if not diagnosis.is_indexed:
        lines = [
            "⚠️ **Repository May Not Be Indexed**: GitHub might not have indexed this repository for search.",
            "This can happen with:",
            "- New repositories (indexing takes time)",
        ]
        if diagnosis.is_oversized:
            lines.append(
                f"- Large repositories ({diagnosis.repo_size_gb:.2f} GB exceeds "
                f"{MAX_INDEXED_REPO_SIZE_GB} GB limit)"
            )
        if diagnosis.is_private:
            lines.append("- Private repositories with indexing issues")
        lines += [
            "",
            "**Try**:",
            "- Search directly on GitHub.com to confirm",
            "- Use the diagnoseSearch tool for detailed diagnostics",
        ]
        return lines

    visibility = "Private" if diagnosis.is_private else "Public"
    return [
        "📊 **Search Debug Info**:",
        f"- Repository: {visibility} ({diagnosis.repo_size_gb:.3f} GB)",
        f"- Default branch: {diagnosis.default_branch} (only branch searchable)",
        f"- Files in repo: {diagnosis.baseline_match_count} found",
        f"- Search query used: `{query}`",
        "",
        "**Possible reasons for no results**:",
        "- The search term doesn't exist in the repository",
        "- Content might be in non-default branches (not searchable)",
        f"- Files might be larger than {MAX_INDEXED_FILE_SIZE_KB} KB (not indexed)",
    ]


_MODE_TIPS = {
    SearchMode.FILENAME: 'Try `searchIn: "filename"` to search only filenames',
    SearchMode.PATH: 'Try `searchIn: "path"` to search file paths',
    SearchMode.CONTENT: 'Try `searchIn: "content"` to search file contents',
}


def next_steps(mode: SearchMode) -> list[str]:
    """Suggestions for the next search, skipping the mode already used."""
    tips = [tip for tip_mode, tip in _MODE_TIPS.items() if tip_mode is not mode]
    if mode is not SearchMode.ALL:
        tips.append('Try `searchIn: "all"` to search filenames, paths and contents together')
    tips += [
        'Use quotes for exact phrases: "exact phrase"',
        "Use wildcards: `*.md` for markdown files",
        "Check whether the content lives on a non-default branch",
        "Try simpler or partial search terms",
    ]
    return tips
