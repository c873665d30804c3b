"""
Commit history assembly.

Lists the commits in a time window and, when diffs are requested, joins
each one with its per-file detail. Detail fetches are independent, so they
run concurrently under a fixed number of permits and are gathered back in
the order the commit list returned them.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import logging_config
from gateway import RemoteGateway
from models import (
    MAX_PATCH_LENGTH,
    CommitDetail,
    CommitHistory,
    CommitHistoryRequest,
    CommitSummary,
)

logger = logging_config.get_history_logger()

DETAIL_FETCH_CONCURRENCY = 5
TRUNCATION_MARKER = "\n\n... (diff truncated for readability) ..."


def truncate_patch(patch: str, limit: int = MAX_PATCH_LENGTH) -> str:
    """Cap a diff at ``limit`` characters, marking any cut visibly."""
    if len(patch) <= limit:
        return patch
    return f"{patch[:limit]}{TRUNCATION_MARKER}"


def cutoff(since_days: int, now: datetime | None = None) -> datetime:
    now = now or datetime.now(UTC)
    return now - timedelta(days=since_days)


def html_base(gateway: RemoteGateway) -> str:
    return f"https://github.com/{gateway.config.owner}/{gateway.config.repo}"


async def fetch_details(
    gateway: RemoteGateway,
    shas: list[str],
    concurrency: int = DETAIL_FETCH_CONCURRENCY,
) -> list[CommitDetail]:
    """Fetch full detail for each commit, at most ``concurrency`` at a time.

    Results keep the order of ``shas``. The first failure propagates and
    fails the whole batch.
    """
    semaphore = asyncio.Semaphore(concurrency)
    base = html_base(gateway)

    async def fetch_one(sha: str) -> CommitDetail:
        async with semaphore:
            payload = await gateway.get_commit(sha)
        return CommitDetail.from_payload(payload, base)

    tasks = [asyncio.ensure_future(fetch_one(sha)) for sha in shas]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


async def assemble_commit_history(
    gateway: RemoteGateway,
    request: CommitHistoryRequest,
    now: datetime | None = None,
) -> CommitHistory:
    """Collect the commits made in the last ``request.since_days`` days.

    Args:
        gateway: Remote gateway
        request: Window, page, size and diff options
        now: Reference time for the window (defaults to the current UTC time)

    Returns:
        CommitHistory whose commits are CommitDetail instances when diffs
        were requested and CommitSummary instances otherwise. An empty
        window yields an empty commit list.
    """
    since = cutoff(request.since_days, now)
    if request.author:
        logger.debug(f"author={request.author!r} is reported but not applied as a filter")

    payloads = await gateway.list_commits(
        since,
        page=request.page,
        per_page=request.max_commits,
    )
    payloads = payloads[: request.max_commits]
    logger.info(f"Found {len(payloads)} commits since {since.isoformat()}")

    if not payloads:
        return CommitHistory(request=request, since=since, commits=[])

    base = html_base(gateway)
    commits: list[CommitSummary] = [CommitSummary.from_payload(p, base) for p in payloads]

    if request.include_diffs:
        details = await fetch_details(gateway, [c.sha for c in commits])
        for detail in details:
            for file in detail.files:
                if file.patch is not None:
                    file.patch = truncate_patch(file.patch)
        commits = list(details)

    return CommitHistory(request=request, since=since, commits=commits)
