"""Tests for commit history assembly."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import httpx
import pytest

import commit_history as ch
import formatting
from conftest import make_commit_payload
from errors import TransportError
from models import CommitDetail, CommitHistoryRequest, CommitSummary

COMMITS_PATH = "/repos/alice/vault/commits"
NOW = datetime(2025, 6, 10, 12, 0, tzinfo=UTC)


def sha(n: int) -> str:
    return f"{n:040x}"


def add_commits(stub, shas: list[str], with_details: bool = True):
    stub.add(COMMITS_PATH, [make_commit_payload(s, message=f"Commit {s[-1]}\n\nbody") for s in shas])
    if with_details:
        for s in shas:
            stub.add(
                f"{COMMITS_PATH}/{s}",
                make_commit_payload(
                    s,
                    files=[{"filename": "notes/a.md", "additions": 2, "deletions": 1, "patch": "@@ -1 +1 @@"}],
                ),
            )


class TestTruncatePatch:
    """Tests for truncate_patch."""

    def test_at_limit_is_unchanged(self):
        patch = "x" * 8000
        assert ch.truncate_patch(patch) == patch

    def test_over_limit_is_cut_and_marked(self):
        truncated = ch.truncate_patch("x" * 8001)
        assert truncated == "x" * 8000 + ch.TRUNCATION_MARKER
        assert truncated.endswith("(diff truncated for readability) ...")


class TestAssembleCommitHistory:
    """Tests for assemble_commit_history."""

    def test_sends_since_cutoff(self, gateway, stub):
        stub.add(COMMITS_PATH, [])

        asyncio.run(ch.assemble_commit_history(gateway, CommitHistoryRequest(since_days=7), now=NOW))

        params = stub.calls(COMMITS_PATH)[0].url.params
        assert params["since"] == "2025-06-03T12:00:00+00:00"
        assert params["per_page"] == "25"

    def test_empty_window(self, gateway, stub):
        stub.add(COMMITS_PATH, [])
        request = CommitHistoryRequest(since_days=7)

        history = asyncio.run(ch.assemble_commit_history(gateway, request, now=NOW))

        assert history.is_empty
        report = formatting.format_commit_history(history)
        assert report.startswith("No commits found in the last 7 days")
        assert history.since_iso in report

    def test_without_diffs_skips_detail_fetches(self, gateway, stub):
        shas = [sha(1), sha(2), sha(3)]
        add_commits(stub, shas, with_details=False)
        request = CommitHistoryRequest(since_days=30, include_diffs=False, max_commits=5)

        history = asyncio.run(ch.assemble_commit_history(gateway, request, now=NOW))

        assert [c.sha for c in history.commits] == shas
        assert all(type(c) is CommitSummary for c in history.commits)
        assert len(stub.requests) == 1
        report = formatting.format_commit_history(history)
        assert report.count("## Commit ") == 3
        assert "```diff" not in report

    def test_first_line_of_message_only(self, gateway, stub):
        add_commits(stub, [sha(1)], with_details=False)
        request = CommitHistoryRequest(since_days=7, include_diffs=False)

        history = asyncio.run(ch.assemble_commit_history(gateway, request, now=NOW))

        assert history.commits[0].message == "Commit 1"
        assert history.commits[0].url == f"https://github.com/alice/vault/commit/{sha(1)}"

    def test_caps_at_max_commits(self, gateway, stub):
        add_commits(stub, [sha(n) for n in range(1, 6)], with_details=False)
        request = CommitHistoryRequest(since_days=7, include_diffs=False, max_commits=2)

        history = asyncio.run(ch.assemble_commit_history(gateway, request, now=NOW))

        assert len(history.commits) == 2

    def test_with_diffs_joins_details(self, gateway, stub):
        shas = [sha(1), sha(2)]
        add_commits(stub, shas)

        history = asyncio.run(
            ch.assemble_commit_history(gateway, CommitHistoryRequest(since_days=7), now=NOW)
        )

        assert all(isinstance(c, CommitDetail) for c in history.commits)
        assert history.commits[0].files[0].patch == "@@ -1 +1 @@"
        assert len(stub.calls(f"{COMMITS_PATH}/{sha(2)}")) == 1

    def test_long_patch_is_truncated(self, gateway, stub):
        stub.add(COMMITS_PATH, [make_commit_payload(sha(1))])
        stub.add(
            f"{COMMITS_PATH}/{sha(1)}",
            make_commit_payload(sha(1), files=[{"filename": "big.md", "patch": "+" * 9000}]),
        )

        history = asyncio.run(
            ch.assemble_commit_history(gateway, CommitHistoryRequest(since_days=7), now=NOW)
        )

        patch = history.commits[0].files[0].patch
        assert patch.endswith(ch.TRUNCATION_MARKER)
        assert len(patch) == 8000 + len(ch.TRUNCATION_MARKER)

    def test_detail_failure_fails_whole_history(self, gateway, stub):
        shas = [sha(1), sha(2), sha(3)]
        add_commits(stub, shas)
        stub.add(f"{COMMITS_PATH}/{sha(2)}", {"message": "Server Error"}, status=500)

        with pytest.raises(TransportError):
            asyncio.run(
                ch.assemble_commit_history(gateway, CommitHistoryRequest(since_days=7), now=NOW)
            )


class TestFetchDetails:
    """Tests for concurrent detail fetching."""

    def test_order_follows_input_not_completion(self, gateway, stub):
        shas = [sha(n) for n in range(1, 5)]

        def delayed(s: str, delay: float):
            async def handle(request):
                await asyncio.sleep(delay)
                return httpx.Response(200, json=make_commit_payload(s))

            return handle

        # Earlier commits answer last
        for i, s in enumerate(shas):
            stub.add(f"{COMMITS_PATH}/{s}", handler=delayed(s, 0.02 * (len(shas) - i)))

        details = asyncio.run(ch.fetch_details(gateway, shas))

        assert [d.sha for d in details] == shas

    def test_at_most_five_in_flight(self, gateway, stub):
        shas = [sha(n) for n in range(1, 13)]
        in_flight = 0
        peak = 0

        def tracked(s: str):
            async def handle(request):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return httpx.Response(200, json=make_commit_payload(s))

            return handle

        for s in shas:
            stub.add(f"{COMMITS_PATH}/{s}", handler=tracked(s))

        details = asyncio.run(ch.fetch_details(gateway, shas))

        assert len(details) == 12
        assert 1 < peak <= ch.DETAIL_FETCH_CONCURRENCY
