"""
Shared test fixtures for github-vault tests.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import httpx
import pytest

from config import Config
from gateway import RemoteGateway

OWNER = "alice"
REPO = "vault"


class GitHubStub:
    """In-memory stand-in for api.github.com, served through httpx.MockTransport.

    Routes map a URL path to either a payload (returned as JSON with status
    200) or a callable taking the request and returning an httpx.Response.
    Every request is recorded for assertions.
    """

    def __init__(self):
        self.routes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, path: str, payload=None, status: int = 200, headers: dict | None = None, handler=None):
        if handler is not None:
            self.routes[path] = handler
        else:
            self.routes[path] = lambda request: httpx.Response(status, json=payload, headers=headers)

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return route(request)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def search_queries(self) -> list[str]:
        return [r.url.params["q"] for r in self.calls("/search/code")]


def make_repo_payload(size_kb: int = 2048, private: bool = False, default_branch: str = "main") -> dict:
    return {
        "name": REPO,
        "full_name": f"{OWNER}/{REPO}",
        "description": "My notes",
        "private": private,
        "default_branch": default_branch,
        "size": size_kb,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2025-06-01T00:00:00Z",
        "language": None,
        "topics": ["obsidian"],
        "html_url": f"https://github.com/{OWNER}/{REPO}",
    }


def make_commit_payload(sha: str, message: str = "Update notes", files: list[dict] | None = None) -> dict:
    payload = {
        "sha": sha,
        "html_url": f"https://github.com/{OWNER}/{REPO}/commit/{sha}",
        "commit": {
            "message": message,
            "author": {"name": "Alice", "email": "alice@example.com", "date": "2025-06-01T10:00:00Z"},
        },
    }
    if files is not None:
        payload["files"] = files
    return payload


def make_search_payload(items: list[tuple[str, str]], total_count: int | None = None) -> dict:
    return {
        "total_count": len(items) if total_count is None else total_count,
        "incomplete_results": False,
        "items": [
            {
                "name": name,
                "path": path,
                "sha": "0" * 40,
                "html_url": f"https://github.com/{OWNER}/{REPO}/blob/main/{path}",
                "score": 1.0,
            }
            for name, path in items
        ],
    }


@pytest.fixture
def config():
    """A complete configuration."""
    return Config(credential="ghp_test", owner=OWNER, repo=REPO)


@pytest.fixture
def stub():
    """Provide an empty GitHub stub."""
    return GitHubStub()


@pytest.fixture
def gateway(config, stub):
    """Provide a gateway whose HTTP traffic is served by the stub."""
    return RemoteGateway(config, transport=httpx.MockTransport(stub))


@pytest.fixture
def server_gateway(monkeypatch, gateway):
    """Install the stub-backed gateway as the server's process-wide gateway."""
    import server
    monkeypatch.setattr(server, "_gateway", gateway)
    return gateway
