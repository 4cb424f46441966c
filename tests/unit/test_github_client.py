"""
Tests for GitHubClient against an httpx.MockTransport.
"""

import base64

import httpx
import pytest

from docsync.infrastructure.github import GitHubClient, NonRetryableError, RepositoryClientError
from docsync.infrastructure.retry import RetryConfig
from tests.support.pipeline_utils import run_async


def _client(handler, token: str = "ghp_test", max_retries: int = 0) -> GitHubClient:
    return GitHubClient(
        token=token,
        api_url="https://github.example.com/api/v3",
        retry_config=RetryConfig(max_retries=max_retries, base_delay=0.0),
        transport=httpx.MockTransport(handler),
    )


def _run(client, method, *args):
    async def scenario():
        try:
            return await getattr(client, method)(*args)
        finally:
            await client.close()

    return run_async(scenario())


def _encoded(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


class TestGetFileContent:
    def test_decodes_base64_content_at_ref(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"type": "file", "content": _encoded("# Héllo\n")})

        content = _run(_client(handler), "get_file_content", "acme", "docs", "docs/intro.md", "abc")

        assert content == "# Héllo\n"
        request = seen[0]
        assert request.url.path == "/api/v3/repos/acme/docs/contents/docs/intro.md"
        assert request.url.params["ref"] == "abc"
        assert request.headers["authorization"] == "Bearer ghp_test"
        assert request.headers["accept"] == "application/vnd.github+json"

    def test_missing_file_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Not Found"})

        assert _run(_client(handler), "get_file_content", "acme", "docs", "gone.md") is None

    def test_directory_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"name": "a.md"}])

        assert _run(_client(handler), "get_file_content", "acme", "docs", "docs") is None

    def test_binary_content_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raw = base64.b64encode(b"\xff\xfe\x00").decode("ascii")
            return httpx.Response(200, json={"content": raw})

        assert _run(_client(handler), "get_file_content", "acme", "docs", "a.md") is None

    def test_anonymous_client_sends_no_authorization(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"content": _encoded("x")})

        _run(_client(handler, token=""), "get_file_content", "acme", "docs", "a.md")

        assert "authorization" not in seen[0].headers


def test_list_files_returns_blobs_only():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v3/repos/acme/docs/git/trees/main"
        assert request.url.params["recursive"] == "1"
        return httpx.Response(
            200,
            json={
                "tree": [
                    {"path": "docs", "type": "tree"},
                    {"path": "docs/a.md", "type": "blob"},
                    {"path": "README.md", "type": "blob"},
                ],
                "truncated": False,
            },
        )

    assert _run(_client(handler), "list_files", "acme", "docs", "main") == ["docs/a.md", "README.md"]


def test_compare_commits_returns_files():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v3/repos/acme/docs/compare/aaa...bbb"
        return httpx.Response(200, json={"files": [{"filename": "a.md", "status": "added"}]})

    files = _run(_client(handler), "compare_commits", "acme", "docs", "aaa", "bbb")

    assert files == [{"filename": "a.md", "status": "added"}]


def test_pull_request_files_are_paginated():
    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        count = 100 if page == 1 else 2
        return httpx.Response(
            200, json=[{"filename": f"p{page}_{i}.md", "status": "added"} for i in range(count)]
        )

    files = _run(_client(handler), "list_pull_request_files", "acme", "docs", 7)

    assert len(files) == 102
    assert files[-1]["filename"] == "p2_1.md"


def test_secondary_rate_limit_is_retried():
    responses = [
        httpx.Response(403, headers={"x-ratelimit-remaining": "0"}, text="slow down"),
        httpx.Response(200, json={"files": []}),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    assert _run(_client(handler, max_retries=1), "compare_commits", "acme", "docs", "a", "b") == []


def test_forbidden_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(403, text="forbidden")

    with pytest.raises(NonRetryableError):
        _run(_client(handler, max_retries=3), "compare_commits", "acme", "docs", "a", "b")
    assert len(calls) == 1


def test_server_errors_exhaust_retries():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(RepositoryClientError, match="Failed after 3 attempts"):
        _run(_client(handler, max_retries=2), "list_files", "acme", "docs", "main")
