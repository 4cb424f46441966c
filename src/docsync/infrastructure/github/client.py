"""GitHub REST API client implementation."""

import base64
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from docsync.infrastructure.retry import RetryConfig, with_retry

from .errors import NonRetryableError, RepositoryClientError, RetryableError
from .interface import RepositoryClientInterface

logger = logging.getLogger(__name__)

_PER_PAGE = 100


class GitHubClient(RepositoryClientInterface):
    """
    Repository client for the GitHub REST API.

    Reads file contents, the repository tree, commit comparisons and pull
    request file lists. Secondary rate limits (429, or 403 with an exhausted
    quota) and server errors are retried with exponential backoff.
    """

    def __init__(
        self,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._retry_config = retry_config or RetryConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"
            self._client = httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
                headers=headers,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return await with_retry(
            lambda: self._call_api(path, params),
            self._retry_config,
            retryable=(RetryableError,),
            exhausted_error=RepositoryClientError,
        )

    async def _call_api(self, path: str, params: Optional[dict[str, Any]]) -> Any:
        client = await self._get_client()
        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise RetryableError(f"Request timeout: {e} (GET {path})")
        except httpx.RequestError as e:
            raise RetryableError(f"Request error: {e} (GET {path})")

        status = response.status_code
        if status == 200:
            return response.json()
        elif status == 429 or (
            status == 403 and response.headers.get("x-ratelimit-remaining") == "0"
        ):
            raise RetryableError(f"Rate limited: {status} - {response.text}")
        elif status in (500, 502, 503, 504):
            raise RetryableError(f"Server error: {status} - {response.text}")
        else:
            raise NonRetryableError(f"API error: {status} - {response.text} (GET {path})")

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: Optional[str] = None
    ) -> Optional[str]:
        params = {"ref": ref} if ref else None
        try:
            data = await self._get(
                f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}", params
            )
        except RepositoryClientError as e:
            logger.error(f"Error fetching file content for {path}: {e}")
            return None

        # Directories come back as a list
        if not isinstance(data, dict) or not data.get("content"):
            return None

        try:
            return base64.b64decode(data["content"]).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as e:
            logger.error(f"Error decoding file content for {path}: {e}")
            return None

    async def list_files(self, owner: str, repo: str, ref: str) -> list[str]:
        data = await self._get(
            f"/repos/{owner}/{repo}/git/trees/{quote(ref, safe='')}", {"recursive": "1"}
        )
        if data.get("truncated"):
            logger.warning(f"Tree listing for {owner}/{repo}@{ref} was truncated by the API")
        return [item["path"] for item in data.get("tree", []) if item.get("type") == "blob"]

    async def compare_commits(
        self, owner: str, repo: str, base: str, head: str
    ) -> list[dict[str, Any]]:
        data = await self._get(f"/repos/{owner}/{repo}/compare/{base}...{head}")
        return list(data.get("files", []))

    async def list_pull_request_files(
        self, owner: str, repo: str, number: int
    ) -> list[dict[str, Any]]:
        files: list[dict[str, Any]] = []
        page = 1
        while True:
            data = await self._get(
                f"/repos/{owner}/{repo}/pulls/{number}/files",
                {"per_page": _PER_PAGE, "page": page},
            )
            files.extend(data)
            if len(data) < _PER_PAGE:
                break
            page += 1
        return files


def create_repository_client(
    token: str,
    api_url: str = "https://api.github.com",
    timeout: float = 30.0,
    max_retries: int = 3,
) -> RepositoryClientInterface:
    """Factory function to create a GitHub repository client."""
    return GitHubClient(
        token=token,
        api_url=api_url,
        timeout=timeout,
        retry_config=RetryConfig(max_retries=max_retries),
    )
