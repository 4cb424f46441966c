"""OpenAI vector store client implementation."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

import httpx

from docsync.infrastructure.retry import RetryConfig, with_retry

from .errors import NonRetryableError, NotFoundError, RetryableError, VectorStoreError
from .interface import StoredFile, StoreSearchHit, VectorStoreServiceInterface

logger = logging.getLogger(__name__)

# Page size for listing vector store files (API maximum)
_LIST_PAGE_SIZE = 100


class OpenAIVectorStoreClient(VectorStoreServiceInterface):
    """
    Vector store client for the OpenAI REST API.

    Covers the subset of the Files and Vector Stores endpoints the sync
    pipeline and the tool server need. Rate limits (429), server errors and
    transport failures are retried with exponential backoff; a 404 raises
    NotFoundError so callers can treat deletions of missing entries as done.
    Uses connection pooling through a shared httpx.AsyncClient.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout: float = 60.0,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the vector store client.

        Args:
            api_url: Base URL of the API (e.g. https://api.openai.com/v1)
            api_key: API key for authentication
            timeout: Per-request timeout in seconds
            retry_config: Configuration for retry behavior
            transport: Optional httpx transport (used by tests)
        """
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._retry_config = retry_config or RetryConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._api_url,
                timeout=self._timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self, method: str, path: str, idempotent: bool = True, **kwargs: Any
    ) -> dict[str, Any]:
        return await with_retry(
            lambda: self._call_api(method, path, idempotent, **kwargs),
            self._retry_config,
            retryable=(RetryableError,),
            exhausted_error=VectorStoreError,
        )

    async def _call_api(
        self, method: str, path: str, idempotent: bool = True, **kwargs: Any
    ) -> dict[str, Any]:
        """
        Make a single API call.

        For non-idempotent calls, a timeout after the request may have
        reached the server is not retried.

        Raises:
            NotFoundError: For 404 responses
            RetryableError: For rate limits and transient errors
            NonRetryableError: For auth failures and invalid requests
        """
        client = await self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            if not idempotent and not isinstance(e, httpx.ConnectTimeout):
                raise NonRetryableError(
                    f"Request timeout, not retried: {e} ({method} {path})"
                )
            raise RetryableError(f"Request timeout: {e} ({method} {path})")
        except httpx.ConnectError as e:
            raise RetryableError(f"Connection error: {e} ({method} {path})")
        except httpx.RequestError as e:
            raise RetryableError(f"Request error: {e} ({method} {path})")

        if response.status_code in (200, 201):
            return response.json() if response.content else {}
        elif response.status_code == 404:
            raise NotFoundError(f"Not found: {method} {path} - {response.text}")
        elif response.status_code == 429:
            raise RetryableError(f"Rate limited: {response.status_code} - {response.text}")
        elif response.status_code in (500, 502, 503, 504):
            raise RetryableError(f"Server error: {response.status_code} - {response.text}")
        elif response.status_code in (401, 403):
            raise NonRetryableError(
                f"Authentication failed: {response.status_code} - {response.text} "
                f"(url={self._api_url})"
            )
        else:
            raise NonRetryableError(
                f"API error: {response.status_code} - {response.text} ({method} {path})"
            )

    async def create_vector_store(self, name: str, expires_after_days: int) -> str:
        data = await self._request(
            "POST",
            "/vector_stores",
            idempotent=False,
            json={
                "name": name,
                "expires_after": {"anchor": "last_active_at", "days": expires_after_days},
            },
        )
        return data["id"]

    async def list_store_files(self, store_id: str) -> list[str]:
        file_ids: list[str] = []
        params: dict[str, Any] = {"limit": _LIST_PAGE_SIZE}

        while True:
            data = await self._request("GET", f"/vector_stores/{store_id}/files", params=params)
            page = data.get("data", [])
            file_ids.extend(item["id"] for item in page)

            if not data.get("has_more") or not page:
                break
            params = {"limit": _LIST_PAGE_SIZE, "after": data.get("last_id") or page[-1]["id"]}

        return file_ids

    async def retrieve_file(self, file_id: str) -> StoredFile:
        data = await self._request("GET", f"/files/{file_id}")
        return StoredFile(
            id=data["id"],
            filename=data.get("filename", ""),
            bytes=data.get("bytes", 0) or 0,
        )

    async def delete_store_file(self, store_id: str, file_id: str) -> None:
        await self._request("DELETE", f"/vector_stores/{store_id}/files/{file_id}")

    async def delete_file(self, file_id: str) -> None:
        await self._request("DELETE", f"/files/{file_id}")

    async def upload_file(self, path: Path) -> str:
        content = await asyncio.to_thread(Path(path).read_bytes)
        data = await self._request(
            "POST",
            "/files",
            data={"purpose": "user_data"},
            files={"file": (Path(path).name, content, "application/octet-stream")},
        )
        return data["id"]

    async def attach_file(self, store_id: str, file_id: str) -> None:
        await self._request("POST", f"/vector_stores/{store_id}/files", json={"file_id": file_id})

    async def search(self, store_id: str, query: str, limit: int = 20) -> list[StoreSearchHit]:
        data = await self._request(
            "POST",
            f"/vector_stores/{store_id}/search",
            json={"query": query, "max_num_results": limit},
        )

        hits = []
        for item in data.get("data", []):
            text = "\n".join(
                part.get("text", "")
                for part in item.get("content", [])
                if part.get("type") == "text"
            )
            hits.append(
                StoreSearchHit(
                    file_id=item["file_id"],
                    filename=item.get("filename", ""),
                    score=float(item.get("score", 0.0)),
                    text=text,
                    attributes=item.get("attributes") or {},
                )
            )
        return hits

    async def retrieve_store_file(self, store_id: str, file_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/vector_stores/{store_id}/files/{file_id}")

    async def get_file_content(self, store_id: str, file_id: str) -> str:
        data = await self._request("GET", f"/vector_stores/{store_id}/files/{file_id}/content")
        return "\n".join(
            part.get("text", "") for part in data.get("data", []) if part.get("type") == "text"
        )


def create_vector_store_client(
    api_url: str,
    api_key: str,
    timeout: float = 60.0,
    max_retries: int = 3,
) -> VectorStoreServiceInterface:
    """
    Factory function to create a vector store client.

    Args:
        api_url: Base URL of the API
        api_key: API key for authentication
        timeout: Per-request timeout in seconds
        max_retries: Maximum number of retry attempts

    Returns:
        Configured VectorStoreServiceInterface instance
    """
    return OpenAIVectorStoreClient(
        api_url=api_url,
        api_key=api_key,
        timeout=timeout,
        retry_config=RetryConfig(max_retries=max_retries),
    )
