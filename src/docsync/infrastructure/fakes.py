"""
Fake implementations for testing.

Provides in-memory implementations of infrastructure interfaces
for use in unit and integration tests without external dependencies.
"""

from __future__ import annotations

import asyncio
import itertools
from pathlib import Path
from typing import Any

from docsync.infrastructure.github import RepositoryClientInterface
from docsync.infrastructure.vector_store import (
    NonRetryableError,
    NotFoundError,
    StoredFile,
    StoreSearchHit,
    VectorStoreServiceInterface,
)


class InMemoryVectorStoreService(VectorStoreServiceInterface):
    """
    In-memory vector store service for testing.

    Implements VectorStoreServiceInterface without the OpenAI API.
    Uploaded files keep their content so search and fetch work; search
    scores documents by how many query terms they contain.

    Failure injection:
        fail_create: create_vector_store raises
        fail_list: list_store_files raises
        fail_upload_for: filenames whose upload raises
        fail_retrieve_for: file ids whose retrieval raises
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        # store_id -> {"name": str, "expires_after_days": int, "files": list[file_id]}
        self.stores: dict[str, dict[str, Any]] = {}
        # file_id -> (StoredFile, content)
        self.files: dict[str, tuple[StoredFile, str]] = {}

        self.fail_create = False
        self.fail_list = False
        self.fail_upload_for: set[str] = set()
        self.fail_retrieve_for: set[str] = set()

        self.uploaded_paths: list[Path] = []
        self.deleted_file_ids: list[str] = []
        self.list_calls = 0
        self.closed = False

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def add_store(self, store_id: str, name: str = "") -> None:
        """Register a pre-existing vector store."""
        self.stores.setdefault(store_id, {"name": name, "expires_after_days": 0, "files": []})

    def seed_file(self, store_id: str, filename: str, content: str = "") -> str:
        """Put a file straight into a store, return its id."""
        self.add_store(store_id)
        file_id = self._next_id("file")
        self.files[file_id] = (StoredFile(id=file_id, filename=filename, bytes=len(content)), content)
        self.stores[store_id]["files"].append(file_id)
        return file_id

    def filenames_in(self, store_id: str) -> list[str]:
        """Return the filenames attached to a store, in attachment order."""
        return [
            self.files[file_id][0].filename
            for file_id in self.stores.get(store_id, {}).get("files", [])
            if file_id in self.files
        ]

    def content_of(self, store_id: str, filename: str) -> str | None:
        for file_id in self.stores.get(store_id, {}).get("files", []):
            stored, content = self.files[file_id]
            if stored.filename == filename:
                return content
        return None

    async def create_vector_store(self, name: str, expires_after_days: int) -> str:
        if self.fail_create:
            raise NonRetryableError("Simulated vector store creation failure")
        store_id = self._next_id("vs")
        self.stores[store_id] = {
            "name": name,
            "expires_after_days": expires_after_days,
            "files": [],
        }
        return store_id

    async def list_store_files(self, store_id: str) -> list[str]:
        self.list_calls += 1
        if self.fail_list:
            raise NonRetryableError("Simulated list failure")
        if store_id not in self.stores:
            raise NotFoundError(f"Vector store {store_id} not found")
        return list(self.stores[store_id]["files"])

    async def retrieve_file(self, file_id: str) -> StoredFile:
        if file_id in self.fail_retrieve_for:
            raise NonRetryableError(f"Simulated retrieve failure for {file_id}")
        if file_id not in self.files:
            raise NotFoundError(f"File {file_id} not found")
        return self.files[file_id][0]

    async def delete_store_file(self, store_id: str, file_id: str) -> None:
        files = self.stores.get(store_id, {}).get("files", [])
        if file_id not in files:
            raise NotFoundError(f"File {file_id} not in vector store {store_id}")
        files.remove(file_id)

    async def delete_file(self, file_id: str) -> None:
        if file_id not in self.files:
            raise NotFoundError(f"File {file_id} not found")
        del self.files[file_id]
        self.deleted_file_ids.append(file_id)

    async def upload_file(self, path: Path) -> str:
        path = Path(path)
        if path.name in self.fail_upload_for:
            raise NonRetryableError(f"Simulated upload failure for {path.name}")
        content = path.read_text(encoding="utf-8")
        self.uploaded_paths.append(path)
        file_id = self._next_id("file")
        self.files[file_id] = (StoredFile(id=file_id, filename=path.name, bytes=len(content)), content)
        return file_id

    async def attach_file(self, store_id: str, file_id: str) -> None:
        if store_id not in self.stores:
            raise NotFoundError(f"Vector store {store_id} not found")
        self.stores[store_id]["files"].append(file_id)

    async def search(self, store_id: str, query: str, limit: int = 20) -> list[StoreSearchHit]:
        terms = [t.lower() for t in query.split() if t]
        hits = []
        for file_id in self.stores.get(store_id, {}).get("files", []):
            stored, content = self.files[file_id]
            lowered = content.lower()
            score = sum(lowered.count(term) for term in terms)
            if score > 0:
                hits.append(
                    StoreSearchHit(
                        file_id=file_id,
                        filename=stored.filename,
                        score=float(score),
                        text=content[:200],
                    )
                )
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]

    async def retrieve_store_file(self, store_id: str, file_id: str) -> dict[str, Any]:
        if file_id not in self.stores.get(store_id, {}).get("files", []):
            raise NotFoundError(f"File {file_id} not in vector store {store_id}")
        return {"id": file_id, "vector_store_id": store_id, "status": "completed", "attributes": {}}

    async def get_file_content(self, store_id: str, file_id: str) -> str:
        await self.retrieve_store_file(store_id, file_id)
        return self.files[file_id][1]

    async def close(self) -> None:
        self.closed = True


class FakeRepositoryClient(RepositoryClientInterface):
    """
    Fake repository client for testing.

    Serves file contents from a dict and records every content fetch,
    including the peak number of concurrent fetches.
    """

    def __init__(
        self,
        files: dict[str, str] | None = None,
        compare_files: list[dict[str, Any]] | None = None,
        pull_request_files: list[dict[str, Any]] | None = None,
    ):
        self.files = dict(files or {})
        self.compare_files = list(compare_files or [])
        self.pull_request_files = list(pull_request_files or [])
        self.fail_compare = False
        self.fetch_calls: list[tuple[str, str | None]] = []
        self.max_in_flight = 0
        self._in_flight = 0
        self.closed = False

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> str | None:
        self.fetch_calls.append((path, ref))
        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            # Yield so sibling fetches in the same group overlap
            await asyncio.sleep(0)
            return self.files.get(path)
        finally:
            self._in_flight -= 1

    async def list_files(self, owner: str, repo: str, ref: str) -> list[str]:
        return sorted(self.files)

    async def compare_commits(
        self, owner: str, repo: str, base: str, head: str
    ) -> list[dict[str, Any]]:
        if self.fail_compare:
            raise RuntimeError("Simulated compare failure")
        return list(self.compare_files)

    async def list_pull_request_files(
        self, owner: str, repo: str, number: int
    ) -> list[dict[str, Any]]:
        return list(self.pull_request_files)

    async def close(self) -> None:
        self.closed = True
