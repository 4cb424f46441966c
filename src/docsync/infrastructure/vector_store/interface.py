"""Abstract interface and data classes for the vector store service."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class StoredFile:
    """An uploaded file as known to the storage backend."""

    id: str
    filename: str
    bytes: int = 0


@dataclass
class StoreSearchHit:
    """A semantic search hit inside a vector store."""

    file_id: str
    filename: str
    score: float
    text: str
    attributes: dict[str, Any] = field(default_factory=dict)


class VectorStoreServiceInterface(ABC):
    """Abstract interface for the document indexing service."""

    @abstractmethod
    async def create_vector_store(self, name: str, expires_after_days: int) -> str:
        """Create a named vector store expiring after inactivity, return its id."""
        pass

    @abstractmethod
    async def list_store_files(self, store_id: str) -> list[str]:
        """Return the ids of every file attached to a vector store."""
        pass

    @abstractmethod
    async def retrieve_file(self, file_id: str) -> StoredFile:
        """Return the stored file details (notably its filename)."""
        pass

    @abstractmethod
    async def delete_store_file(self, store_id: str, file_id: str) -> None:
        """Detach a file from a vector store."""
        pass

    @abstractmethod
    async def delete_file(self, file_id: str) -> None:
        """Delete an uploaded file from storage."""
        pass

    @abstractmethod
    async def upload_file(self, path: Path) -> str:
        """Upload a local file (named after its basename), return the file id."""
        pass

    @abstractmethod
    async def attach_file(self, store_id: str, file_id: str) -> None:
        """Attach an uploaded file to a vector store."""
        pass

    @abstractmethod
    async def search(self, store_id: str, query: str, limit: int = 20) -> list[StoreSearchHit]:
        """Semantic search over a vector store."""
        pass

    @abstractmethod
    async def retrieve_store_file(self, store_id: str, file_id: str) -> dict[str, Any]:
        """Return the vector store entry for a file (status, attributes, ...)."""
        pass

    @abstractmethod
    async def get_file_content(self, store_id: str, file_id: str) -> str:
        """Return the parsed text content of a vector store file."""
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None
