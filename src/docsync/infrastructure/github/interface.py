"""Abstract interface for source repository clients."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class RepositoryClientInterface(ABC):
    """Abstract interface for the source repository hosting API."""

    @abstractmethod
    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: Optional[str] = None
    ) -> Optional[str]:
        """
        Read a file's content at a revision.

        Returns:
            Decoded UTF-8 content, or None if the file cannot be read
        """
        pass

    @abstractmethod
    async def list_files(self, owner: str, repo: str, ref: str) -> list[str]:
        """Return every file path of the repository at a revision."""
        pass

    @abstractmethod
    async def compare_commits(
        self, owner: str, repo: str, base: str, head: str
    ) -> list[dict[str, Any]]:
        """Return the changed files between two commits (filename, status, ...)."""
        pass

    @abstractmethod
    async def list_pull_request_files(
        self, owner: str, repo: str, number: int
    ) -> list[dict[str, Any]]:
        """Return the files changed by a pull request (filename, status, ...)."""
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None
