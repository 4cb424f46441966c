"""
File change models for the webhook ingestion pipeline.

Provides data structures for representing repository file changes
derived from one webhook event (a change-set).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class FileStatus(str, Enum):
    """Types of repository file changes."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass
class FileChange:
    """
    Represents a single changed file within a change-set.

    Attributes:
        filename: Repository-relative path of the file
        status: Type of change (ADDED, MODIFIED, REMOVED)
        content: Current file content, populated for non-removed files
        size: Content size in bytes when content is known
    """

    filename: str
    status: FileStatus
    content: str | None = None
    size: int | None = None

    def __post_init__(self) -> None:
        """Ensure status is a FileStatus."""
        if isinstance(self.status, str) and not isinstance(self.status, FileStatus):
            self.status = FileStatus(self.status)

    @property
    def is_removed(self) -> bool:
        return self.status == FileStatus.REMOVED

    def has_content(self) -> bool:
        """Check whether the change carries non-empty content."""
        return bool(self.content)

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize the change to a dictionary.

        Content is omitted to keep job snapshots small.
        """
        return {
            "filename": self.filename,
            "status": self.status.value,
            "size": self.size,
        }
