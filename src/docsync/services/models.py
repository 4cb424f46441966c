"""
Ingestion pipeline data models.

Contains dataclasses for queued jobs, their completion records and the
per-batch results returned by the batch processor.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from docsync.core.file_changes import FileChange


class JobStatus(str, Enum):
    """Lifecycle states of a queued job."""

    PENDING = "pending"
    PROCESSING = "processing"
    RETRYING = "retrying"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class BatchStatus(str, Enum):
    """States of one batch execution."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class FileResultStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class FileResult:
    """Outcome of the remove or upsert operation for one file."""

    filename: str
    status: FileResultStatus
    error: Optional[str] = None

    @classmethod
    def success(cls, filename: str) -> "FileResult":
        return cls(filename=filename, status=FileResultStatus.SUCCESS)

    @classmethod
    def failure(cls, filename: str, error: str) -> "FileResult":
        return cls(filename=filename, status=FileResultStatus.FAILED, error=error)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"filename": self.filename, "status": self.status.value}
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class BatchJob:
    """
    Result of one batch processor run.

    A batch is ``completed`` once every file has a result, even when some of
    those results are failures. ``failed`` means the batch itself could not
    run (for example the vector store could not be resolved) and carries no
    per-file results.
    """

    id: str
    repository: str
    files: list[FileChange]
    vector_store_id: Optional[str] = None
    status: BatchStatus = BatchStatus.PROCESSING
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    results: list[FileResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.status == FileResultStatus.SUCCESS)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if r.status == FileResultStatus.FAILED)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the batch for JSON reporting."""
        return {
            "id": self.id,
            "repository": self.repository,
            "files": [f.to_dict() for f in self.files],
            "vectorStoreId": self.vector_store_id,
            "status": self.status.value,
            "startedAt": _isoformat(self.started_at),
            "completedAt": _isoformat(self.completed_at),
            "error": self.error,
            "successCount": self.success_count,
            "failureCount": self.failure_count,
            "results": [r.to_dict() for r in self.results],
        }


@dataclass
class QueueJob:
    """A change-set waiting for, or going through, batch processing."""

    id: str
    repository: str
    files: list[FileChange]
    priority: int
    status: JobStatus = JobStatus.PENDING
    attempts: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "repository": self.repository,
            "files": [f.to_dict() for f in self.files],
            "priority": self.priority,
            "status": self.status.value,
            "attempts": self.attempts,
            "createdAt": _isoformat(self.created_at),
            "startedAt": _isoformat(self.started_at),
            "completedAt": _isoformat(self.completed_at),
            "error": self.error,
        }


@dataclass
class JobRecord:
    """Completion-map entry kept for a job after it reached a terminal state."""

    job_id: str
    repository: str
    status: JobStatus
    attempts: int
    completed_at: datetime = field(default_factory=datetime.now)
    result: Optional[BatchJob] = None
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.job_id,
            "repository": self.repository,
            "status": self.status.value,
            "attempts": self.attempts,
            "completedAt": _isoformat(self.completed_at),
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
        }
