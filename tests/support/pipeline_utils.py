"""Shared helpers for the ingestion pipeline tests."""

import asyncio
import json
from typing import Any

from docsync.core.file_changes import FileChange, FileStatus
from docsync.services.models import BatchJob, BatchStatus, FileResult


def run_async(coro):
    """Run a coroutine to completion in a fresh event loop."""
    return asyncio.run(coro)


class FakeClock:
    """Manually advanced monotonic clock with a matching async sleep."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class RecordingSleep:
    """Async sleep that returns immediately and records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


class ScriptedProcessor:
    """
    Batch processor double whose outcomes are scripted per call.

    Each outcome is either "ok", "failed" (a BatchJob with failed status)
    or an exception instance to raise.
    """

    def __init__(self, outcomes: list[Any] | None = None):
        self.outcomes = list(outcomes or [])
        self.calls: list[tuple[str, list[FileChange]]] = []

    async def process_file_batch(self, repository: str, files: list[FileChange]) -> BatchJob:
        self.calls.append((repository, list(files)))
        outcome = self.outcomes.pop(0) if self.outcomes else "ok"
        await asyncio.sleep(0)

        if isinstance(outcome, BaseException):
            raise outcome

        batch = BatchJob(id=f"batch_{len(self.calls)}", repository=repository, files=list(files))
        if outcome == "failed":
            batch.status = BatchStatus.FAILED
            batch.error = "Vector store unavailable"
        else:
            batch.status = BatchStatus.COMPLETED
            batch.results = [FileResult.success(f.filename) for f in files]
        return batch


def make_change(filename: str, status: str = "added", content: str | None = "# Doc\n") -> FileChange:
    if status == "removed":
        content = None
    return FileChange(
        filename=filename,
        status=FileStatus(status),
        content=content,
        size=len(content.encode("utf-8")) if content else None,
    )


def push_payload(
    commits: list[dict[str, Any]] | None = None,
    ref: str = "refs/heads/main",
    full_name: str = "acme/docs",
    before: str | None = "a" * 40,
    after: str | None = "b" * 40,
) -> dict[str, Any]:
    owner, name = full_name.split("/")
    payload: dict[str, Any] = {
        "ref": ref,
        "before": before,
        "after": after,
        "repository": {"name": name, "full_name": full_name, "owner": {"login": owner}},
    }
    if commits is not None:
        payload["commits"] = commits
    return payload


def commit(
    message: str = "Update docs",
    added: list[str] | None = None,
    modified: list[str] | None = None,
    removed: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "id": "c0ffee",
        "message": message,
        "added": added or [],
        "modified": modified or [],
        "removed": removed or [],
    }


def pull_request_payload(
    merged: bool = True,
    base_ref: str = "main",
    full_name: str = "acme/docs",
    number: int = 7,
    merge_commit_sha: str | None = "m" * 40,
) -> dict[str, Any]:
    owner, name = full_name.split("/")
    return {
        "action": "closed",
        "repository": {"name": name, "full_name": full_name, "owner": {"login": owner}},
        "pull_request": {
            "number": number,
            "merged": merged,
            "merge_commit_sha": merge_commit_sha,
            "base": {"ref": base_ref, "sha": "base"},
            "head": {"ref": "feature", "sha": "h" * 40},
        },
    }


def encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload).encode("utf-8")
