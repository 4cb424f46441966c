"""
Change-Set Extractor.

Turns a webhook event into the list of file changes to synchronize, with
the current content of every added or modified file.
"""

import asyncio
import logging
import re
from typing import Any, Iterable, Optional

from docsync.core.file_changes import FileChange, FileStatus
from docsync.core.file_filter import should_process_file
from docsync.core.webhook_payload import NULL_SHA, WebhookPayload
from docsync.infrastructure.github import RepositoryClientInterface

logger = logging.getLogger(__name__)

_MERGE_COMMIT_MESSAGE = re.compile(r"^Merge pull request", re.IGNORECASE)

# GitHub file statuses mapped onto the three change kinds
_STATUS_MAP = {
    "added": FileStatus.ADDED,
    "removed": FileStatus.REMOVED,
}


def _collapse(changes: Iterable[FileChange]) -> list[FileChange]:
    """Keep one change per path: the latest one, at the position of the first."""
    latest: dict[str, FileChange] = {}
    for change in changes:
        latest[change.filename] = change
    return list(latest.values())


def _changes_from_file_list(files: list[dict[str, Any]]) -> list[FileChange]:
    """Convert compare or pull-request file entries into file changes."""
    changes = []
    for entry in files:
        filename = entry.get("filename")
        if not filename:
            continue
        status = entry.get("status", "modified")
        if status == "renamed":
            previous = entry.get("previous_filename")
            if previous:
                changes.append(FileChange(filename=previous, status=FileStatus.REMOVED))
            changes.append(FileChange(filename=filename, status=FileStatus.ADDED))
        else:
            changes.append(
                FileChange(filename=filename, status=_STATUS_MAP.get(status, FileStatus.MODIFIED))
            )
    return changes


class ChangeSetExtractor:
    """
    Resolves the file changes of a push or merged pull-request event.

    Args:
        client: Repository client used for content, compare and PR lookups
        supported_extensions: Extensions of files that are synchronized
        excluded_paths: Path fragments that exclude a file
        fetch_group_size: Number of content fetches run concurrently
    """

    def __init__(
        self,
        client: RepositoryClientInterface,
        supported_extensions: Iterable[str],
        excluded_paths: Iterable[str],
        fetch_group_size: int = 10,
    ):
        self._client = client
        self._supported_extensions = [ext.lower() for ext in supported_extensions]
        self._excluded_paths = list(excluded_paths)
        self._fetch_group_size = max(1, fetch_group_size)

    async def extract(self, payload: WebhookPayload) -> list[FileChange]:
        """
        Return the supported file changes of an event.

        Removed files are returned as-is. Added and modified files are
        returned only when their content could be read at the event's
        revision. Errors are logged and yield an empty list.
        """
        try:
            changes = await self._collect_changes(payload)
            supported = [
                change
                for change in _collapse(changes)
                if should_process_file(
                    change.filename, self._supported_extensions, self._excluded_paths
                )
            ]
            await self._fetch_contents(payload, supported)
            return [c for c in supported if c.is_removed or c.has_content()]
        except Exception as e:
            logger.error(f"Error getting changed files: {e}")
            return []

    async def _collect_changes(self, payload: WebhookPayload) -> list[FileChange]:
        if payload.is_merged_pull_request():
            return await self._pull_request_changes(payload)

        if payload.commits:
            return self._commit_changes(payload)

        if payload.before and payload.after and NULL_SHA not in (payload.before, payload.after):
            files = await self._client.compare_commits(
                payload.owner, payload.repo, payload.before, payload.after
            )
            return _changes_from_file_list(files)

        return []

    @staticmethod
    def _commit_changes(payload: WebhookPayload) -> list[FileChange]:
        changes: list[FileChange] = []
        for commit in payload.commits or []:
            if _MERGE_COMMIT_MESSAGE.match(commit.message):
                continue
            changes.extend(FileChange(f, FileStatus.ADDED) for f in commit.added)
            changes.extend(FileChange(f, FileStatus.MODIFIED) for f in commit.modified)
            changes.extend(FileChange(f, FileStatus.REMOVED) for f in commit.removed)
        return changes

    async def _pull_request_changes(self, payload: WebhookPayload) -> list[FileChange]:
        number = payload.pull_request.number if payload.pull_request else None
        if number is None:
            return []
        files = await self._client.list_pull_request_files(payload.owner, payload.repo, number)
        return _changes_from_file_list(files)

    async def _fetch_contents(self, payload: WebhookPayload, changes: list[FileChange]) -> None:
        ref: Optional[str] = payload.content_ref()
        to_fetch = [c for c in changes if not c.is_removed]

        async def fetch(change: FileChange) -> None:
            content = await self._client.get_file_content(
                payload.owner, payload.repo, change.filename, ref
            )
            change.content = content
            change.size = len(content.encode("utf-8")) if content is not None else None

        for start in range(0, len(to_fetch), self._fetch_group_size):
            group = to_fetch[start : start + self._fetch_group_size]
            await asyncio.gather(*(fetch(change) for change in group))
