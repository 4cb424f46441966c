"""
Batch Processor for synchronizing change-sets into a vector store.

Given a repository and its file changes, resolves the target vector store,
applies removals, then uploads added and modified files. Remote calls are
fanned out in small groups with a pause between groups to stay under the
vector store API rate limits.
"""

import asyncio
import logging
import shutil
import tempfile
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from docsync.core.file_changes import FileChange, FileStatus
from docsync.core.file_filter import index_filename, is_mdx
from docsync.core.mdx_converter import convert_mdx_to_md
from docsync.infrastructure.vector_store import NotFoundError, VectorStoreServiceInterface
from docsync.services.models import BatchJob, BatchStatus, FileResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

BATCH_REMOVE_FAILED = "Batch remove operation failed"


def _generate_batch_id() -> str:
    return f"batch_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def _error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


class BatchProcessor:
    """
    Applies change-sets to a vector store.

    Removals always finish before any upload starts. Within a phase, files
    are processed in concurrent groups; group N, including the pause after
    it, completes before group N+1 starts.

    Args:
        vector_store: Vector store service the files are written to
        temp_dir: Parent directory for per-batch upload staging directories
        vector_store_id: Store to use for every repository; when empty a store
            is created per repository and reused for later batches
        name_prefix: Prefix of created store names
        expires_after_days: Inactivity expiry of created stores
        remove_group_size: Removals per concurrent group
        remove_group_delay: Seconds to pause between removal groups
        upload_group_size: Uploads per concurrent group
        upload_group_delay: Seconds to pause between upload groups
        sleep: Awaitable sleep used for the pauses between groups
    """

    def __init__(
        self,
        vector_store: VectorStoreServiceInterface,
        temp_dir: Path | str,
        vector_store_id: Optional[str] = None,
        name_prefix: str = "repo-",
        expires_after_days: int = 30,
        remove_group_size: int = 5,
        remove_group_delay: float = 1.0,
        upload_group_size: int = 3,
        upload_group_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._vector_store = vector_store
        self._temp_dir = Path(temp_dir)
        self._vector_store_id = vector_store_id or None
        self._name_prefix = name_prefix
        self._expires_after_days = expires_after_days
        self._remove_group_size = max(1, remove_group_size)
        self._remove_group_delay = remove_group_delay
        self._upload_group_size = max(1, upload_group_size)
        self._upload_group_delay = upload_group_delay
        self._sleep = sleep
        self._created_stores: dict[str, str] = {}

    async def process_file_batch(self, repository: str, files: Sequence[FileChange]) -> BatchJob:
        """
        Synchronize one change-set into the vector store.

        Per-file errors are recorded in the batch results and never abort
        sibling files. Any other error marks the whole batch failed.

        Args:
            repository: Full repository name (``owner/name``)
            files: File changes; non-removed files must carry content to be uploaded

        Returns:
            BatchJob with status ``completed`` or ``failed``
        """
        batch = BatchJob(id=_generate_batch_id(), repository=repository, files=list(files))
        logger.info(f"Starting batch {batch.id} for {len(batch.files)} files in {repository}")

        try:
            batch.vector_store_id = await self._resolve_vector_store(repository)

            to_remove = [f for f in batch.files if f.is_removed]
            to_upsert = [f for f in batch.files if not f.is_removed and f.has_content()]

            if to_remove:
                await self._remove_files(batch.vector_store_id, to_remove, batch.results)
            if to_upsert:
                await self._upsert_files(batch.vector_store_id, to_upsert, batch.results)

            batch.status = BatchStatus.COMPLETED
            logger.info(
                f"Batch {batch.id} completed: "
                f"{batch.success_count}/{len(batch.results)} files processed successfully"
            )
        except Exception as e:
            logger.error(f"Batch {batch.id} failed: {e}")
            batch.status = BatchStatus.FAILED
            batch.error = _error_message(e)
            batch.results = []
        finally:
            batch.completed_at = datetime.now()

        return batch

    async def _resolve_vector_store(self, repository: str) -> str:
        if self._vector_store_id:
            return self._vector_store_id

        cached = self._created_stores.get(repository)
        if cached:
            return cached

        name = f"{self._name_prefix}{repository.replace('/', '-')}"
        store_id = await self._vector_store.create_vector_store(name, self._expires_after_days)
        self._created_stores[repository] = store_id
        logger.info(f"Created vector store {store_id} ({name})")
        return store_id

    async def _run_in_groups(
        self,
        items: Sequence[T],
        operation: Callable[[T], Awaitable[None]],
        group_size: int,
        delay: float,
    ) -> None:
        """Run ``operation`` over items in concurrent groups, pausing between groups."""
        for start in range(0, len(items), group_size):
            group = items[start : start + group_size]
            await asyncio.gather(*(operation(item) for item in group))
            if start + group_size < len(items):
                await self._sleep(delay)

    async def _build_filename_map(self, store_id: str) -> dict[str, str]:
        """Map stored filenames to file ids for every entry of a store."""
        file_ids = await self._vector_store.list_store_files(store_id)
        filename_map: dict[str, str] = {}
        for file_id in file_ids:
            try:
                stored = await self._vector_store.retrieve_file(file_id)
            except Exception as e:
                logger.error(f"Error retrieving file details for {file_id}: {e}")
                continue
            filename_map[stored.filename] = file_id
        return filename_map

    async def _delete_entry(self, store_id: str, file_id: str) -> None:
        """Detach a file from the store and delete it. Missing entries are ignored."""
        try:
            await self._vector_store.delete_store_file(store_id, file_id)
        except NotFoundError:
            logger.debug(f"Vector store entry {file_id} already detached")
        try:
            await self._vector_store.delete_file(file_id)
        except NotFoundError:
            logger.debug(f"File {file_id} already deleted")

    async def _remove_files(
        self, store_id: str, files: list[FileChange], results: list[FileResult]
    ) -> None:
        logger.info(f"Batch removing {len(files)} files")
        recorded: set[str] = set()

        async def remove(file: FileChange, filename_map: dict[str, str]) -> None:
            try:
                file_id = filename_map.get(index_filename(file.filename))
                if file_id:
                    await self._delete_entry(store_id, file_id)
                    logger.info(f"Removed: {file.filename}")
                results.append(FileResult.success(file.filename))
            except Exception as e:
                logger.error(f"Error removing {file.filename}: {e}")
                results.append(FileResult.failure(file.filename, _error_message(e)))
            recorded.add(file.filename)

        try:
            filename_map = await self._build_filename_map(store_id)
            await self._run_in_groups(
                files,
                lambda file: remove(file, filename_map),
                self._remove_group_size,
                self._remove_group_delay,
            )
        except Exception as e:
            logger.error(f"Error in batch remove: {e}")
            for file in files:
                if file.filename not in recorded:
                    results.append(FileResult.failure(file.filename, BATCH_REMOVE_FAILED))
                    recorded.add(file.filename)

    async def _remove_existing(self, store_id: str, filename: str) -> None:
        """Delete the store entry with the given filename, if any. Never raises."""
        try:
            for file_id in await self._vector_store.list_store_files(store_id):
                stored = await self._vector_store.retrieve_file(file_id)
                if stored.filename == filename:
                    await self._delete_entry(store_id, file_id)
                    logger.debug(f"Removed previous version of {filename}")
                    break
        except Exception as e:
            logger.error(f"Error removing existing file {filename}: {e}")

    @staticmethod
    def _latest_per_index_name(files: list[FileChange]) -> list[FileChange]:
        """Keep the last change for each index filename, in batch order."""
        latest: dict[str, FileChange] = {}
        for file in files:
            encoded = index_filename(file.filename)
            previous = latest.pop(encoded, None)
            if previous is not None:
                logger.warning(
                    f"{previous.filename} and {file.filename} share index name {encoded}; "
                    f"keeping {file.filename}"
                )
            latest[encoded] = file
        return list(latest.values())

    def _stage_files(
        self, staging_dir: Path, files: list[FileChange]
    ) -> list[tuple[str, Path, FileChange]]:
        # One subdirectory per file keeps the uploaded basename equal to the index name.
        staged = []
        for position, file in enumerate(files):
            content = file.content or ""
            if is_mdx(file.filename):
                content = convert_mdx_to_md(content)
            encoded = index_filename(file.filename)
            file_dir = staging_dir / str(position)
            file_dir.mkdir()
            path = file_dir / encoded
            path.write_text(content, encoding="utf-8")
            staged.append((encoded, path, file))
        return staged

    async def _upsert_files(
        self, store_id: str, files: list[FileChange], results: list[FileResult]
    ) -> None:
        files = self._latest_per_index_name(files)
        logger.info(f"Batch adding/updating {len(files)} files")

        self._temp_dir.mkdir(parents=True, exist_ok=True)
        staging_dir = Path(tempfile.mkdtemp(prefix="batch-", dir=self._temp_dir))

        async def upsert(item: tuple[str, Path, FileChange]) -> None:
            encoded, path, file = item
            try:
                if file.status == FileStatus.MODIFIED:
                    await self._remove_existing(store_id, encoded)
                file_id = await self._vector_store.upload_file(path)
                await self._vector_store.attach_file(store_id, file_id)
                results.append(FileResult.success(encoded))
                logger.info(f"Processed: {encoded} ({file.status.value})")
            except Exception as e:
                logger.error(f"Error processing {encoded}: {e}")
                results.append(FileResult.failure(encoded, _error_message(e)))

        try:
            staged = await asyncio.to_thread(self._stage_files, staging_dir, files)
            await self._run_in_groups(
                staged, upsert, self._upload_group_size, self._upload_group_delay
            )
        finally:
            await asyncio.to_thread(self._cleanup, staging_dir)

    @staticmethod
    def _cleanup(staging_dir: Path) -> None:
        try:
            shutil.rmtree(staging_dir)
        except OSError as e:
            logger.error(f"Error removing staging directory {staging_dir}: {e}")
