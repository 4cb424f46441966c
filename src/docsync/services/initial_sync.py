"""
One-off full synchronization of a repository into the vector store.

Lists every file of the repository at the integration branch, keeps the
supported ones and uploads them in a single batch. Used to seed a vector
store before webhooks take over.
"""

import asyncio
import logging
import os
import sys
from typing import Iterable

from dotenv import load_dotenv

from docsync.core.config import setup_logging
from docsync.core.file_changes import FileChange, FileStatus
from docsync.core.file_filter import should_process_file
from docsync.infrastructure.github import RepositoryClientInterface
from docsync.services.batch_processor import BatchProcessor
from docsync.services.container import create_services
from docsync.services.models import BatchJob, BatchStatus

logger = logging.getLogger(__name__)

REPOSITORY_ENV_VAR = "DOCSYNC_SYNC_REPOSITORY"


async def run_initial_sync(
    repository: str,
    client: RepositoryClientInterface,
    processor: BatchProcessor,
    supported_extensions: Iterable[str],
    excluded_paths: Iterable[str],
    branch: str = "main",
    fetch_group_size: int = 10,
) -> BatchJob:
    """
    Upload every supported file of a repository as an ``added`` change.

    Args:
        repository: Full repository name (``owner/name``)
        client: Repository client to list and read files with
        processor: Batch processor writing to the vector store
        supported_extensions: Extensions of files that are synchronized
        excluded_paths: Path fragments that exclude a file
        branch: Revision to read the repository at
        fetch_group_size: Number of content fetches run concurrently

    Returns:
        The BatchJob of the upload

    Raises:
        ValueError: If repository is not of the form ``owner/name``
    """
    owner, _, repo = repository.partition("/")
    if not owner or not repo:
        raise ValueError(f"Repository must be 'owner/name', got: {repository!r}")

    extensions = list(supported_extensions)
    excluded = list(excluded_paths)

    logger.info(f"Listing all files in {repository}@{branch}...")
    paths = [
        path
        for path in await client.list_files(owner, repo, branch)
        if should_process_file(path, extensions, excluded)
    ]
    logger.info(f"Found {len(paths)} supported files")

    changes: list[FileChange] = []
    group_size = max(1, fetch_group_size)
    for start in range(0, len(paths), group_size):
        group = paths[start : start + group_size]
        contents = await asyncio.gather(
            *(client.get_file_content(owner, repo, path, branch) for path in group)
        )
        for path, content in zip(group, contents):
            if content:
                changes.append(
                    FileChange(
                        filename=path,
                        status=FileStatus.ADDED,
                        content=content,
                        size=len(content.encode("utf-8")),
                    )
                )

    logger.info(f"Uploading {len(changes)} files to vector store...")
    return await processor.process_file_batch(repository, changes)


async def _sync_from_config() -> int:
    services = create_services()
    config = services.config
    setup_logging(config.logging)

    repository = os.environ.get(REPOSITORY_ENV_VAR, "")
    missing = [
        name
        for name, value in (
            (REPOSITORY_ENV_VAR, repository),
            ("DOCSYNC_GITHUB_TOKEN", config.github.token),
            ("DOCSYNC_VECTOR_STORE_API_KEY", config.vector_store.api_key),
            ("DOCSYNC_VECTOR_STORE_ID", config.vector_store.vector_store_id),
        )
        if not value
    ]
    if missing:
        logger.error(f"Missing required configuration: {', '.join(missing)}")
        await services.close()
        return 1

    try:
        batch = await run_initial_sync(
            repository=repository,
            client=services.repository_client,
            processor=services.batch_processor,
            supported_extensions=config.filters.supported_extensions,
            excluded_paths=config.filters.excluded_paths,
            branch=config.github.branch,
            fetch_group_size=config.github.fetch_group_size,
        )
    except Exception as e:
        logger.error(f"Initial sync failed: {e}", exc_info=True)
        return 1
    finally:
        await services.close()

    if batch.status == BatchStatus.FAILED:
        logger.error(f"Initial sync failed: {batch.error}")
        return 1

    logger.info(
        f"Initial sync complete: {batch.success_count}/{len(batch.results)} files uploaded"
    )
    return 0 if batch.failure_count == 0 else 1


def main() -> None:
    """Entry point for the initial sync."""
    load_dotenv()
    sys.exit(asyncio.run(_sync_from_config()))


if __name__ == "__main__":
    main()
