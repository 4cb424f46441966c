"""
Centralized services container module for docsync.

Provides a shared container for all services used across the HTTP, MCP and
initial sync entry points.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from docsync.core.config import DocsyncConfig, load_config
from docsync.infrastructure import (
    RepositoryClientInterface,
    VectorStoreServiceInterface,
    create_repository_client,
    create_vector_store_client,
)
from docsync.services.batch_processor import BatchProcessor
from docsync.services.change_set import ChangeSetExtractor
from docsync.services.job_queue import LoggingJobObserver, PriorityJobQueue
from docsync.services.webhook_service import WebhookService


@dataclass
class ServicesContainer:
    """
    Container holding all shared service instances.

    Attributes:
        config: Application configuration
        repository_client: Client for the repository hosting API
        vector_store: Client for the vector store API
        batch_processor: Applies change-sets to the vector store
        job_queue: Priority queue feeding the batch processor
        extractor: Resolves webhook events into change-sets
        webhook_service: Verifies and enqueues webhook deliveries
    """

    config: DocsyncConfig
    repository_client: RepositoryClientInterface
    vector_store: VectorStoreServiceInterface
    batch_processor: BatchProcessor
    job_queue: PriorityJobQueue
    extractor: ChangeSetExtractor
    webhook_service: WebhookService

    async def close(self) -> None:
        """Stop the queue and release HTTP connections."""
        await self.job_queue.stop()
        await self.repository_client.close()
        await self.vector_store.close()


def create_services(
    config_path: Optional[Path] = None,
    config: Optional[DocsyncConfig] = None,
    repository_client: Optional[RepositoryClientInterface] = None,
    vector_store: Optional[VectorStoreServiceInterface] = None,
) -> ServicesContainer:
    """
    Create and wire all services.

    Args:
        config_path: Optional path to configuration file. If None, uses
                    environment variables and defaults.
        config: Already loaded configuration; takes precedence over config_path
        repository_client: Replacement for the GitHub client (tests)
        vector_store: Replacement for the OpenAI vector store client (tests)

    Returns:
        ServicesContainer with all services initialized. The queue scheduler
        is not started.
    """
    if config is None:
        config = load_config(config_path)

    if repository_client is None:
        repository_client = create_repository_client(
            token=config.github.token,
            api_url=config.github.api_url,
            timeout=config.github.timeout,
            max_retries=config.github.max_retries,
        )

    if vector_store is None:
        vector_store = create_vector_store_client(
            api_url=config.vector_store.api_url,
            api_key=config.vector_store.api_key,
            timeout=config.vector_store.timeout,
            max_retries=config.vector_store.max_retries,
        )

    batch_processor = BatchProcessor(
        vector_store=vector_store,
        temp_dir=config.batch.temp_dir,
        vector_store_id=config.vector_store.vector_store_id,
        name_prefix=config.vector_store.name_prefix,
        expires_after_days=config.vector_store.expires_after_days,
        remove_group_size=config.batch.remove_group_size,
        remove_group_delay=config.batch.remove_group_delay,
        upload_group_size=config.batch.upload_group_size,
        upload_group_delay=config.batch.upload_group_delay,
    )

    job_queue = PriorityJobQueue(
        processor=batch_processor,
        max_concurrent=config.queue.max_concurrent_jobs,
        max_size=config.queue.max_size,
        max_attempts=config.queue.max_attempts,
        tick_interval=config.queue.tick_interval,
        eviction_delay=config.queue.eviction_delay,
        backoff_base=config.queue.backoff_base,
        job_timeout=config.queue.job_timeout or None,
        observer=LoggingJobObserver(),
    )

    extractor = ChangeSetExtractor(
        client=repository_client,
        supported_extensions=config.filters.supported_extensions,
        excluded_paths=config.filters.excluded_paths,
        fetch_group_size=config.github.fetch_group_size,
    )

    webhook_service = WebhookService(config=config, extractor=extractor, queue=job_queue)

    return ServicesContainer(
        config=config,
        repository_client=repository_client,
        vector_store=vector_store,
        batch_processor=batch_processor,
        job_queue=job_queue,
        extractor=extractor,
        webhook_service=webhook_service,
    )
