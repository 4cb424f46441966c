"""
Service Layer - ChangeSetExtractor, PriorityJobQueue, BatchProcessor, WebhookService, and ServicesContainer.
"""

from docsync.services.batch_processor import BatchProcessor
from docsync.services.change_set import ChangeSetExtractor
from docsync.services.container import ServicesContainer, create_services
from docsync.services.initial_sync import run_initial_sync
from docsync.services.job_queue import (
    BatchFailedError,
    JobQueueError,
    JobQueueObserver,
    LoggingJobObserver,
    PriorityJobQueue,
    QueueFullError,
)
from docsync.services.models import (
    BatchJob,
    BatchStatus,
    FileResult,
    FileResultStatus,
    JobRecord,
    JobStatus,
    QueueJob,
)
from docsync.services.webhook_service import (
    WebhookOutcome,
    WebhookOutcomeStatus,
    WebhookService,
)

__all__ = [
    # Container and factory
    "ServicesContainer",
    "create_services",
    # Services
    "ChangeSetExtractor",
    "BatchProcessor",
    "PriorityJobQueue",
    "WebhookService",
    "run_initial_sync",
    # Queue observers and errors
    "JobQueueObserver",
    "LoggingJobObserver",
    "JobQueueError",
    "QueueFullError",
    "BatchFailedError",
    # Models
    "QueueJob",
    "JobStatus",
    "JobRecord",
    "BatchJob",
    "BatchStatus",
    "FileResult",
    "FileResultStatus",
    "WebhookOutcome",
    "WebhookOutcomeStatus",
]
