"""
Webhook orchestration.

Verifies inbound repository webhooks, filters them to the integration
branch, extracts the change-set and admits it to the job queue with a
priority score.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from docsync.core.config import DocsyncConfig
from docsync.core.file_filter import calculate_priority
from docsync.core.signature import verify_signature
from docsync.core.webhook_payload import (
    PayloadValidationError,
    WebhookPayload,
    parse_webhook_body,
)
from docsync.services.change_set import ChangeSetExtractor
from docsync.services.job_queue import PriorityJobQueue, QueueFullError

logger = logging.getLogger(__name__)


class WebhookOutcomeStatus(str, Enum):
    ACCEPTED = "accepted"
    IGNORED = "ignored"
    INVALID_SIGNATURE = "invalid_signature"
    INVALID_PAYLOAD = "invalid_payload"
    QUEUE_FULL = "queue_full"
    ERROR = "error"


@dataclass
class WebhookOutcome:
    """Result of handling one webhook delivery."""

    status: WebhookOutcomeStatus
    job_id: Optional[str] = None
    message: Optional[str] = None


class WebhookService:
    """
    Entry point of the ingestion pipeline for webhook deliveries.

    The steps are exposed individually so the HTTP layer can answer the
    caller after verification and run extraction in the background;
    ``handle`` runs them all in sequence.
    """

    def __init__(
        self,
        config: DocsyncConfig,
        extractor: ChangeSetExtractor,
        queue: PriorityJobQueue,
    ):
        self._config = config
        self._extractor = extractor
        self._queue = queue

    @property
    def branch(self) -> str:
        return self._config.github.branch

    @property
    def queue(self) -> PriorityJobQueue:
        return self._queue

    def verify(self, signature_header: Optional[str], raw_body: bytes) -> bool:
        """Check the HMAC-SHA-256 signature of the raw request body."""
        return verify_signature(self._config.github.webhook_secret, signature_header, raw_body)

    def parse(self, raw_body: bytes) -> WebhookPayload:
        """
        Parse a verified request body.

        Raises:
            PayloadValidationError: If the body is malformed
        """
        return parse_webhook_body(raw_body)

    def is_relevant(self, payload: WebhookPayload) -> bool:
        """
        Check whether an event should be synchronized.

        Pull-request events count only once merged into the integration branch.
        """
        if not payload.targets_branch(self.branch):
            return False
        if payload.pull_request is not None:
            return payload.is_merged_pull_request()
        return True

    async def process(self, payload: WebhookPayload) -> Optional[str]:
        """
        Extract the change-set of a relevant event and enqueue it.

        Returns:
            The job id, or None when the event produced no supported changes

        Raises:
            QueueFullError: If the queue is at capacity
        """
        logger.info(f"Processing webhook for repository: {payload.repository.full_name}")

        files = await self._extractor.extract(payload)
        logger.info(f"Found {len(files)} changed supported files")
        if not files:
            return None

        priority = calculate_priority(files, self._config.filters.critical_extensions)
        return self._queue.add_job(payload.repository.full_name, files, priority)

    async def handle(
        self,
        signature_header: Optional[str],
        raw_body: bytes,
        client_ip: str = "unknown",
    ) -> WebhookOutcome:
        """Run a delivery through verification, parsing and admission. Never raises."""
        if not self.verify(signature_header, raw_body):
            logger.warning(f"Invalid signature from IP: {client_ip}")
            return WebhookOutcome(WebhookOutcomeStatus.INVALID_SIGNATURE)

        try:
            payload = self.parse(raw_body)
        except PayloadValidationError as e:
            logger.warning(f"Rejected webhook payload from IP {client_ip}: {e}")
            return WebhookOutcome(WebhookOutcomeStatus.INVALID_PAYLOAD, message=str(e))

        if not self.is_relevant(payload):
            logger.debug(f"Ignoring event for ref {payload.ref} (action: {payload.action})")
            return WebhookOutcome(WebhookOutcomeStatus.IGNORED)

        try:
            job_id = await self.process(payload)
        except QueueFullError as e:
            logger.warning(f"Dropping webhook for {payload.repository.full_name}: {e}")
            return WebhookOutcome(WebhookOutcomeStatus.QUEUE_FULL, message=str(e))
        except Exception as e:
            logger.error(f"Webhook processing error: {e}", exc_info=True)
            return WebhookOutcome(WebhookOutcomeStatus.ERROR, message=str(e))

        if job_id is None:
            return WebhookOutcome(WebhookOutcomeStatus.IGNORED, message="No supported file changes")
        return WebhookOutcome(WebhookOutcomeStatus.ACCEPTED, job_id=job_id)
