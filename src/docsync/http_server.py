"""
HTTP layer for docsync.

Provides a FastAPI server receiving repository webhooks and exposing the
job queue state.
"""

import logging
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from docsync.core.signature import SIGNATURE_HEADER
from docsync.core.webhook_payload import PayloadValidationError, WebhookPayload
from docsync.services.container import ServicesContainer, create_services
from docsync.services.job_queue import QueueFullError

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(container: Optional[ServicesContainer] = None) -> FastAPI:
    """
    FastAPI application factory.

    Args:
        container: Wired services. If None, services are created from
                   configuration files and environment variables.
    """
    services = container or create_services()
    cfg = services.config
    webhook_service = services.webhook_service
    job_queue = services.job_queue

    app = FastAPI(
        title="docsync",
        version="0.1.0",
        description="Keeps an OpenAI vector store in sync with a GitHub repository.",
    )

    async def _process_in_background(payload: WebhookPayload) -> None:
        try:
            job_id = await webhook_service.process(payload)
            if job_id:
                logger.info(f"Queued job {job_id} for {payload.repository.full_name}")
        except QueueFullError as e:
            logger.warning(f"Dropping webhook for {payload.repository.full_name}: {e}")
        except Exception as e:
            logger.error(f"Webhook processing error: {e}", exc_info=True)

    @app.on_event("startup")
    async def startup_event():
        await job_queue.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        try:
            await services.close()
        except Exception as e:
            logger.error(f"Error closing services during shutdown: {e}")

    @app.get("/health")
    async def health():
        return {"status": "ok", "queueRunning": job_queue.is_running()}

    @app.post("/webhook")
    async def webhook(request: Request, background_tasks: BackgroundTasks):
        raw_body = await request.body()
        client_ip = request.client.host if request.client else "unknown"

        if not webhook_service.verify(request.headers.get(SIGNATURE_HEADER), raw_body):
            logger.warning(f"Invalid signature from IP: {client_ip}")
            return _error(401, "Invalid signature")

        try:
            payload = webhook_service.parse(raw_body)
        except PayloadValidationError as e:
            logger.warning(f"Rejected webhook payload from IP {client_ip}: {e}")
            return _error(400, "Invalid payload")

        if not webhook_service.is_relevant(payload):
            return {"status": "ignored"}

        if job_queue.is_full():
            logger.warning(f"Queue full, rejecting webhook for {payload.repository.full_name}")
            return _error(503, "Queue is full")

        background_tasks.add_task(_process_in_background, payload)
        return JSONResponse(status_code=202, content={"status": "accepted"})

    @app.get("/jobs/{job_id}")
    async def job_status(job_id: str):
        try:
            status = job_queue.get_job_status(job_id)
        except Exception as exc:
            logger.error(f"Error in /jobs/{job_id}: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to get job status")

        if status is None:
            return _error(404, "Job not found")
        return status

    @app.get("/queue/stats")
    async def queue_stats():
        try:
            stats = job_queue.get_queue_stats()
        except Exception as exc:
            logger.error(f"Error in /queue/stats: {exc}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to get queue stats")

        return {
            "queue": stats,
            "rateLimit": {
                "perMinute": cfg.rate_limit.per_minute,
                "windowMs": cfg.rate_limit.window_ms,
            },
            "batch": {
                "size": cfg.batch.size,
                "timeoutMs": cfg.batch.timeout_ms,
                "maxConcurrent": cfg.queue.max_concurrent_jobs,
            },
        }

    return app


def main():
    """Entry point for the HTTP server."""
    import uvicorn
    from dotenv import load_dotenv

    from docsync.core.config import load_config, setup_logging

    load_dotenv()
    config = load_config()
    setup_logging(config.logging)
    logger.debug(f"Loaded configuration: {config.to_dict_safe()}")

    app = create_app(create_services(config=config))
    uvicorn.run(app, host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
