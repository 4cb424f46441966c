"""
Tests for WebhookService: verification, relevance filtering and admission.
"""

import pytest

from docsync.core.config import BatchConfig, DocsyncConfig, GitHubConfig, QueueConfig
from docsync.core.signature import sign_payload
from docsync.infrastructure.fakes import FakeRepositoryClient, InMemoryVectorStoreService
from docsync.services.container import create_services
from docsync.services.webhook_service import WebhookOutcomeStatus
from tests.support.pipeline_utils import (
    commit,
    encode,
    pull_request_payload,
    push_payload,
    run_async,
)

SECRET = "hook-secret"


@pytest.fixture
def client() -> FakeRepositoryClient:
    return FakeRepositoryClient(
        {f"docs/page{i}.md": f"page {i}" for i in range(30)} | {"src/app.ts": "code"}
    )


def _services(client, tmp_path, max_size: int = 100):
    config = DocsyncConfig(
        github=GitHubConfig(webhook_secret=SECRET, branch="main"),
        queue=QueueConfig(max_size=max_size),
        batch=BatchConfig(temp_dir=str(tmp_path)),
    )
    return create_services(
        config=config, repository_client=client, vector_store=InMemoryVectorStoreService()
    )


def _handle(service, data, secret=SECRET):
    body = encode(data)
    return run_async(service.handle(sign_payload(secret, body), body, client_ip="127.0.0.1"))


class TestHandle:
    def test_push_is_admitted_with_priority(self, client, tmp_path):
        services = _services(client, tmp_path)

        outcome = _handle(
            services.webhook_service, push_payload([commit(added=["docs/page1.md"])])
        )

        assert outcome.status == WebhookOutcomeStatus.ACCEPTED
        job = services.job_queue.get_job(outcome.job_id)
        assert job.repository == "acme/docs"
        assert job.priority == 10
        assert [f.filename for f in job.files] == ["docs/page1.md"]
        assert job.files[0].content == "page 1"

    def test_large_code_change_gets_lower_priority(self, client, tmp_path):
        services = _services(client, tmp_path)
        paths = [f"docs/page{i}.md" for i in range(30)]
        data = push_payload([commit(added=["src/app.ts"], modified=paths)])

        outcome = _handle(services.webhook_service, data)

        # 31 files: 10 - 31 // 5 = 4, plus the documentation boost
        assert services.job_queue.get_job(outcome.job_id).priority == 6

    def test_invalid_signature_is_rejected(self, client, tmp_path):
        services = _services(client, tmp_path)

        outcome = _handle(
            services.webhook_service, push_payload([commit(added=["docs/page1.md"])]), secret="x"
        )

        assert outcome.status == WebhookOutcomeStatus.INVALID_SIGNATURE
        assert services.job_queue.jobs() == []

    def test_malformed_payload_is_rejected(self, client, tmp_path):
        services = _services(client, tmp_path)
        body = b'{"ref": "refs/heads/main"}'

        outcome = run_async(services.webhook_service.handle(sign_payload(SECRET, body), body))

        assert outcome.status == WebhookOutcomeStatus.INVALID_PAYLOAD
        assert outcome.message

    def test_other_branch_is_ignored(self, client, tmp_path):
        services = _services(client, tmp_path)

        outcome = _handle(
            services.webhook_service,
            push_payload([commit(added=["docs/page1.md"])], ref="refs/heads/feature"),
        )

        assert outcome.status == WebhookOutcomeStatus.IGNORED
        assert client.fetch_calls == []

    def test_unmerged_pull_request_is_ignored(self, client, tmp_path):
        services = _services(client, tmp_path)

        outcome = _handle(services.webhook_service, pull_request_payload(merged=False))

        assert outcome.status == WebhookOutcomeStatus.IGNORED

    def test_pull_request_into_other_branch_is_ignored(self, client, tmp_path):
        services = _services(client, tmp_path)

        outcome = _handle(services.webhook_service, pull_request_payload(base_ref="develop"))

        assert outcome.status == WebhookOutcomeStatus.IGNORED

    def test_merged_pull_request_is_admitted(self, client, tmp_path):
        client.pull_request_files = [{"filename": "docs/page2.md", "status": "modified"}]
        services = _services(client, tmp_path)

        outcome = _handle(services.webhook_service, pull_request_payload())

        assert outcome.status == WebhookOutcomeStatus.ACCEPTED
        assert services.job_queue.get_job(outcome.job_id).files[0].filename == "docs/page2.md"

    def test_event_without_supported_changes_is_ignored(self, client, tmp_path):
        services = _services(client, tmp_path)

        outcome = _handle(services.webhook_service, push_payload([commit(added=["src/main.py"])]))

        assert outcome.status == WebhookOutcomeStatus.IGNORED
        assert outcome.message == "No supported file changes"
        assert services.job_queue.jobs() == []

    def test_full_queue_reports_queue_full(self, client, tmp_path):
        services = _services(client, tmp_path, max_size=1)
        data = push_payload([commit(added=["docs/page1.md"])])

        first = _handle(services.webhook_service, data)
        second = _handle(services.webhook_service, data)

        assert first.status == WebhookOutcomeStatus.ACCEPTED
        assert second.status == WebhookOutcomeStatus.QUEUE_FULL
        assert len(services.job_queue.jobs()) == 1


class TestEndToEnd:
    def test_admitted_job_reaches_the_vector_store(self, client, tmp_path):
        services = _services(client, tmp_path)
        store = services.vector_store

        async def scenario():
            body = encode(push_payload([commit(added=["docs/page1.md", "src/app.ts"])]))
            outcome = await services.webhook_service.handle(sign_payload(SECRET, body), body)
            await services.job_queue.wait_idle()
            return outcome

        outcome = run_async(scenario())

        status = services.job_queue.get_job_status(outcome.job_id)
        assert status["status"] == "completed"
        store_id = status["result"]["vectorStoreId"]
        assert sorted(store.filenames_in(store_id)) == ["docs_page1.md", "src_app.ts"]
