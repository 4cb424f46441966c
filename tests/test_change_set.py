"""
Tests for ChangeSetExtractor.
"""

from docsync.core.config import FilterConfig
from docsync.core.file_changes import FileStatus
from docsync.core.webhook_payload import NULL_SHA, WebhookPayload
from docsync.infrastructure.fakes import FakeRepositoryClient
from docsync.services.change_set import ChangeSetExtractor
from tests.support.pipeline_utils import commit, pull_request_payload, push_payload, run_async

FILTERS = FilterConfig()


def _extractor(client: FakeRepositoryClient, **kwargs) -> ChangeSetExtractor:
    return ChangeSetExtractor(
        client=client,
        supported_extensions=FILTERS.supported_extensions,
        excluded_paths=FILTERS.excluded_paths,
        **kwargs,
    )


def _extract(client, data, **kwargs):
    payload = WebhookPayload.model_validate(data)
    return run_async(_extractor(client, **kwargs).extract(payload))


def _summary(changes):
    return [(c.filename, c.status) for c in changes]


class TestPushEvents:
    def test_commit_lists_are_flattened(self):
        client = FakeRepositoryClient({"docs/a.md": "A", "docs/b.md": "B"})
        data = push_payload(
            [commit(added=["docs/a.md"], modified=["docs/b.md"], removed=["docs/c.md"])]
        )

        changes = _extract(client, data)

        assert _summary(changes) == [
            ("docs/a.md", FileStatus.ADDED),
            ("docs/b.md", FileStatus.MODIFIED),
            ("docs/c.md", FileStatus.REMOVED),
        ]
        assert changes[0].content == "A"
        assert changes[0].size == 1
        assert changes[2].content is None

    def test_contents_are_read_at_the_pushed_revision(self):
        client = FakeRepositoryClient({"docs/a.md": "A"})

        _extract(client, push_payload([commit(added=["docs/a.md"])], after="f" * 40))

        assert client.fetch_calls == [("docs/a.md", "f" * 40)]

    def test_size_is_utf8_byte_length(self):
        client = FakeRepositoryClient({"docs/a.md": "héllo"})

        changes = _extract(client, push_payload([commit(added=["docs/a.md"])]))

        assert changes[0].size == 6

    def test_merge_commits_are_skipped(self):
        client = FakeRepositoryClient({"docs/a.md": "A", "docs/b.md": "B"})
        data = push_payload(
            [
                commit(message="Merge pull request #3 from acme/feature", added=["docs/a.md"]),
                commit(message="merge PULL REQUEST #4", added=["docs/x.md"]),
                commit(message="Fix typo", modified=["docs/b.md"]),
            ]
        )

        changes = _extract(client, data)

        assert _summary(changes) == [("docs/b.md", FileStatus.MODIFIED)]

    def test_unsupported_and_excluded_files_are_dropped(self):
        client = FakeRepositoryClient(
            {"docs/a.md": "A", "src/main.py": "print()", "node_modules/x/README.md": "x"}
        )
        data = push_payload(
            [commit(added=["docs/a.md", "src/main.py", "node_modules/x/README.md", ".env.json"])]
        )

        changes = _extract(client, data)

        assert _summary(changes) == [("docs/a.md", FileStatus.ADDED)]
        assert client.fetch_calls == [("docs/a.md", "b" * 40)]

    def test_files_without_readable_content_are_dropped(self):
        client = FakeRepositoryClient({"docs/a.md": "A", "docs/empty.md": ""})
        data = push_payload([commit(added=["docs/a.md", "docs/missing.md", "docs/empty.md"])])

        changes = _extract(client, data)

        assert _summary(changes) == [("docs/a.md", FileStatus.ADDED)]

    def test_latest_change_wins_for_repeated_paths(self):
        client = FakeRepositoryClient({"docs/a.md": "A", "docs/b.md": "B"})
        data = push_payload(
            [
                commit(added=["docs/a.md", "docs/b.md"]),
                commit(modified=["docs/a.md"]),
                commit(removed=["docs/b.md"]),
            ]
        )

        changes = _extract(client, data)

        assert _summary(changes) == [
            ("docs/a.md", FileStatus.MODIFIED),
            ("docs/b.md", FileStatus.REMOVED),
        ]

    def test_fetches_run_in_bounded_groups(self):
        files = {f"docs/page{i}.md": "x" for i in range(7)}
        client = FakeRepositoryClient(files)
        data = push_payload([commit(added=sorted(files))])

        changes = _extract(client, data, fetch_group_size=3)

        assert len(changes) == 7
        assert client.max_in_flight == 3

    def test_push_without_commits_uses_compare(self):
        client = FakeRepositoryClient(
            {"docs/new.md": "N", "docs/renamed.md": "R"},
            compare_files=[
                {"filename": "docs/new.md", "status": "added"},
                {"filename": "docs/renamed.md", "status": "renamed", "previous_filename": "docs/old.md"},
                {"filename": "docs/gone.md", "status": "removed"},
            ],
        )

        changes = _extract(client, push_payload(None))

        assert _summary(changes) == [
            ("docs/new.md", FileStatus.ADDED),
            ("docs/old.md", FileStatus.REMOVED),
            ("docs/renamed.md", FileStatus.ADDED),
            ("docs/gone.md", FileStatus.REMOVED),
        ]

    def test_branch_creation_has_no_changes(self):
        client = FakeRepositoryClient(compare_files=[{"filename": "docs/a.md", "status": "added"}])

        assert _extract(client, push_payload(None, before=NULL_SHA)) == []
        assert _extract(client, push_payload(None, before=None)) == []

    def test_client_errors_yield_empty_change_set(self):
        client = FakeRepositoryClient()
        client.fail_compare = True

        assert _extract(client, push_payload(None)) == []


class TestPullRequestEvents:
    def test_merged_pull_request_uses_pull_request_files(self):
        client = FakeRepositoryClient(
            {"docs/a.md": "A"},
            pull_request_files=[
                {"filename": "docs/a.md", "status": "modified"},
                {"filename": "docs/b.md", "status": "removed"},
                {"filename": "docs/c.md", "status": "changed"},
            ],
        )

        changes = _extract(client, pull_request_payload())

        assert _summary(changes) == [
            ("docs/a.md", FileStatus.MODIFIED),
            ("docs/b.md", FileStatus.REMOVED),
        ]
        assert client.fetch_calls[0] == ("docs/a.md", "m" * 40)

    def test_unmerged_pull_request_without_commits_has_no_changes(self):
        client = FakeRepositoryClient(
            {"docs/a.md": "A"}, pull_request_files=[{"filename": "docs/a.md", "status": "added"}]
        )

        assert _extract(client, pull_request_payload(merged=False)) == []
