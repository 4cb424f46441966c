"""Tests for webhook payload parsing and signature verification."""

import json
from urllib.parse import urlencode

import pytest

from docsync.core.signature import sign_payload, verify_signature
from docsync.core.webhook_payload import PayloadValidationError, parse_webhook_body
from tests.support.pipeline_utils import commit, encode, pull_request_payload, push_payload

SECRET = "s3cret"


class TestSignature:
    def test_valid_signature_verifies(self):
        body = b'{"hello": "world"}'

        assert verify_signature(SECRET, sign_payload(SECRET, body), body)

    def test_tampered_body_fails(self):
        header = sign_payload(SECRET, b'{"hello": "world"}')

        assert not verify_signature(SECRET, header, b'{"hello": "there"}')

    def test_wrong_secret_fails(self):
        body = b"{}"

        assert not verify_signature(SECRET, sign_payload("other", body), body)

    def test_missing_header_or_secret_fails(self):
        body = b"{}"

        assert not verify_signature(SECRET, None, body)
        assert not verify_signature(SECRET, "", body)
        assert not verify_signature("", sign_payload("", body), body)

    def test_wrong_prefix_fails(self):
        body = b"{}"
        digest = sign_payload(SECRET, body).split("=", 1)[1]

        assert not verify_signature(SECRET, f"sha1={digest}", body)

    def test_known_vector(self):
        # Example from the GitHub webhook documentation
        header = "sha256=757107ea0eb2509fc211221cce984b8a37570b6d7586c22c46f4379c8b043e17"

        assert verify_signature("It's a Secret to Everybody", header, b"Hello, World!")


class TestParseWebhookBody:
    def test_raw_push_event(self):
        payload = parse_webhook_body(
            encode(push_payload([commit(added=["docs/a.md"], removed=["docs/b.md"])]))
        )

        assert payload.repository.full_name == "acme/docs"
        assert payload.owner == "acme"
        assert payload.repo == "docs"
        assert payload.commits[0].added == ["docs/a.md"]
        assert payload.commits[0].removed == ["docs/b.md"]

    def test_json_envelope(self):
        inner = json.dumps(push_payload([commit(modified=["README.md"])]))

        payload = parse_webhook_body(json.dumps({"payload": inner}).encode())

        assert payload.commits[0].modified == ["README.md"]

    def test_form_encoded_envelope(self):
        inner = json.dumps(push_payload([commit(added=["a.md"])]))

        payload = parse_webhook_body(urlencode({"payload": inner}).encode())

        assert payload.commits[0].added == ["a.md"]

    def test_pull_request_event(self):
        payload = parse_webhook_body(encode(pull_request_payload()))

        assert payload.is_merged_pull_request()
        assert payload.content_ref() == "m" * 40
        assert payload.targets_branch("main")
        assert not payload.targets_branch("develop")

    def test_pull_request_falls_back_to_head_sha(self):
        payload = parse_webhook_body(encode(pull_request_payload(merge_commit_sha=None)))

        assert payload.content_ref() == "h" * 40

    def test_branch_targeting(self):
        main = parse_webhook_body(encode(push_payload([], ref="refs/heads/main")))
        feature = parse_webhook_body(encode(push_payload([], ref="refs/heads/feature")))

        assert main.targets_branch("main")
        assert not feature.targets_branch("main")

    @pytest.mark.parametrize(
        "ref", ["refs/heads/feature/main", "refs/tags/release/main", "refs/tags/main", "main"]
    )
    def test_only_the_exact_branch_head_matches(self, ref: str):
        payload = parse_webhook_body(encode(push_payload([], ref=ref)))

        assert not payload.targets_branch("main")

    def test_missing_ref_targets_every_branch(self):
        data = push_payload([])
        del data["ref"]

        assert parse_webhook_body(encode(data)).targets_branch("main")

    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            b"[1, 2, 3]",
            b'{"payload": "not json"}',
            b'{"ref": "refs/heads/main"}',
            b'{"repository": {"name": "x"}}',
            b"\xff\xfe",
        ],
    )
    def test_malformed_bodies_are_rejected(self, body: bytes):
        with pytest.raises(PayloadValidationError):
            parse_webhook_body(body)
