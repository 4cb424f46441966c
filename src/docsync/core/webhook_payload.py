"""
Webhook payload schema.

Inbound repository events are validated at the boundary; anything that
does not match the schema is rejected before it reaches the pipeline.
Both delivery shapes are accepted: the raw JSON event, and the envelope
``{"payload": "<json string>"}`` (JSON or form-encoded).
"""

import json
from typing import Any, Optional
from urllib.parse import parse_qs

from pydantic import BaseModel, Field, ValidationError

# GitHub uses an all-zero SHA for "no commit" (branch creation/deletion)
NULL_SHA = "0" * 40


class PayloadValidationError(ValueError):
    """Raised when a webhook body cannot be parsed into a WebhookPayload."""

    pass


class RepositoryOwner(BaseModel):
    login: str


class Repository(BaseModel):
    name: str
    full_name: str
    owner: RepositoryOwner


class Commit(BaseModel):
    id: str = ""
    message: str = ""
    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)


class BranchRef(BaseModel):
    ref: str = ""
    sha: str = ""


class PullRequest(BaseModel):
    number: Optional[int] = None
    merged: bool = False
    merge_commit_sha: Optional[str] = None
    base: BranchRef = Field(default_factory=BranchRef)
    head: BranchRef = Field(default_factory=BranchRef)


class WebhookPayload(BaseModel):
    """A push or pull-request event from the repository host."""

    repository: Repository
    action: Optional[str] = None
    ref: Optional[str] = None
    before: Optional[str] = None
    after: Optional[str] = None
    commits: Optional[list[Commit]] = None
    pull_request: Optional[PullRequest] = None

    @property
    def owner(self) -> str:
        return self.repository.owner.login

    @property
    def repo(self) -> str:
        return self.repository.name

    def is_merged_pull_request(self) -> bool:
        """Check whether this is a pull request that was just merged."""
        return (
            self.pull_request is not None
            and self.action == "closed"
            and self.pull_request.merged
        )

    def targets_branch(self, branch: str) -> bool:
        """
        Check whether the event concerns the given branch.

        Pull-request events are matched on their base branch; push events on
        ``ref``. Events without any ref are not filtered out.
        """
        if self.pull_request is not None:
            return self.pull_request.base.ref == branch
        if self.ref:
            return self.ref == f"refs/heads/{branch}"
        return True

    def content_ref(self) -> Optional[str]:
        """Return the revision at which file contents should be read."""
        if self.pull_request is not None:
            return self.pull_request.merge_commit_sha or self.pull_request.head.sha or None
        return self.after


def _unwrap_envelope(raw: bytes) -> Any:
    text = raw.decode("utf-8")

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        # application/x-www-form-urlencoded delivery: payload=<json>
        form = parse_qs(text)
        if "payload" not in form:
            raise
        data = {"payload": form["payload"][0]}

    if isinstance(data, dict) and "repository" not in data:
        inner = data.get("payload")
        if isinstance(inner, str):
            data = json.loads(inner)
        elif isinstance(inner, dict):
            data = inner

    return data


def parse_webhook_body(raw: bytes) -> WebhookPayload:
    """
    Parse a raw webhook request body into a WebhookPayload.

    Raises:
        PayloadValidationError: If the body is not valid JSON, not a known
            envelope, or does not match the event schema
    """
    try:
        data = _unwrap_envelope(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise PayloadValidationError(f"Webhook body is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise PayloadValidationError("Webhook body must be a JSON object")

    try:
        return WebhookPayload.model_validate(data)
    except ValidationError as e:
        raise PayloadValidationError(f"Webhook payload failed validation: {e}") from e
