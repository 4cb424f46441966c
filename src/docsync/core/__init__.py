"""
Core Layer - Configuration, file change models, payload schema, filtering, and MDX conversion.
"""

from docsync.core.config import (
    BatchConfig,
    DocsyncConfig,
    FilterConfig,
    GitHubConfig,
    LoggingConfig,
    QueueConfig,
    RateLimitConfig,
    ServerConfig,
    VectorStoreConfig,
    load_config,
    setup_logging,
)
from docsync.core.file_changes import FileChange, FileStatus
from docsync.core.file_filter import (
    calculate_priority,
    index_filename,
    is_mdx,
    should_process_file,
)
from docsync.core.mdx_converter import convert_mdx_to_md, preprocess_mdx
from docsync.core.signature import SIGNATURE_HEADER, sign_payload, verify_signature
from docsync.core.webhook_payload import (
    PayloadValidationError,
    WebhookPayload,
    parse_webhook_body,
)

__all__ = [
    # Config
    "DocsyncConfig",
    "GitHubConfig",
    "VectorStoreConfig",
    "QueueConfig",
    "BatchConfig",
    "RateLimitConfig",
    "FilterConfig",
    "ServerConfig",
    "LoggingConfig",
    "load_config",
    "setup_logging",
    # File changes
    "FileChange",
    "FileStatus",
    # Filtering and priority
    "should_process_file",
    "index_filename",
    "is_mdx",
    "calculate_priority",
    # MDX conversion
    "convert_mdx_to_md",
    "preprocess_mdx",
    # Webhook payload and signature
    "WebhookPayload",
    "PayloadValidationError",
    "parse_webhook_body",
    "SIGNATURE_HEADER",
    "sign_payload",
    "verify_signature",
]
