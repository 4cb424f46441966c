"""
Configuration module for docsync.

Supports loading from YAML/JSON files with environment variable overrides.
Default values are loaded from defaults.yaml for maintainability.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

# Path to the default configuration file
_DEFAULTS_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

# Cache for default values
_defaults_cache: dict[str, Any] | None = None


def _load_defaults() -> dict[str, Any]:
    """Load default configuration values from defaults.yaml."""
    global _defaults_cache

    if _defaults_cache is not None:
        return _defaults_cache

    if not _DEFAULTS_CONFIG_PATH.exists():
        logger.warning(f"Defaults config not found: {_DEFAULTS_CONFIG_PATH}")
        _defaults_cache = {}
        return _defaults_cache

    try:
        content = _DEFAULTS_CONFIG_PATH.read_text(encoding="utf-8")
        _defaults_cache = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse defaults config: {e}")
        _defaults_cache = {}

    return _defaults_cache


def _get_default(section: str, key: str, fallback: Any = None) -> Any:
    """Get a default value from the defaults config."""
    defaults = _load_defaults()
    section_defaults = defaults.get(section, {})
    value = section_defaults.get(key, fallback)
    # Lists are copied so instances never share mutable defaults
    if isinstance(value, list):
        return list(value)
    return value


@dataclass
class GitHubConfig:
    """Configuration for the source repository (GitHub) client."""

    token: str = field(default_factory=lambda: _get_default("github", "token", ""))
    api_url: str = field(
        default_factory=lambda: _get_default("github", "api_url", "https://api.github.com")
    )
    webhook_secret: str = field(
        default_factory=lambda: _get_default("github", "webhook_secret", "")
    )
    branch: str = field(default_factory=lambda: _get_default("github", "branch", "main"))
    timeout: float = field(default_factory=lambda: _get_default("github", "timeout", 30.0))
    max_retries: int = field(default_factory=lambda: _get_default("github", "max_retries", 3))
    fetch_group_size: int = field(
        default_factory=lambda: _get_default("github", "fetch_group_size", 10)
    )


@dataclass
class VectorStoreConfig:
    """Configuration for the OpenAI vector store service."""

    api_key: str = field(default_factory=lambda: _get_default("vector_store", "api_key", ""))
    api_url: str = field(
        default_factory=lambda: _get_default(
            "vector_store", "api_url", "https://api.openai.com/v1"
        )
    )
    vector_store_id: str = field(
        default_factory=lambda: _get_default("vector_store", "vector_store_id", "")
    )
    name_prefix: str = field(
        default_factory=lambda: _get_default("vector_store", "name_prefix", "repo-")
    )
    expires_after_days: int = field(
        default_factory=lambda: _get_default("vector_store", "expires_after_days", 30)
    )
    timeout: float = field(default_factory=lambda: _get_default("vector_store", "timeout", 60.0))
    max_retries: int = field(
        default_factory=lambda: _get_default("vector_store", "max_retries", 3)
    )
    search_limit: int = field(
        default_factory=lambda: _get_default("vector_store", "search_limit", 20)
    )


@dataclass
class QueueConfig:
    """Configuration for the priority job queue."""

    max_concurrent_jobs: int = field(
        default_factory=lambda: _get_default("queue", "max_concurrent_jobs", 3)
    )
    max_size: int = field(default_factory=lambda: _get_default("queue", "max_size", 100))
    max_attempts: int = field(default_factory=lambda: _get_default("queue", "max_attempts", 3))
    tick_interval: float = field(
        default_factory=lambda: _get_default("queue", "tick_interval", 1.0)
    )
    eviction_delay: float = field(
        default_factory=lambda: _get_default("queue", "eviction_delay", 300.0)
    )
    backoff_base: float = field(
        default_factory=lambda: _get_default("queue", "backoff_base", 2.0)
    )
    job_timeout: float = field(default_factory=lambda: _get_default("queue", "job_timeout", 900.0))


@dataclass
class BatchConfig:
    """Configuration for batch processing against the vector store."""

    size: int = field(default_factory=lambda: _get_default("batch", "size", 10))
    timeout_ms: int = field(default_factory=lambda: _get_default("batch", "timeout_ms", 30000))
    temp_dir: str = field(
        default_factory=lambda: _get_default("batch", "temp_dir", "/tmp/webhook-files")
    )
    remove_group_size: int = field(
        default_factory=lambda: _get_default("batch", "remove_group_size", 5)
    )
    remove_group_delay: float = field(
        default_factory=lambda: _get_default("batch", "remove_group_delay", 1.0)
    )
    upload_group_size: int = field(
        default_factory=lambda: _get_default("batch", "upload_group_size", 3)
    )
    upload_group_delay: float = field(
        default_factory=lambda: _get_default("batch", "upload_group_delay", 2.0)
    )


@dataclass
class RateLimitConfig:
    """Rate limit settings reported alongside queue statistics."""

    per_minute: int = field(default_factory=lambda: _get_default("rate_limit", "per_minute", 20))
    window_ms: int = field(
        default_factory=lambda: _get_default("rate_limit", "window_ms", 60000)
    )


@dataclass
class FilterConfig:
    """Configuration for which repository files are synchronized."""

    supported_extensions: list[str] = field(
        default_factory=lambda: _get_default(
            "filters",
            "supported_extensions",
            [".md", ".txt", ".json", ".xml", ".csv", ".pdf", ".docx", ".ts", ".js", ".mdx"],
        )
    )
    excluded_paths: list[str] = field(
        default_factory=lambda: _get_default(
            "filters", "excluded_paths", ["node_modules", ".git", "dist", "build"]
        )
    )
    critical_extensions: list[str] = field(
        default_factory=lambda: _get_default(
            "filters",
            "critical_extensions",
            [".md", ".txt", ".json", ".xml", ".csv", ".pdf", ".docx"],
        )
    )


@dataclass
class ServerConfig:
    """Configuration for the HTTP server."""

    host: str = field(default_factory=lambda: _get_default("server", "host", "0.0.0.0"))
    port: int = field(default_factory=lambda: _get_default("server", "port", 3000))


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = field(default_factory=lambda: _get_default("logging", "level", "INFO"))
    format: str = field(
        default_factory=lambda: _get_default(
            "logging", "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    )


_SECTIONS: dict[str, type] = {
    "github": GitHubConfig,
    "vector_store": VectorStoreConfig,
    "queue": QueueConfig,
    "batch": BatchConfig,
    "rate_limit": RateLimitConfig,
    "filters": FilterConfig,
    "server": ServerConfig,
    "logging": LoggingConfig,
}


_SENSITIVE_FIELDS = (
    ("github", "token"),
    ("github", "webhook_secret"),
    ("vector_store", "api_key"),
)


@dataclass
class DocsyncConfig:
    """Main configuration class for docsync."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    vector_store: VectorStoreConfig = field(default_factory=VectorStoreConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "DocsyncConfig":
        """
        Load configuration from a YAML or JSON file.

        Args:
            path: Path to the configuration file (.yaml, .yml, or .json)

        Returns:
            DocsyncConfig instance with loaded values

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the file format is unsupported
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "DocsyncConfig":
        """Create DocsyncConfig from a dictionary."""
        config = cls()

        for section, section_cls in _SECTIONS.items():
            if section in data:
                setattr(config, section, section_cls(**(data[section] or {})))

        return config

    def apply_env_overrides(self) -> "DocsyncConfig":
        """
        Apply environment variable overrides to the configuration.

        Environment variables follow the pattern: DOCSYNC_<SECTION>_<KEY>
        Examples:
            - DOCSYNC_GITHUB_TOKEN
            - DOCSYNC_GITHUB_WEBHOOK_SECRET
            - DOCSYNC_VECTOR_STORE_API_KEY
            - DOCSYNC_QUEUE_MAX_CONCURRENT_JOBS
            - DOCSYNC_FILTERS_SUPPORTED_EXTENSIONS (comma separated)

        Returns:
            Self with environment overrides applied
        """
        env_mappings = {
            # GitHub config
            "DOCSYNC_GITHUB_TOKEN": ("github", "token", str),
            "DOCSYNC_GITHUB_API_URL": ("github", "api_url", str),
            "DOCSYNC_GITHUB_WEBHOOK_SECRET": ("github", "webhook_secret", str),
            "DOCSYNC_GITHUB_BRANCH": ("github", "branch", str),
            "DOCSYNC_GITHUB_TIMEOUT": ("github", "timeout", float),
            "DOCSYNC_GITHUB_MAX_RETRIES": ("github", "max_retries", int),
            "DOCSYNC_GITHUB_FETCH_GROUP_SIZE": ("github", "fetch_group_size", int),
            # Vector store config
            "DOCSYNC_VECTOR_STORE_API_KEY": ("vector_store", "api_key", str),
            "DOCSYNC_VECTOR_STORE_API_URL": ("vector_store", "api_url", str),
            "DOCSYNC_VECTOR_STORE_ID": ("vector_store", "vector_store_id", str),
            "DOCSYNC_VECTOR_STORE_NAME_PREFIX": ("vector_store", "name_prefix", str),
            "DOCSYNC_VECTOR_STORE_EXPIRES_AFTER_DAYS": ("vector_store", "expires_after_days", int),
            "DOCSYNC_VECTOR_STORE_TIMEOUT": ("vector_store", "timeout", float),
            "DOCSYNC_VECTOR_STORE_MAX_RETRIES": ("vector_store", "max_retries", int),
            "DOCSYNC_VECTOR_STORE_SEARCH_LIMIT": ("vector_store", "search_limit", int),
            # Queue config
            "DOCSYNC_QUEUE_MAX_CONCURRENT_JOBS": ("queue", "max_concurrent_jobs", int),
            "DOCSYNC_QUEUE_MAX_SIZE": ("queue", "max_size", int),
            "DOCSYNC_QUEUE_MAX_ATTEMPTS": ("queue", "max_attempts", int),
            "DOCSYNC_QUEUE_TICK_INTERVAL": ("queue", "tick_interval", float),
            "DOCSYNC_QUEUE_EVICTION_DELAY": ("queue", "eviction_delay", float),
            "DOCSYNC_QUEUE_BACKOFF_BASE": ("queue", "backoff_base", float),
            "DOCSYNC_QUEUE_JOB_TIMEOUT": ("queue", "job_timeout", float),
            # Batch config
            "DOCSYNC_BATCH_SIZE": ("batch", "size", int),
            "DOCSYNC_BATCH_TIMEOUT_MS": ("batch", "timeout_ms", int),
            "DOCSYNC_BATCH_TEMP_DIR": ("batch", "temp_dir", str),
            "DOCSYNC_BATCH_REMOVE_GROUP_SIZE": ("batch", "remove_group_size", int),
            "DOCSYNC_BATCH_REMOVE_GROUP_DELAY": ("batch", "remove_group_delay", float),
            "DOCSYNC_BATCH_UPLOAD_GROUP_SIZE": ("batch", "upload_group_size", int),
            "DOCSYNC_BATCH_UPLOAD_GROUP_DELAY": ("batch", "upload_group_delay", float),
            # Rate limit config
            "DOCSYNC_RATE_LIMIT_PER_MINUTE": ("rate_limit", "per_minute", int),
            "DOCSYNC_RATE_LIMIT_WINDOW_MS": ("rate_limit", "window_ms", int),
            # Filter config
            "DOCSYNC_FILTERS_SUPPORTED_EXTENSIONS": ("filters", "supported_extensions", _parse_list),
            "DOCSYNC_FILTERS_EXCLUDED_PATHS": ("filters", "excluded_paths", _parse_list),
            "DOCSYNC_FILTERS_CRITICAL_EXTENSIONS": ("filters", "critical_extensions", _parse_list),
            # Server config
            "DOCSYNC_SERVER_HOST": ("server", "host", str),
            "DOCSYNC_SERVER_PORT": ("server", "port", int),
            # Logging config
            "DOCSYNC_LOGGING_LEVEL": ("logging", "level", str),
        }

        for env_var, (section, key, converter) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                section_obj = getattr(self, section)
                setattr(section_obj, key, converter(value))

        return self

    def to_dict(self) -> dict:
        """Convert configuration to a dictionary."""
        return asdict(self)

    def to_dict_safe(self) -> dict:
        """
        Convert configuration to a dictionary with credentials redacted.

        Empty credentials are kept as empty strings so a missing value is
        still visible.
        """
        data = self.to_dict()
        for section, key in _SENSITIVE_FIELDS:
            if data[section].get(key):
                data[section][key] = "[REDACTED]"
        return data

    def to_yaml(self) -> str:
        """Serialize configuration to YAML string."""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        """Serialize configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    def save(self, path: Path | str) -> None:
        """
        Save configuration to a file.

        Args:
            path: Path to save the configuration (.yaml, .yml, or .json)

        Raises:
            ValueError: If the file format is unsupported
        """
        path = Path(path)

        if path.suffix in (".yaml", ".yml"):
            content = self.to_yaml()
        elif path.suffix == ".json":
            content = self.to_json()
        else:
            raise ValueError(f"Unsupported config file format: {path.suffix}")

        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def _parse_list(value: str) -> list[str]:
    """Parse a comma separated string into a list of trimmed items."""
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config(
    config_path: Optional[Path | str] = None, apply_env: bool = True
) -> DocsyncConfig:
    """
    Load configuration with optional environment variable overrides.

    Args:
        config_path: Optional path to config file. If None, uses defaults.
        apply_env: Whether to apply environment variable overrides.

    Returns:
        DocsyncConfig instance
    """
    if config_path:
        config = DocsyncConfig.from_file(config_path)
    else:
        config = DocsyncConfig()

    if apply_env:
        config.apply_env_overrides()

    return config


def setup_logging(config: LoggingConfig) -> None:
    """Configure root logging from the logging section."""
    level = getattr(logging, config.level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=config.format)
