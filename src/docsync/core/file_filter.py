"""
Path filtering, index naming and priority scoring for repository files.

Centralizes the rules deciding which repository files are synchronized,
under which name they are stored in the vector store, and how urgent a
change-set is.
"""

import re
from collections.abc import Iterable, Sequence
from pathlib import PurePosixPath

from docsync.core.file_changes import FileChange

MDX_EXTENSION = ".mdx"
MARKDOWN_EXTENSION = ".md"

# Priority bounds for queued jobs
MIN_PRIORITY = 1
MAX_PRIORITY = 10
CRITICAL_BOOST = 2
FILES_PER_PRIORITY_STEP = 5

_PATH_SEPARATORS = re.compile(r"[/\\]")


def get_extension(path: str) -> str:
    """Return the lower-cased extension of a repository path ('' if none)."""
    return PurePosixPath(path.replace("\\", "/")).suffix.lower()


def should_process_file(
    path: str,
    supported_extensions: Iterable[str],
    excluded_paths: Iterable[str],
) -> bool:
    """
    Decide whether a repository file is synchronized to the vector store.

    A file is skipped when its path contains an excluded fragment
    (dependency caches, VCS metadata, build output) or starts with a dot.

    Args:
        path: Repository-relative file path
        supported_extensions: Extensions (with leading dot) accepted
        excluded_paths: Path fragments that exclude a file when present

    Returns:
        True if the file should be processed
    """
    if path.startswith("."):
        return False
    if any(fragment in path for fragment in excluded_paths):
        return False

    supported = {ext.lower() for ext in supported_extensions}
    return get_extension(path) in supported


def is_mdx(path: str) -> bool:
    return path.lower().endswith(MDX_EXTENSION)


def index_filename(path: str) -> str:
    """
    Map a repository path to the filename stored in the vector store.

    Path separators become underscores and ``.mdx`` becomes ``.md`` since
    MDX content is converted before upload.

    Examples:
        docs/guide/intro.mdx -> docs_guide_intro.md
        src\\index.ts -> src_index.ts
    """
    encoded = _PATH_SEPARATORS.sub("_", path)
    if is_mdx(encoded):
        encoded = encoded[: -len(MDX_EXTENSION)] + MARKDOWN_EXTENSION
    return encoded


def calculate_priority(files: Sequence[FileChange], critical_extensions: Iterable[str]) -> int:
    """
    Compute the queue priority of a change-set.

    Smaller change-sets get a higher baseline; change-sets touching
    documentation-like files get a boost. The result is clamped to
    [MIN_PRIORITY, MAX_PRIORITY].
    """
    priority = max(MIN_PRIORITY, MAX_PRIORITY - len(files) // FILES_PER_PRIORITY_STEP)

    critical = {ext.lower() for ext in critical_extensions}
    if any(get_extension(change.filename) in critical for change in files):
        priority += CRITICAL_BOOST

    return min(MAX_PRIORITY, priority)
