"""
MDX to Markdown conversion for vector store ingestion.

MDX files mix Markdown with JSX components. The vector store only benefits
from the prose, so components are rewritten to plain Markdown constructs
(or unwrapped) before the result is rendered with markdown-it.

The rewrite order matters: frontmatter is set aside before any body
rewrite, and the generic component unwrapping runs last so it does not
swallow the named components converted before it.
"""

import re

from markdown_it import MarkdownIt

_FRONTMATTER = re.compile(r"^---\n[\s\S]*?\n---\n")
_IMPORT_LINE = re.compile(r"^import\s+.*$", re.MULTILINE)
_EXPORT_LINE = re.compile(r"^export\s+.*$", re.MULTILINE)

_IGNORE_CASE = re.IGNORECASE | re.DOTALL

# (pattern, replacement) pairs applied in order
_COMPONENT_CONVERSIONS: list[tuple[re.Pattern[str], str]] = [
    # Callouts and alerts
    (re.compile(r"<(Callout|Note|Info)([^>]*?)>(.*?)</\1>", _IGNORE_CASE), r"> **Note:** \3"),
    (
        re.compile(r"<(Warning|Alert)([^>]*?)>(.*?)</\1>", _IGNORE_CASE),
        "> **\u26a0\ufe0f Warning:** \\3",
    ),
    (re.compile(r"<(Tip)([^>]*?)>(.*?)</\1>", _IGNORE_CASE), "> **\U0001f4a1 Tip:** \\3"),
    # Code blocks
    (
        re.compile(
            r"<CodeBlock\s+language=['\"]([^'\"]*?)['\"]([^>]*?)>(.*?)</CodeBlock>", _IGNORE_CASE
        ),
        "```\\1\n\\3\n```",
    ),
    (re.compile(r"<pre([^>]*?)>(.*?)</pre>", _IGNORE_CASE), "```\n\\2\n```"),
    (re.compile(r"<code([^>]*?)>(.*?)</code>", _IGNORE_CASE), r"`\2`"),
    # Tabs
    (
        re.compile(r"<Tab\s+title=['\"]([^'\"]*?)['\"]([^>]*?)>(.*?)</Tab>", _IGNORE_CASE),
        "#### \\1\n\n\\3\n",
    ),
    (re.compile(r"<Tabs([^>]*?)>(.*?)</Tabs>", _IGNORE_CASE), r"\2"),
    # Details/Summary
    (
        re.compile(
            r"<Details\s+summary=['\"]([^'\"]*?)['\"]([^>]*?)>(.*?)</Details>", _IGNORE_CASE
        ),
        "<details>\n<summary>\\1</summary>\n\n\\3\n\n</details>",
    ),
    # Line and rule breaks
    (re.compile(r"<(br|BR)\s*/?>", re.IGNORECASE), "\n\n"),
    (re.compile(r"<(hr|HR)\s*/?>", re.IGNORECASE), "\n---\n"),
    # Any other component: keep its children
    (re.compile(r"<([A-Z][a-zA-Z0-9]*?)([^>]*?)>(.*?)</\1>", re.DOTALL), r"\3"),
    # Remaining self-closing components
    (re.compile(r"<[A-Z][a-zA-Z0-9]*?[^>]*?\s*/>"), ""),
]

_QUOTED_EXPRESSION = re.compile(r"\{(['\"`])(.*?)\1\}")
_EXPRESSION = re.compile(r"\{([^}]+)\}")
_BLANK_LINES = re.compile(r"\n\s*\n\s*\n")


def preprocess_mdx(content: str) -> str:
    """
    Rewrite MDX-specific syntax into plain Markdown.

    Args:
        content: Raw MDX source

    Returns:
        Markdown source with frontmatter preserved at the top
    """
    result = content

    frontmatter = ""
    match = _FRONTMATTER.match(result)
    if match:
        frontmatter = match.group(0)
        result = result[match.end():]

    result = _IMPORT_LINE.sub("", result)
    result = _EXPORT_LINE.sub("", result)

    for pattern, replacement in _COMPONENT_CONVERSIONS:
        result = pattern.sub(replacement, result)

    # JSX expressions: string literals become text, anything else inline code
    result = _QUOTED_EXPRESSION.sub(r"\2", result)
    result = _EXPRESSION.sub(r"`\1`", result)

    result = _BLANK_LINES.sub("\n\n", result).strip()

    return frontmatter + result


def _create_renderer() -> MarkdownIt:
    return MarkdownIt("js-default", {"html": True, "linkify": True, "breaks": False})


_renderer: MarkdownIt | None = None


def convert_mdx_to_md(content: str) -> str:
    """
    Convert MDX content to the text uploaded to the vector store.

    Never raises for string input; malformed MDX degrades to whatever the
    rewrite rules and the renderer make of it.
    """
    global _renderer
    if _renderer is None:
        _renderer = _create_renderer()

    return _renderer.render(preprocess_mdx(content))
