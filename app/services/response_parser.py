"""
Validation of raw generation output.

Topic responses are schema-constrained JSON, sometimes wrapped in a Markdown
code fence. Article responses are plain Markdown.
"""
import json
import logging
import re
from typing import Dict, List

from app.schemas.content import ArticleResult, Category, TopicSet, render_markdown
from app.services.errors import EmptyResponseError, MalformedResponseError

logger = logging.getLogger(__name__)

__all__ = ["strip_code_fences", "parse_topics", "build_article", "render_markdown"]

_FENCE_RE = re.compile(r"^\s*```([\w-]*)[ \t]*\r?\n?(.*?)\r?\n?```\s*$", re.DOTALL)
_MARKDOWN_FENCE_TAGS = {"", "markdown", "md"}


def strip_code_fences(text: str) -> str:
    """Remove one leading/trailing fenced-block wrapper, if present."""
    match = _FENCE_RE.match(text)
    if match:
        return match.group(2).strip()
    return text.strip()


def _unwrap_article(text: str) -> str:
    # An article that opens and closes with real code blocks is not a wrapper
    match = _FENCE_RE.match(text)
    if match and match.group(1).lower() in _MARKDOWN_FENCE_TAGS and "```" not in match.group(2):
        return match.group(2).strip()
    return text.strip()


def parse_topics(text: str) -> TopicSet:
    cleaned = strip_code_fences(text or "")
    if not cleaned:
        raise EmptyResponseError("Topic response was empty")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            f"Invalid JSON from model: {e}: {cleaned[:200]}",
            reason=MalformedResponseError.PARSE_FAILURE,
        ) from e

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Expected a JSON object of topic lists, got {type(data).__name__}",
            reason=MalformedResponseError.UNEXPECTED_FORMAT,
        )

    categories: Dict[Category, List[str]] = {}
    for key, value in data.items():
        category = Category.lookup(key)
        if category is None:
            logger.warning(f"Dropping unknown topic category from model response: {key!r}")
            continue
        if value is None:
            value = []
        if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
            raise MalformedResponseError(
                f"Category {key!r} should be a list of strings",
                reason=MalformedResponseError.UNEXPECTED_FORMAT,
            )
        topics = [t.strip() for t in value if t.strip()]
        categories.setdefault(category, []).extend(topics)

    return TopicSet(categories=categories)


def build_article(text: str) -> ArticleResult:
    if not text or not text.strip():
        raise EmptyResponseError("Article response was empty")

    markdown_text = _unwrap_article(text)
    if not markdown_text:
        raise EmptyResponseError("Article response contained only an empty code fence")
    return ArticleResult(markdown_text=markdown_text)
