import logging
from typing import Callable, Optional

from app.core.config import GENERATION_MAX_ATTEMPTS
from app.schemas.content import ArticleResult, ContextKind, GenerationRequest, TopicSet
from app.services import generation_client
from app.services.response_parser import build_article, parse_topics
from app.services.retry import with_retry
from app.utils.prompts import TOPIC_RESPONSE_SCHEMA, build_article_prompt, build_topic_prompt

logger = logging.getLogger(__name__)

RetryCallback = Callable[[int, int], None]


async def _generate_text(request: GenerationRequest, on_retry: Optional[RetryCallback]) -> str:
    return await with_retry(
        lambda: generation_client.generate(request),
        on_retry=on_retry,
        max_attempts=GENERATION_MAX_ATTEMPTS,
    )


async def generate_topics(
    product_name: str,
    on_retry: Optional[RetryCallback] = None,
) -> TopicSet:
    """Generate categorized blog topic ideas for a product."""
    request = GenerationRequest(
        prompt=build_topic_prompt(product_name),
        response_schema=TOPIC_RESPONSE_SCHEMA,
    )
    text = await _generate_text(request, on_retry)
    topics = parse_topics(text)

    total = sum(len(t) for t in topics.categories.values())
    logger.info(f"Generated {total} topics across {len(topics.categories)} categories for {product_name!r}")
    return topics


async def generate_article(
    product_name: str,
    business_context: str,
    context_kind: ContextKind,
    topic: str,
    on_retry: Optional[RetryCallback] = None,
) -> ArticleResult:
    """Generate the full Markdown blog post for one topic."""
    request = GenerationRequest(
        prompt=build_article_prompt(product_name, business_context, context_kind, topic),
    )
    text = await _generate_text(request, on_retry)
    article = build_article(text)

    logger.info(f"Generated article for topic {topic!r} ({len(article.markdown_text.split())} words)")
    return article
