"""
Session state machine for the three-step content flow.

    intro -> context -> product_and_results
                  ^            |
                  +---- back --+

SessionState is only changed by the transition functions below. Generation
failures never escape generate_topics / generate_article: they end up as a
message in state.error. Requests that make no sense for the current state
(wrong step, scope already busy) raise SessionError subclasses instead.
"""
import logging
from typing import Optional

from app.schemas.content import Category, ContextKind, SessionState, Step
from app.services import content_generator
from app.services.errors import (
    GenerationError,
    InvalidTransitionError,
    SessionBusyError,
    describe_error,
)

logger = logging.getLogger(__name__)

CONTEXT_REQUIRED_MESSAGE = "Please provide your business information or a website URL."
PRODUCT_REQUIRED_MESSAGE = "Please enter a product name."
TOPIC_REQUIRED_MESSAGE = "Please select a topic."


def _require_step(state: SessionState, step: Step, action: str) -> None:
    if state.step != step:
        raise InvalidTransitionError(f"Cannot {action} while on step '{state.step.value}'")


def _retry_status(state: SessionState, scope: str, what: str):
    # Status text only; the retry wrapper ignores anything this does
    def on_retry(attempt: int, delay_ms: int) -> None:
        message = f"The AI model is busy. Retrying {what} in {delay_ms // 1000}s (attempt {attempt + 1})..."
        if scope == "topics":
            state.topics_status = message
        else:
            state.article_status = message
    return on_retry


# ----------------------------------------
# Step navigation
# ----------------------------------------
def start(state: SessionState) -> SessionState:
    _require_step(state, Step.INTRO, "start")
    state.step = Step.CONTEXT
    return state


def set_context_kind(state: SessionState, context_kind: ContextKind) -> SessionState:
    """Switch between description and URL input. Switching clears the entered text."""
    _require_step(state, Step.CONTEXT, "change the context type")
    context_kind = ContextKind(context_kind)
    if context_kind != state.context_kind:
        state.context_kind = context_kind
        state.business_context = ""
    return state


def submit_context(
    state: SessionState,
    business_context: str,
    context_kind: Optional[ContextKind] = None,
) -> SessionState:
    _require_step(state, Step.CONTEXT, "submit business context")
    if context_kind is not None:
        state.context_kind = ContextKind(context_kind)
    state.business_context = business_context or ""

    if not state.business_context.strip():
        state.error = CONTEXT_REQUIRED_MESSAGE
        return state

    state.error = None
    state.step = Step.PRODUCT_AND_RESULTS
    return state


def go_back(state: SessionState) -> SessionState:
    _require_step(state, Step.PRODUCT_AND_RESULTS, "go back")
    state.step = Step.CONTEXT
    state.error = None
    return state


def select_category(state: SessionState, category: str) -> SessionState:
    _require_step(state, Step.PRODUCT_AND_RESULTS, "select a category")
    resolved = Category.lookup(category)
    if state.topics is None or resolved is None or not state.topics.has(resolved):
        raise InvalidTransitionError(f"Category {category!r} is not available")
    state.selected_category = resolved
    return state


# ----------------------------------------
# Generation
# ----------------------------------------
async def generate_topics(state: SessionState, product_name: str) -> SessionState:
    _require_step(state, Step.PRODUCT_AND_RESULTS, "generate topics")
    if state.is_generating_topics:
        raise SessionBusyError("Topics are already being generated")

    state.product_name = product_name or ""
    if not state.product_name.strip():
        state.error = PRODUCT_REQUIRED_MESSAGE
        return state

    state.error = None
    state.topics = None
    state.selected_category = None
    state.selected_topic = None
    state.article = None
    state.topics_run += 1
    state.is_generating_topics = True

    try:
        topics = await content_generator.generate_topics(
            state.product_name.strip(),
            on_retry=_retry_status(state, "topics", "topic generation"),
        )
        state.topics = topics
        state.selected_category = topics.default_category
    except GenerationError as e:
        logger.warning(f"[Session {state.session_id}] Topic generation failed: {type(e).__name__}: {e}")
        state.error = describe_error(e, "topics")
    except Exception as e:
        logger.exception(f"[Session {state.session_id}] Unexpected error generating topics")
        state.error = describe_error(e, "topics")
    finally:
        state.is_generating_topics = False
        state.topics_status = None

    return state


async def generate_article(state: SessionState, topic: str) -> SessionState:
    _require_step(state, Step.PRODUCT_AND_RESULTS, "generate an article")
    if state.is_generating_article:
        raise SessionBusyError("An article is already being generated")

    if not topic or not topic.strip():
        state.error = TOPIC_REQUIRED_MESSAGE
        return state
    if not state.product_name.strip():
        state.error = PRODUCT_REQUIRED_MESSAGE
        return state

    state.error = None
    state.article = None
    state.selected_topic = topic.strip()
    state.is_generating_article = True
    # Topics regenerated while this call runs make its result stale
    topics_run = state.topics_run

    try:
        article = await content_generator.generate_article(
            state.product_name.strip(),
            state.business_context.strip(),
            state.context_kind,
            state.selected_topic,
            on_retry=_retry_status(state, "article", "the blog post"),
        )
        if state.topics_run == topics_run:
            state.article = article
        else:
            logger.info(f"[Session {state.session_id}] Dropping article for {topic!r}: topics were regenerated")
    except GenerationError as e:
        logger.warning(f"[Session {state.session_id}] Article generation failed: {type(e).__name__}: {e}")
        state.error = describe_error(e, "article")
    except Exception as e:
        logger.exception(f"[Session {state.session_id}] Unexpected error generating article")
        state.error = describe_error(e, "article")
    finally:
        state.is_generating_article = False
        state.article_status = None

    return state


def export_markdown(state: SessionState) -> str:
    """Raw Markdown of the current article, for copying to the clipboard."""
    if state.article is None:
        raise InvalidTransitionError("There is no generated article to export")
    return state.article.markdown_text
