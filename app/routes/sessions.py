import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import GENERATION_RATE_LIMIT, SESSION_CREATE_RATE_LIMIT
from app.schemas.content import (
    ArticleRequest,
    CategoryRequest,
    ContextKindRequest,
    ContextRequest,
    SessionState,
    TopicsRequest,
)
from app.services import session, session_store
from app.services.errors import (
    InvalidTransitionError,
    SessionBusyError,
    SessionError,
    SessionNotFoundError,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sessions", tags=["sessions"])
limiter = Limiter(key_func=get_remote_address)


def _session_http_error(e: SessionError) -> HTTPException:
    if isinstance(e, SessionNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (InvalidTransitionError, SessionBusyError)):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def _get_state(session_id: str) -> SessionState:
    try:
        return session_store.get_session(session_id)
    except SessionNotFoundError as e:
        raise _session_http_error(e)


def _respond(state: SessionState) -> dict:
    return {
        "status": "error" if state.error else "success",
        "data": state.model_dump(mode="json"),
    }


# ----------------------------------------
# SESSION LIFECYCLE
# ----------------------------------------
@router.post("")
@limiter.limit(SESSION_CREATE_RATE_LIMIT)
def create_session(request: Request):
    """Start a new session on the intro step."""
    return _respond(session_store.create_session())


@router.get("/{session_id}")
def get_session(session_id: str):
    return _respond(_get_state(session_id))


@router.delete("/{session_id}")
def delete_session(session_id: str):
    try:
        session_store.delete_session(session_id)
    except SessionNotFoundError as e:
        raise _session_http_error(e)
    return {"status": "success"}


# ----------------------------------------
# STEP NAVIGATION
# ----------------------------------------
@router.post("/{session_id}/start")
def start(session_id: str):
    state = _get_state(session_id)
    try:
        return _respond(session.start(state))
    except SessionError as e:
        raise _session_http_error(e)


@router.post("/{session_id}/context-kind")
def set_context_kind(session_id: str, body: ContextKindRequest):
    state = _get_state(session_id)
    try:
        return _respond(session.set_context_kind(state, body.context_kind))
    except SessionError as e:
        raise _session_http_error(e)


@router.post("/{session_id}/context")
def submit_context(session_id: str, body: ContextRequest):
    """Submit the business description or website URL (step 1)."""
    state = _get_state(session_id)
    try:
        return _respond(session.submit_context(state, body.business_context, body.context_kind))
    except SessionError as e:
        raise _session_http_error(e)


@router.post("/{session_id}/back")
def go_back(session_id: str):
    state = _get_state(session_id)
    try:
        return _respond(session.go_back(state))
    except SessionError as e:
        raise _session_http_error(e)


@router.post("/{session_id}/category")
def select_category(session_id: str, body: CategoryRequest):
    state = _get_state(session_id)
    try:
        return _respond(session.select_category(state, body.category))
    except SessionError as e:
        raise _session_http_error(e)


# ----------------------------------------
# GENERATION
# ----------------------------------------
@router.post("/{session_id}/topics")
@limiter.limit(GENERATION_RATE_LIMIT)
async def generate_topics(request: Request, session_id: str, body: TopicsRequest):
    """Generate categorized blog topics for the product (step 2).

    Generation failures come back as status "error" with data.error set.
    """
    state = _get_state(session_id)
    try:
        return _respond(await session.generate_topics(state, body.product_name))
    except SessionError as e:
        raise _session_http_error(e)
    except Exception as e:
        logger.exception(f"[Session {session_id}] Unexpected error generating topics")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/{session_id}/article")
@limiter.limit(GENERATION_RATE_LIMIT)
async def generate_article(request: Request, session_id: str, body: ArticleRequest):
    """Write the full blog post for the selected topic (step 3)."""
    state = _get_state(session_id)
    try:
        return _respond(await session.generate_article(state, body.topic))
    except SessionError as e:
        raise _session_http_error(e)
    except Exception as e:
        logger.exception(f"[Session {session_id}] Unexpected error generating article")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{session_id}/article/markdown", response_class=PlainTextResponse)
def export_article_markdown(session_id: str):
    """Raw Markdown of the generated article, for the copy-to-clipboard button."""
    state = _get_state(session_id)
    try:
        return PlainTextResponse(session.export_markdown(state), media_type="text/markdown")
    except SessionError as e:
        raise _session_http_error(e)
