import logging
import time
import uuid
from typing import Dict

from app.core.config import SESSION_TTL_SECONDS
from app.schemas.content import SessionState
from app.services.errors import SessionNotFoundError

logger = logging.getLogger(__name__)

# In-memory only; sessions are gone when the process restarts
_sessions: Dict[str, SessionState] = {}
_last_seen: Dict[str, float] = {}


def _now() -> float:
    return time.monotonic()


def _evict_expired() -> None:
    """Drop sessions idle for longer than SESSION_TTL_SECONDS.

    A session with a generation in flight is kept: its request still holds it.
    """
    cutoff = _now() - SESSION_TTL_SECONDS
    expired = [
        session_id
        for session_id, seen in _last_seen.items()
        if seen < cutoff
        and not (_sessions[session_id].is_generating_topics or _sessions[session_id].is_generating_article)
    ]
    for session_id in expired:
        _sessions.pop(session_id, None)
        _last_seen.pop(session_id, None)
    if expired:
        logger.info(f"Evicted {len(expired)} idle session(s)")


def create_session() -> SessionState:
    _evict_expired()
    session_id = str(uuid.uuid4())
    state = SessionState(session_id=session_id)
    _sessions[session_id] = state
    _last_seen[session_id] = _now()
    logger.info(f"Created session {session_id}")
    return state


def get_session(session_id: str) -> SessionState:
    state = _sessions.get(session_id)
    if state is None:
        raise SessionNotFoundError(f"Session {session_id} not found")
    _last_seen[session_id] = _now()
    return state


def delete_session(session_id: str) -> None:
    if _sessions.pop(session_id, None) is None:
        raise SessionNotFoundError(f"Session {session_id} not found")
    _last_seen.pop(session_id, None)
    logger.info(f"Deleted session {session_id}")


def session_count() -> int:
    return len(_sessions)


def clear_sessions() -> None:
    _sessions.clear()
    _last_seen.clear()
