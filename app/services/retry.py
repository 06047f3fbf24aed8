import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from app.services.errors import GenerationCancelledError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

OVERLOAD_STATUS_CODES = {503, 529}
OVERLOAD_MARKERS = ("overloaded", "unavailable")
BASE_DELAY_MS = 1000


@dataclass
class RetryState:
    attempt_number: int = 0
    last_error: Optional[Exception] = None
    next_delay_ms: int = 0


def is_transient_overload(exc: Exception) -> bool:
    """True for 503/529 responses or errors whose payload says the model is overloaded."""
    if not isinstance(exc, TransportError):
        return False
    if exc.status_code in OVERLOAD_STATUS_CODES:
        return True

    payload = exc.payload
    if payload is not None and not isinstance(payload, str):
        try:
            payload = json.dumps(payload, default=str)
        except (TypeError, ValueError):
            payload = str(payload)
    haystack = f"{exc} {payload or ''}".lower()
    return any(marker in haystack for marker in OVERLOAD_MARKERS)


def backoff_delay_ms(attempt: int) -> int:
    return (2 ** attempt) * BASE_DELAY_MS


async def backoff_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def with_retry(
    call: Callable[[], Awaitable[T]],
    on_retry: Optional[Callable[[int, int], None]] = None,
    max_attempts: int = 3,
    *,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """Run call, retrying with exponential backoff while the endpoint is overloaded.

    Only transient-overload errors are retried, at most max_attempts calls in
    total. Waits are 1000ms, 2000ms, 4000ms... before retries 1, 2, 3...
    Every other error, and the last overload error once attempts run out, is
    re-raised unchanged. on_retry(next_attempt, delay_ms) is called before each
    wait; it is for status display only and cannot change the outcome.
    """
    state = RetryState()

    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelledError("Generation cancelled before attempt") from state.last_error

        try:
            return await call()
        except Exception as e:
            state.last_error = e
            if not is_transient_overload(e) or state.attempt_number >= max_attempts - 1:
                raise

        state.next_delay_ms = backoff_delay_ms(state.attempt_number)
        logger.warning(
            f"Generation endpoint overloaded (attempt {state.attempt_number + 1}/{max_attempts}), "
            f"retrying in {state.next_delay_ms}ms: {state.last_error}"
        )

        if on_retry is not None:
            try:
                on_retry(state.attempt_number + 1, state.next_delay_ms)
            except Exception:
                logger.exception("on_retry callback failed")

        if cancel_event is not None and cancel_event.is_set():
            raise GenerationCancelledError("Generation cancelled during backoff") from state.last_error

        await (sleep or backoff_sleep)(state.next_delay_ms / 1000)
        state.attempt_number += 1
