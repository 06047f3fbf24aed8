import asyncio

import pytest

from app.services.errors import AuthError, GenerationCancelledError, TransportError
from app.services.retry import is_transient_overload, with_retry
from conftest import overload_error


class FlakyCall:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_succeeds_after_two_overloads(no_sleep):
    call = FlakyCall(overload_error(), overload_error(), "done")
    retries = []

    result = asyncio.run(with_retry(call, lambda attempt, delay: retries.append((attempt, delay))))

    assert result == "done"
    assert call.calls == 3
    assert retries == [(1, 1000), (2, 2000)]
    assert no_sleep == [1.0, 2.0]


def test_auth_error_is_never_retried(no_sleep):
    call = FlakyCall(AuthError("bad key"), "unreachable")
    retries = []

    with pytest.raises(AuthError):
        asyncio.run(with_retry(call, lambda *a: retries.append(a)))

    assert call.calls == 1
    assert retries == []
    assert no_sleep == []


def test_gives_up_after_max_attempts(no_sleep):
    last = overload_error()
    call = FlakyCall(overload_error(), overload_error(), last, "unreachable")

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(with_retry(call, max_attempts=3))

    assert exc_info.value is last
    assert call.calls == 3
    assert no_sleep == [1.0, 2.0]


def test_non_overload_transport_error_fails_fast(no_sleep):
    call = FlakyCall(TransportError("Bad request", status_code=400), "unreachable")

    with pytest.raises(TransportError):
        asyncio.run(with_retry(call))

    assert call.calls == 1


def test_delays_double_each_attempt(no_sleep):
    call = FlakyCall(*[overload_error() for _ in range(4)], "ok")
    retries = []

    result = asyncio.run(with_retry(call, lambda a, d: retries.append(d), max_attempts=5))

    assert result == "ok"
    assert retries == [1000, 2000, 4000, 8000]


def test_single_attempt_does_not_retry(no_sleep):
    call = FlakyCall(overload_error(), "unreachable")

    with pytest.raises(TransportError):
        asyncio.run(with_retry(call, max_attempts=1))

    assert call.calls == 1


def test_failing_on_retry_callback_does_not_change_outcome(no_sleep):
    call = FlakyCall(overload_error(), "ok")

    def broken(attempt, delay):
        raise RuntimeError("display failed")

    assert asyncio.run(with_retry(call, broken)) == "ok"
    assert call.calls == 2


def test_explicit_sleep_is_used():
    call = FlakyCall(overload_error(529), "ok")
    slept = []

    async def sleep(seconds):
        slept.append(seconds)

    assert asyncio.run(with_retry(call, sleep=sleep)) == "ok"
    assert slept == [1.0]


def test_cancel_before_first_attempt():
    call = FlakyCall("ok")
    event = asyncio.Event()
    event.set()

    with pytest.raises(GenerationCancelledError):
        asyncio.run(with_retry(call, cancel_event=event))

    assert call.calls == 0


def test_cancel_during_backoff(no_sleep):
    call = FlakyCall(overload_error(), "unreachable")
    event = asyncio.Event()

    with pytest.raises(GenerationCancelledError):
        asyncio.run(with_retry(call, lambda a, d: event.set(), cancel_event=event))

    assert call.calls == 1
    assert no_sleep == []


@pytest.mark.parametrize(
    "error, expected",
    [
        (TransportError("Service Unavailable", status_code=503), True),
        (TransportError("Overloaded", status_code=529), True),
        (TransportError("error", status_code=500, payload={"error": {"message": "The model is overloaded"}}), True),
        (TransportError("error", status_code=500, payload={"error": {"status": "UNAVAILABLE"}}), True),
        (TransportError("Internal error", status_code=500), False),
        (TransportError("Rate limit reached", status_code=429), False),
        (TransportError("Connection reset"), False),
        (AuthError("Service unavailable"), False),
        (ValueError("overloaded"), False),
    ],
)
def test_transient_overload_classification(error, expected):
    assert is_transient_overload(error) is expected
