import os

# Must be set before app.core.config is imported
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("GENERATION_RATE_LIMIT", "1000/minute")
os.environ.setdefault("SESSION_CREATE_RATE_LIMIT", "1000/minute")

import pytest

from app.services import errors, session_store


def overload_error(status_code: int = 503) -> errors.TransportError:
    return errors.TransportError(
        "The model is overloaded. Please try again later.",
        status_code=status_code,
        payload={"error": {"code": status_code, "status": "UNAVAILABLE"}},
    )


class ScriptedGenerate:
    """Stand-in for generation_client.generate that plays back a script.

    Each entry is either a string to return or an exception to raise.
    """

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.requests = []

    async def __call__(self, request):
        self.requests.append(request)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip real backoff waits and record the requested delays (seconds)."""
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    monkeypatch.setattr("app.services.retry.backoff_sleep", fake_sleep)
    return slept


@pytest.fixture
def scripted(monkeypatch):
    def install(*outcomes) -> ScriptedGenerate:
        fake = ScriptedGenerate(*outcomes)
        monkeypatch.setattr("app.services.generation_client.generate", fake)
        return fake
    return install


@pytest.fixture(autouse=True)
def clean_sessions():
    session_store.clear_sessions()
    yield
    session_store.clear_sessions()
