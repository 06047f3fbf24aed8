import asyncio
from types import SimpleNamespace

import httpx
import openai
import pytest
from pydantic import ValidationError

from app.schemas.content import GenerationRequest
from app.services import generation_client
from app.services.errors import AuthError, TransportError
from app.services.retry import is_transient_overload

API_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


class FakeCompletions:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    async def create(self, **params):
        self.calls.append(params)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def fake_client(monkeypatch):
    def install(outcome) -> FakeCompletions:
        completions = FakeCompletions(outcome)
        client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
        monkeypatch.setattr(generation_client, "_client", client)
        return completions
    return install


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _status_error(cls, status_code, body=None):
    response = httpx.Response(status_code, request=API_REQUEST)
    return cls("error", response=response, body=body)


def test_returns_text(fake_client):
    completions = fake_client(_completion("# Hello"))

    text = asyncio.run(generation_client.generate(GenerationRequest(prompt="Write")))

    assert text == "# Hello"
    params = completions.calls[0]
    assert params["messages"][-1] == {"role": "user", "content": "Write"}
    assert "response_format" not in params


def test_schema_is_sent_as_json_schema(fake_client):
    completions = fake_client(_completion("{}"))
    schema = {"type": "object", "properties": {}, "required": [], "additionalProperties": False}

    asyncio.run(generation_client.generate(GenerationRequest(prompt="Topics", response_schema=schema)))

    response_format = completions.calls[0]["response_format"]
    assert response_format["type"] == "json_schema"
    assert response_format["json_schema"]["schema"] == schema
    assert response_format["json_schema"]["strict"] is True


def test_no_choices_returns_empty_text(fake_client):
    fake_client(SimpleNamespace(choices=[]))

    assert asyncio.run(generation_client.generate(GenerationRequest(prompt="x"))) == ""


def test_null_content_returns_empty_text(fake_client):
    fake_client(_completion(None))

    assert asyncio.run(generation_client.generate(GenerationRequest(prompt="x"))) == ""


@pytest.mark.parametrize("cls, status_code", [
    (openai.AuthenticationError, 401),
    (openai.PermissionDeniedError, 403),
])
def test_credential_errors_map_to_auth_error(fake_client, cls, status_code):
    fake_client(_status_error(cls, status_code))

    with pytest.raises(AuthError):
        asyncio.run(generation_client.generate(GenerationRequest(prompt="x")))


def test_service_unavailable_is_transient(fake_client):
    body = {"message": "The model is overloaded", "code": "server_overloaded"}
    fake_client(_status_error(openai.InternalServerError, 503, body=body))

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(generation_client.generate(GenerationRequest(prompt="x")))

    assert exc_info.value.status_code == 503
    assert exc_info.value.payload == body
    assert is_transient_overload(exc_info.value)


def test_bad_request_is_not_transient(fake_client):
    fake_client(_status_error(openai.BadRequestError, 400, body={"message": "invalid schema"}))

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(generation_client.generate(GenerationRequest(prompt="x")))

    assert exc_info.value.status_code == 400
    assert not is_transient_overload(exc_info.value)


@pytest.mark.parametrize("error", [
    openai.APITimeoutError(request=API_REQUEST),
    openai.APIConnectionError(request=API_REQUEST),
])
def test_network_failures_map_to_transport_error(fake_client, error):
    fake_client(error)

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(generation_client.generate(GenerationRequest(prompt="x")))

    assert exc_info.value.status_code is None


def test_request_is_immutable():
    request = GenerationRequest(prompt="x")

    with pytest.raises(ValidationError):
        request.prompt = "y"


def test_unmapped_sdk_errors_become_transport_errors(fake_client):
    response = httpx.Response(200, request=API_REQUEST)
    fake_client(openai.APIResponseValidationError(response=response, body=None))

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(generation_client.generate(GenerationRequest(prompt="x")))

    assert "APIResponseValidationError" in str(exc_info.value)
    assert not is_transient_overload(exc_info.value)
