import logging

import openai

from app.core.config import GENERATION_TIMEOUT_SECONDS, OPENAI_MODEL
from app.schemas.content import GenerationRequest
from app.services.errors import AuthError, TransportError

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = "You are an expert SEO content strategist and copywriter."
JSON_SYSTEM_MESSAGE = SYSTEM_MESSAGE + " Always return strictly valid JSON, no prose."

# Client initialized lazily
_client = None


def get_openai_client():
    """Get or create the async OpenAI client (lazy initialization).

    The SDK's own retries are switched off; retry policy lives in app.services.retry.
    """
    global _client
    if _client is None:
        _client = openai.AsyncOpenAI(
            timeout=GENERATION_TIMEOUT_SECONDS,
            max_retries=0,
        )
    return _client


def _build_params(request: GenerationRequest) -> dict:
    params = {
        "model": OPENAI_MODEL,
        "messages": [
            {
                "role": "system",
                "content": JSON_SYSTEM_MESSAGE if request.response_schema else SYSTEM_MESSAGE,
            },
            {"role": "user", "content": request.prompt},
        ],
    }
    if request.response_schema:
        params["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": "structured_output",
                "schema": request.response_schema,
                "strict": True,
            },
        }
    return params


async def generate(request: GenerationRequest) -> str:
    """Send one generation request and return the raw response text.

    Raises AuthError when the key is rejected and TransportError for any other
    network or HTTP failure. Never retries.
    """
    try:
        client = get_openai_client()
    except openai.OpenAIError as e:
        # Raised by the SDK when OPENAI_API_KEY is missing
        raise AuthError(str(e)) from e

    try:
        response = await client.chat.completions.create(**_build_params(request))
    except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
        raise AuthError(f"Generation endpoint rejected credentials: {e}") from e
    except openai.APIStatusError as e:
        raise TransportError(
            f"Generation endpoint returned HTTP {e.status_code}: {e}",
            status_code=e.status_code,
            payload=e.body,
        ) from e
    except openai.APITimeoutError as e:
        raise TransportError(f"Generation request timed out after {GENERATION_TIMEOUT_SECONDS}s") from e
    except openai.APIConnectionError as e:
        raise TransportError(f"Could not reach generation endpoint: {e}") from e
    except openai.OpenAIError as e:
        # APIResponseValidationError, bare APIError and anything the SDK adds later
        raise TransportError(f"Generation request failed: {type(e).__name__}: {e}") from e

    if not response.choices:
        logger.warning("Generation endpoint returned no choices")
        return ""

    return response.choices[0].message.content or ""
