"""
Error types for content generation and the session flow.

Generation failures (GenerationError subclasses) are caught at the session
boundary and turned into a message stored on the session. Session errors
(SessionError subclasses) mean the request itself was invalid and are mapped
to HTTP status codes by the routes.
"""
from typing import Any, Optional


class GenerationError(Exception):
    """Base class for every failure of a generation call."""


class TransportError(GenerationError):
    """Network or HTTP failure talking to the generation endpoint."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class AuthError(GenerationError):
    """The endpoint rejected our credentials."""


class MalformedResponseError(GenerationError):
    """Topic response could not be turned into a TopicSet."""

    PARSE_FAILURE = "parse_failure"
    UNEXPECTED_FORMAT = "unexpected_format"

    def __init__(self, message: str, reason: str = PARSE_FAILURE):
        super().__init__(message)
        self.reason = reason


class EmptyResponseError(GenerationError):
    """The call succeeded but returned no usable text."""


class GenerationCancelledError(GenerationError):
    """A cancellation was requested before the next attempt or backoff sleep."""


class SessionError(Exception):
    """Base class for requests the session state machine refuses."""


class SessionNotFoundError(SessionError):
    pass


class InvalidTransitionError(SessionError):
    pass


class SessionBusyError(SessionError):
    pass


def describe_error(exc: Exception, scope: str) -> str:
    """Turn a generation failure into the message shown to the user.

    scope is "topics" or "article" and only changes the wording.
    """
    what = "topics" if scope == "topics" else "the blog post"

    if isinstance(exc, AuthError):
        return "The AI service rejected the API key. Check that a valid key is configured on the server."
    if isinstance(exc, MalformedResponseError):
        if exc.reason == MalformedResponseError.UNEXPECTED_FORMAT:
            return f"The AI returned {what} in an unexpected format. Please try again."
        return f"The AI response for {what} could not be read. Please try again."
    if isinstance(exc, EmptyResponseError):
        if scope == "topics":
            return "The AI returned no topics. Try a different or more specific product name."
        return "The AI returned an empty blog post. Try selecting a different topic."
    if isinstance(exc, GenerationCancelledError):
        return f"Generating {what} was cancelled."
    if isinstance(exc, TransportError):
        if exc.status_code in (503, 529):
            return "The AI model is currently overloaded. Please wait a moment and try again."
        return f"Failed to generate {what}. Please try again."
    return f"Failed to generate {what}. Please try again."
