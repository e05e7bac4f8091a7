"""
AI Error Module

Exception hierarchy for the generation client and the single translation
boundary that turns arbitrary SDK/transport exceptions into an ErrorKind.

Only GenerationFailedError is ever meant to reach a caller: it carries one
user-facing message and chains the last underlying error as __cause__.
"""
from roastgen.enums.error_kind import ErrorKind


DEFAULT_FAILURE_MESSAGE = "生成失败，请检查网络或稍后再试。"

# Substrings (lower-case) that mark a quota/rate-limit condition in an error message
RATE_LIMIT_MARKERS = (
    "429",
    "quota",
    "resource_exhausted",
    "rate limit",
    "rate_limit",
    "ratelimit",
    "too many requests",
)


class RoastGenError(Exception):
    """Base class for all roastgen errors."""


class ConfigurationError(RoastGenError):
    """Missing API key, empty transport/model list, unknown provider."""


class RateLimitedError(RoastGenError):
    """Explicit rate-limit signal raised by an adapter."""

    status_code = 429


class TransportError(RoastGenError):
    """Generic transport failure (connection, non-2xx, timeout)."""


class MalformedResponseError(RoastGenError):
    """A response that could not be parsed or validated as a record."""

    def __init__(self, message: str, raw_content: str = ""):
        super().__init__(message)
        self.raw_content = raw_content


class TruncatedStreamError(TransportError):
    """The stream ended while an object was still open."""


class GenerationCancelled(RoastGenError):
    """The caller revoked the session; never retried."""


class RecordSinkError(RoastGenError):
    """
    The caller's record sink raised; never retried.

    Attributes:
        original: The exception raised by the sink
    """

    def __init__(self, original: BaseException):
        super().__init__(f"record sink raised {original!r}")
        self.original = original


class GenerationFailedError(RoastGenError):
    """
    Every transport client and model exhausted its attempt budget.

    Attributes:
        user_message: Message safe to show to an end user
    """

    def __init__(self, user_message: str = DEFAULT_FAILURE_MESSAGE):
        super().__init__(user_message)
        self.user_message = user_message


def _status_of(exc: BaseException):
    # google-genai APIError exposes .code, openai APIStatusError .status_code,
    # some HTTP libraries use .status
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def is_rate_limit_error(exc: BaseException) -> bool:
    """
    Check whether an exception signals quota exhaustion or rate limiting.

    Args:
        exc: Any exception raised by a transport call

    Returns:
        True for an explicit 429 status or a recognizable marker in the message
    """
    if isinstance(exc, RateLimitedError):
        return True
    if _status_of(exc) == 429:
        return True

    message = str(exc).lower()
    status_text = getattr(exc, "status", None)
    if isinstance(status_text, str):
        message = f"{message} {status_text.lower()}"
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Translate an exception into an ErrorKind.

    Args:
        exc: Exception raised by one attempt

    Returns:
        ErrorKind.FATAL for configuration errors, cancellation and sink failures,
        ErrorKind.RATE_LIMITED for quota/rate-limit signals,
        ErrorKind.TRANSIENT for everything else

    Examples:
        >>> classify_error(RateLimitedError("slow down"))
        <ErrorKind.RATE_LIMITED: 'rate_limited'>
        >>> classify_error(ConnectionError("reset by peer"))
        <ErrorKind.TRANSIENT: 'transient'>
    """
    if isinstance(exc, (ConfigurationError, GenerationCancelled, RecordSinkError)):
        return ErrorKind.FATAL
    # Raised by our own parsing; the message may quote model output
    if isinstance(exc, (MalformedResponseError, TruncatedStreamError)):
        return ErrorKind.TRANSIENT
    if is_rate_limit_error(exc):
        return ErrorKind.RATE_LIMITED
    return ErrorKind.TRANSIENT


__all__ = [
    "DEFAULT_FAILURE_MESSAGE",
    "RATE_LIMIT_MARKERS",
    "RoastGenError",
    "ConfigurationError",
    "RateLimitedError",
    "TransportError",
    "MalformedResponseError",
    "TruncatedStreamError",
    "GenerationCancelled",
    "RecordSinkError",
    "GenerationFailedError",
    "is_rate_limit_error",
    "classify_error",
]
