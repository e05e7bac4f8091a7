"""
AI client layer: fallback chain, incremental extraction, pacing and runners.
"""
from .errors import (
    ConfigurationError,
    GenerationCancelled,
    GenerationFailedError,
    MalformedResponseError,
    RateLimitedError,
    RoastGenError,
    TransportError,
    TruncatedStreamError,
    classify_error,
)
from .retry import FallbackChain, RetrySession, ServiceTarget, backoff_delay
from .pacing import RecordEmitter
from .runners import SingleRecordRequestRunner, StreamingRequestRunner

__all__ = [
    "ConfigurationError",
    "GenerationCancelled",
    "GenerationFailedError",
    "MalformedResponseError",
    "RateLimitedError",
    "RoastGenError",
    "TransportError",
    "TruncatedStreamError",
    "classify_error",
    "FallbackChain",
    "RetrySession",
    "ServiceTarget",
    "backoff_delay",
    "RecordEmitter",
    "SingleRecordRequestRunner",
    "StreamingRequestRunner",
]
