"""
Error Kind Enumeration

Defines how a failed generation attempt is handled by the fallback chain.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """
    Classification of a failed attempt.

    - rate_limited: Quota or rate limit hit. Advance model, back off after
      the model list wraps.
    - transient: Network/timeout/malformed output. Move on to the next
      transport client immediately.
    - fatal: Configuration error or cancellation. Propagate without retrying.
    """

    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    FATAL = "fatal"

    @property
    def label(self) -> str:
        """
        Get human-readable label for the kind.

        Returns:
            str: Chinese label for display
        """
        labels = {
            "rate_limited": "限流/配额耗尽",
            "transient": "临时故障",
            "fatal": "致命错误",
        }
        return labels.get(self.value, "未知错误")

    @property
    def is_retryable(self) -> bool:
        return self is not ErrorKind.FATAL
