"""
AI Retry Module

This module drives one logical request through an ordered list of
(transport client, model identifier) pairs with exponential backoff.

Design Principles:
    - Exponential backoff: delay = base * 2 ^ attempt (optionally capped)
    - Models are iterated fastest, transport clients slowest
    - Rate-limited failures advance the model; a wrapped model list sleeps first
    - Transient failures move straight to the next transport client
    - Fatal failures propagate without further retries
    - Exhaustion surfaces one GenerationFailedError, the cause is logged and chained
"""
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar

from loguru import logger

from roastgen.enums.error_kind import ErrorKind
from .errors import (
    DEFAULT_FAILURE_MESSAGE,
    ConfigurationError,
    GenerationCancelled,
    GenerationFailedError,
    classify_error,
)


T = TypeVar("T")


def backoff_delay(attempt: int, base: float = 2.0, max_delay: Optional[float] = None) -> float:
    """
    Map an attempt counter to a wait duration.

    Args:
        attempt: Number of failed attempts so far (>= 0)
        base: Delay in seconds for attempt 0
        max_delay: Upper bound for the delay (None = uncapped)

    Returns:
        Delay in seconds

    Examples:
        >>> backoff_delay(1)
        4.0
        >>> backoff_delay(10, max_delay=60)
        60
    """
    if attempt < 0:
        raise ValueError(f"attempt must be >= 0, got {attempt}")
    delay = base * (2 ** attempt)
    if max_delay is not None:
        return min(delay, max_delay)
    return delay


def pause(
    seconds: float,
    sleep: Optional[Callable[[float], Any]] = None,
    cancel_event: Optional[threading.Event] = None,
) -> bool:
    """
    Suspend the current request only.

    With a cancellation event and no explicit sleep function the wait is
    interrupted as soon as the event is set.

    Returns:
        False if the session was cancelled during (or before) the wait
    """
    if seconds <= 0:
        return not (cancel_event is not None and cancel_event.is_set())
    if cancel_event is not None and sleep is None:
        return not cancel_event.wait(seconds)
    (sleep or time.sleep)(seconds)
    return not (cancel_event is not None and cancel_event.is_set())


@dataclass(frozen=True)
class ServiceTarget:
    """One (transport client, model identifier) pair."""
    transport: Any
    transport_index: int
    model: str
    model_index: int

    @property
    def transport_name(self) -> str:
        return getattr(self.transport, "name", None) or f"transport-{self.transport_index}"

    def __str__(self) -> str:
        return f"{self.transport_name}/{self.model}"


@dataclass
class RetrySession:
    """
    Mutable retry state scoped to one logical request.

    attempt and backoff_exponent reset per transport client; every
    transport client gets its own attempt budget.
    """
    transport_index: int = 0
    model_index: int = 0
    attempt: int = 0
    backoff_exponent: int = 0
    last_error: Optional[BaseException] = None

    def next_transport(self) -> None:
        self.transport_index += 1
        self.model_index = 0
        self.attempt = 0
        self.backoff_exponent = 0


class FallbackChain:
    """
    Fallback chain controller.

    Holds immutable ordered lists of transport clients and model identifiers
    and runs an attempt body against them until one attempt succeeds.

    Examples:
        >>> chain = FallbackChain(transports=[primary, proxy], models=["m1", "m2"])
        >>> text = chain.run(lambda target: target.transport.generate_text(target.model, prompt, 0.7))
    """

    def __init__(
        self,
        transports: Sequence[Any],
        models: Sequence[str],
        max_attempts: int = 5,
        backoff_base: float = 2.0,
        backoff_max: Optional[float] = None,
        sleep: Optional[Callable[[float], Any]] = None,
        failure_message: str = DEFAULT_FAILURE_MESSAGE,
    ):
        """
        Initialize the controller.

        Args:
            transports: Ordered transport clients (iterated slowest)
            models: Ordered model identifiers (iterated fastest)
            max_attempts: Retryable failures allowed per transport client
            backoff_base: Base delay in seconds for exponential backoff
            backoff_max: Cap for a single backoff sleep (None = uncapped)
            sleep: Sleep function, injectable for tests (default: time.sleep,
                   or an interruptible wait when a cancel event is given)
            failure_message: User-facing message for exhaustion
        """
        self.transports = tuple(transports)
        self.models = tuple(models)
        if not self.transports:
            raise ConfigurationError("FallbackChain requires at least one transport client")
        if not self.models:
            raise ConfigurationError("FallbackChain requires at least one model identifier")
        if max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be >= 1, got {max_attempts}")

        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self._sleep = sleep
        self.failure_message = failure_message

    def derive(
        self,
        models: Optional[Sequence[str]] = None,
        max_attempts: Optional[int] = None,
        failure_message: Optional[str] = None,
    ) -> "FallbackChain":
        """Return a chain over the same transports with some settings overridden."""
        return FallbackChain(
            transports=self.transports,
            models=self.models if models is None else models,
            max_attempts=self.max_attempts if max_attempts is None else max_attempts,
            backoff_base=self.backoff_base,
            backoff_max=self.backoff_max,
            sleep=self._sleep,
            failure_message=failure_message or self.failure_message,
        )

    def run(
        self,
        attempt_body: Callable[[ServiceTarget], T],
        cancel_event: Optional[threading.Event] = None,
        task: str = "generation",
    ) -> T:
        """
        Run attempt_body until it succeeds or every transport is exhausted.

        Args:
            attempt_body: Performs one attempt against a ServiceTarget
            cancel_event: Set by the caller to abandon the request
            task: Name used in log messages

        Returns:
            Whatever attempt_body returns on the first success

        Raises:
            GenerationCancelled: If cancel_event is set
            ConfigurationError: Fatal failures propagate unchanged
            GenerationFailedError: All transport clients exhausted
        """
        session = RetrySession()

        while session.transport_index < len(self.transports):
            transport = self.transports[session.transport_index]

            while True:
                if cancel_event is not None and cancel_event.is_set():
                    raise GenerationCancelled(f"[{task}] cancelled by caller")

                target = ServiceTarget(
                    transport=transport,
                    transport_index=session.transport_index,
                    model=self.models[session.model_index],
                    model_index=session.model_index,
                )
                logger.debug(f"[{task}] 尝试 {target} (attempt {session.attempt + 1}/{self.max_attempts})")

                try:
                    return attempt_body(target)
                except Exception as e:
                    session.last_error = e
                    kind = classify_error(e)

                    if kind is ErrorKind.FATAL:
                        logger.error(f"[{task}] {target} 致命错误，停止重试: {e}")
                        raise

                    if kind is ErrorKind.TRANSIENT:
                        logger.warning(f"[{task}] {target} {kind.label}，切换下一个客户端: {e}")
                        break

                    session.attempt += 1
                    if session.attempt >= self.max_attempts:
                        logger.warning(
                            f"[{task}] {target.transport_name} 重试 {self.max_attempts} 次后仍被限流: {e}"
                        )
                        break

                    if session.model_index < len(self.models) - 1:
                        session.model_index += 1
                        logger.warning(
                            f"[{task}] {target} {kind.label}，切换模型 {self.models[session.model_index]}"
                        )
                        continue

                    session.backoff_exponent = session.attempt
                    delay = backoff_delay(session.backoff_exponent, self.backoff_base, self.backoff_max)
                    logger.warning(
                        f"[{task}] {target.transport_name} 所有模型均被限流 "
                        f"(尝试 {session.attempt}/{self.max_attempts})，{delay:.1f}秒后重试..."
                    )
                    if not pause(delay, self._sleep, cancel_event):
                        raise GenerationCancelled(f"[{task}] cancelled during backoff")
                    session.model_index = 0

            session.next_transport()

        logger.error(f"[{task}] 所有客户端和模型均已耗尽: {session.last_error!r}")
        raise GenerationFailedError(self.failure_message) from session.last_error


__all__ = [
    "backoff_delay",
    "pause",
    "ServiceTarget",
    "RetrySession",
    "FallbackChain",
]
