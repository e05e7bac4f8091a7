"""
Record pacing for streaming sessions.

The extractor can recover several records from one chunk; the emitter
spaces their delivery so a downstream UI never receives them faster than a
fixed cadence. The first record of a session is delivered immediately.
"""
import threading
import time
from typing import Any, Callable, Optional

from loguru import logger

from .errors import RecordSinkError
from .retry import pause


class RecordEmitter:
    """
    Deliver records to a caller-supplied sink with a minimum inter-record gap.

    The sink is revocable: once cancel_event is set (or revoke() is called)
    no further record is delivered.
    """

    def __init__(
        self,
        sink: Callable[[Any], Any],
        interval: float = 0.8,
        sleep: Optional[Callable[[float], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        cancel_event: Optional[threading.Event] = None,
    ):
        self._sink = sink
        self.interval = interval
        self._sleep = sleep
        self._clock = clock
        self._cancel_event = cancel_event
        self._last_emit_at: Optional[float] = None
        self._revoked = False
        self.emitted = 0

    @property
    def active(self) -> bool:
        if self._revoked:
            return False
        return not (self._cancel_event is not None and self._cancel_event.is_set())

    def revoke(self) -> None:
        self._revoked = True

    def emit(self, record) -> bool:
        """
        Deliver one record, waiting out the remainder of the interval first.

        Returns:
            False if the session was cancelled and the record was dropped

        Raises:
            RecordSinkError: The sink raised; the emitter is revoked
        """
        if not self.active:
            return False

        if self._last_emit_at is not None:
            remaining = self.interval - (self._clock() - self._last_emit_at)
            if remaining > 0 and not pause(remaining, self._sleep, self._cancel_event):
                return False
            if not self.active:
                return False

        try:
            self._sink(record)
        except Exception as e:
            self.revoke()
            raise RecordSinkError(e) from e
        self._last_emit_at = self._clock()
        self.emitted += 1
        logger.debug(f"已推送第 {self.emitted} 条: {getattr(record, 'id', '?')}")
        return True
