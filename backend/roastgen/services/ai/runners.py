"""
Request Runners Module

StreamingRequestRunner: one streaming call through the fallback chain.
Chunks feed a fresh IncrementalObjectExtractor per attempt and recovered
records go through a RecordEmitter to the caller's sink.

SingleRecordRequestRunner: one schema-constrained call through the same
fallback chain, returning exactly one validated record.

Known limitation: a streaming attempt that fails after emitting records is
retried from scratch, so a caller may receive records produced by the failed
attempt followed by the records of the retry. Identifiers are minted per
attempt, so callers cannot dedupe by id.
"""
import threading
import time
from typing import Any, Callable, Optional, Type

from loguru import logger
from pydantic import BaseModel

from .errors import GenerationCancelled, MalformedResponseError, RecordSinkError, TruncatedStreamError
from .pacing import RecordEmitter
from .retry import FallbackChain, ServiceTarget
from .schemas.request_schema import GenerationRequest, OutputMode
from .schemas.roast_schema import Roast, RoastPayload
from .utils.partial_parser import IncrementalObjectExtractor, parse_single_object, roast_from_object


class StreamingRequestRunner:
    """
    Streaming request runner.

    Examples:
        >>> runner = StreamingRequestRunner(chain, pacing_interval=0.8)
        >>> runner.run(GenerationRequest(prompt="..."), on_record=print)
    """

    def __init__(
        self,
        chain: FallbackChain,
        pacing_interval: float = 0.8,
        sleep: Optional[Callable[[float], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        extractor_factory: Callable[[], IncrementalObjectExtractor] = IncrementalObjectExtractor,
    ):
        self.chain = chain
        self.pacing_interval = pacing_interval
        self._sleep = sleep
        self._clock = clock
        self._extractor_factory = extractor_factory

    def run(
        self,
        request: GenerationRequest,
        on_record: Callable[[Roast], Any],
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        """
        Stream records to on_record until the stream completes.

        Args:
            request: Generation request (prompt is opaque)
            on_record: Sink invoked once per recovered record, in extraction order
            cancel_event: Set by the caller to abandon the session; no record
                          is delivered after it is set

        Returns:
            Number of records delivered to on_record

        Raises:
            GenerationFailedError: Every transport client was exhausted
            ValueError: request.output_mode is not OutputMode.TEXT
            Exception: Whatever on_record raised, unchanged (never retried)
        """
        if request.output_mode is not OutputMode.TEXT:
            raise ValueError(f"Streaming requires output_mode=text, got {request.output_mode.value}")

        emitter = RecordEmitter(
            on_record,
            interval=self.pacing_interval,
            sleep=self._sleep,
            clock=self._clock,
            cancel_event=cancel_event,
        )

        def attempt(target: ServiceTarget) -> int:
            return self._stream_once(target, request, emitter, cancel_event)

        try:
            self.chain.run(attempt, cancel_event=cancel_event, task="stream")
        except GenerationCancelled:
            emitter.revoke()
            logger.info(f"[stream] 会话已取消，已推送 {emitter.emitted} 条")
        except RecordSinkError as e:
            logger.error(f"[stream] 回调出错，停止会话 (已推送 {emitter.emitted} 条): {e.original!r}")
            raise e.original from None
        return emitter.emitted

    def _stream_once(
        self,
        target: ServiceTarget,
        request: GenerationRequest,
        emitter: RecordEmitter,
        cancel_event: Optional[threading.Event],
    ) -> int:
        extractor = self._extractor_factory()
        stream = target.transport.stream_text(target.model, request.prompt, request.temperature)
        delivered = 0
        started = self._clock()

        try:
            for chunk in stream:
                if cancel_event is not None and cancel_event.is_set():
                    raise GenerationCancelled("cancelled while streaming")
                for record in extractor.feed(chunk):
                    if not emitter.emit(record):
                        raise GenerationCancelled("cancelled while pacing")
                    delivered += 1
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()

        if extractor.has_pending_object:
            raise TruncatedStreamError(
                f"{target} stream ended inside an object "
                f"({len(extractor.buffer)} chars pending, {delivered} records delivered)"
            )

        elapsed = self._clock() - started
        logger.info(
            f"[stream] {target} 完成: {delivered} 条 "
            f"(丢弃 {extractor.discarded} 个无效片段), 耗时 {elapsed:.2f}s"
        )
        return delivered


class SingleRecordRequestRunner:
    """
    Single-record request runner.

    Examples:
        >>> runner = SingleRecordRequestRunner(chain)
        >>> roast = runner.run(GenerationRequest(prompt="...", output_mode=OutputMode.JSON))
    """

    def __init__(self, chain: FallbackChain):
        self.chain = chain

    def run(
        self,
        request: GenerationRequest,
        schema: Type[BaseModel] = RoastPayload,
        cancel_event: Optional[threading.Event] = None,
    ) -> Roast:
        """
        Request one record and validate it against schema.

        With output_mode=json the schema is also sent to the transport as the
        response constraint; with output_mode=text only the prompt shapes the
        reply and the schema is enforced client-side.

        Returns:
            Validated Roast with a fresh identifier

        Raises:
            GenerationFailedError: Every transport client was exhausted
            GenerationCancelled: cancel_event was set
        """

        response_schema = schema if request.output_mode is OutputMode.JSON else None

        def attempt(target: ServiceTarget) -> Roast:
            text = target.transport.generate_text(
                target.model,
                request.prompt,
                request.temperature,
                response_schema=response_schema,
            )
            return self._parse_record(text, schema, target)

        return self.chain.run(attempt, cancel_event=cancel_event, task="single")

    @staticmethod
    def _parse_record(text: str, schema: Type[BaseModel], target: ServiceTarget) -> Roast:
        data = parse_single_object(text)
        try:
            schema.model_validate(data)
            record = roast_from_object(data)
        except (ValueError, OverflowError) as e:
            raise MalformedResponseError(
                f"{target} response does not match {schema.__name__}: {e}",
                raw_content=text[:500],
            ) from e

        logger.info(f"[single] {target} 成功: style={record.style} attackPower={record.attack_power}")
        return record


__all__ = [
    "StreamingRequestRunner",
    "SingleRecordRequestRunner",
]
