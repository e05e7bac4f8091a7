"""
Roast Service - 流式生成短评回复

Public facade used by callers (UI, scripts):
1. generate_roasts: stream several records for one input, paced
2. regenerate_roast: rewrite one existing record (single-record path)
3. analyze_context: guess the author's profile, best effort

Each call owns its own retry session and stream buffer; one RoastService
instance can be shared between threads. Only the transport and model
lists (immutable) are shared.
"""
import threading
import time
from typing import Any, Callable, Optional, Sequence

from loguru import logger

from roastgen.config import GenerationSettings, load_generation_settings
from roastgen.enums.roast_style import RoastStyle, style_from_label
from roastgen.services.ai.errors import GenerationCancelled
from roastgen.services.ai.prompts import (
    render_context_prompt,
    render_regenerate_prompt,
    render_stream_prompt,
)
from roastgen.services.ai.providers import build_transports
from roastgen.services.ai.retry import FallbackChain, ServiceTarget
from roastgen.services.ai.runners import SingleRecordRequestRunner, StreamingRequestRunner
from roastgen.services.ai.schemas import GenerationRequest, OutputMode, Roast, RoastPayload
from roastgen.services.ai.utils.fallback import ai_fallback, log_and_reraise


REGENERATE_FAILURE_MESSAGE = "刷新失败，请检查网络。"
MIN_CONTEXT_LENGTH = 5


class RoastService:
    """
    Roast generation service.

    Examples:
        >>> service = RoastService()
        >>> service.generate_roasts("你行你上啊", style="ALL", on_roast=print)
        >>> roast = service.regenerate_roast("你行你上啊", "逻辑鬼才", "原回复")
    """

    def __init__(
        self,
        settings: Optional[GenerationSettings] = None,
        transports: Optional[Sequence[Any]] = None,
        sleep: Optional[Callable[[float], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        初始化服务

        Args:
            settings: Immutable generation settings (default: from config.yaml)
            transports: Ordered transport clients (default: built from settings)
            sleep: Sleep function for backoff and pacing (injectable for tests)
            clock: Monotonic clock used for pacing
        """
        self.settings = settings or load_generation_settings()
        if transports is None:
            transports = build_transports(self.settings)
        self.transports = tuple(transports)

        self.chain = FallbackChain(
            transports=self.transports,
            models=self.settings.models,
            max_attempts=self.settings.max_attempts,
            backoff_base=self.settings.backoff_base,
            backoff_max=self.settings.backoff_max,
            sleep=sleep,
        )
        self.stream_runner = StreamingRequestRunner(
            self.chain,
            pacing_interval=self.settings.pacing_interval,
            sleep=sleep,
            clock=clock,
        )
        self.single_runner = SingleRecordRequestRunner(
            self.chain.derive(failure_message=REGENERATE_FAILURE_MESSAGE)
        )
        # Auxiliary call: one try per transport client, no model-level backoff
        self.context_chain = self.chain.derive(models=[self.settings.context_model], max_attempts=1)

        names = ", ".join(getattr(t, "name", "?") for t in self.transports)
        logger.info(f"RoastService: Initialized transports=[{names}] models={list(self.settings.models)}")

    # ========================================================================
    # 流式生成
    # ========================================================================

    @log_and_reraise("流式生成失败")
    def generate_roasts(
        self,
        text: str,
        style: Any = "ALL",
        background: str = "",
        on_roast: Optional[Callable[[Roast], Any]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        """
        Stream records for one input to on_roast.

        Args:
            text: User input
            style: RoastStyle, style name/label, or "ALL"
            background: Optional profile from analyze_context
            on_roast: Sink invoked once per record, at most every pacing interval
            cancel_event: Set to abandon the session

        Returns:
            Number of records delivered

        Raises:
            ValueError: Blank input or missing sink
            GenerationFailedError: Every transport client was exhausted
        """
        if not text or not text.strip():
            raise ValueError("Input text must not be empty")
        if on_roast is None:
            raise ValueError("on_roast callback is required")

        resolved = RoastStyle.from_selection(style)
        request = GenerationRequest(
            prompt=render_stream_prompt(text, resolved, background, self.settings.expected_count),
            temperature=self.settings.stream_temperature,
            output_mode=OutputMode.TEXT,
            expected_count=self.settings.expected_count,
        )
        logger.info(f"生成回复: style={resolved.value}, text={text[:30]}...")
        return self.stream_runner.run(request, on_roast, cancel_event=cancel_event)

    # ========================================================================
    # 单条刷新
    # ========================================================================

    @log_and_reraise("刷新失败")
    def regenerate_roast(
        self,
        text: str,
        label: str,
        original_content: str,
        background: str = "",
        cancel_event: Optional[threading.Event] = None,
    ) -> Roast:
        """
        Rewrite one record, keeping its persona (inferred from the label).

        Returns:
            Exactly one validated Roast with a fresh identifier

        Raises:
            GenerationFailedError: Every transport client was exhausted
        """
        style = style_from_label(label)
        request = GenerationRequest(
            prompt=render_regenerate_prompt(text, label, original_content, style, background),
            temperature=self.settings.single_temperature,
            output_mode=OutputMode.JSON,
            expected_count=1,
        )
        logger.info(f"刷新单条: label={label}, style={style.value}")
        return self.single_runner.run(request, schema=RoastPayload, cancel_event=cancel_event)

    # ========================================================================
    # 上下文分析
    # ========================================================================

    @ai_fallback(fallback_value="", log_message="上下文分析失败", passthrough=(GenerationCancelled,))
    def analyze_context(self, text: str, cancel_event: Optional[threading.Event] = None) -> str:
        """
        Guess a short profile of the input's author.

        Best effort: short inputs and any failure return "".
        """
        if not text or len(text.strip()) < MIN_CONTEXT_LENGTH:
            return ""

        prompt = render_context_prompt(text)
        temperature = self.settings.context_temperature

        def attempt(target: ServiceTarget) -> str:
            return target.transport.generate_text(target.model, prompt, temperature).strip()

        result = self.context_chain.run(attempt, cancel_event=cancel_event, task="context")
        logger.info(f"上下文分析: {result}")
        return result


__all__ = [
    "RoastService",
]
