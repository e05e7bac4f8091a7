"""
重试与兜底链单元测试

测试 backoff_delay, pause, RetrySession, FallbackChain。
"""
import threading

import pytest

from roastgen.services.ai.errors import (
    ConfigurationError,
    GenerationCancelled,
    GenerationFailedError,
    RateLimitedError,
    TransportError,
)
from roastgen.services.ai.retry import (
    FallbackChain,
    RetrySession,
    ServiceTarget,
    backoff_delay,
    pause,
)


def _call(target: ServiceTarget) -> str:
    return target.transport.generate_text(target.model, "prompt", 0.7)


class TestBackoffDelay:
    """测试 backoff_delay"""

    @pytest.mark.parametrize("attempt,expected", [(0, 2.0), (1, 4.0), (3, 16.0)])
    def test_doubles_per_attempt(self, attempt, expected):
        assert backoff_delay(attempt) == expected

    def test_custom_base(self):
        assert backoff_delay(2, base=0.5) == 2.0

    def test_cap_applies(self):
        assert backoff_delay(10, max_delay=60.0) == 60.0

    def test_negative_attempt_rejected(self):
        with pytest.raises(ValueError):
            backoff_delay(-1)


class TestPause:
    """测试 pause"""

    def test_zero_seconds_does_not_sleep(self, sleep_calls):
        assert pause(0, sleep_calls) is True
        assert sleep_calls.calls == []

    def test_uses_injected_sleep(self, sleep_calls):
        assert pause(1.5, sleep_calls) is True
        assert sleep_calls.calls == [1.5]

    def test_returns_false_when_already_cancelled(self):
        """Given: 已取消的 event When: pause Then: 立即返回 False"""
        event = threading.Event()
        event.set()

        assert pause(30, cancel_event=event) is False

    def test_cancel_set_during_injected_sleep(self):
        event = threading.Event()

        assert pause(1.0, lambda seconds: event.set(), event) is False


class TestRetrySession:
    """测试 RetrySession"""

    def test_next_transport_resets_counters(self):
        session = RetrySession(transport_index=0, model_index=1, attempt=3, backoff_exponent=3)

        session.next_transport()

        assert (session.transport_index, session.model_index, session.attempt, session.backoff_exponent) == (1, 0, 0, 0)


class TestFallbackChainInit:
    """测试 FallbackChain 构造与 derive"""

    def test_empty_transports_rejected(self):
        with pytest.raises(ConfigurationError):
            FallbackChain(transports=[], models=["m1"])

    def test_empty_models_rejected(self, make_transport):
        with pytest.raises(ConfigurationError):
            FallbackChain(transports=[make_transport()], models=[])

    def test_zero_attempts_rejected(self, make_transport):
        with pytest.raises(ConfigurationError):
            FallbackChain(transports=[make_transport()], models=["m1"], max_attempts=0)

    def test_derive_overrides_only_given_fields(self, make_transport):
        chain = FallbackChain(transports=[make_transport()], models=["m1", "m2"], max_attempts=4)

        derived = chain.derive(models=["ctx"], max_attempts=1)

        assert derived.transports == chain.transports
        assert derived.models == ("ctx",)
        assert derived.max_attempts == 1
        assert derived.failure_message == chain.failure_message
        assert chain.models == ("m1", "m2")


class TestFallbackChainRun:
    """测试 FallbackChain.run"""

    def test_first_attempt_success(self, make_transport, sleep_calls):
        primary = make_transport("primary", single_script=["ok"])
        chain = FallbackChain([primary], ["m1", "m2"], sleep=sleep_calls)

        assert chain.run(_call) == "ok"
        assert primary.models_called == ["m1"]
        assert sleep_calls.calls == []

    def test_rate_limit_advances_model_without_sleeping(self, make_transport, sleep_calls):
        """Given: 2 个模型，第一次限流 When: run Then: 切换到第二个模型，不休眠"""
        primary = make_transport("primary", single_script=[RateLimitedError("quota"), "ok"])
        chain = FallbackChain([primary], ["m1", "m2"], sleep=sleep_calls)

        assert chain.run(_call) == "ok"
        assert primary.models_called == ["m1", "m2"]
        assert sleep_calls.calls == []

    def test_two_rate_limits_over_three_models_do_not_sleep(self, make_transport, sleep_calls):
        """Given: 3 个模型，连续两次限流 When: run Then: 依次使用三个模型，不休眠"""
        primary = make_transport(
            "primary",
            single_script=[RateLimitedError("429"), RateLimitedError("429"), "ok"],
        )
        chain = FallbackChain([primary], ["m1", "m2", "m3"], sleep=sleep_calls)

        assert chain.run(_call) == "ok"
        assert primary.models_called == ["m1", "m2", "m3"]
        assert sleep_calls.calls == []

    def test_wrapped_model_list_sleeps_then_next_transport(self, make_transport, sleep_calls):
        """Given: max_attempts=3，主客户端一直限流 When: run Then: 休眠一次后切换到代理客户端"""
        primary = make_transport("primary", single_script=[RateLimitedError("429")] * 3)
        proxy = make_transport("proxy", single_script=["from proxy"])
        chain = FallbackChain([primary, proxy], ["m1", "m2"], max_attempts=3, sleep=sleep_calls)

        assert chain.run(_call) == "from proxy"
        assert primary.models_called == ["m1", "m2", "m1"]
        assert proxy.models_called == ["m1"]
        assert sleep_calls.calls == [8.0]

    def test_backoff_sequence_is_capped(self, make_transport, sleep_calls):
        """Given: 5 次尝试预算，上限 10 秒 When: 全部限流 Then: 休眠 [8, 10] 后耗尽"""
        primary = make_transport("primary", single_script=[RateLimitedError("429")] * 5)
        chain = FallbackChain([primary], ["m1", "m2"], backoff_max=10.0, sleep=sleep_calls)

        with pytest.raises(GenerationFailedError):
            chain.run(_call)

        assert primary.models_called == ["m1", "m2", "m1", "m2", "m1"]
        assert sleep_calls.calls == [8.0, 10.0]

    def test_rate_limit_detected_from_message(self, make_transport, sleep_calls):
        primary = make_transport(
            "primary",
            single_script=[RuntimeError("429 RESOURCE_EXHAUSTED: quota exceeded"), "ok"],
        )
        chain = FallbackChain([primary], ["m1", "m2"], sleep=sleep_calls)

        assert chain.run(_call) == "ok"
        assert primary.models_called == ["m1", "m2"]

    def test_transient_error_skips_to_next_transport(self, make_transport, sleep_calls):
        """Given: 主客户端连接失败 When: run Then: 直接切换到代理客户端"""
        primary = make_transport("primary", single_script=[ConnectionError("reset by peer")])
        proxy = make_transport("proxy", single_script=["ok"])
        chain = FallbackChain([primary, proxy], ["m1", "m2"], sleep=sleep_calls)

        assert chain.run(_call) == "ok"
        assert primary.models_called == ["m1"]
        assert proxy.models_called == ["m1"]
        assert sleep_calls.calls == []

    def test_fatal_error_propagates(self, make_transport, sleep_calls):
        """Given: 配置错误 When: run Then: 原样抛出，不尝试下一个客户端"""
        primary = make_transport("primary", single_script=[ConfigurationError("no key")])
        proxy = make_transport("proxy", single_script=["ok"])
        chain = FallbackChain([primary, proxy], ["m1"], sleep=sleep_calls)

        with pytest.raises(ConfigurationError):
            chain.run(_call)
        assert proxy.calls == []

    def test_exhaustion_raises_single_user_facing_error(self, make_transport, sleep_calls):
        """Given: 所有客户端都失败 When: run Then: 抛出 GenerationFailedError，原因链接到最后一个错误"""
        last = TransportError("proxy down")
        primary = make_transport("primary", single_script=[TransportError("primary down")])
        proxy = make_transport("proxy", single_script=[last])
        chain = FallbackChain([primary, proxy], ["m1"], sleep=sleep_calls, failure_message="失败了")

        with pytest.raises(GenerationFailedError) as exc_info:
            chain.run(_call)

        assert exc_info.value.user_message == "失败了"
        assert exc_info.value.__cause__ is last

    def test_each_transport_gets_its_own_attempt_budget(self, make_transport, sleep_calls):
        primary = make_transport("primary", single_script=[RateLimitedError("429")] * 2)
        proxy = make_transport("proxy", single_script=[RateLimitedError("429"), "ok"])
        chain = FallbackChain([primary, proxy], ["m1"], max_attempts=2, backoff_base=1.0, sleep=sleep_calls)

        assert chain.run(_call) == "ok"
        assert primary.models_called == ["m1", "m1"]
        assert proxy.models_called == ["m1", "m1"]
        assert sleep_calls.calls == [2.0, 2.0]

    def test_cancelled_before_start(self, make_transport):
        primary = make_transport("primary", single_script=["ok"])
        chain = FallbackChain([primary], ["m1"])
        event = threading.Event()
        event.set()

        with pytest.raises(GenerationCancelled):
            chain.run(_call, cancel_event=event)
        assert primary.calls == []

    def test_cancelled_during_backoff(self, make_transport):
        """Given: 休眠期间调用方取消 When: run Then: 抛出 GenerationCancelled，不再尝试"""
        event = threading.Event()
        primary = make_transport("primary", single_script=[RateLimitedError("429"), "ok"])
        chain = FallbackChain([primary], ["m1"], sleep=lambda seconds: event.set())

        with pytest.raises(GenerationCancelled):
            chain.run(_call, cancel_event=event)
        assert primary.models_called == ["m1"]

    def test_attempt_body_receives_target_indices(self, make_transport):
        primary = make_transport("primary")
        proxy = make_transport("proxy")
        seen = []

        def body(target):
            seen.append((target.transport_index, target.model_index, str(target)))
            if target.transport_index == 0:
                raise TransportError("down")
            return "ok"

        FallbackChain([primary, proxy], ["m1"]).run(body)

        assert seen == [(0, 0, "primary/m1"), (1, 0, "proxy/m1")]
