"""
Unit tests for RoastService.

Transports are scripted fakes; sleeps advance a fake clock.
"""
import threading

import pytest

from roastgen.config import GenerationSettings
from roastgen.services.ai.errors import (
    DEFAULT_FAILURE_MESSAGE,
    GenerationCancelled,
    GenerationFailedError,
    RateLimitedError,
    TransportError,
)
from roastgen.services.roast_service import REGENERATE_FAILURE_MESSAGE, RoastService


OBJ_A = '{"style":"逻辑鬼才","content":"a","attackPower":80}'
OBJ_B = '{"style":"逻辑鬼才","content":"b","attackPower":90}'


@pytest.fixture
def settings():
    return GenerationSettings(models=("m1", "m2"), context_model="ctx", max_attempts=3)


def _service(settings, transports, fake_clock):
    return RoastService(settings=settings, transports=transports, sleep=fake_clock.sleep, clock=fake_clock)


class TestGenerateRoasts:
    """Test RoastService.generate_roasts."""

    def test_streams_paced_records(self, settings, make_transport, fake_clock):
        """Given: Primary streams two objects in one chunk
        When: generate_roasts
        Then: Both are delivered, the second after the pacing interval
        """
        primary = make_transport("primary", stream_script=[[OBJ_A + OBJ_B]])
        delivered = []

        count = _service(settings, [primary], fake_clock).generate_roasts("你行你上啊", on_roast=delivered.append)

        assert count == 2
        assert [r.content for r in delivered] == ["a", "b"]
        assert fake_clock.sleeps == [0.8]

    def test_falls_back_to_proxy(self, settings, make_transport, fake_clock):
        primary = make_transport("primary", stream_script=[TransportError("timeout")])
        proxy = make_transport("proxy", stream_script=[[OBJ_A]])
        delivered = []

        _service(settings, [primary, proxy], fake_clock).generate_roasts(
            "你行你上啊", style="sun_bar", on_roast=delivered.append
        )

        assert len(delivered) == 1
        assert proxy.models_called == ["m1"]

    @pytest.mark.parametrize("text", ["", "   "])
    def test_blank_text_rejected(self, settings, make_transport, fake_clock, text):
        with pytest.raises(ValueError):
            _service(settings, [make_transport()], fake_clock).generate_roasts(text, on_roast=print)

    def test_missing_sink_rejected(self, settings, make_transport, fake_clock):
        with pytest.raises(ValueError):
            _service(settings, [make_transport()], fake_clock).generate_roasts("text")

    def test_exhaustion_surfaces_default_message(self, settings, make_transport, fake_clock):
        primary = make_transport("primary", stream_script=[TransportError("down")])

        with pytest.raises(GenerationFailedError) as exc_info:
            _service(settings, [primary], fake_clock).generate_roasts("text", on_roast=print)

        assert exc_info.value.user_message == DEFAULT_FAILURE_MESSAGE

    def test_concurrent_sessions_are_independent(self, settings, make_transport, fake_clock):
        """Given: One service shared by two threads
        When: Both generate at the same time
        Then: Each sink receives only its own session's records
        """
        primary = make_transport("primary", stream_script=[[OBJ_A], [OBJ_A]])
        service = _service(settings, [primary], fake_clock)
        results = {"one": [], "two": []}

        threads = [
            threading.Thread(target=service.generate_roasts, args=("text",), kwargs={"on_roast": results[key].append})
            for key in results
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results["one"]) == 1
        assert len(results["two"]) == 1


class TestRegenerateRoast:
    """Test RoastService.regenerate_roast."""

    def test_returns_single_record(self, settings, make_transport, fake_clock):
        primary = make_transport("primary", single_script=['```json\n' + OBJ_B + '\n```'])

        roast = _service(settings, [primary], fake_clock).regenerate_roast("text", "逻辑鬼才", "old")

        assert roast.content == "b"
        assert roast.attack_power == 90

    def test_failure_uses_regenerate_message(self, settings, make_transport, fake_clock):
        primary = make_transport("primary", single_script=["not json"])

        with pytest.raises(GenerationFailedError) as exc_info:
            _service(settings, [primary], fake_clock).regenerate_roast("text", "雌小鬼", "old")

        assert exc_info.value.user_message == REGENERATE_FAILURE_MESSAGE


class TestAnalyzeContext:
    """Test RoastService.analyze_context."""

    def test_short_input_returns_empty_without_calls(self, settings, make_transport, fake_clock):
        primary = make_transport("primary")

        assert _service(settings, [primary], fake_clock).analyze_context("短") == ""
        assert primary.calls == []

    def test_uses_context_model(self, settings, make_transport, fake_clock):
        primary = make_transport("primary", single_script=["  破防的原神玩家  "])

        result = _service(settings, [primary], fake_clock).analyze_context("你根本不懂这个游戏")

        assert result == "破防的原神玩家"
        assert primary.models_called == ["ctx"]

    def test_one_try_per_transport_then_empty(self, settings, make_transport, fake_clock):
        """Given: Every transport is rate limited
        When: analyze_context
        Then: Each transport is tried once, no backoff, "" is returned
        """
        primary = make_transport("primary", single_script=[RateLimitedError("429")])
        proxy = make_transport("proxy", single_script=[RateLimitedError("429")])

        result = _service(settings, [primary, proxy], fake_clock).analyze_context("你根本不懂这个游戏")

        assert result == ""
        assert primary.models_called == ["ctx"]
        assert proxy.models_called == ["ctx"]
        assert fake_clock.sleeps == []

    def test_cancellation_is_not_swallowed(self, settings, make_transport, fake_clock):
        event = threading.Event()
        event.set()

        with pytest.raises(GenerationCancelled):
            _service(settings, [make_transport()], fake_clock).analyze_context("你根本不懂这个游戏", cancel_event=event)
