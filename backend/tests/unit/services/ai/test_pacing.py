"""
RecordEmitter 单元测试
"""
import threading

import pytest

from roastgen.services.ai.errors import RecordSinkError
from roastgen.services.ai.pacing import RecordEmitter


class TestRecordEmitter:
    """测试 RecordEmitter"""

    def test_first_record_is_immediate(self, fake_clock):
        delivered = []
        emitter = RecordEmitter(delivered.append, interval=0.8, sleep=fake_clock.sleep, clock=fake_clock)

        assert emitter.emit("a") is True
        assert delivered == ["a"]
        assert fake_clock.sleeps == []

    def test_burst_is_spaced_by_interval(self, fake_clock):
        """Given: 一次得到三条记录 When: 连续 emit Then: 每条之间至少间隔 0.8 秒"""
        delivered_at = []
        emitter = RecordEmitter(
            lambda record: delivered_at.append(fake_clock.now),
            interval=0.8,
            sleep=fake_clock.sleep,
            clock=fake_clock,
        )

        for record in ("a", "b", "c"):
            emitter.emit(record)

        assert delivered_at == [0.0, 0.8, 1.6]
        assert emitter.emitted == 3

    def test_elapsed_time_counts_toward_interval(self, fake_clock):
        """Given: 距上次推送已过 0.5 秒 When: emit Then: 只等待剩余的 0.3 秒"""
        emitter = RecordEmitter(lambda record: None, interval=0.8, sleep=fake_clock.sleep, clock=fake_clock)
        emitter.emit("a")
        fake_clock.now += 0.5

        emitter.emit("b")

        assert len(fake_clock.sleeps) == 1
        assert abs(fake_clock.sleeps[0] - 0.3) < 1e-9

    def test_slow_stream_is_not_delayed(self, fake_clock):
        emitter = RecordEmitter(lambda record: None, interval=0.8, sleep=fake_clock.sleep, clock=fake_clock)
        emitter.emit("a")
        fake_clock.now += 2.0

        emitter.emit("b")

        assert fake_clock.sleeps == []

    def test_cancelled_before_emit_drops_record(self, fake_clock):
        event = threading.Event()
        delivered = []
        emitter = RecordEmitter(delivered.append, sleep=fake_clock.sleep, clock=fake_clock, cancel_event=event)
        event.set()

        assert emitter.emit("a") is False
        assert delivered == []
        assert emitter.active is False

    def test_cancel_during_wait_drops_record(self, fake_clock):
        """Given: 等待间隔期间被取消 When: emit Then: 记录不会送达"""
        event = threading.Event()
        delivered = []

        def sleep(seconds):
            fake_clock.sleep(seconds)
            event.set()

        emitter = RecordEmitter(delivered.append, sleep=sleep, clock=fake_clock, cancel_event=event)
        emitter.emit("a")

        assert emitter.emit("b") is False
        assert delivered == ["a"]
        assert emitter.emitted == 1

    def test_revoke_stops_delivery(self, fake_clock):
        delivered = []
        emitter = RecordEmitter(delivered.append, sleep=fake_clock.sleep, clock=fake_clock)

        emitter.revoke()

        assert emitter.emit("a") is False
        assert delivered == []

    def test_sink_error_is_wrapped_and_revokes(self, fake_clock):
        """Given: 回调抛出异常 When: emit Then: 抛出 RecordSinkError 并撤销发射器"""
        original = KeyError("caller bug")

        def sink(record):
            raise original

        emitter = RecordEmitter(sink, sleep=fake_clock.sleep, clock=fake_clock)

        with pytest.raises(RecordSinkError) as exc_info:
            emitter.emit("a")

        assert exc_info.value.original is original
        assert emitter.active is False
        assert emitter.emit("b") is False
