"""
Pytest Configuration Fixtures

Provides scripted fake transports and a fake clock so that the fallback
chain, pacing and runners can be tested without network access or real
sleeps.
"""
import os

import pytest

# Set test environment variables BEFORE importing roastgen modules
# This ensures transports can be built from the default settings
os.environ.setdefault("GEMINI_API_KEY", "test_gemini_key_for_testing")
os.environ.setdefault("OPENAI_API_KEY", "test_openai_key_for_testing")


class FakeTransport:
    """
    Transport adapter double driven by scripted outcomes.

    Stream outcomes: an exception (raised before any chunk), or a list of
    chunks where an exception element is raised mid-stream.
    Single outcomes: an exception, or the raw response text.
    """

    def __init__(self, name="fake", stream_script=None, single_script=None):
        self.name = name
        self.calls = []
        self.response_schemas = []
        self._stream_script = list(stream_script or [])
        self._single_script = list(single_script or [])

    def stream_text(self, model, prompt, temperature):
        self.calls.append(("stream", model))
        outcome = self._stream_script.pop(0)
        return self._iterate(outcome)

    @staticmethod
    def _iterate(outcome):
        if isinstance(outcome, BaseException):
            raise outcome
        for item in outcome:
            if isinstance(item, BaseException):
                raise item
            yield item

    def generate_text(self, model, prompt, temperature, response_schema=None):
        self.calls.append(("single", model))
        self.response_schemas.append(response_schema)
        outcome = self._single_script.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def models_called(self):
        return [model for _, model in self.calls]


class FakeClock:
    """Monotonic clock whose sleep() advances time instantly and records calls."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def make_transport():
    """Factory for FakeTransport instances."""
    return FakeTransport


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sleep_calls():
    """A recording sleep function; the list of delays is exposed as .calls."""
    calls = []

    def _sleep(seconds):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep
