"""Shared test fixtures for all test modules."""

import io
import json

import pytest

from lambda_telemetry.config import get_settings
from lambda_telemetry.observability.event_serializer import EVENT_HANDLER


class EventCapture:
    """Events written to the event stream during a test"""

    def __init__(self, buffer: io.StringIO):
        self._buffer = buffer

    @property
    def lines(self):
        return self._buffer.getvalue().splitlines()

    @property
    def events(self):
        return [json.loads(line) for line in self.lines]

    def logs(self, message=None):
        """Plain log events, optionally only those with the given message."""
        return [
            e for e in self.events
            if "_aws" not in e and (message is None or e["message"] == message)
        ]

    def metrics(self, name=None):
        """Embedded metric events, optionally only those for the given metric name."""
        return [
            e for e in self.events
            if "_aws" in e and (name is None or e["_aws"]["CloudWatchMetrics"][0]["Metrics"][0]["Name"] == name)
        ]

    def clear(self):
        self._buffer.seek(0)
        self._buffer.truncate()


@pytest.fixture(autouse=True)
def log_settings(monkeypatch):
    """Give every test the same service identity with output enabled."""
    monkeypatch.setenv("SERVICE_NAME", "orders")
    monkeypatch.setenv("SERVICE_ENV", "dev")
    monkeypatch.delenv("LOG_IS_TEST", raising=False)
    monkeypatch.delenv("DONT_LOG_SUCCESS_HTTP", raising=False)
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def emitted():
    """Redirect the event stream into memory for the duration of a test."""
    buffer = io.StringIO()
    previous = EVENT_HANDLER.setStream(buffer)
    yield EventCapture(buffer)
    EVENT_HANDLER.setStream(previous)
