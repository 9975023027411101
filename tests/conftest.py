import asyncio
import json

import pytest
from websockets.exceptions import ConnectionClosedOK


class FakeConnection:
    """In-memory stand-in for a websocket connection."""

    def __init__(self, incoming=(), closed=False):
        self.incoming = list(incoming)
        self.sent = []
        self.closed = closed
        self.remote_address = ("127.0.0.1", 0)

    async def send(self, data):
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent.append(data)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for raw in self.incoming:
            yield raw

    def messages(self, msg_type=None):
        decoded = [json.loads(frame) for frame in self.sent]
        if msg_type is None:
            return decoded
        return [m for m in decoded if m["type"] == msg_type]


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _flush(latency):
    """Deliver everything queued, regardless of when it's due."""
    return asyncio.run(latency.pump(float("inf")))


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_connection():
    return FakeConnection


@pytest.fixture
def flush():
    return _flush
