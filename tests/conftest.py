"""Shared fakes for serial handles and WebSocket transports."""

import asyncio

import pytest
import serial
from websockets.exceptions import ConnectionClosedError
from websockets.protocol import State


class FakeSerial:
    """Stand-in for serial.Serial.

    ``script`` holds byte chunks to hand out, or exceptions to raise from
    ``in_waiting`` (a device disappearing mid-read). Once the script runs
    out the port closes itself unless ``close_when_drained`` is False.
    """

    def __init__(self, script=(), close_when_drained=True, fail_write=False):
        self.script = list(script)
        self.close_when_drained = close_when_drained
        self.fail_write = fail_write
        self.is_open = True
        self.written = bytearray()
        self.flushes = 0

    def feed(self, data: bytes) -> None:
        self.script.append(data)

    @property
    def in_waiting(self):
        if not self.is_open:
            raise serial.SerialException("port is closed")
        if self.script:
            head = self.script[0]
            if isinstance(head, Exception):
                self.script.pop(0)
                raise head
            return len(head)
        if self.close_when_drained:
            self.is_open = False
        return 0

    def read(self, n):
        return self.script.pop(0)

    def write(self, data):
        if self.fail_write:
            raise serial.SerialException("write failed")
        self.written.extend(data)
        return len(data)

    def flush(self):
        self.flushes += 1

    def close(self):
        self.is_open = False


class FakeTransport:
    """Minimal WebSocket connection: state, remote_address and send()."""

    def __init__(self, peer=("127.0.0.1", 50000), fail=False):
        self.remote_address = peer
        self.state = State.OPEN
        self.fail = fail
        self.sent = []

    async def send(self, message):
        if self.fail:
            raise ConnectionResetError("connection reset by peer")
        self.sent.append(message)


class FakeWebSocket(FakeTransport):
    """FakeTransport that can be iterated like a server-side connection."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._closed = asyncio.Event()

    def disconnect(self):
        self.state = State.CLOSED
        self._closed.set()

    def __aiter__(self):
        return self

    async def __anext__(self):
        await self._closed.wait()
        raise StopAsyncIteration


async def wait_for(predicate, timeout=2.0):
    """Poll *predicate* on the event loop until it is true."""

    async def _poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


@pytest.fixture
def fake_serial():
    return FakeSerial(close_when_drained=False)


class StalledTransport(FakeTransport):
    """A client that stopped reading: send() never completes."""

    async def send(self, message):
        await asyncio.Event().wait()


class DroppedWebSocket(FakeWebSocket):
    """A connection that fails uncleanly while being read."""

    async def __anext__(self):
        self.state = State.CLOSED
        raise ConnectionClosedError(None, None)
