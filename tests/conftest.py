"""Shared fixtures: an in-memory websocket stand-in and a running coordinator."""
import asyncio
import json

import pytest_asyncio
from websockets.exceptions import ConnectionClosedError, ConnectionClosedOK
from websockets.frames import Close

from chatroom.coordinator import BroadcastCoordinator


def closed_error(code=1000, reason=""):
    frame = Close(code, reason)
    if code in (1000, 1001):
        return ConnectionClosedOK(frame, frame, True)
    return ConnectionClosedError(frame, frame, True)


class FakeConnection:
    """Implements the slice of the websockets connection API sessions use."""

    def __init__(self):
        self.inbound = asyncio.Queue()
        self.sent = []
        self.closed = False
        self.send_error = None

    def feed(self, **fields):
        self.inbound.put_nowait(json.dumps(fields))

    def feed_raw(self, raw):
        self.inbound.put_nowait(raw)

    def hang_up(self, code=1000):
        self.inbound.put_nowait(closed_error(code))

    async def recv(self):
        item = await self.inbound.get()
        if isinstance(item, BaseException):
            raise item
        return item

    async def __aiter__(self):
        # Like websockets: a clean close ends iteration, anything else raises
        while True:
            try:
                yield await self.recv()
            except ConnectionClosedOK:
                return

    async def send(self, frame):
        if self.send_error is not None:
            raise self.send_error
        if self.closed:
            raise closed_error(1000)
        self.sent.append(json.loads(frame))

    async def close(self):
        if not self.closed:
            self.closed = True
            self.inbound.put_nowait(closed_error(1000))


async def barrier(coordinator):
    """Return once every request submitted before this call has been handled."""
    await coordinator.unregister(object())
    await coordinator.unregister(object())


async def wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest_asyncio.fixture
async def coordinator():
    coord = BroadcastCoordinator()
    coord.start()
    yield coord
    await coord.stop()
