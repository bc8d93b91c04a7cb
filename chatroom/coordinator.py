import asyncio
import logging
from typing import Any, Dict, Optional, Set

from .protocol import ChatMessage
from .transport import is_expected_close

REGISTER = "register"
UNREGISTER = "unregister"
PUBLISH = "publish"


class BroadcastCoordinator:
    """Single owner of the live session registry.

    Register, unregister and publish requests all go through one queue and are
    handled one at a time by ``run()``, so the registry is only ever touched
    from that loop and needs no lock.

    Submitting a request blocks until the loop has taken it off the queue.
    A slow fan-out therefore stalls every session waiting to submit.
    """

    def __init__(self):
        self._sessions: Set[Any] = set()
        # One slot plus an acceptance future per request: producers wait for
        # the loop to pick their request up, like an unbuffered channel.
        self._requests: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    # --- Requests ---

    async def register(self, session) -> None:
        await self._submit(REGISTER, session)

    async def unregister(self, session) -> None:
        await self._submit(UNREGISTER, session)

    async def publish(self, message: ChatMessage) -> None:
        await self._submit(PUBLISH, message)

    async def _submit(self, kind: str, item: Any) -> None:
        if self._closed:
            return
        accepted = asyncio.get_running_loop().create_future()
        await self._requests.put((kind, item, accepted))
        if self._closed:
            return
        await accepted

    # --- Event loop ---

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        self._closed = True
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        # Release anyone still waiting on an unprocessed request. Each get
        # wakes one blocked putter, which needs a turn of the loop to land
        # its item, so keep draining until the queue stays empty.
        while True:
            while not self._requests.empty():
                _, _, accepted = self._requests.get_nowait()
                if not accepted.done():
                    accepted.set_result(None)
            await asyncio.sleep(0)
            if self._requests.empty():
                break

    async def run(self) -> None:
        while True:
            kind, item, accepted = await self._requests.get()
            if not accepted.done():
                accepted.set_result(None)
            if kind == REGISTER:
                self._sessions.add(item)
                logging.info(
                    "A new websocket connection is registered (%d live)",
                    len(self._sessions),
                )
            elif kind == UNREGISTER:
                if item in self._sessions:
                    self._sessions.discard(item)
                    logging.info(
                        "A websocket connection is unregistered (%d live)",
                        len(self._sessions),
                    )
            elif kind == PUBLISH:
                await self._broadcast(item)

    async def _broadcast(self, message: ChatMessage) -> None:
        logging.debug("Broadcasting %s", message)
        for session in list(self._sessions):
            # Recipients are excluded by name, not by connection
            if session.name == message.username:
                continue
            outgoing = message.stamped()
            try:
                await session.send(outgoing)
            except Exception as e:
                if is_expected_close(e):
                    continue
                logging.warning("[%s] connection error: %s", session.name, e)
                await session.close()
                self._sessions.discard(session)

    # --- Introspection ---

    def __contains__(self, session) -> bool:
        return session in self._sessions

    def status(self) -> Dict[str, Any]:
        return {
            "sessions": len(self._sessions),
            "names": sorted(s.name for s in self._sessions),
        }
