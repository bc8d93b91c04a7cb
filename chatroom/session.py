import logging

from websockets.exceptions import ConnectionClosed

from .coordinator import BroadcastCoordinator
from .customised_types import SessionState
from .protocol import ChatMessage, make_chat_frame, parse_chat_message
from .transport import is_expected_close


class ClientSession:
    """One connected participant.

    Owns its websocket and the inbound read loop. Everything that touches other
    clients goes through the coordinator.
    """

    def __init__(self, ws, coordinator: BroadcastCoordinator):
        self.ws = ws
        self.coordinator = coordinator
        self.name = ""
        self.state = SessionState.CONNECTED

    def __repr__(self):
        return f"<ClientSession name={self.name!r} state={self.state.value}>"

    async def send(self, message: ChatMessage) -> None:
        await self.ws.send(make_chat_frame(message))

    async def close(self) -> None:
        try:
            await self.ws.close()
        except Exception as e:
            logging.debug("[%s] close failed: %s", self.name, e)

    async def run(self) -> None:
        await self.coordinator.register(self)
        try:
            while True:
                try:
                    raw = await self.ws.recv()
                except ConnectionClosed as e:
                    if is_expected_close(e):
                        logging.info("[%s] disconnected", self.name)
                    else:
                        logging.warning("[%s] connection error: %s", self.name, e)
                    break

                logging.debug("[%s] received frame: %r", self.name, raw)
                message = parse_chat_message(raw)
                if message is None:
                    logging.warning("[%s] invalid chat frame, closing", self.name)
                    break
                await self.handle_message(message)
        finally:
            self.state = SessionState.DISCONNECTED
            await self.coordinator.unregister(self)
            await self.close()

    async def handle_message(self, message: ChatMessage) -> None:
        username = message.username.strip()
        if username and username != self.name:
            self.name = username
            if self.state is SessionState.CONNECTED:
                self.state = SessionState.NAMED
            else:
                self.state = SessionState.ACTIVE
            logging.info('Name websocket "%s"', self.name)
            await self.coordinator.publish(ChatMessage.announce(self.name))
        elif self.state is SessionState.NAMED:
            self.state = SessionState.ACTIVE

        if message.text.strip():
            await self.coordinator.publish(ChatMessage.message(self.name, message.text))
