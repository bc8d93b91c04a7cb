import asyncio
import json
import os

import websockets

from .customised_types import ChatMessageType
from .protocol import FIELD_TEXT, FIELD_USERNAME, ChatMessage, parse_chat_message

CLOSE_COMMAND = "/quit"
NAME_COMMAND = "/name "


# Color codes for terminal output
class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    DIM = '\033[2m'

    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'


def colorize(text, color):
    """Add color to text if terminal supports it"""
    if os.getenv('TERM') and os.getenv('TERM') != 'dumb':
        return f"{color}{text}{Colors.RESET}"
    return text


def format_chat_line(message: ChatMessage) -> str:
    if message.message_type == ChatMessageType.ANNOUNCE.value:
        return colorize(f"[{message.timestamp}] * {message.text}", Colors.YELLOW)
    stamp = colorize(f"[{message.timestamp}]", Colors.DIM)
    who = colorize(f"{message.username}:", Colors.CYAN + Colors.BOLD)
    return f"{stamp} {who} {message.text}"


def make_outbound(username: str, text: str = "") -> str:
    return json.dumps({FIELD_USERNAME: username, FIELD_TEXT: text})


class ChatClient:
    def __init__(self, username: str):
        self.username = username

    async def sender(self, ws):
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, input)
            if line.strip() == CLOSE_COMMAND:
                await ws.close()
                return
            if line.startswith(NAME_COMMAND):
                new_name = line[len(NAME_COMMAND):].strip()
                if not new_name:
                    print(colorize("Usage: /name <new name>", Colors.RED))
                    continue
                self.username = new_name
                await ws.send(make_outbound(self.username))
                continue
            if not line.strip():
                continue
            await ws.send(make_outbound(self.username, line))

    async def receiver(self, ws):
        async for raw in ws:
            message = parse_chat_message(raw)
            if message is None:
                print(colorize(f"[ERROR] unreadable frame: {raw!r}", Colors.RED))
                continue
            print(format_chat_line(message))

    async def run_client(self, uri: str):
        async with websockets.connect(uri) as ws:
            print(colorize(f"[{self.username}] Connected to {uri}", Colors.GREEN + Colors.BOLD))
            await ws.send(make_outbound(self.username))
            sender = asyncio.create_task(self.sender(ws))
            try:
                await self.receiver(ws)
            finally:
                sender.cancel()
        print(colorize("** Disconnected from server **", Colors.RED))
