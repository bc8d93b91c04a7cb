import argparse
import asyncio
import os

from .client import ChatClient, Colors, colorize


def _server_uri(value: str) -> str:
    if value.startswith("ws://") or value.startswith("wss://"):
        return value
    return f"ws://{value}/websocket"


def main():
    print(colorize("=" * 60, Colors.CYAN))
    print(colorize("Simple Chat Room Client", Colors.CYAN + Colors.BOLD))
    print(colorize("=" * 60, Colors.CYAN))
    print(colorize("Commands:", Colors.YELLOW))
    print(colorize("  <text>             - Send message to the room", Colors.WHITE))
    print(colorize("  /name <new name>   - Change display name", Colors.WHITE))
    print(colorize("  /quit              - Exit", Colors.WHITE))
    print(colorize("=" * 60, Colors.CYAN))

    ap = argparse.ArgumentParser(description="Simple chat room client")
    ap.add_argument(
        "--server",
        default=os.getenv("CHAT_SERVER", "ws://127.0.0.1:5000/websocket"),
        help="ws://host:port/websocket or host:port",
    )
    ap.add_argument("--username", default=os.getenv("CHAT_USERNAME"))
    args = ap.parse_args()

    username = (args.username or "").strip()
    while not username:
        username = input("Pick a username: ").strip()

    client = ChatClient(username)
    try:
        asyncio.run(client.run_client(_server_uri(args.server)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
