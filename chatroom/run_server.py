import argparse
import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .coordinator import BroadcastCoordinator
from .server import start_chat_server


def _parse_bind(bind_uri: str) -> tuple[str, int]:
    # Accept ws://host:port, host:port or just a port
    if bind_uri.startswith("ws://") or bind_uri.startswith("wss://"):
        p = urlparse(bind_uri)
        return p.hostname or "0.0.0.0", int(p.port or 5000)
    if ":" in bind_uri:
        host, port = bind_uri.rsplit(":", 1)
        return host or "0.0.0.0", int(port)
    return "0.0.0.0", int(bind_uri)


def _resolve_static_dir(value: Optional[str]) -> Optional[Path]:
    if not value or value.lower() == "off":
        return None
    path = Path(value)
    if not path.is_dir():
        logging.warning("Static directory %s not found; static serving disabled", path)
        return None
    return path


async def _status_printer(coordinator: BroadcastCoordinator, interval: float):
    while True:
        await asyncio.sleep(interval)
        st = coordinator.status()
        logging.info("Live sessions: %d %s", st["sessions"], st["names"])


async def _run(
    host: str, port: int, static_dir: Optional[Path], status_interval: float
) -> None:
    coordinator = BroadcastCoordinator()
    coordinator.start()

    try:
        server = await start_chat_server(coordinator, host, port, static_dir)
    except OSError:
        logging.exception("Unable to listen on %s:%s", host, port)
        await coordinator.stop()
        raise SystemExit(1)

    status_task = None
    if status_interval > 0:
        status_task = asyncio.create_task(_status_printer(coordinator, status_interval))

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows may not support SIGTERM
            pass

    try:
        await stop.wait()
    finally:
        logging.info("Shutting down...")
        server.close()
        await server.wait_closed()
        if status_task:
            status_task.cancel()
            try:
                await status_task
            except asyncio.CancelledError:
                pass
        await coordinator.stop()
        logging.info("Server shutdown complete")


def main():
    parser = argparse.ArgumentParser(description="Simple chat room server")
    parser.add_argument(
        "--bind",
        default=os.getenv("BIND", "0.0.0.0:5000"),
        help="Listen address ws://host:port, host:port or port",
    )
    parser.add_argument(
        "--static-dir",
        default=os.getenv("STATIC_DIR", "./frontend/public"),
        help="Directory served on non-websocket paths, or 'off'",
    )
    parser.add_argument(
        "--status-interval",
        type=float,
        default=float(os.getenv("STATUS_INTERVAL", "0")),
        help="Seconds between registry status log lines (0 disables)",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(message)s"
    )

    host, port = _parse_bind(args.bind)
    static_dir = _resolve_static_dir(args.static_dir)
    try:
        asyncio.run(_run(host, port, static_dir, args.status_interval))
    except KeyboardInterrupt:
        logging.info("Interrupted")


if __name__ == "__main__":
    main()
