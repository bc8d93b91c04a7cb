import asyncio
import logging
import mimetypes
from http import HTTPStatus
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import websockets
from websockets.datastructures import Headers
from websockets.http11 import Response

from .coordinator import BroadcastCoordinator
from .session import ClientSession

WEBSOCKET_PATH = "/websocket"
INDEX_FILE = "index.html"


def _respond(status: HTTPStatus, body: bytes, content_type: str) -> Response:
    headers = Headers(
        [
            ("Content-Type", content_type),
            ("Content-Length", str(len(body))),
            ("Connection", "close"),
        ]
    )
    return Response(status.value, status.phrase, headers, body)


def _not_found() -> Response:
    return _respond(HTTPStatus.NOT_FOUND, b"404 Not Found\n", "text/plain; charset=utf-8")


def resolve_static(static_dir: Path, request_path: str) -> Optional[Path]:
    """Map a request path to a file under static_dir, or None."""
    root = static_dir.resolve()
    rel = unquote(request_path).lstrip("/")
    if not rel or rel.endswith("/"):
        rel += INDEX_FILE
    target = (root / rel).resolve()
    if not target.is_relative_to(root) or not target.is_file():
        return None
    return target


def make_process_request(static_dir: Optional[Path]):
    async def process_request(connection, request):
        path = urlparse(request.path).path
        if path == WEBSOCKET_PATH:
            return None
        if static_dir is None:
            return _not_found()
        target = resolve_static(static_dir, path)
        if target is None:
            logging.info("Static file not found: %s", path)
            return _not_found()
        content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
        # Keep file reads off the event loop
        body = await asyncio.to_thread(target.read_bytes)
        return _respond(HTTPStatus.OK, body, content_type)

    return process_request


async def start_chat_server(
    coordinator: BroadcastCoordinator,
    host: str,
    port: int,
    static_dir: Optional[Path] = None,
):
    async def ws_handler(ws):
        session = ClientSession(ws, coordinator)
        await session.run()

    server = await websockets.serve(
        ws_handler,
        host,
        port,
        process_request=make_process_request(static_dir),
    )
    logging.info("Chat server listening on %s:%s%s", host, port, WEBSOCKET_PATH)
    return server
