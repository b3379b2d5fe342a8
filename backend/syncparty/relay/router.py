"""Relay WebSocket endpoint.

WebSocket /ws: one JSON object per text (or UTF-8 binary) frame. See
``dispatcher`` for the message types.
"""
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket

from .connection import ConnectionHandle

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def relay_websocket(websocket: WebSocket) -> None:
    """Serve one relay connection until the client goes away.

    Frames are handed to the Relay one at a time. Whatever ends the loop,
    the connection is detached from its room before the handle is closed.
    """
    state = websocket.app.state
    await websocket.accept()

    connection = ConnectionHandle(websocket, max_pending=state.config.relay.max_pending_messages)
    connection.start()
    logger.info(f"[WS] New connection {connection.connection_id} from {websocket.client}")

    close_code: Optional[int] = None
    close_reason: Optional[str] = None
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                close_code = message.get("code")
                close_reason = message.get("reason")
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            state.relay.handle_frame(connection, raw)
    finally:
        state.lifecycle.on_close(connection, close_code, close_reason)
        await connection.aclose()
