"""Per-connection handle with a non-blocking outbox.

Each accepted WebSocket gets one ConnectionHandle. The relay never awaits a
socket write: ``send`` only enqueues, and a writer task owned by the handle
drains the queue onto the channel. A slow or dead client therefore only
affects its own outbox.
"""
import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from .errors import SendFailure

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 256


class ConnectionHandle:
    """One client's duplex channel plus its relay identity.

    Attributes:
        channel: Object exposing ``async send_json(dict)`` and
            ``async close(code)`` (a Starlette WebSocket).
        connection_id: Server-generated id, used for log correlation only.
        client_id: Client-supplied identifier; updated by any message carrying one.
        current_room_id: Room this connection belongs to. Maintained by RoomRegistry.
    """

    def __init__(self, channel: Any, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        self.channel = channel
        self.connection_id = str(uuid.uuid4())
        self.client_id: Optional[str] = None
        self.current_room_id: Optional[str] = None
        self._outbox: "asyncio.Queue[Dict[str, Any]]" = asyncio.Queue(maxsize=max_pending)
        self._writer: Optional[asyncio.Task] = None
        self._writable = True
        self._closed = False

    def __repr__(self) -> str:
        return (
            f"ConnectionHandle(id={self.connection_id[:8]}, "
            f"client={self.client_id!r}, room={self.current_room_id!r})"
        )

    @property
    def is_open(self) -> bool:
        """True while the connection is live and its channel accepts writes."""
        return self._writable and not self._closed

    @property
    def pending(self) -> int:
        return self._outbox.qsize()

    def send(self, message: Dict[str, Any]) -> None:
        """Queue a message for delivery without waiting for the socket.

        Raises:
            SendFailure: The connection is closed or its outbox is full.
        """
        if not self.is_open:
            raise SendFailure(f"connection {self.connection_id} is closed")
        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            raise SendFailure(
                f"outbox full for connection {self.connection_id} "
                f"({self._outbox.maxsize} pending)"
            ) from None

    def start(self) -> None:
        """Start the writer task. Must be called from the running event loop."""
        if self._writer is None:
            self._writer = asyncio.get_running_loop().create_task(self._run_writer())

    async def flush(self) -> None:
        """Wait until every queued message has been written or discarded."""
        await self._outbox.join()

    def mark_closed(self) -> bool:
        """Mark the connection closed. Returns False if it already was."""
        if self._closed:
            return False
        self._closed = True
        return True

    async def aclose(self) -> None:
        """Stop the writer task and drop anything still queued."""
        self.mark_closed()
        writer, self._writer = self._writer, None
        self._discard_pending()
        if writer is not None:
            writer.cancel()
            await asyncio.wait([writer])

    async def _run_writer(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self.channel.send_json(message)
            except Exception as e:
                logger.warning(
                    f"[Connection] Write to {self.connection_id} (client={self.client_id}) "
                    f"failed, dropping connection output: {e}"
                )
                self._writable = False
            finally:
                self._outbox.task_done()
            if not self._writable:
                self._discard_pending()
                await self._close_channel()
                return

    async def _close_channel(self) -> None:
        # Closing makes the endpoint's receive loop end, which detaches us.
        try:
            await self.channel.close(code=1011)
        except Exception as e:
            logger.debug(f"[Connection] Close of {self.connection_id} failed: {e}")

    def _discard_pending(self) -> None:
        while True:
            try:
                self._outbox.get_nowait()
            except asyncio.QueueEmpty:
                return
            self._outbox.task_done()
