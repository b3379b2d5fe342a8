"""Message router for the sync relay.

The Relay turns one inbound frame into registry mutations plus zero or more
outbound messages. Dispatch is synchronous: it never awaits, so on a single
event loop each message is fully applied before the next one starts.

Protocol Message Types:
    - CREATE_ROOM: create a room with the sender as its only member
    - JOIN_ROOM: attach the sender to an existing room
    - VIDEO_EVENT: forward a playback event to every other room member
"""
import logging
from typing import Any, Dict, Union

from .connection import ConnectionHandle
from .errors import (
    MalformedMessage,
    RoomAlreadyExists,
    RoomNotFound,
    SendFailure,
    UnsupportedMessageType,
    ValidationError,
)
from .registry import RoomRegistry
from .schemas import (
    CreateRoomCommand,
    JoinRoomCommand,
    MessageType,
    OutboundMessage,
    RoomCreated,
    RoomJoined,
    VideoEventBroadcast,
    VideoEventCommand,
    decode_frame,
    parse_command,
)

logger = logging.getLogger(__name__)


class Relay:
    """Dispatches relay messages against a RoomRegistry.

    Args:
        registry: The registry this relay mutates. Shared with the
            ConnectionLifecycle that detaches closed connections.
    """

    def __init__(self, registry: RoomRegistry) -> None:
        self.registry = registry

    def handle_frame(self, connection: ConnectionHandle, raw: Union[str, bytes]) -> None:
        """Decode and dispatch one raw transport frame. Malformed frames are dropped."""
        try:
            data = decode_frame(raw)
        except MalformedMessage as exc:
            logger.error("[Relay] Failed to parse message from %s: %s", connection.client_id, exc)
            return
        self.dispatch(connection, data)

    def dispatch(self, connection: ConnectionHandle, data: Dict[str, Any]) -> None:
        """Apply one decoded message from ``connection``."""
        client_id = data.get("clientId")
        if client_id:
            connection.client_id = str(client_id)

        logger.debug("[Relay] Received from %s: %s", connection.client_id, data)

        try:
            command = parse_command(data)
        except UnsupportedMessageType as exc:
            logger.warning("[Relay] Ignoring message: %s", exc)
            return
        except ValidationError as exc:
            self._reject(connection, exc)
            return

        if isinstance(command, CreateRoomCommand):
            self._create_room(connection, command)
        elif isinstance(command, JoinRoomCommand):
            self._join_room(connection, command)
        else:
            self._video_event(connection, command)

    # =========================================================================
    # Handlers
    # =========================================================================

    def _create_room(self, connection: ConnectionHandle, command: CreateRoomCommand) -> None:
        try:
            room = self.registry.create(command.roomId, command.url, connection)
        except RoomAlreadyExists:
            logger.warning("[Relay] Room already exists: %s", command.roomId)
            self._deliver(connection, RoomCreated(
                ok=False,
                roomId=command.roomId,
                requestId=command.requestId,
                reason="Room already exists",
            ))
            return

        self._deliver(connection, RoomCreated(
            ok=True,
            roomId=room.room_id,
            requestId=command.requestId,
            url=room.url,
        ))

    def _join_room(self, connection: ConnectionHandle, command: JoinRoomCommand) -> None:
        try:
            room = self.registry.join(command.roomId, connection)
        except RoomNotFound:
            logger.warning("[Relay] JOIN_ROOM requested for non-existent room: %s", command.roomId)
            self._deliver(connection, RoomJoined(
                ok=False,
                roomId=command.roomId,
                requestId=command.requestId,
                reason="Room not found",
            ))
            return

        self._deliver(connection, RoomJoined(
            ok=True,
            roomId=room.room_id,
            requestId=command.requestId,
            url=room.url,
        ))

    def _video_event(self, connection: ConnectionHandle, command: VideoEventCommand) -> None:
        if self.registry.get(command.roomId) is None:
            logger.warning("[Relay] VIDEO_EVENT for non-existent room: %s", command.roomId)
            return

        # Forward time/playing only if the sender set them.
        optional = command.model_dump(include={"time", "playing"}, exclude_unset=True)
        message = VideoEventBroadcast(
            roomId=command.roomId,
            event=command.event,
            fromClientId=connection.client_id,
            **optional,
        )
        logger.info(
            "[Relay] VIDEO_EVENT room=%s event=%s time=%s playing=%s from=%s",
            command.roomId, command.event, command.time, command.playing, connection.client_id,
        )

        for target in self.registry.broadcast_targets(command.roomId, excluding=connection):
            if not target.is_open:
                continue
            self._deliver(target, message)

    def _reject(self, connection: ConnectionHandle, error: ValidationError) -> None:
        logger.error("[Relay] %s rejected: %s", error.message_type, error.reason)
        if error.message_type == MessageType.CREATE_ROOM:
            response_cls = RoomCreated
        elif error.message_type == MessageType.JOIN_ROOM:
            response_cls = RoomJoined
        else:
            return
        fields = {"ok": False, "roomId": error.room_id, "reason": error.reason}
        if error.request_id is not None:
            fields["requestId"] = error.request_id
        self._deliver(connection, response_cls(**fields))

    # =========================================================================
    # Delivery
    # =========================================================================

    def _deliver(self, connection: ConnectionHandle, message: OutboundMessage) -> bool:
        """Send or report-and-continue. Returns False if the send failed."""
        try:
            connection.send(message.to_wire())
            return True
        except SendFailure as exc:
            logger.warning(
                "[Relay] Error sending %s to client %s: %s",
                message.type, connection.client_id, exc,
            )
            return False
