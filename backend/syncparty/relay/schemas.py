"""Wire protocol for the sync relay.

Inbound frames are JSON objects discriminated by ``type``. They are decoded
and validated once, at the boundary, into one of three command models; the
relay never looks at raw dictionaries beyond the ``clientId`` field.

Outbound messages are serialized with ``exclude_unset`` so that a field the
relay never filled in (for example ``time`` on a VIDEO_EVENT whose sender
did not supply one) is left out of the frame entirely, while a field set to
``None`` on purpose (``url`` of a room created without one) goes out as
``null``.
"""
import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import MalformedMessage, UnsupportedMessageType, ValidationError


class MessageType(str, Enum):
    """Message ``type`` discriminants, inbound and outbound."""
    CREATE_ROOM = "CREATE_ROOM"
    JOIN_ROOM = "JOIN_ROOM"
    VIDEO_EVENT = "VIDEO_EVENT"
    ROOM_CREATED = "ROOM_CREATED"
    ROOM_JOINED = "ROOM_JOINED"


# =============================================================================
# Inbound commands
# =============================================================================


# Only roomId and event are typed. Everything else the client sends is opaque
# to the relay and goes back out exactly as received.


def _require_truthy(value: Any) -> Any:
    if not value:
        raise ValueError("must be present and non-empty")
    return value


class CreateRoomCommand(BaseModel):
    type: Literal["CREATE_ROOM"]
    roomId: StrictStr = Field(..., min_length=1)
    requestId: Any
    url: Any = None

    _request_id_present = field_validator("requestId")(_require_truthy)

    @field_validator("url", mode="before")
    @classmethod
    def _blank_url_is_none(cls, value):
        return value or None


class JoinRoomCommand(BaseModel):
    type: Literal["JOIN_ROOM"]
    roomId: StrictStr = Field(..., min_length=1)
    requestId: Any

    _request_id_present = field_validator("requestId")(_require_truthy)


class VideoEventCommand(BaseModel):
    """Playback event from one member (play, pause, seek, ...)."""
    type: Literal["VIDEO_EVENT"]
    roomId: StrictStr = Field(..., min_length=1)
    event: StrictStr = Field(..., min_length=1)
    time: Any = None
    playing: Any = None


InboundCommand = Union[CreateRoomCommand, JoinRoomCommand, VideoEventCommand]

_COMMAND_MODELS = {
    MessageType.CREATE_ROOM.value: CreateRoomCommand,
    MessageType.JOIN_ROOM.value: JoinRoomCommand,
    MessageType.VIDEO_EVENT.value: VideoEventCommand,
}

# Fields whose absence produces the client-visible "Missing ..." reason.
_REQUIRED_FIELDS = {
    MessageType.CREATE_ROOM.value: ("roomId", "requestId"),
    MessageType.JOIN_ROOM.value: ("roomId", "requestId"),
    MessageType.VIDEO_EVENT.value: ("roomId", "event"),
}


# =============================================================================
# Outbound messages
# =============================================================================


class OutboundMessage(BaseModel):
    """Base for every server -> client message."""

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the JSON-ready dict sent over the channel."""
        return {"type": self.type, **self.model_dump(mode="json", exclude_unset=True)}


class RoomResponse(OutboundMessage):
    ok: bool
    roomId: Optional[str] = None
    requestId: Any = None
    url: Any = None
    reason: Optional[str] = None


class RoomCreated(RoomResponse):
    type: Literal["ROOM_CREATED"] = "ROOM_CREATED"


class RoomJoined(RoomResponse):
    type: Literal["ROOM_JOINED"] = "ROOM_JOINED"


class VideoEventBroadcast(OutboundMessage):
    type: Literal["VIDEO_EVENT"] = "VIDEO_EVENT"
    roomId: str
    event: str
    time: Any = None
    playing: Any = None
    fromClientId: Optional[str] = None


class RoomSummary(BaseModel):
    """Read-only view of a room for the HTTP API."""
    roomId: str = Field(..., description="Room identifier")
    url: Any = Field(default=None, description="Shared video URL")
    memberCount: int = Field(..., description="Number of attached connections")
    createdAt: datetime = Field(..., description="Creation time (UTC)")


# =============================================================================
# Decoding
# =============================================================================


def decode_frame(raw: Union[str, bytes]) -> Dict[str, Any]:
    """Decode one transport frame into a JSON object.

    Raises:
        MalformedMessage: If the frame is not valid UTF-8 JSON or is not an object.
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedMessage(f"Frame is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedMessage(f"Frame is a JSON {type(data).__name__}, expected an object")
    return data


def parse_command(data: Dict[str, Any]) -> InboundCommand:
    """Validate a decoded message into a typed command.

    Raises:
        UnsupportedMessageType: ``type`` is missing or not one of the three commands.
        ValidationError: A required field is missing or empty, or ``roomId`` or
            ``event`` is not a string.
    """
    message_type = data.get("type")
    model = _COMMAND_MODELS.get(message_type) if isinstance(message_type, str) else None
    if model is None:
        raise UnsupportedMessageType(message_type)

    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        room_id = data.get("roomId")
        required = _REQUIRED_FIELDS[message_type]
        raise ValidationError(
            message_type,
            f"Missing {required[0]} or {required[1]}",
            room_id=room_id if isinstance(room_id, str) and room_id else None,
            request_id=data.get("requestId"),
        ) from exc
