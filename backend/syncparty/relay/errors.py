"""Exceptions raised by the relay core.

None of these are fatal: the relay turns each of them into either an
``ok: false`` response to the requesting client or a log line.
"""
from typing import Any, Optional


class RelayError(Exception):
    """Base class for all relay errors."""


class MalformedMessage(RelayError):
    """Inbound frame could not be decoded into a JSON object."""


class UnsupportedMessageType(RelayError):
    """Inbound message has no ``type`` or one the relay does not handle."""

    def __init__(self, message_type: Optional[str]) -> None:
        super().__init__(f"Unsupported message type: {message_type!r}")
        self.message_type = message_type


class ValidationError(RelayError):
    """A required field of a recognized message is missing or invalid.

    Attributes:
        message_type: The ``type`` of the rejected message.
        room_id: The roomId the client supplied, if it was a non-empty string.
        request_id: The requestId exactly as the client supplied it, or None
            if it was absent.
    """

    def __init__(
        self,
        message_type: str,
        reason: str,
        room_id: Optional[str] = None,
        request_id: Any = None,
    ) -> None:
        super().__init__(reason)
        self.message_type = message_type
        self.reason = reason
        self.room_id = room_id
        self.request_id = request_id


class RoomAlreadyExists(RelayError):
    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room already exists: {room_id}")
        self.room_id = room_id


class RoomNotFound(RelayError):
    def __init__(self, room_id: str) -> None:
        super().__init__(f"Room not found: {room_id}")
        self.room_id = room_id


class SendFailure(RelayError):
    """A message could not be handed to one recipient's channel."""
