"""Room registry and playback-event relay."""
from .connection import ConnectionHandle
from .dispatcher import Relay
from .lifecycle import ConnectionLifecycle
from .registry import Room, RoomRegistry

__all__ = ["ConnectionHandle", "ConnectionLifecycle", "Relay", "Room", "RoomRegistry"]
