"""In-memory room registry.

The registry is the single source of truth for which rooms exist and which
connections are attached to them. It keeps two views consistent:

    - ``Room.members`` (room -> connections)
    - ``ConnectionHandle.current_room_id`` (connection -> room)

Invariants:
    - A room in the registry always has at least one member; the room is
      removed the moment its last member detaches.
    - A connection is a member of at most one room, and that room is the one
      named by its ``current_room_id``.

Thread Safety:
    Not thread-safe. All calls are expected to come from the single asyncio
    event loop that owns the registry, and none of them await.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from .connection import ConnectionHandle
from .errors import RoomAlreadyExists, RoomNotFound
from .schemas import RoomSummary

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Room:
    """A named broadcast domain.

    Attributes:
        room_id: Unique key, chosen by the creating client.
        url: Video URL the room was created for, if any.
        members: Attached connections, compared by identity.
        created_at: Creation time (UTC), informational only.
    """
    room_id: str
    url: Any = None
    members: Set[ConnectionHandle] = field(default_factory=set)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def summary(self) -> RoomSummary:
        return RoomSummary(
            roomId=self.room_id,
            url=self.url,
            memberCount=len(self.members),
            createdAt=self.created_at,
        )


class RoomRegistry:
    """Authoritative mapping of room id to Room."""

    def __init__(self) -> None:
        self._rooms: Dict[str, Room] = {}

    def __contains__(self, room_id: object) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def rooms(self) -> List[Room]:
        """Snapshot of all rooms."""
        return list(self._rooms.values())

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def create(
        self, room_id: str, url: Any, initial_member: ConnectionHandle
    ) -> Room:
        """Create a room whose only member is ``initial_member``.

        If the member is currently in another room it is detached from it
        first, which may delete that room.

        Raises:
            RoomAlreadyExists: ``room_id`` is already registered.
        """
        if room_id in self._rooms:
            raise RoomAlreadyExists(room_id)

        self._leave_previous(initial_member, room_id)

        room = Room(room_id=room_id, url=url, members={initial_member})
        self._rooms[room_id] = room
        initial_member.current_room_id = room_id
        logger.info("[Registry] Room %s created (url=%s, rooms=%d)", room_id, url, len(self._rooms))
        return room

    def join(self, room_id: str, member: ConnectionHandle) -> Room:
        """Attach ``member`` to an existing room. Idempotent.

        Raises:
            RoomNotFound: ``room_id`` is not registered.
        """
        room = self._rooms.get(room_id)
        if room is None:
            raise RoomNotFound(room_id)

        self._leave_previous(member, room_id)

        room.members.add(member)
        member.current_room_id = room_id
        logger.info(
            "[Registry] Client %s joined room %s (size=%d)",
            member.client_id, room_id, len(room.members),
        )
        return room

    def detach(self, member: ConnectionHandle) -> Optional[Room]:
        """Remove ``member`` from its current room.

        The room is found through ``member.current_room_id``; nothing is
        scanned. An emptied room is deleted.

        Returns:
            The room the member left, or None if it was not in one.
        """
        room_id = member.current_room_id
        if room_id is None:
            return None
        member.current_room_id = None

        room = self._rooms.get(room_id)
        if room is None:
            return None

        room.members.discard(member)
        logger.info(
            "[Registry] Client %s removed from room %s (remaining=%d)",
            member.client_id, room_id, len(room.members),
        )
        if not room.members:
            del self._rooms[room_id]
            logger.info("[Registry] Room %s deleted because empty", room_id)
        return room

    def broadcast_targets(
        self, room_id: str, excluding: Optional[ConnectionHandle] = None
    ) -> List[ConnectionHandle]:
        """Members of ``room_id`` other than ``excluding``. Empty if no such room."""
        room = self._rooms.get(room_id)
        if room is None:
            return []
        return [m for m in room.members if m is not excluding]

    def _leave_previous(self, member: ConnectionHandle, next_room_id: str) -> None:
        previous = member.current_room_id
        if previous is not None and previous != next_room_id:
            logger.info(
                "[Registry] Client %s moving from room %s to %s",
                member.client_id, previous, next_room_id,
            )
            self.detach(member)
