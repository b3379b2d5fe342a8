"""Read-only room REST API.

Endpoints:
    GET /rooms           - List active rooms
    GET /rooms/{room_id} - Get one room
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from .registry import RoomRegistry
from .schemas import RoomSummary

router = APIRouter(tags=["rooms"])


def get_registry(request: Request) -> RoomRegistry:
    return request.app.state.registry


@router.get("/rooms", response_model=List[RoomSummary])
async def list_rooms(registry: RoomRegistry = Depends(get_registry)) -> List[RoomSummary]:
    """List every active room.

    Returns:
        Room summaries, oldest first.
    """
    rooms = sorted(registry.rooms(), key=lambda room: room.created_at)
    return [room.summary() for room in rooms]


@router.get("/rooms/{room_id}", response_model=RoomSummary)
async def get_room(room_id: str, registry: RoomRegistry = Depends(get_registry)) -> RoomSummary:
    """Get a single room.

    Args:
        room_id: The room ID.

    Raises:
        HTTPException: 404 if the room does not exist (never created or already emptied).
    """
    room = registry.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail=f"Room {room_id} not found")
    return room.summary()
