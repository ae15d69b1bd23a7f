from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import RoomDetailsResponse, RoomSummaryResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/", response_model=list[RoomSummaryResponse])
async def list_rooms(request: Request):
    registry = request.app.state.registry
    return [
        RoomSummaryResponse(room_id=room.id, user_count=len(room.members), sharer_id=room.sharer_id)
        for room in registry
    ]


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Current roster of a live room.

    Returns:
    - room_id: Room identifier chosen by the clients
    - users: Members in join order ({id, name, isSharing})
    - sharer_id: Connection currently sharing its screen, if any
    - user_count: Number of connected members
    """
    room = request.app.state.registry.get(room_id)
    if room is None:
        logger.debug(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(
        room_id=room.id,
        users=list(room.members.values()),
        sharer_id=room.sharer_id,
        user_count=len(room.members),
    )
