from typing import Dict, Iterator, List, Optional
from schemas.rooms import Member
from logging_config import get_logger

logger = get_logger(__name__)


class Room:
    """Membership and sharer state of one room.

    Only RoomRegistry mutates a Room; everything else reads it.
    """

    def __init__(self, room_id: str):
        self.id = room_id
        self.members: Dict[str, Member] = {}
        self.sharer_id: Optional[str] = None

    def roster(self) -> List[dict]:
        """Members in join order, as sent on the wire."""
        return [member.to_wire() for member in self.members.values()]

    def is_empty(self) -> bool:
        return not self.members

    def __repr__(self):
        return f"Room(id={self.id!r}, members={len(self.members)}, sharer_id={self.sharer_id!r})"


class RoomRegistry:
    """Owns every Room in the process.

    Rooms are created lazily by get_or_create and removed by the caller once
    empty. All member and sharer mutation goes through the methods below so the
    single-sharer invariant holds after every call.
    """

    def __init__(self):
        self.rooms: Dict[str, Room] = {}
        logger.info("Initializing in-memory RoomRegistry")

    def get_or_create(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            room = Room(room_id)
            self.rooms[room_id] = room
            logger.info(f"Room {room_id} created")
        return room

    def get(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    def remove(self, room_id: str):
        if self.rooms.pop(room_id, None) is not None:
            logger.info(f"Room {room_id} deleted")

    def add_member(self, room: Room, member: Member):
        # A joining member never starts as the sharer
        member.is_sharing = False
        room.members[member.id] = member
        logger.debug(f"Member {member.id} ({member.name}) added to room {room.id} (members: {len(room.members)})")

    def remove_member(self, room: Room, member_id: str) -> Optional[Member]:
        if room.sharer_id == member_id:
            self.clear_sharer(room)
        member = room.members.pop(member_id, None)
        if member is not None:
            logger.debug(f"Member {member_id} removed from room {room.id} (members: {len(room.members)})")
        return member

    def set_sharer(self, room: Room, member_id: str) -> bool:
        """Make member_id the only sharer of the room, replacing any previous one.

        Returns False and leaves the room untouched when member_id is not a member.
        """
        member = room.members.get(member_id)
        if member is None:
            logger.debug(f"Cannot set sharer {member_id}: not a member of room {room.id}")
            return False
        self.clear_sharer(room)
        member.is_sharing = True
        room.sharer_id = member_id
        logger.info(f"Member {member_id} is now sharing in room {room.id}")
        return True

    def clear_sharer(self, room: Room):
        if room.sharer_id is not None:
            previous = room.members.get(room.sharer_id)
            if previous is not None:
                previous.is_sharing = False
            logger.debug(f"Sharer {room.sharer_id} cleared in room {room.id}")
        room.sharer_id = None

    def clear(self):
        """Drop every room, e.g. at shutdown."""
        count = len(self.rooms)
        self.rooms.clear()
        logger.info(f"Registry cleared, discarded {count} room(s)")

    def __len__(self):
        return len(self.rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self.rooms.values()))

    def __contains__(self, room_id: str):
        return room_id in self.rooms
