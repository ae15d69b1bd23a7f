import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Type

from pydantic import BaseModel, ValidationError

import events
from backend import Room, RoomRegistry
from constants import DEFAULT_USER_NAME
from logging_config import get_logger
from schemas.rooms import (
    CandidateRelayRequest,
    JoinRoomRequest,
    Member,
    ScreenResponseRequest,
    SdpRelayRequest,
)

logger = get_logger(__name__)


def is_missing(value: Any) -> bool:
    # Empty strings, zero and false count as absent; an empty object or list does not
    if isinstance(value, (dict, list)):
        return False
    return not value


class Transport(Protocol):
    def join(self, connection_id: str, room_id: str) -> None: ...

    def leave(self, connection_id: str, room_id: str) -> None: ...

    def send(self, connection_id: str, event: str, payload: Any = None) -> None: ...

    def broadcast(self, room_id: str, event: str, payload: Any = None, exclude: Optional[str] = None) -> None: ...


class SessionState(enum.Enum):
    UNJOINED = "unjoined"
    JOINED = "joined"
    CLOSED = "closed"


@dataclass
class SessionContext:
    connection_id: str
    room_id: Optional[str] = None
    state: SessionState = SessionState.UNJOINED


class SignalingSession:
    def __init__(self, connection_id: str, registry: RoomRegistry, transport: Transport):
        self.context = SessionContext(connection_id=connection_id)
        self.registry = registry
        self.transport = transport
        self.handlers: Dict[str, Callable[[Any], None]] = {
            events.JOIN_ROOM: self.on_join_room,
            events.LEAVE_ROOM: self.on_leave_room,
            events.REQUEST_SCREEN: self.on_request_screen,
            events.SCREEN_RESPONSE: self.on_screen_response,
            events.OFFER: self.on_offer,
            events.ANSWER: self.on_answer,
            events.CANDIDATE: self.on_candidate,
            events.STOP_SHARING: self.on_stop_sharing,
        }

    @property
    def id(self) -> str:
        return self.context.connection_id

    @property
    def state(self) -> SessionState:
        return self.context.state

    @property
    def room(self) -> Optional[Room]:
        if self.context.room_id is None:
            return None
        return self.registry.get(self.context.room_id)

    def handle(self, event: str, data: Any = None):
        """Dispatch one inbound event to its handler."""
        if self.context.state is SessionState.CLOSED:
            logger.debug(f"Ignoring {event} from closed connection {self.id}")
            return
        handler = self.handlers.get(event)
        if handler is None:
            logger.debug(f"Dropping unknown event {event!r} from connection {self.id}")
            return
        handler(data)

    def close(self):
        """Transport connection is gone; same cleanup as an explicit leave, then terminal."""
        if self.context.state is SessionState.CLOSED:
            return
        logger.info(f"Connection {self.id} disconnected from room {self.context.room_id or 'none'}")
        if self.context.state is SessionState.JOINED:
            self._leave_current_room()
        self.context.state = SessionState.CLOSED

    def on_join_room(self, data: Any):
        if self.context.state is not SessionState.UNJOINED:
            logger.debug(f"Dropping join-room from {self.id}: already in room {self.context.room_id}")
            return
        request = self._parse(events.JOIN_ROOM, JoinRoomRequest, data)
        if request is None or not request.roomId:
            return

        room_id = request.roomId
        name = request.userName or DEFAULT_USER_NAME
        room = self.registry.get_or_create(room_id)
        member = Member(id=self.id, name=name, is_sharing=False)
        self.registry.add_member(room, member)
        self.transport.join(self.id, room_id)

        self.context.room_id = room_id
        self.context.state = SessionState.JOINED
        logger.info(f"User {self.id} joined room {room_id} as {name}")

        self.transport.send(self.id, events.ROOM_JOINED, {"users": room.roster()})
        self.transport.broadcast(room_id, events.USER_JOINED, member.to_wire(), exclude=self.id)
        self.transport.broadcast(room_id, events.USERS_UPDATE, room.roster())

    def on_leave_room(self, data: Any = None):
        if self.context.state is not SessionState.JOINED:
            return
        logger.info(f"User {self.id} left room {self.context.room_id}")
        self._leave_current_room()
        self.context.state = SessionState.UNJOINED

    def _leave_current_room(self):
        room_id = self.context.room_id
        self.context.room_id = None
        room = self.registry.get(room_id)
        if room is None:
            return

        if room.sharer_id == self.id:
            self.registry.clear_sharer(room)
            logger.info(f"Sharer {self.id} left room {room_id}, screen share stopped")
            self.transport.broadcast(room_id, events.STOPPED)

        self.registry.remove_member(room, self.id)
        self.transport.leave(self.id, room_id)
        self.transport.broadcast(room_id, events.USER_LEFT, self.id, exclude=self.id)
        self.transport.broadcast(room_id, events.USERS_UPDATE, room.roster())

        if room.is_empty():
            logger.info(f"Room {room_id} is empty, deleting")
            self.registry.remove(room_id)

    def on_request_screen(self, data: Any):
        room_id = data if isinstance(data, str) else None
        room = self.registry.get(room_id) if room_id else None
        if room is None:
            logger.debug(f"Dropping request-screen from {self.id}: unknown room {data!r}")
            return

        if room.sharer_id:
            logger.info(f"Screen request from {self.id} in room {room_id} rejected: {room.sharer_id} is sharing")
            self.transport.send(self.id, events.SCREEN_RESPONSE, {"accept": False})
            return

        logger.info(f"Screen request from {self.id} in room {room_id}")
        self.transport.broadcast(room_id, events.SCREEN_REQUEST, {"from": self.id}, exclude=self.id)

    def on_screen_response(self, data: Any):
        response = self._parse(events.SCREEN_RESPONSE, ScreenResponseRequest, data)
        room = self.room
        if response is None or not response.to or room is None:
            return

        accept = bool(response.accept)
        logger.info(f"Screen response: {'accepted' if accept else 'rejected'} from {self.id} to {response.to}")
        self.transport.send(response.to, events.SCREEN_RESPONSE, {"accept": accept})

        if accept and self.registry.set_sharer(room, self.id):
            self.transport.broadcast(room.id, events.USERS_UPDATE, room.roster())

    def on_stop_sharing(self, data: Any):
        room_id = data if isinstance(data, str) else None
        room = self.registry.get(room_id) if room_id else None
        if room is None or room.sharer_id != self.id:
            return

        self.registry.clear_sharer(room)
        logger.info(f"User {self.id} stopped sharing in room {room_id}")
        self.transport.broadcast(room_id, events.STOPPED)
        self.transport.broadcast(room_id, events.USERS_UPDATE, room.roster())

    def on_offer(self, data: Any):
        self._relay(events.OFFER, SdpRelayRequest, "sdp", data)

    def on_answer(self, data: Any):
        self._relay(events.ANSWER, SdpRelayRequest, "sdp", data)

    def on_candidate(self, data: Any):
        self._relay(events.CANDIDATE, CandidateRelayRequest, "candidate", data)

    def _relay(self, event: str, model: Type[BaseModel], field: str, data: Any):
        request = self._parse(event, model, data)
        if request is None:
            return
        value = getattr(request, field)
        if not request.to or is_missing(value):
            logger.debug(f"Dropping {event} from {self.id}: missing target or {field}")
            return
        logger.debug(f"Relaying {event} from {self.id} to {request.to}")
        self.transport.send(request.to, event, {"from": self.id, field: value})

    def _parse(self, event: str, model: Type[BaseModel], data: Any):
        if not isinstance(data, dict):
            logger.debug(f"Dropping {event} from {self.id}: payload is not an object")
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Dropping {event} from {self.id}: {e.error_count()} invalid field(s)")
            return None
