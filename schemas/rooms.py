from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional


class Member(BaseModel):
    """One connection's presence in a room, serialized as {id, name, isSharing}."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    is_sharing: bool = Field(default=False, alias="isSharing")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class ClientMessage(BaseModel):
    # Envelope of every inbound and outbound frame: {"event": ..., "data": ...}
    event: str
    data: Any = None


class JoinRoomRequest(BaseModel):
    roomId: str
    userName: Optional[str] = None

    @field_validator("userName", mode="before")
    @classmethod
    def ignore_non_string_name(cls, value):
        # A name of the wrong type falls back to the default instead of failing the join
        return value if isinstance(value, str) else None

class ScreenResponseRequest(BaseModel):
    to: Optional[str] = None
    accept: Any = False

class SdpRelayRequest(BaseModel):
    to: Optional[str] = None
    sdp: Any = None

class CandidateRelayRequest(BaseModel):
    to: Optional[str] = None
    candidate: Any = None


class RoomSummaryResponse(BaseModel):
    room_id: str
    user_count: int
    sharer_id: Optional[str]

class RoomDetailsResponse(BaseModel):
    room_id: str
    users: list[Member]
    sharer_id: Optional[str]
    user_count: int

class HealthResponse(BaseModel):
    status: str
    timestamp: str
