import asyncio
from typing import Any, Dict, Optional, Set
from fastapi import WebSocket
from logging_config import get_logger

logger = get_logger(__name__)


def build_frame(event: str, payload: Any = None) -> dict:
    frame = {"event": event}
    if payload is not None:
        frame["data"] = payload
    return frame


class WebSocketTransport:
    """In-process transport for the signaling sessions of this instance.

    send and broadcast only enqueue frames onto per-connection outboxes, so a
    session handler never awaits. Each socket has a writer task (pump) that
    drains its outbox in order.
    """

    def __init__(self):
        # Format: {connection_id: queue of outbound frames}
        self.outboxes: Dict[str, asyncio.Queue] = {}
        # Format: {room_id: {connection_id, ...}}
        self.room_connections: Dict[str, Set[str]] = {}

    def connect(self, connection_id: str) -> asyncio.Queue:
        outbox = asyncio.Queue()
        self.outboxes[connection_id] = outbox
        logger.debug(f"Registered connection {connection_id} (local connections: {len(self.outboxes)})")
        return outbox

    def disconnect(self, connection_id: str):
        self.outboxes.pop(connection_id, None)
        for room_id in [r for r, members in self.room_connections.items() if connection_id in members]:
            self.leave(connection_id, room_id)
        logger.debug(f"Unregistered connection {connection_id} (local connections: {len(self.outboxes)})")

    def join(self, connection_id: str, room_id: str):
        self.room_connections.setdefault(room_id, set()).add(connection_id)

    def leave(self, connection_id: str, room_id: str):
        members = self.room_connections.get(room_id)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self.room_connections[room_id]

    def send(self, connection_id: str, event: str, payload: Any = None):
        outbox = self.outboxes.get(connection_id)
        if outbox is None:
            logger.debug(f"Dropping {event} for unknown connection {connection_id}")
            return
        outbox.put_nowait(build_frame(event, payload))

    def broadcast(self, room_id: str, event: str, payload: Any = None, exclude: Optional[str] = None):
        targets = self.room_connections.get(room_id, set())
        frame = build_frame(event, payload)
        for connection_id in list(targets):
            if connection_id == exclude:
                continue
            outbox = self.outboxes.get(connection_id)
            if outbox is not None:
                outbox.put_nowait(frame)

    async def pump(self, websocket: WebSocket, outbox: asyncio.Queue, connection_id: str):
        """Write queued frames to the socket until cancelled or the socket fails."""
        try:
            while True:
                frame = await outbox.get()
                await websocket.send_json(frame)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.debug(f"Writer for connection {connection_id} stopped: {e}")
