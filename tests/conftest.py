import pytest
from fastapi.testclient import TestClient

from app import app
from backend import RoomRegistry
from session import SignalingSession


class RecordingTransport:
    """Transport double that records every delivery per connection."""

    def __init__(self):
        self.room_connections = {}
        self.inboxes = {}
        self.calls = []

    def join(self, connection_id, room_id):
        self.room_connections.setdefault(room_id, set()).add(connection_id)

    def leave(self, connection_id, room_id):
        members = self.room_connections.get(room_id, set())
        members.discard(connection_id)
        if not members:
            self.room_connections.pop(room_id, None)

    def send(self, connection_id, event, payload=None):
        self.calls.append(("send", connection_id, event, payload))
        self.inboxes.setdefault(connection_id, []).append((event, payload))

    def broadcast(self, room_id, event, payload=None, exclude=None):
        self.calls.append(("broadcast", room_id, event, payload))
        for connection_id in sorted(self.room_connections.get(room_id, set())):
            if connection_id != exclude:
                self.inboxes.setdefault(connection_id, []).append((event, payload))

    def inbox(self, connection_id):
        return self.inboxes.get(connection_id, [])

    def events_for(self, connection_id):
        return [event for event, _ in self.inbox(connection_id)]

    def clear(self):
        self.inboxes.clear()
        self.calls.clear()


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def make_session(registry, transport):
    def factory(connection_id):
        return SignalingSession(connection_id, registry, transport)
    return factory


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
