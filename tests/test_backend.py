from backend import RoomRegistry
from schemas.rooms import Member


def sharing_members(room):
    return [member.id for member in room.members.values() if member.is_sharing]


def test_get_or_create_returns_same_room(registry):
    room = registry.get_or_create("r1")
    assert registry.get_or_create("r1") is room
    assert registry.get("r1") is room
    assert len(registry) == 1


def test_get_does_not_create(registry):
    assert registry.get("missing") is None
    assert "missing" not in registry


def test_remove_deletes_entry(registry):
    registry.get_or_create("r1")
    registry.remove("r1")
    assert registry.get("r1") is None
    # removing twice is harmless
    registry.remove("r1")


def test_add_member_never_starts_sharing(registry):
    room = registry.get_or_create("r1")
    registry.add_member(room, Member(id="a", name="Alice", is_sharing=True))
    assert room.members["a"].is_sharing is False
    assert room.sharer_id is None


def test_roster_keeps_join_order_and_wire_names(registry):
    room = registry.get_or_create("r1")
    registry.add_member(room, Member(id="b", name="Bob"))
    registry.add_member(room, Member(id="a", name="Alice"))
    assert room.roster() == [
        {"id": "b", "name": "Bob", "isSharing": False},
        {"id": "a", "name": "Alice", "isSharing": False},
    ]


def test_set_sharer_replaces_previous_sharer(registry):
    room = registry.get_or_create("r1")
    registry.add_member(room, Member(id="a", name="A"))
    registry.add_member(room, Member(id="b", name="B"))

    assert registry.set_sharer(room, "a")
    assert room.sharer_id == "a"
    assert sharing_members(room) == ["a"]

    assert registry.set_sharer(room, "b")
    assert room.sharer_id == "b"
    assert sharing_members(room) == ["b"]


def test_set_sharer_rejects_non_member(registry):
    room = registry.get_or_create("r1")
    registry.add_member(room, Member(id="a", name="A"))
    registry.set_sharer(room, "a")

    assert registry.set_sharer(room, "ghost") is False
    assert room.sharer_id == "a"
    assert sharing_members(room) == ["a"]


def test_clear_sharer(registry):
    room = registry.get_or_create("r1")
    registry.add_member(room, Member(id="a", name="A"))
    registry.set_sharer(room, "a")
    registry.clear_sharer(room)
    assert room.sharer_id is None
    assert sharing_members(room) == []


def test_remove_member_clears_departing_sharer(registry):
    room = registry.get_or_create("r1")
    registry.add_member(room, Member(id="a", name="A"))
    registry.add_member(room, Member(id="b", name="B"))
    registry.set_sharer(room, "a")

    removed = registry.remove_member(room, "a")
    assert removed.id == "a"
    assert removed.is_sharing is False
    assert room.sharer_id is None
    assert list(room.members) == ["b"]


def test_remove_member_keeps_other_sharer(registry):
    room = registry.get_or_create("r1")
    registry.add_member(room, Member(id="a", name="A"))
    registry.add_member(room, Member(id="b", name="B"))
    registry.set_sharer(room, "a")

    registry.remove_member(room, "b")
    assert room.sharer_id == "a"
    assert registry.remove_member(room, "b") is None


def test_registries_are_isolated():
    first, second = RoomRegistry(), RoomRegistry()
    first.get_or_create("r1")
    assert second.get("r1") is None


def test_clear_drops_every_room(registry):
    registry.get_or_create("r1")
    registry.get_or_create("r2")
    registry.clear()
    assert len(registry) == 0
    assert registry.get("r1") is None
