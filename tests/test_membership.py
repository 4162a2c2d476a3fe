import pytest

from livecode.membership import MembershipIndex
from livecode.registry import ConnectionRegistry
from livecode.socket_events import Member


def test_registry_register_and_lookup():
    registry = ConnectionRegistry()
    registry.register("a", "alice")

    assert registry.lookup("a") == "alice"
    assert "a" in registry
    assert len(registry) == 1


def test_registry_register_overwrites():
    registry = ConnectionRegistry()
    registry.register("a", "alice")
    registry.register("a", "alicia")

    assert registry.lookup("a") == "alicia"
    assert len(registry) == 1


def test_registry_unregister_is_idempotent():
    registry = ConnectionRegistry()
    registry.register("a", "alice")

    registry.unregister("a")
    registry.unregister("a")
    registry.unregister("never-seen")

    assert registry.lookup("a") is None
    assert len(registry) == 0


@pytest.fixture
def index(transport) -> MembershipIndex:
    registry = ConnectionRegistry()
    registry.register("a", "alice")
    registry.register("b", "bob")
    return MembershipIndex(transport, registry)


@pytest.mark.asyncio
async def test_join_creates_room_and_returns_members_in_join_order(index):
    assert await index.join("b", "r1") == [Member(socket_id="b", username="bob")]
    assert await index.join("a", "r1") == [
        Member(socket_id="b", username="bob"),
        Member(socket_id="a", username="alice"),
    ]


@pytest.mark.asyncio
async def test_member_without_name(index):
    members = await index.join("anon", "r1")
    assert members == [Member(socket_id="anon", username=None)]


def test_members_of_unknown_room_is_empty(index):
    assert index.members_of("nowhere") == []
    assert index.is_member("a", "nowhere") is False


@pytest.mark.asyncio
async def test_leave_removes_membership(index, transport):
    await index.join("a", "r1")
    await index.join("b", "r1")

    await index.leave("a", "r1")

    assert index.members_of("r1") == [Member(socket_id="b", username="bob")]
    assert index.is_member("a", "r1") is False

    await index.leave("b", "r1")
    assert index.members_of("r1") == []
    assert "r1" not in transport.rooms


@pytest.mark.asyncio
async def test_rooms_of(index):
    await index.join("a", "r1")
    await index.join("a", "r2")
    await index.join("b", "r2")

    assert sorted(index.rooms_of("a")) == ["r1", "r2"]
    assert index.rooms_of("b") == ["r2"]
    assert index.rooms_of("c") == []
