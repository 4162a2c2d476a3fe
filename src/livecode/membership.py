"""Room membership, derived from the transport's room grouping."""

import logging
import typing as t

from livecode.registry import ConnectionRegistry
from livecode.socket_events import Member

log = logging.getLogger(__name__)


class RoomTransport(t.Protocol):
    async def enter_room(self, sid: str, room_id: str) -> None: ...

    async def leave_room(self, sid: str, room_id: str) -> None: ...

    def participants(self, room_id: str) -> list[str]: ...

    def rooms_of(self, sid: str) -> list[str]: ...


class MembershipIndex:
    """Which connections are in which room.

    Nothing is stored here: the member sets are the transport's rooms, the
    names come from the connection registry. A room exists as long as it has
    members; joining an unknown room creates it.
    """

    def __init__(self, transport: RoomTransport, registry: ConnectionRegistry) -> None:
        self.transport = transport
        self.registry = registry

    async def join(self, sid: str, room_id: str) -> list[Member]:
        """Add a connection to a room and return the resulting member list."""
        await self.transport.enter_room(sid, room_id)
        members = self.members_of(room_id)
        log.info(f"{sid} joined room '{room_id}' ({len(members)} members)")
        return members

    async def leave(self, sid: str, room_id: str) -> None:
        await self.transport.leave_room(sid, room_id)
        log.info(f"{sid} left room '{room_id}'")

    def members_of(self, room_id: str) -> list[Member]:
        """Ordered members of a room, empty if the room is unknown."""
        return [
            Member(socket_id=sid, username=self.registry.lookup(sid))
            for sid in self.transport.participants(room_id)
        ]

    def rooms_of(self, sid: str) -> list[str]:
        return self.transport.rooms_of(sid)

    def is_member(self, sid: str, room_id: str) -> bool:
        return sid in self.transport.participants(room_id)
