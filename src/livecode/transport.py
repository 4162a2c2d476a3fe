"""Socket.IO transport adapter.

Room membership lives in the Socket.IO manager's room table. This module
exposes just the grouping and fan-out operations the coordinator needs so
that the coordinator never touches the server object directly.
"""

import logging
import typing as t

import socketio

from livecode.socket_events import SocketEvent

log = logging.getLogger(__name__)

ROOM_PREFIX = "room:"


def room_channel(room_id: str) -> str:
    """Get Socket.IO room channel name."""
    return f"{ROOM_PREFIX}{room_id}"


def room_id_from_channel(channel: str) -> str | None:
    """Inverse of room_channel, None for non-room channels (e.g. the private sid room)."""
    if channel.startswith(ROOM_PREFIX):
        return channel[len(ROOM_PREFIX) :]
    return None


class SocketIOTransport:
    """Thin wrapper around ``socketio.AsyncServer`` used by the router."""

    def __init__(self, sio: socketio.AsyncServer, namespace: str = "/") -> None:
        self.sio = sio
        self.namespace = namespace

    async def enter_room(self, sid: str, room_id: str) -> None:
        await self.sio.enter_room(sid, room_channel(room_id), namespace=self.namespace)

    async def leave_room(self, sid: str, room_id: str) -> None:
        await self.sio.leave_room(sid, room_channel(room_id), namespace=self.namespace)

    def participants(self, room_id: str) -> list[str]:
        """Connection ids in the room, in join order."""
        return [
            sid
            for sid, _eio_sid in self.sio.manager.get_participants(
                self.namespace, room_channel(room_id)
            )
        ]

    def rooms_of(self, sid: str) -> list[str]:
        """Collaboration rooms the connection is in."""
        channels = self.sio.rooms(sid, namespace=self.namespace)
        return [
            room_id
            for room_id in (room_id_from_channel(channel) for channel in channels)
            if room_id is not None
        ]

    async def emit(
        self,
        message: SocketEvent,
        *,
        to: str | None = None,
        room: str | None = None,
        skip_sid: str | None = None,
    ) -> None:
        """Emit a typed event to one connection (``to``) or a room.

        ``room`` is a room id, not a channel name.
        """
        target = to if to is not None else room_channel(t.cast(str, room))
        await self.sio.emit(
            message.event,
            message.model_dump(by_alias=True, mode="json"),
            to=target,
            skip_sid=skip_sid,
            namespace=self.namespace,
        )

    def start_background_task(self, target, *args, **kwargs):
        return self.sio.start_background_task(target, *args, **kwargs)
