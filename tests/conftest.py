import asyncio
import dataclasses
import typing as t

import httpx
import pytest

from livecode.config import LiveCodeConfig, LockPolicy
from livecode.executor import ExecutionProxy
from livecode.router import EventRouter
from livecode.socket_events import SocketEvent

PISTON_OK = {
    "language": "python",
    "version": "3.10.0",
    "run": {"stdout": "hi\n", "stderr": "", "output": "hi\n", "code": 0},
}


@dataclasses.dataclass
class Sent:
    """One event as delivered to one connection."""

    sid: str
    event: str
    data: dict


class FakeTransport:
    """In-memory stand-in for the Socket.IO server.

    Rooms keep join order like the Socket.IO manager does. Every emit is
    recorded once per recipient so fan-out scope can be asserted directly.
    """

    def __init__(self) -> None:
        self.rooms: dict[str, dict[str, None]] = {}
        self.sent: list[Sent] = []

    async def enter_room(self, sid: str, room_id: str) -> None:
        self.rooms.setdefault(room_id, {})[sid] = None

    async def leave_room(self, sid: str, room_id: str) -> None:
        members = self.rooms.get(room_id)
        if members is None:
            return
        members.pop(sid, None)
        if not members:
            del self.rooms[room_id]

    def participants(self, room_id: str) -> list[str]:
        return list(self.rooms.get(room_id, {}))

    def rooms_of(self, sid: str) -> list[str]:
        return [room_id for room_id, members in self.rooms.items() if sid in members]

    async def emit(
        self,
        message: SocketEvent,
        *,
        to: str | None = None,
        room: str | None = None,
        skip_sid: str | None = None,
    ) -> None:
        if to is not None:
            recipients = [to]
        else:
            recipients = [sid for sid in self.participants(room) if sid != skip_sid]
        data = message.model_dump(by_alias=True, mode="json")
        for sid in recipients:
            self.sent.append(Sent(sid=sid, event=message.event, data=data))

    def start_background_task(self, target, *args, **kwargs):
        return asyncio.ensure_future(target(*args, **kwargs))

    def received(self, sid: str, event: str | None = None) -> list[dict]:
        return [
            s.data
            for s in self.sent
            if s.sid == sid and (event is None or s.event == event)
        ]

    def clear(self) -> None:
        self.sent.clear()


def make_config(**overrides) -> LiveCodeConfig:
    values: dict[str, t.Any] = {
        "frontend_url": None,
        "server_host": "localhost",
        "server_port": 5000,
        "log_level": "WARNING",
        "lock_policy": LockPolicy.EXPLICIT,
        "lock_timeout": 0.05,
        "language_scope": "others",
        "run_result_scope": "sender",
        "execution_url": "http://piston.test/api/v2/execute",
        "execution_timeout": 1.0,
    }
    values.update(overrides)
    return LiveCodeConfig(**values)


def piston_client(handler: t.Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def executor() -> ExecutionProxy:
    client = piston_client(lambda request: httpx.Response(200, json=PISTON_OK))
    return ExecutionProxy("http://piston.test/api/v2/execute", client=client)


@pytest.fixture
def make_router(transport, executor):
    """Factory for routers sharing the fake transport, any config override."""

    def _make(**overrides) -> EventRouter:
        return EventRouter(transport, make_config(**overrides), executor)

    return _make


@pytest.fixture
def router(make_router) -> EventRouter:
    return make_router()


async def join(router: EventRouter, sid: str, room_id: str, username: str) -> None:
    await router.on_join(sid, {"roomId": room_id, "username": username})


async def disconnect(router: EventRouter, transport: FakeTransport, sid: str) -> None:
    """Run the disconnect handler, then drop the sid like Socket.IO does."""
    await router.on_disconnect(sid, "client disconnect")
    for room_id in transport.rooms_of(sid):
        await transport.leave_room(sid, room_id)
