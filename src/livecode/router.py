"""Socket.IO event handlers for collaboration rooms.

Recipient scopes:
- sender only: ``emit(..., to=sid)``
- room excluding sender: ``emit(..., room=room_id, skip_sid=sid)``
- whole room: ``emit(..., room=room_id)``

Inbound payloads are validated against ``livecode.socket_events``;
anything malformed, without a room id, or addressed to a room the sender
is not in is dropped. This is fire-and-forget messaging, there are no
acknowledgements to fail.

Each handler finishes its state changes (registry, membership, edit lock)
before it first awaits a send, so handlers interleaving at await points
never see a room half-updated.
"""

import asyncio
import logging
import typing as t

import socketio
from pydantic import ValidationError

from livecode.config import LanguageScope, LiveCodeConfig, LockPolicy, RunResultScope
from livecode.edit_lock import EditArbiter, EditLock, LockTransition
from livecode.executor import ExecutionProxy
from livecode.membership import MembershipIndex, RoomTransport
from livecode.registry import ConnectionRegistry
from livecode.socket_events import (
    CodeChange,
    CodeUpdate,
    CompileCode,
    Disconnected,
    Join,
    Joined,
    LanguageChange,
    LanguageUpdate,
    Leave,
    LockStatusUpdate,
    ReleaseLock,
    RequestLock,
    RoomEvent,
    SocketEvent,
    Typing,
)

log = logging.getLogger(__name__)

E = t.TypeVar("E", bound=RoomEvent)

# (message, emit kwargs)
Outbound = tuple[SocketEvent, dict[str, t.Any]]


class EventTransport(RoomTransport, t.Protocol):
    async def emit(
        self,
        message: SocketEvent,
        *,
        to: str | None = None,
        room: str | None = None,
        skip_sid: str | None = None,
    ) -> None: ...

    def start_background_task(self, target, *args, **kwargs) -> t.Any: ...


def lock_status(lock: EditLock) -> LockStatusUpdate:
    return LockStatusUpdate(locked_by=lock.holder, username=lock.display_name)


class EventRouter:
    """Routes client events through registry, membership and edit lock.

    Owns all per-process room state; one instance per server.
    """

    def __init__(
        self,
        transport: EventTransport,
        config: LiveCodeConfig,
        executor: ExecutionProxy,
    ) -> None:
        self.transport = transport
        self.config = config
        self.executor = executor
        self.registry = ConnectionRegistry()
        self.membership = MembershipIndex(transport, self.registry)
        self.arbiter = EditArbiter(
            timeout=config.lock_timeout, on_expire=self._on_lock_expired
        )
        self._tasks: set[asyncio.Task] = set()

    def register(self, sio: socketio.AsyncServer) -> None:
        """Bind all handlers on the server's default namespace."""
        sio.on("connect", self.on_connect)
        sio.on("disconnect", self.on_disconnect)
        sio.on(Join.event, self.on_join)
        sio.on(Leave.event, self.on_leave)
        sio.on(CodeChange.event, self.on_code_change)
        for event in (RequestLock.event, *RequestLock.aliases):
            sio.on(event, self.on_request_lock)
        for event in (ReleaseLock.event, *ReleaseLock.aliases):
            sio.on(event, self.on_release_lock)
        sio.on(LanguageChange.event, self.on_language_change)
        sio.on(CompileCode.event, self.on_compile_code)

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def on_connect(self, sid: str, environ: dict, auth: t.Any = None) -> bool:
        log.info(f"Connection opened: {sid}")
        return True

    async def on_disconnect(self, sid: str, reason: t.Any = None) -> None:
        """Release locks and leave every room the connection was in."""
        username = self.registry.lookup(sid)
        outbound: list[Outbound] = []
        for room_id in self.membership.rooms_of(sid):
            outbound.extend(await self._depart(sid, room_id, username))
        self.registry.unregister(sid)
        log.info(f"Connection closed: {sid} ({reason})")
        await self._send(outbound)

    # -------------------------------------------------------------------------
    # Room events
    # -------------------------------------------------------------------------

    async def on_join(self, sid: str, data: t.Any = None) -> None:
        msg = self._parse(Join, sid, data)
        if msg is None:
            return
        self.registry.register(sid, msg.username)
        members = await self.membership.join(sid, msg.room_id)
        snapshot = lock_status(self.arbiter.status(msg.room_id))
        # snapshot goes out before anything else can change the lock
        await self.transport.emit(snapshot, to=sid)
        await self.transport.emit(
            Joined(clients=members, username=msg.username, socket_id=sid),
            room=msg.room_id,
        )

    async def on_leave(self, sid: str, data: t.Any = None) -> None:
        msg = self._parse_in_room(Leave, sid, data)
        if msg is None:
            return
        outbound = await self._depart(sid, msg.room_id, self.registry.lookup(sid))
        await self._send(outbound)

    async def on_code_change(self, sid: str, data: t.Any = None) -> None:
        msg = self._parse_in_room(CodeChange, sid, data)
        if msg is None:
            return
        outbound: list[Outbound] = []
        if not self._may_edit(sid, msg.room_id, outbound):
            log.debug(f"Dropped code change from {sid} in '{msg.room_id}'")
            await self._send(outbound)
            return
        others = {"room": msg.room_id, "skip_sid": sid}
        outbound.append((CodeUpdate(code=msg.code), others))
        outbound.append((Typing(username=self.registry.lookup(sid)), others))
        await self._send(outbound)

    async def on_request_lock(self, sid: str, data: t.Any = None) -> None:
        if self.config.lock_policy is LockPolicy.NONE:
            return
        msg = self._parse_in_room(RequestLock, sid, data)
        if msg is None:
            return
        transition = self.arbiter.request_edit(
            sid, msg.room_id, self.registry.lookup(sid)
        )
        if transition is not None:
            await self._broadcast_lock(transition)

    async def on_release_lock(self, sid: str, data: t.Any = None) -> None:
        if self.config.lock_policy is LockPolicy.NONE:
            return
        msg = self._parse_in_room(ReleaseLock, sid, data)
        if msg is None:
            return
        transition = self.arbiter.release_edit(sid, msg.room_id)
        if transition is not None:
            await self._broadcast_lock(transition)

    async def on_language_change(self, sid: str, data: t.Any = None) -> None:
        msg = self._parse_in_room(LanguageChange, sid, data)
        if msg is None:
            return
        skip_sid = sid if self.config.language_scope is LanguageScope.OTHERS else None
        await self.transport.emit(
            LanguageUpdate(language=msg.language), room=msg.room_id, skip_sid=skip_sid
        )

    async def on_compile_code(self, sid: str, data: t.Any = None) -> None:
        msg = self._parse_in_room(CompileCode, sid, data)
        if msg is None:
            return
        log.info(f"Run requested by {sid} in '{msg.room_id}' ({msg.language})")
        self._spawn(self._run, sid, msg)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait for pending background sends and runs."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        self.arbiter.close()
        await self.wait_idle()

    def _parse(self, model: type[E], sid: str, data: t.Any) -> E | None:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            log.debug(
                f"Dropped malformed '{model.event}' from {sid}: "
                f"{e.error_count()} validation error(s)"
            )
            return None

    def _parse_in_room(self, model: type[E], sid: str, data: t.Any) -> E | None:
        msg = self._parse(model, sid, data)
        if msg is None:
            return None
        if not self.membership.is_member(sid, msg.room_id):
            log.debug(f"Dropped '{model.event}' from {sid}: not in '{msg.room_id}'")
            return None
        return msg

    def _may_edit(self, sid: str, room_id: str, outbound: list[Outbound]) -> bool:
        """Whether a code change from ``sid`` may be relayed under the lock policy."""
        policy = self.config.lock_policy
        if policy is LockPolicy.NONE:
            return True
        if policy is LockPolicy.IDLE:
            transition = self.arbiter.request_edit(
                sid, room_id, self.registry.lookup(sid)
            )
            if transition is not None:
                outbound.append((lock_status(transition.lock), {"room": room_id}))
            return self.arbiter.holder_of(room_id) == sid
        return self.arbiter.touch(sid, room_id)

    async def _depart(
        self, sid: str, room_id: str, username: str | None
    ) -> list[Outbound]:
        transition = self.arbiter.force_release(sid, room_id)
        await self.membership.leave(sid, room_id)
        outbound: list[Outbound] = [
            (Disconnected(socket_id=sid, username=username), {"room": room_id})
        ]
        if transition is not None:
            outbound.append((lock_status(transition.lock), {"room": room_id}))
        return outbound

    async def _broadcast_lock(self, transition: LockTransition) -> None:
        await self.transport.emit(lock_status(transition.lock), room=transition.room_id)

    async def _send(self, outbound: list[Outbound]) -> None:
        for message, kwargs in outbound:
            await self.transport.emit(message, **kwargs)

    async def _run(self, sid: str, msg: CompileCode) -> None:
        result = await self.executor.execute(msg)
        if self.config.run_result_scope is RunResultScope.ROOM:
            await self.transport.emit(result, room=msg.room_id)
        else:
            await self.transport.emit(result, to=sid)

    def _on_lock_expired(self, transition: LockTransition) -> None:
        self._spawn(self._broadcast_lock, transition)

    def _spawn(self, target: t.Callable[..., t.Awaitable], *args) -> None:
        task = self.transport.start_background_task(target, *args)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
