"""Per-room edit lock: at most one connection may broadcast buffer changes.

States per room are Unlocked (no entry) and Locked(holder). Every
acquisition and every accepted edit from the holder re-arms an inactivity
timer; when it fires the lock is released as if the holder had asked.

All transitions are synchronous. They are only ever called from the event
loop thread, between awaits, so no transition can observe another one
half-done.
"""

import asyncio
import dataclasses
import logging
import typing as t

log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class EditLock:
    """Snapshot of a room's lock."""

    holder: str | None = None
    display_name: str | None = None

    @property
    def locked(self) -> bool:
        return self.holder is not None


UNLOCKED = EditLock()


@dataclasses.dataclass(frozen=True)
class LockTransition:
    """A state change that must be announced to the room."""

    room_id: str
    action: t.Literal["acquired", "released"]
    lock: EditLock
    previous_holder: str | None = None


class EditArbiter:
    """Owns every room's edit lock and its auto-release timer.

    Parameters
    ----------
    timeout : float
        Seconds of inactivity after which the holder loses the lock.
    on_expire : callable, optional
        Called with the release transition when a timer fires. Explicit
        releases are returned to the caller instead.
    """

    def __init__(
        self,
        timeout: float,
        on_expire: t.Callable[[LockTransition], None] | None = None,
    ) -> None:
        self.timeout = timeout
        self.on_expire = on_expire
        self._locks: dict[str, EditLock] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def status(self, room_id: str) -> EditLock:
        return self._locks.get(room_id, UNLOCKED)

    def holder_of(self, room_id: str) -> str | None:
        return self.status(room_id).holder

    def request_edit(
        self, sid: str, room_id: str, display_name: str | None = None
    ) -> LockTransition | None:
        """Try to take the room's lock.

        Returns the "acquired" transition if the room was unlocked. A
        request from the current holder only re-arms its timer, a request
        while someone else holds the lock is rejected; both return None.
        """
        current = self._locks.get(room_id)
        if current is None:
            lock = EditLock(holder=sid, display_name=display_name)
            self._locks[room_id] = lock
            self._arm(room_id, sid)
            log.info(f"Edit lock for room '{room_id}' acquired by {sid}")
            return LockTransition(room_id=room_id, action="acquired", lock=lock)

        if current.holder == sid:
            self._arm(room_id, sid)
        else:
            log.debug(
                f"Edit lock request from {sid} rejected, room '{room_id}' "
                f"is held by {current.holder}"
            )
        return None

    def release_edit(self, sid: str, room_id: str) -> LockTransition | None:
        """Release the lock if ``sid`` holds it, otherwise do nothing."""
        return self._release(sid, room_id, reason="released")

    def force_release(self, sid: str, room_id: str) -> LockTransition | None:
        """Release on behalf of a departing connection.

        Still a no-op unless ``sid`` is the holder.
        """
        return self._release(sid, room_id, reason="force-released")

    def touch(self, sid: str, room_id: str) -> bool:
        """Re-arm the inactivity timer after an accepted edit from the holder."""
        if self.holder_of(room_id) != sid:
            return False
        self._arm(room_id, sid)
        return True

    def close(self) -> None:
        """Cancel all pending timers, keep the lock table."""
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    def _release(self, sid: str, room_id: str, reason: str) -> LockTransition | None:
        current = self._locks.get(room_id)
        if current is None or current.holder != sid:
            return None
        del self._locks[room_id]
        self._cancel(room_id)
        log.info(f"Edit lock for room '{room_id}' {reason} by {sid}")
        return LockTransition(
            room_id=room_id, action="released", lock=UNLOCKED, previous_holder=sid
        )

    def _arm(self, room_id: str, sid: str) -> None:
        # cancel first: a room never has more than one live timer
        self._cancel(room_id)
        loop = asyncio.get_running_loop()
        self._timers[room_id] = loop.call_later(
            self.timeout, self._expire, room_id, sid
        )

    def _cancel(self, room_id: str) -> None:
        handle = self._timers.pop(room_id, None)
        if handle is not None:
            handle.cancel()

    def _expire(self, room_id: str, sid: str) -> None:
        transition = self._release(sid, room_id, reason="expired")
        if transition is not None and self.on_expire is not None:
            self.on_expire(transition)
