"""Connection id to display name mapping."""

import logging

log = logging.getLogger(__name__)


class ConnectionRegistry:
    """Display names of live connections, keyed by Socket.IO sid.

    Names are client-supplied at join time and never validated.
    """

    def __init__(self) -> None:
        self._names: dict[str, str] = {}

    def register(self, sid: str, display_name: str) -> None:
        """Attach a display name to a connection, replacing any previous one."""
        self._names[sid] = display_name
        log.debug(f"Registered {sid} as '{display_name}'")

    def lookup(self, sid: str) -> str | None:
        return self._names.get(sid)

    def unregister(self, sid: str) -> None:
        """Forget a connection. No-op for unknown ids."""
        if self._names.pop(sid, None) is not None:
            log.debug(f"Unregistered {sid}")

    def __contains__(self, sid: object) -> bool:
        return sid in self._names

    def __len__(self) -> int:
        return len(self._names)
