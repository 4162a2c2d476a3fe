"""Pydantic models for Socket.IO events.

Every model carries its wire event name in ``event``. Payload keys are
camelCase on the wire (``roomId``, ``socketId``, ``lockedBy``) and
snake_case in Python.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SocketEvent(BaseModel):
    """Base for all wire events."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    event: ClassVar[str]


class RoomEvent(SocketEvent):
    """Inbound event addressed to a room."""

    room_id: str = Field(min_length=1)


# =============================================================================
# Request Models (client -> server)
# =============================================================================


class Join(RoomEvent):
    """Join a room under a display name."""

    event: ClassVar[str] = "join"

    username: str = ""


class Leave(RoomEvent):
    """Leave a room without disconnecting."""

    event: ClassVar[str] = "leave"


class CodeChange(RoomEvent):
    """New buffer content typed by the sender."""

    event: ClassVar[str] = "code-change"

    code: str


class RequestLock(RoomEvent):
    """Ask for exclusive edit permission."""

    event: ClassVar[str] = "request-lock"
    aliases: ClassVar[tuple[str, ...]] = ("start-typing-lock",)


class ReleaseLock(RoomEvent):
    """Give up exclusive edit permission."""

    event: ClassVar[str] = "release-lock"
    aliases: ClassVar[tuple[str, ...]] = ("stop-typing-lock",)


class LanguageChange(RoomEvent):
    """Editor language selected by the sender."""

    event: ClassVar[str] = "language-change"

    language: str


class CompileCode(RoomEvent):
    """Run the buffer on the execution service."""

    event: ClassVar[str] = "compileCode"

    code: str
    language: str
    stdin: str = ""


# =============================================================================
# Broadcast Models (server -> clients)
# =============================================================================


class Member(SocketEvent):
    """One connection in a room's member list."""

    socket_id: str
    username: str | None = None


class Joined(SocketEvent):
    """Broadcast when a connection joins a room."""

    event: ClassVar[str] = "joined"

    clients: list[Member]
    username: str | None = None
    socket_id: str


class Disconnected(SocketEvent):
    """Broadcast when a connection leaves a room."""

    event: ClassVar[str] = "disconnected"

    socket_id: str
    username: str | None = None


class LockStatusUpdate(SocketEvent):
    """Current edit lock holder of a room, both fields null when unlocked."""

    event: ClassVar[str] = "lock-status-update"

    locked_by: str | None = None
    username: str | None = None


class CodeUpdate(SocketEvent):
    """Relayed buffer content."""

    event: ClassVar[str] = "code-change"

    code: str


class Typing(SocketEvent):
    """Who is currently typing."""

    event: ClassVar[str] = "typing"

    username: str | None = None


class LanguageUpdate(SocketEvent):
    """Relayed editor language."""

    event: ClassVar[str] = "language-change"

    language: str


class RunOutput(SocketEvent):
    """Output of a single program run."""

    stdout: str = ""
    stderr: str = ""
    output: str = ""
    code: int | None = None


class CodeResponse(SocketEvent):
    """Result of an execution request, failed runs included."""

    event: ClassVar[str] = "codeResponse"

    run: RunOutput
    language: str | None = None
    version: str | None = None
    error: str | None = None
