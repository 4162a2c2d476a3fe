"""Response bodies of the REST endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from livecode.socket_events import Member


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"


class VersionResponse(BaseModel):
    version: str


class EditLockResponse(_CamelModel):
    """Current edit lock of a room."""

    room_id: str
    locked: bool
    locked_by: str | None = None
    username: str | None = None


class MembersResponse(_CamelModel):
    """Connections currently in a room, in join order."""

    room_id: str
    clients: list[Member]
