"""FastAPI dependencies.

Resources live on ``request.app.state``; ``create_api`` puts them there.
"""

from typing import Annotated

from fastapi import Depends, Request

from livecode.router import EventRouter


def get_event_router(request: Request) -> EventRouter:
    """Get the room coordinator from app.state."""
    return request.app.state.event_router


EventRouterDep = Annotated[EventRouter, Depends(get_event_router)]


