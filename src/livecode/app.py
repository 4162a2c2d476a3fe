"""ASGI application: Socket.IO server mounted in front of the FastAPI app.

Uses app.state to share resources with the REST routes:
- config: LiveCodeConfig
- event_router: EventRouter owning all room state
"""

import contextlib
import logging
from collections.abc import AsyncIterator

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from livecode.config import LiveCodeConfig, get_config
from livecode.executor import ExecutionProxy
from livecode.router import EventRouter
from livecode.routes.rooms import router as rooms_router
from livecode.routes.utility import router as utility_router
from livecode.transport import SocketIOTransport

log = logging.getLogger(__name__)


def configure_logging(config: LiveCodeConfig) -> None:
    log_level = getattr(logging, config.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    log.info(f"Logging configured at level: {config.log_level}")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Stop lock timers and close the execution client on shutdown."""
    try:
        yield
    finally:
        event_router: EventRouter = app.state.event_router
        await event_router.close()
        await event_router.executor.aclose()
        log.info("livecode shut down")


def create_api(config: LiveCodeConfig, event_router: EventRouter) -> FastAPI:
    """Create the FastAPI app serving the REST endpoints."""
    api = FastAPI(title="livecode API", lifespan=lifespan)
    api.state.config = config
    api.state.event_router = event_router

    api.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origins],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    api.include_router(utility_router)
    api.include_router(rooms_router)
    return api


def create_app(config: LiveCodeConfig | None = None) -> socketio.ASGIApp:
    """Create the application served by uvicorn.

    Parameters
    ----------
    config : LiveCodeConfig, optional
        Configuration. Loaded from the environment if omitted.

    Returns
    -------
    socketio.ASGIApp
        Socket.IO endpoint at ``/socket.io`` with the REST API behind it.
    """
    if config is None:
        config = get_config()
    configure_logging(config)

    # async_handlers=False: one connection's events are handled in the order sent
    sio = socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=config.cors_origins,
        async_handlers=False,
    )
    executor = ExecutionProxy(config.execution_url, timeout=config.execution_timeout)
    event_router = EventRouter(SocketIOTransport(sio), config, executor)
    event_router.register(sio)

    api = create_api(config, event_router)
    return socketio.ASGIApp(sio, other_asgi_app=api)
