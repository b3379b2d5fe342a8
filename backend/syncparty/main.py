"""SyncParty Relay Application.

This is the main entry point for the SyncParty relay service. Viewers of the
same video join a room over a WebSocket and the relay forwards each member's
playback events (play, pause, seek) to everyone else in the room.

Modules:
    - relay: room registry, message dispatch and the /ws endpoint
    - config: YAML-backed settings
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from syncparty.config import AppConfig, get_config
from syncparty.relay import ConnectionLifecycle, Relay, RoomRegistry
from syncparty.relay.rooms_router import router as rooms_router
from syncparty.relay.router import router as relay_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# Uvicorn logs every websocket open/close on its own; our [WS] lines cover it.
for _noisy in ("uvicorn.access", "websockets", "websockets.protocol"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    config: AppConfig = app.state.config

    # Apply configured log level to root logger so that
    # `logging.level: "debug"` in syncparty.settings.yaml activates DEBUG output.
    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    logger.info(
        f"SyncParty relay running on ws://{config.server.host}:{config.server.port}/ws"
    )

    yield  # Application runs here

    logger.info(
        "Application shutdown complete (%d rooms dropped)", len(app.state.registry)
    )


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Build the FastAPI application with its own registry.

    Args:
        config: Settings to use. Defaults to ``get_config()``.

    Returns:
        The configured app. The registry, relay and lifecycle manager are on
        ``app.state`` for the routers to use.
    """
    config = config or get_config()

    app = FastAPI(
        title="SyncParty Relay",
        description="Real-time playback synchronization relay for shared video rooms",
        version="0.1.0",
        lifespan=lifespan,
    )

    registry = RoomRegistry()
    app.state.config = config
    app.state.registry = registry
    app.state.relay = Relay(registry)
    app.state.lifecycle = ConnectionLifecycle(registry)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(relay_router)
    app.include_router(rooms_router)

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint.

        Returns:
            dict: Status object indicating the server is running.
        """
        return {"status": "ok"}

    return app


app = create_app()
