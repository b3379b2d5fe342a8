"""Shared test fixtures and configuration for relay tests."""
import pytest
from fastapi.testclient import TestClient

from syncparty.config import AppConfig
from syncparty.main import create_app
from syncparty.relay import ConnectionHandle, ConnectionLifecycle, Relay, RoomRegistry


class FakeChannel:
    """Stands in for a WebSocket: records what the writer task sends."""

    def __init__(self, fail: bool = False) -> None:
        self.sent = []
        self.fail = fail
        self.close_code = None

    async def send_json(self, message: dict) -> None:
        if self.fail:
            raise ConnectionResetError("peer went away")
        self.sent.append(message)

    async def close(self, code: int = 1000) -> None:
        self.close_code = code


@pytest.fixture
def make_connection():
    """Factory for ConnectionHandles backed by FakeChannels.

    The writer task is not started; async tests call ``start()`` themselves.
    """
    def _make(client_id=None, fail=False, max_pending=16):
        connection = ConnectionHandle(FakeChannel(fail=fail), max_pending=max_pending)
        connection.client_id = client_id
        return connection
    return _make


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def relay(registry):
    return Relay(registry)


@pytest.fixture
def lifecycle(registry):
    return ConnectionLifecycle(registry)


@pytest.fixture
def relay_app():
    """A fresh app (and therefore a fresh, empty registry) per test."""
    return create_app(AppConfig())


@pytest.fixture
def api_client(relay_app):
    """Provide a TestClient for an isolated relay app.

    Entered as a context manager so every websocket session and request
    share one event loop, as they would under uvicorn.
    """
    with TestClient(relay_app) as client:
        yield client
