"""Connection teardown."""
import logging
from typing import Optional

from .connection import ConnectionHandle
from .registry import RoomRegistry

logger = logging.getLogger(__name__)


class ConnectionLifecycle:
    """Reclaims registry state when a connection terminates.

    ``on_close`` runs once per connection whatever the close cause (client
    close, network error, server shutdown); repeated calls are no-ops.
    """

    def __init__(self, registry: RoomRegistry) -> None:
        self.registry = registry

    def on_close(
        self,
        connection: ConnectionHandle,
        code: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        if not connection.mark_closed():
            logger.debug("[Lifecycle] %r already closed", connection)
            return

        logger.warning(
            "[Lifecycle] Connection closed. clientId=%s code=%s reason=%s",
            connection.client_id, code, reason or "",
        )
        self.registry.detach(connection)
