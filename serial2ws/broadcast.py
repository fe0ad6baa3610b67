"""Best-effort fan-out of serial frames to every registered client."""

import asyncio
import logging

from serial2ws.exceptions import ClientSendError
from serial2ws.registry import ClientRegistry

logger = logging.getLogger(__name__)


class BroadcastRouter:
    def __init__(self, registry: ClientRegistry):
        self.registry = registry

    async def broadcast(self, frame: str) -> int:
        """Send *frame* to all sessions; return how many received it.

        Sessions that are not open or whose send fails are unregistered.
        One failure never stops delivery to the others.
        """
        sessions = self.registry.snapshot()
        if not sessions:
            logger.info("No WebSocket clients connected to broadcast to")
            return 0
        results = await asyncio.gather(
            *(session.send(frame) for session in sessions),
            return_exceptions=True,
        )
        delivered = 0
        for session, result in zip(sessions, results):
            if isinstance(result, ClientSendError):
                logger.warning("Error broadcasting to client: %s", result)
                self.registry.unregister(session)
            elif isinstance(result, Exception):
                logger.error("Unexpected error broadcasting to %s", session.peer, exc_info=result)
                self.registry.unregister(session)
            elif isinstance(result, BaseException):
                raise result
            else:
                delivered += 1
        logger.debug("Broadcast %r to %d/%d clients", frame, delivered, len(sessions))
        return delivered
