"""Track connected WebSocket clients."""

import asyncio
import enum
import logging
from typing import Any, Set, Tuple

from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from serial2ws.exceptions import ClientSendError

logger = logging.getLogger(__name__)

ACK_FRAME = "connected"
SEND_TIMEOUT = 1.0


class SessionState(enum.Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class ClientSession:
    """One connected client, wrapping its WebSocket connection.

    Sessions hash and compare by identity, so two sessions are never equal
    even if they wrap the same transport.
    """

    def __init__(self, transport: Any, send_timeout: float = SEND_TIMEOUT):
        self.transport = transport
        self.send_timeout = send_timeout
        self.peer = getattr(transport, "remote_address", None)

    @property
    def state(self) -> SessionState:
        state = self.transport.state
        if state in (State.CONNECTING, State.OPEN):
            return SessionState.OPEN
        if state is State.CLOSING:
            return SessionState.CLOSING
        return SessionState.CLOSED

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    async def send(self, frame: str) -> None:
        """Send one text frame; raise ClientSendError on any failure.

        A client that does not take the frame within ``send_timeout`` seconds
        counts as failed, so a stalled reader cannot hold up the others.
        """
        if not self.is_open:
            raise ClientSendError(f"client {self.peer} is {self.state.value}")
        try:
            await asyncio.wait_for(self.transport.send(frame), self.send_timeout)
        except asyncio.TimeoutError as e:
            raise ClientSendError(f"send to {self.peer} timed out after {self.send_timeout}s") from e
        except (ConnectionClosed, OSError, RuntimeError) as e:
            raise ClientSendError(f"send to {self.peer} failed: {e}") from e

    def __repr__(self) -> str:
        return f"ClientSession(peer={self.peer!r}, state={self.state.value})"


class ClientRegistry:
    """The set of live client sessions.

    The set is changed only by ``register``/``admit`` and ``unregister``.
    Readers that may await between items (such as a broadcast) must iterate
    ``snapshot()``.
    """

    def __init__(self):
        self._sessions: Set[ClientSession] = set()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        return session in self._sessions

    def snapshot(self) -> Tuple[ClientSession, ...]:
        return tuple(self._sessions)

    def register(self, session: ClientSession) -> None:
        self._sessions.add(session)
        logger.info("Client %s added. Total clients now: %d", session.peer, len(self._sessions))

    def unregister(self, session: ClientSession) -> None:
        """Remove *session*; removing an absent session does nothing."""
        if session not in self._sessions:
            return
        self._sessions.discard(session)
        logger.info("Client %s removed. Total clients now: %d", session.peer, len(self._sessions))

    async def acknowledge(self, session: ClientSession) -> bool:
        """Send the connection confirmation to one session only."""
        try:
            await session.send(ACK_FRAME)
        except ClientSendError as e:
            logger.warning("Error sending connection confirmation: %s", e)
            return False
        logger.info("Sent connection confirmation to client %s", session.peer)
        return True

    async def admit(self, session: ClientSession) -> bool:
        """Register a newly connected session and confirm it."""
        self.register(session)
        return await self.acknowledge(session)
