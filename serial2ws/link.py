"""Serial link lifecycle: open, read, detect failure, reconnect forever."""

import asyncio
import enum
import logging
from typing import AsyncIterator, Awaitable, Callable, Optional

import serial

from serial2ws.exceptions import LinkOpenError, LinkRuntimeError
from serial2ws.framing import LineFramer

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 5.0
POLL_INTERVAL = 0.01


def open_serial(port: str, baud: int) -> serial.Serial:
    """Open the serial port with the given settings."""
    return serial.Serial(port=port, baudrate=baud)


class LinkState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"


class LinkConnection:
    """One open serial session. Never reopened; replaced on reconnect."""

    def __init__(self, path: str, baudrate: int, handle: serial.Serial):
        self.path = path
        self.baudrate = baudrate
        self.handle = handle
        self._write_lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return bool(self.handle.is_open)

    async def chunks(self) -> AsyncIterator[bytes]:
        """Yield raw chunks until the port is closed or fails."""
        while self.is_open:
            try:
                n = self.handle.in_waiting
                if n > 0:
                    data = await asyncio.to_thread(self.handle.read, n)
            except (serial.SerialException, OSError) as e:
                raise LinkRuntimeError(f"read from {self.path} failed: {e}") from e
            if n == 0:
                await asyncio.sleep(POLL_INTERVAL)
                continue
            if not data:
                break
            yield data

    async def write(self, data: bytes) -> None:
        """Write and flush *data*; returns once the transport has taken it."""
        async with self._write_lock:
            if not self.is_open:
                raise LinkRuntimeError(f"{self.path} is closed")
            await asyncio.to_thread(self._write_all, data)

    def _write_all(self, data: bytes) -> None:
        self.handle.write(data)
        self.handle.flush()

    def close(self) -> None:
        if self.is_open:
            self.handle.close()


class LinkConnector:
    """Own the serial connection and keep trying to (re)open it.

    ``run()`` is the whole state machine::

        DISCONNECTED -> CONNECTING -> OPEN -> (error|close) -> DISCONNECTED
                 ^                                               |
                 +------------------ retry_delay ----------------+

    Open failures and runtime failures are treated the same way: the
    connection is discarded and another attempt is made after
    ``retry_delay`` seconds. There is no terminal state; cancel the task
    running ``run()`` to stop.
    """

    def __init__(
        self,
        path: str,
        baudrate: int,
        on_frame: Callable[[str], Awaitable[object]],
        retry_delay: float = DEFAULT_RETRY_DELAY,
        opener: Callable[[str, int], serial.Serial] = open_serial,
    ):
        self.path = path
        self.baudrate = baudrate
        self.retry_delay = retry_delay
        self._on_frame = on_frame
        self._opener = opener
        self._state = LinkState.DISCONNECTED
        self._connection: Optional[LinkConnection] = None

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def connection(self) -> Optional[LinkConnection]:
        return self._connection

    @property
    def is_open(self) -> bool:
        return (
            self._state is LinkState.OPEN
            and self._connection is not None
            and self._connection.is_open
        )

    async def connect(self) -> bool:
        """Try to open the link once. Returns True when the link is open."""
        self._state = LinkState.CONNECTING
        logger.info("Attempting to connect to serial port %s @ %s baud", self.path, self.baudrate)
        try:
            handle = await self._open()
        except LinkOpenError as e:
            logger.error("Failed during serial port connection: %s", e)
            self._discard()
            return False
        self._connection = LinkConnection(self.path, self.baudrate, handle)
        self._state = LinkState.OPEN
        logger.info("Serial opened: %s @ %s baud", self.path, self.baudrate)
        return True

    async def _open(self) -> serial.Serial:
        try:
            return await asyncio.to_thread(self._opener, self.path, self.baudrate)
        except (serial.SerialException, OSError, ValueError) as e:
            raise LinkOpenError(f"cannot open {self.path}: {e}") from e

    async def schedule_retry(self) -> None:
        logger.info("Retrying serial connection in %s seconds", self.retry_delay)
        await asyncio.sleep(self.retry_delay)

    async def run(self) -> None:
        """Connect, pump frames while open, wait, repeat. Never returns."""
        while True:
            if await self.connect():
                await self._pump()
            await self.schedule_retry()

    async def _pump(self) -> None:
        connection = self._connection
        framer = LineFramer()
        try:
            async for frame in framer.frames(connection.chunks()):
                logger.debug("Received from device: %s", frame)
                await self._on_frame(frame)
        except LinkRuntimeError as e:
            logger.error("Serial port error: %s", e)
        finally:
            logger.warning("Serial port %s closed", self.path)
            self._discard()

    def _discard(self) -> None:
        connection, self._connection = self._connection, None
        self._state = LinkState.DISCONNECTED
        if connection is None:
            return
        try:
            connection.close()
        except (serial.SerialException, OSError) as e:
            logger.debug("Error while closing %s: %s", self.path, e)

    def close(self) -> None:
        """Close the live connection, if any. Used on process shutdown."""
        if self._connection is not None and self._connection.is_open:
            logger.info("Closing serial port %s", self.path)
            self._connection.close()
