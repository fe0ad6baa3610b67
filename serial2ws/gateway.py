"""Forward inbound commands to the serial link."""

import logging
from typing import Union

import serial

from serial2ws.exceptions import CommandWriteError, LinkRuntimeError, LinkUnavailableError
from serial2ws.link import LinkConnector

logger = logging.getLogger(__name__)


class CommandGateway:
    """Write opaque command payloads to the link owned by *connector*.

    The gateway only reads the connector's state and calls ``write`` on the
    live connection. Commands are never queued: if the link is down the
    caller gets ``LinkUnavailableError`` and must resubmit later.
    """

    def __init__(self, connector: LinkConnector):
        self.connector = connector

    async def submit(self, payload: Union[str, bytes]) -> None:
        connection = self.connector.connection
        if connection is None or not self.connector.is_open:
            raise LinkUnavailableError("Serial port not connected")
        data = payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)
        try:
            await connection.write(data)
        except (serial.SerialException, OSError, LinkRuntimeError) as e:
            logger.error("Error writing to serial port: %s", e)
            raise CommandWriteError("Failed to send command") from e
        logger.info("Sent command to device: %r", payload)
