"""Serial-to-WebSocket bridge: fan out a serial device's lines to WebSocket clients."""

from serial2ws.bridge import run_bridge

__all__ = ["run_bridge"]
