"""Configuration and command-line argument parsing for the serial-to-WebSocket bridge."""

import argparse

from serial2ws.web import DEFAULT_STATIC_DIR, DEFAULT_WS_PORT
from serial2ws.link import DEFAULT_RETRY_DELAY


DEFAULT_PORT = "/dev/cu.usbserial-1120"
DEFAULT_BAUD = 115200
DEFAULT_LISTEN = "0.0.0.0"
DEFAULT_HTTP_PORT = 3000


def parse_args(argv=None):
    """Parse command-line arguments and return a validated namespace."""
    parser = argparse.ArgumentParser(
        description="Bridge a serial device to WebSocket clients and accept commands over HTTP."
    )
    parser.add_argument(
        "--port",
        default=DEFAULT_PORT,
        help=f"Serial port name (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "--baud",
        type=int,
        default=DEFAULT_BAUD,
        help=f"Baud rate (default: {DEFAULT_BAUD})",
    )
    parser.add_argument(
        "--listen",
        default=DEFAULT_LISTEN,
        help=f"Listen address for both servers (default: {DEFAULT_LISTEN})",
    )
    parser.add_argument(
        "--ws-port",
        type=int,
        default=DEFAULT_WS_PORT,
        help=f"WebSocket broadcast port (default: {DEFAULT_WS_PORT})",
    )
    parser.add_argument(
        "--http-port",
        type=int,
        default=DEFAULT_HTTP_PORT,
        help=f"HTTP port for the page and /send (default: {DEFAULT_HTTP_PORT})",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=DEFAULT_RETRY_DELAY,
        help=f"Seconds between serial reconnect attempts (default: {DEFAULT_RETRY_DELAY})",
    )
    parser.add_argument(
        "--static-dir",
        default=DEFAULT_STATIC_DIR,
        help="Directory holding index.html and other static assets",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (connection events, frames, commands)",
    )
    args = parser.parse_args(argv)
    _validate(args)
    return args


def _validate(args):
    """Validate parsed arguments; raise ValueError on invalid values."""
    if not (args.port and args.port.strip()):
        raise ValueError("Serial port (--port) must be non-empty")
    if args.baud <= 0:
        raise ValueError("Baud rate (--baud) must be positive")
    for name, value in (("--ws-port", args.ws_port), ("--http-port", args.http_port)):
        if not (1 <= value <= 65535):
            raise ValueError(f"{name} must be between 1 and 65535")
    if args.ws_port == args.http_port:
        raise ValueError("--ws-port and --http-port must differ")
    if args.retry_delay <= 0:
        raise ValueError("Retry delay (--retry-delay) must be positive")
