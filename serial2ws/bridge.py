"""Asyncio-based bridge between one serial device and many WebSocket clients."""

import asyncio
import functools
import logging
import signal
import sys

import uvicorn
import websockets
from websockets.exceptions import ConnectionClosed

from serial2ws.broadcast import BroadcastRouter
from serial2ws.gateway import CommandGateway
from serial2ws.link import DEFAULT_RETRY_DELAY, LinkConnector
from serial2ws.registry import ClientRegistry, ClientSession
from serial2ws.web import DEFAULT_STATIC_DIR, create_app

logger = logging.getLogger(__name__)


async def handle_client(registry: ClientRegistry, websocket):
    """Register one WebSocket client and keep it until its connection ends."""
    session = ClientSession(websocket)
    logger.info("New WebSocket client connected: %s", session.peer)
    await registry.admit(session)
    try:
        # clients are not expected to send anything; drain and ignore
        async for _ in websocket:
            pass
    except ConnectionClosed as e:
        logger.warning("WebSocket client error: %s", e)
    finally:
        registry.unregister(session)
        logger.info("WebSocket client disconnected: %s", session.peer)


def install_shutdown_handlers(connector: LinkConnector) -> None:
    """On SIGINT/SIGTERM close the serial link synchronously, then exit."""

    def cleanup(signum, frame):
        logger.info("Cleaning up...")
        connector.close()
        sys.exit(0)

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, cleanup)


async def run_bridge_async(
    port: str,
    baud: int,
    listen: str,
    ws_port: int,
    http_port: int,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    static_dir: str = DEFAULT_STATIC_DIR,
    verbose: bool = False,
):
    """Run the link loop, the WebSocket server and the HTTP server together."""
    registry = ClientRegistry()
    router = BroadcastRouter(registry)
    connector = LinkConnector(port, baud, router.broadcast, retry_delay=retry_delay)
    gateway = CommandGateway(connector)
    http_server = uvicorn.Server(
        uvicorn.Config(
            create_app(gateway, registry, static_dir, ws_port=ws_port),
            host=listen,
            port=http_port,
            log_level="info" if verbose else "warning",
        )
    )
    install_shutdown_handlers(connector)

    link_task = asyncio.create_task(connector.run())
    try:
        async with websockets.serve(functools.partial(handle_client, registry), listen, ws_port):
            logger.info("WebSocket server listening on ws://%s:%s", listen, ws_port)
            logger.info("HTTP server listening on http://%s:%s", listen, http_port)
            await http_server.serve()
    finally:
        link_task.cancel()
        await asyncio.gather(link_task, return_exceptions=True)
        connector.close()
        logger.info("Bridge stopped")


def run_bridge(
    port: str,
    baud: int,
    listen: str,
    ws_port: int,
    http_port: int,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    static_dir: str = DEFAULT_STATIC_DIR,
    verbose: bool = False,
):
    """Synchronous entry: run the asyncio bridge until interrupted."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        asyncio.run(
            run_bridge_async(
                port,
                baud,
                listen,
                ws_port,
                http_port,
                retry_delay=retry_delay,
                static_dir=static_dir,
                verbose=verbose,
            )
        )
    except KeyboardInterrupt:
        pass
