"""HTTP surface: static page, command submission and health check."""

import os

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from serial2ws.exceptions import CommandWriteError, LinkUnavailableError
from serial2ws.gateway import CommandGateway
from serial2ws.registry import ClientRegistry

DEFAULT_STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")
DEFAULT_WS_PORT = 8080


class CommandIn(BaseModel):
    number: str


def create_app(
    gateway: CommandGateway,
    registry: ClientRegistry,
    static_dir: str = DEFAULT_STATIC_DIR,
    ws_port: int = DEFAULT_WS_PORT,
) -> FastAPI:
    """Build the FastAPI app bound to one gateway and registry."""
    app = FastAPI(title="serial2ws")
    app.mount("/static", StaticFiles(directory=static_dir, check_dir=False), name="static")

    @app.exception_handler(LinkUnavailableError)
    async def link_unavailable(request: Request, exc: LinkUnavailableError):
        return JSONResponse(status_code=503, content={"error": "Serial port not connected"})

    @app.exception_handler(CommandWriteError)
    async def command_write_failed(request: Request, exc: CommandWriteError):
        return JSONResponse(status_code=500, content={"error": "Failed to send command"})

    @app.get("/")
    async def index():
        return FileResponse(os.path.join(static_dir, "index.html"))

    @app.post("/send")
    async def send(data: CommandIn):
        # raw payload, no newline appended
        await gateway.submit(data.number)
        return {"message": f"Sent command: {data.number}"}

    @app.get("/config")
    async def client_config():
        # the page reads this to find the broadcast channel
        return {"ws_port": ws_port}

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "link": gateway.connector.state.value,
            "connected_clients": len(registry),
        }

    return app
