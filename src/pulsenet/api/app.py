"""
FastAPI application bridging the GUI shell to the diagnostics engine.

Each operation is available as a JSON endpoint. The ``/ws`` WebSocket
accepts ``{"action": ...}`` messages and streams progress for the long
running ones.
"""

import asyncio
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ConfigDict, Field

from .. import __version__
from ..engine import DiagnosticsEngine
from ..logging_config import setup_logging
from ..models import ErrorKind


logger = logging.getLogger(__name__)


class DnsTestRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    domain: str
    custom_servers: Optional[list[str]] = Field(default=None, alias="customServers")


class SetAdapterDnsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    adapter_name: str = Field(alias="adapterName")
    primary_dns: str = Field(alias="primaryDns")
    secondary_dns: Optional[str] = Field(default=None, alias="secondaryDns")


class ResetAdapterDnsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    adapter_name: str = Field(alias="adapterName")


class CloseActionRequest(BaseModel):
    action: str


def create_app(engine: Optional[DiagnosticsEngine] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    engine = engine or DiagnosticsEngine()

    app = FastAPI(
        title="PulseNet",
        description="Network diagnostics bridge",
        version=__version__,
    )

    @app.get("/api/version")
    async def get_version():
        return {"version": engine.app_version()}

    @app.get("/api/ping")
    async def ping(host: str):
        return (await engine.ping(host)).to_dict()

    @app.post("/api/dns/test")
    async def test_dns(request: DnsTestRequest):
        return (await engine.test_dns_servers(request.domain, request.custom_servers)).to_dict()

    @app.get("/api/speedtest/{provider}")
    async def speed_test(provider: str):
        return (await engine.speed_test(provider)).to_dict()

    @app.get("/api/updates")
    async def check_updates(includePrerelease: bool = False):
        return (await engine.check_for_updates(includePrerelease)).to_dict()

    @app.get("/api/dns/adapters")
    async def list_adapters(forceRefresh: bool = False):
        return (await engine.list_dns_adapters(forceRefresh)).to_dict()

    @app.post("/api/dns/adapters/set")
    async def set_adapter_dns(request: SetAdapterDnsRequest):
        result = await engine.set_adapter_dns(
            request.adapter_name,
            request.primary_dns,
            request.secondary_dns,
        )
        return result.to_dict()

    @app.post("/api/dns/adapters/reset")
    async def reset_adapter_dns(request: ResetAdapterDnsRequest):
        return (await engine.reset_adapter_dns(request.adapter_name)).to_dict()

    @app.get("/api/settings/close-action")
    async def get_close_action():
        return {"action": engine.get_close_action()}

    @app.put("/api/settings/close-action")
    async def set_close_action(request: CloseActionRequest):
        return {"action": engine.set_close_action(request.action)}

    async def dispatch(websocket: WebSocket, data: dict):
        """Run one requested operation, streaming progress where it has any."""
        action = data.get("action")
        pending: set[asyncio.Task] = set()

        async def send_progress(message: str, current: int, total: int):
            progress = (current / total * 100) if total > 0 else 0
            await websocket.send_json({
                "type": "progress",
                "action": action,
                "message": message,
                "current": current,
                "total": total,
                "percent": round(progress, 1),
            })

        # Sync wrapper for async callback
        def sync_progress(message: str, current: int, total: int):
            task = asyncio.create_task(send_progress(message, current, total))
            pending.add(task)
            task.add_done_callback(pending.discard)

        if action == "ping":
            result = await engine.ping(str(data.get("host", "")))
        elif action == "dns":
            custom = data.get("customServers")
            result = await engine.test_dns_servers(
                str(data.get("domain", "")),
                custom if isinstance(custom, list) else None,
                progress_callback=sync_progress,
            )
        elif action == "speedtest":
            result = await engine.speed_test(
                str(data.get("provider", "cloudflare")),
                progress_callback=sync_progress,
            )
        elif action == "updates":
            result = await engine.check_for_updates(bool(data.get("includePrerelease", False)))
        elif action == "adapters":
            result = await engine.list_dns_adapters(bool(data.get("forceRefresh", False)))
        else:
            await websocket.send_json({
                "type": "error",
                "action": action,
                "message": ErrorKind.INVALID_INPUT.value,
            })
            return

        if pending:
            await asyncio.gather(*pending)
        await websocket.send_json({
            "type": "result",
            "action": action,
            "data": result.to_dict(),
        })

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """WebSocket endpoint for operations with progress updates."""
        await websocket.accept()

        try:
            while True:
                data = await websocket.receive_json()

                if not isinstance(data, dict):
                    await websocket.send_json({"type": "error", "message": ErrorKind.INVALID_INPUT.value})
                elif data.get("action") == "heartbeat":
                    await websocket.send_json({"type": "pong"})
                else:
                    await dispatch(websocket, data)

        except WebSocketDisconnect:
            logger.debug("WebSocket client disconnected")

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 5000,
    engine: Optional[DiagnosticsEngine] = None,
    log_level: str = "warning",
):
    """Run the bridge server."""
    setup_logging(log_level)
    app = create_app(engine)
    uvicorn.run(app, host=host, port=port, log_level=log_level)
