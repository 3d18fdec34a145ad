"""WebSocket and health endpoints."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from loguru import logger

from voxintent.protocol import encode, timestamp
from voxintent.runtime import AppRuntime

SERVICE_NAME = "voxintent"
WS_PATH = "/ws/intent"


def create_app(runtime: AppRuntime) -> FastAPI:
    """Create the ASGI app serving one runtime."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await runtime.aclose()

    app = FastAPI(title=SERVICE_NAME, lifespan=lifespan)
    app.state.runtime = runtime

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "UP",
            "service": SERVICE_NAME,
            "timestamp": timestamp(),
            "activeSessions": runtime.gateway.active_sessions,
            "activeContexts": runtime.store.active_count(),
            "completionAvailable": await runtime.completion.is_available(),
        }

    @app.websocket(WS_PATH)
    async def intent_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        session_id = uuid.uuid4().hex

        async def send(envelope: dict[str, Any]) -> None:
            await websocket.send_text(encode(envelope))

        gateway = runtime.gateway
        await gateway.connect(session_id, send)
        try:
            while gateway.is_connected(session_id):
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                payload = message.get("text")
                if payload is None:
                    payload = message.get("bytes") or b""
                await gateway.receive(session_id, payload)
        except WebSocketDisconnect:
            logger.info("server.websocket.closed session={}", session_id)
        finally:
            await gateway.disconnect(session_id)

    return app
