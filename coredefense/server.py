"""FastAPI application that exposes the defense game over WebSockets."""
from __future__ import annotations

import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

from fastapi import Depends, FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import HTTPConnection

from .config import RoomSettings
from .messages import parse_intent
from .rooms import RoomManager

logger = logging.getLogger(__name__)


def create_app(settings: Optional[RoomSettings] = None) -> FastAPI:
    """Create the application with a fresh room registry."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.room_manager = RoomManager(settings)
        try:
            yield
        finally:
            await app.state.room_manager.close()

    app = FastAPI(title="Core Defense", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def healthcheck(manager: RoomManager = Depends(get_manager)) -> Dict[str, object]:
        """Readiness probe."""
        return {"status": "ok", "rooms": len(manager.rooms)}

    @app.get("/api/rooms")
    async def list_rooms(manager: RoomManager = Depends(get_manager)) -> Dict[str, object]:
        return {"rooms": manager.summaries()}

    @app.websocket("/ws")
    async def websocket_endpoint(
        websocket: WebSocket, manager: RoomManager = Depends(get_manager)
    ) -> None:
        await serve_connection(websocket, manager)

    @app.websocket("/ws/{room_name}")
    async def websocket_room_endpoint(
        websocket: WebSocket, room_name: str, manager: RoomManager = Depends(get_manager)
    ) -> None:
        await serve_connection(websocket, manager, room_name)

    return app


async def get_manager(connection: HTTPConnection) -> RoomManager:
    return connection.app.state.room_manager


async def serve_connection(
    websocket: WebSocket, manager: RoomManager, room_name: Optional[str] = None
) -> None:
    """Pump intents from one client until it disconnects, then clean up."""
    await websocket.accept()
    connection_id = uuid.uuid4().hex
    logger.info("Connection %s opened", connection_id)
    try:
        if room_name is not None:
            await manager.join_room(connection_id, websocket, room_name)
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            text = message.get("text")
            if text is None:
                logger.debug("Connection %s sent a non-text frame", connection_id)
                continue
            try:
                data = json.loads(text)
            except ValueError:
                logger.debug("Connection %s sent invalid JSON", connection_id)
                continue
            intent = parse_intent(data)
            if intent is None:
                continue
            await manager.dispatch(connection_id, websocket, intent)
    finally:
        await manager.leave_room(connection_id)
        logger.info("Connection %s closed", connection_id)


app = create_app()

__all__ = ["app", "create_app"]
