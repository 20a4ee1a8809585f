from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route, WebSocketRoute
from starlette.staticfiles import StaticFiles

from ito.messaging.router import MessageRouter
from ito.server.settings import ItoServerSettings
from ito.server.websocket import websocket_endpoint
from ito.session.manager import SessionManager
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    session_manager: SessionManager = request.app.state.session_manager
    settings: ItoServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "status": "ok",
            "active_rooms": session_manager.room_count,
            "max_rooms": settings.max_rooms,
        },
    )


async def room_info(request: Request) -> JSONResponse:
    """Lets a client check a code before opening a socket to join it."""
    session_manager: SessionManager = request.app.state.session_manager
    info = session_manager.get_room_info(request.path_params["code"])
    if info is None:
        return JSONResponse({"exists": False}, status_code=404)
    return JSONResponse({"exists": True, **info.model_dump(mode="json")})


def create_app(
    settings: ItoServerSettings | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ItoServerSettings()

    if session_manager is None:
        session_manager = SessionManager(max_rooms=settings.max_rooms)

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/rooms/{code}", room_info, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    # Mounted last so the API routes above take precedence.
    if settings.static_dir is not None and Path(settings.static_dir).is_dir():
        routes.append(Mount("/", app=StaticFiles(directory=settings.static_dir, html=True), name="static"))

    app = Starlette(routes=routes)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.session_manager = session_manager

    logger.info("ito server ready", max_rooms=settings.max_rooms)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = ItoServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)
