"""WebSocket transport: one socket per player, one MessagePack map per frame."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from ito.messaging.encoder import DecodeError, decode
from ito.messaging.protocol import ConnectionProtocol
from ito.messaging.types import ErrorMessage, SessionErrorCode

if TYPE_CHECKING:
    from ito.messaging.router import MessageRouter

logger = structlog.get_logger()

# Consecutive undecodable frames tolerated before the socket is closed.
MAX_DECODE_ERRORS = 5
DECODE_ERROR_CLOSE_CODE = 4004

CLOSED_BY_PEER = "peer_closed"
CLOSED_FOR_DECODE_ERRORS = "too_many_decode_errors"


class WebSocketConnection(ConnectionProtocol):
    """Adapts a Starlette socket; a vanished peer surfaces as ConnectionError."""

    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or uuid4().hex

    @property
    def connection_id(self) -> str:
        return self._connection_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect as e:
            raise ConnectionError(f"peer closed with code {e.code}") from e

    async def receive_bytes(self) -> bytes:
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise ConnectionError(f"peer closed with code {message.get('code')}")
        if message.get("bytes") is not None:
            return message["bytes"]
        # Text frames are not part of the protocol; they fail decoding like any garbage.
        return (message.get("text") or "").encode()

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def _reject_frame(connection: ConnectionProtocol, error: DecodeError, strikes: int) -> None:
    logger.warning("undecodable frame", error=str(error), strikes=strikes)
    await connection.send_message(
        ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(error)).model_dump(mode="json"),
    )


async def serve_connection(connection: ConnectionProtocol, router: MessageRouter) -> str:
    """Feed frames from one connection to the router until it goes away.

    Returns why the loop stopped. The disconnect path always runs, so a
    player is unseated however the socket ends.
    """
    await router.handle_connect(connection)
    strikes = 0
    try:
        while True:
            raw = await connection.receive_bytes()
            try:
                message = decode(raw)
            except DecodeError as e:
                strikes += 1
                await _reject_frame(connection, e, strikes)
                if strikes >= MAX_DECODE_ERRORS:
                    await connection.close(code=DECODE_ERROR_CLOSE_CODE, reason=CLOSED_FOR_DECODE_ERRORS)
                    return CLOSED_FOR_DECODE_ERRORS
                continue

            strikes = 0
            await router.handle_message(connection, message)
    except (ConnectionError, RuntimeError):
        return CLOSED_BY_PEER
    finally:
        await router.handle_disconnect(connection)


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("connection opened")
    try:
        reason = await serve_connection(connection, router)
        logger.info("connection closed", reason=reason)
    finally:
        structlog.contextvars.clear_contextvars()
