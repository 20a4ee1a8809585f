from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from ito.messaging.types import (
    ClientMessage,
    CreateRoomMessage,
    ErrorMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    MoveCardMessage,
    PingMessage,
    PlaceCardMessage,
    RevealNextMessage,
    SessionErrorCode,
    StartRevealMessage,
    StartRoundMessage,
    parse_client_message,
)

if TYPE_CHECKING:
    from ito.messaging.protocol import ConnectionProtocol
    from ito.session.manager import SessionManager

logger = structlog.get_logger()


class MessageRouter:
    """
    Routes validated client messages to the session manager.

    Holds no state of its own, so it can be driven with in-memory
    connections in tests.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message", connection_id=connection.connection_id, error=str(e))
            await connection.send_message(
                ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(mode="json"),
            )
            return

        try:
            await self._dispatch(connection, message)
        except Exception:
            logger.exception("unexpected error handling message", connection_id=connection.connection_id)
            await connection.send_message(
                ErrorMessage(
                    code=SessionErrorCode.INTERNAL_ERROR,
                    message="Something went wrong",
                ).model_dump(mode="json"),
            )

    async def _dispatch(self, connection: ConnectionProtocol, message: ClientMessage) -> None:
        manager = self._session_manager
        if isinstance(message, CreateRoomMessage):
            await manager.create_room(connection, message.player_name)
        elif isinstance(message, JoinRoomMessage):
            await manager.join_room(connection, message.room_code, message.player_name)
        elif isinstance(message, LeaveRoomMessage):
            await manager.leave_room(connection)
        elif isinstance(message, StartRoundMessage):
            await manager.start_round(connection)
        elif isinstance(message, PlaceCardMessage):
            await manager.place_card(connection, message.position)
        elif isinstance(message, MoveCardMessage):
            await manager.move_card(connection, message.from_index, message.to_index)
        elif isinstance(message, StartRevealMessage):
            await manager.start_reveal(connection)
        elif isinstance(message, RevealNextMessage):
            await manager.reveal_next(connection)
        elif isinstance(message, PingMessage):
            await manager.handle_ping(connection)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.leave_room(connection, notify_player=False)
        self._session_manager.unregister_connection(connection)
