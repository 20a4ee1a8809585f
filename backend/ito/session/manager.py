"""Session layer: binds connections to rooms and serializes room operations.

Each room has one asyncio.Lock. It is held for the whole of an operation,
from the core call through the last outbound send, so operations on a room
apply and broadcast in arrival order.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import structlog

from ito.logic.codes import normalize_room_code
from ito.logic.errors import RoomError, RoomErrorCode
from ito.logic.registry import RoomRegistry
from ito.logic.room import RoomStatus
from ito.logic.round import RoundStateMachine
from ito.logic.view import project
from ito.messaging.types import (
    CardMovedMessage,
    CardPlacedMessage,
    CardRevealedMessage,
    ErrorMessage,
    HostChangedMessage,
    PlayerJoinedMessage,
    PlayerLeftMessage,
    PongMessage,
    RevealStartedMessage,
    RoomCreatedMessage,
    RoomJoinedMessage,
    RoomLeftMessage,
    RoomStateMessage,
    RoundEndedMessage,
    RoundStartedMessage,
    SessionErrorCode,
)
from ito.session.broadcast import broadcast_to_players, send_quietly
from ito.session.types import RoomInfo

if TYPE_CHECKING:
    import random

    from ito.logic.room import Room
    from ito.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class SessionManager:
    """Owns the registry, the round state machine and every live connection.

    A player's id is their connection id, so a player exists exactly as long
    as their socket does.
    """

    def __init__(self, *, max_rooms: int = 500, rng: random.Random | None = None) -> None:
        self._registry = RoomRegistry(rng)
        self._rounds = RoundStateMachine(self._registry, rng)
        self._max_rooms = max_rooms
        self._connections: dict[str, ConnectionProtocol] = {}
        self._player_rooms: dict[str, str] = {}  # connection_id -> room code
        self._room_locks: dict[str, asyncio.Lock] = {}  # room code -> Lock

    # --- Connections ---

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)

    def is_in_room(self, connection_id: str) -> bool:
        return connection_id in self._player_rooms

    # --- Queries ---

    @property
    def room_count(self) -> int:
        return self._registry.room_count

    def get_room(self, code: str) -> Room | None:
        return self._registry.get(code)

    def get_room_info(self, code: str) -> RoomInfo | None:
        room = self._registry.get(code)
        if room is None:
            return None
        return RoomInfo(
            room_code=room.code,
            status=room.status,
            player_count=room.player_count,
            joinable=room.status == RoomStatus.LOBBY and not room.is_full,
            age_seconds=int(room.age_seconds),
        )

    # --- Seating ---

    async def create_room(self, connection: ConnectionProtocol, player_name: str) -> None:
        if self.is_in_room(connection.connection_id):
            await self._send_error(connection, RoomError.of(RoomErrorCode.ALREADY_IN_ROOM))
            return
        if self._registry.room_count >= self._max_rooms:
            await self._send_session_error(connection, SessionErrorCode.SERVER_AT_CAPACITY, "Server is full")
            return

        room = self._registry.create_room(connection.connection_id, player_name)
        lock = self._room_locks[room.code] = asyncio.Lock()

        async with lock:
            self._player_rooms[connection.connection_id] = room.code
            structlog.contextvars.bind_contextvars(room_code=room.code)

            await connection.send_message(RoomCreatedMessage(room_code=room.code).model_dump(mode="json"))
            await self._broadcast_state(room)

    async def join_room(self, connection: ConnectionProtocol, room_code: str, player_name: str) -> None:
        if self.is_in_room(connection.connection_id):
            await self._send_error(connection, RoomError.of(RoomErrorCode.ALREADY_IN_ROOM))
            return

        code = normalize_room_code(room_code)
        lock = self._room_locks.get(code)
        if lock is None:
            logger.info("join rejected", room_code=code, reason=RoomErrorCode.ROOM_NOT_FOUND)
            await self._send_error(connection, RoomError.of(RoomErrorCode.ROOM_NOT_FOUND))
            return

        async with lock:
            result = self._registry.join_room(code, connection.connection_id, player_name)
            if isinstance(result, RoomError):
                logger.info("join rejected", room_code=code, reason=result.code)
                await self._send_error(connection, result)
                return

            room = result
            self._player_rooms[connection.connection_id] = room.code
            structlog.contextvars.bind_contextvars(room_code=room.code)

            await connection.send_message(RoomJoinedMessage(room_code=room.code).model_dump(mode="json"))
            await self._broadcast(
                room,
                PlayerJoinedMessage(
                    player_id=connection.connection_id,
                    player_name=player_name,
                ).model_dump(mode="json"),
                exclude_player_id=connection.connection_id,
            )
            await self._broadcast_state(room)

    async def leave_room(self, connection: ConnectionProtocol, *, notify_player: bool = True) -> None:
        """Unseat a player, on request or on disconnect."""
        connection_id = connection.connection_id
        code = self._player_rooms.get(connection_id)
        if code is None:
            return

        lock = self._room_locks.get(code)
        if lock is None:
            # Room already cleaned up; drop the stale seat reference.
            self._player_rooms.pop(connection_id, None)
            return

        async with lock:
            self._player_rooms.pop(connection_id, None)
            room = self._registry.get(code)
            if room is None:
                return
            player = room.get_player(connection_id)
            player_name = player.name if player is not None else ""
            previous_host_id = room.host_id
            previous_status = room.status

            remaining = self._registry.remove_player(code, connection_id)
            if remaining is not None:
                await self._announce_departure(remaining, connection_id, player_name, previous_host_id, previous_status)

        # Room is gone; forget its lock.
        if remaining is None:
            self._room_locks.pop(code, None)

        structlog.contextvars.unbind_contextvars("room_code")
        if notify_player:
            await send_quietly(connection, RoomLeftMessage().model_dump(mode="json"))

    async def _announce_departure(
        self,
        room: Room,
        player_id: str,
        player_name: str,
        previous_host_id: str,
        previous_status: RoomStatus,
    ) -> None:
        await self._broadcast(room, PlayerLeftMessage(player_id=player_id, player_name=player_name).model_dump(mode="json"))
        if room.host_id != previous_host_id:
            await self._broadcast(room, HostChangedMessage(new_host_id=room.host_id).model_dump(mode="json"))
        if previous_status == RoomStatus.REVEALING and room.status == RoomStatus.ENDED:
            await self._broadcast_round_ended(room)
        await self._broadcast_state(room)

    # --- Round actions ---

    async def start_round(self, connection: ConnectionProtocol) -> None:
        seat = await self._require_seat(connection)
        if seat is None:
            return
        code, lock = seat

        async with lock:
            result = self._rounds.start_round(code, connection.connection_id)
            if isinstance(result, RoomError):
                await self._send_error(connection, result)
                return

            room = result
            for player in room.players:
                if player.number is None:  # pragma: no cover - every seated player was just dealt
                    continue
                await send_quietly(
                    self._connections.get(player.id),
                    RoundStartedMessage(your_number=player.number).model_dump(mode="json"),
                )
            await self._broadcast_state(room)

    async def place_card(self, connection: ConnectionProtocol, position: int) -> None:
        seat = await self._require_seat(connection)
        if seat is None:
            return
        code, lock = seat

        async with lock:
            result = self._rounds.place_card(code, connection.connection_id, position)
            if isinstance(result, RoomError):
                await self._send_error(connection, result)
                return

            room = self._registry.get(code)
            if room is None:  # pragma: no cover - the lock keeps the room alive
                return
            player = room.get_player(connection.connection_id)
            await self._broadcast(
                room,
                CardPlacedMessage(
                    player_id=connection.connection_id,
                    player_name=player.name if player is not None else "",
                    position=result.position,
                ).model_dump(mode="json"),
            )
            await self._broadcast_state(room)

    async def move_card(self, connection: ConnectionProtocol, from_index: int, to_index: int) -> None:
        """Reorder the shared line. Any seated player may move any card."""
        seat = await self._require_seat(connection)
        if seat is None:
            return
        code, lock = seat

        async with lock:
            result = self._rounds.move_card(code, from_index, to_index)
            if isinstance(result, RoomError):
                await self._send_error(connection, result)
                return

            room = self._registry.get(code)
            if room is None:  # pragma: no cover - the lock keeps the room alive
                return
            await self._broadcast(
                room,
                CardMovedMessage(from_index=result.from_index, to_index=result.to_index).model_dump(mode="json"),
            )
            await self._broadcast_state(room)

    async def start_reveal(self, connection: ConnectionProtocol) -> None:
        seat = await self._require_seat(connection)
        if seat is None:
            return
        code, lock = seat

        async with lock:
            result = self._rounds.start_reveal(code)
            if isinstance(result, RoomError):
                await self._send_error(connection, result)
                return

            await self._broadcast(result, RevealStartedMessage().model_dump(mode="json"))
            await self._broadcast_state(result)

    async def reveal_next(self, connection: ConnectionProtocol) -> None:
        seat = await self._require_seat(connection)
        if seat is None:
            return
        code, lock = seat

        async with lock:
            result = self._rounds.reveal_next(code)
            if isinstance(result, RoomError):
                await self._send_error(connection, result)
                return

            reveal, room = result
            await self._broadcast(room, CardRevealedMessage(**reveal.model_dump()).model_dump(mode="json"))
            if room.status == RoomStatus.ENDED:
                await self._broadcast_round_ended(room)
            await self._broadcast_state(room)

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        await connection.send_message(PongMessage().model_dump(mode="json"))

    # --- Internal helpers ---

    async def _require_seat(self, connection: ConnectionProtocol) -> tuple[str, asyncio.Lock] | None:
        """Return the caller's room code and lock, or send NOT_IN_ROOM."""
        code = self._player_rooms.get(connection.connection_id)
        lock = self._room_locks.get(code) if code is not None else None
        if code is None or lock is None:
            await self._send_session_error(connection, SessionErrorCode.NOT_IN_ROOM, "You must join a room first")
            return None
        return code, lock

    async def _broadcast_round_ended(self, room: Room) -> None:
        final_order = self._rounds.get_final_results(room.code)
        if isinstance(final_order, RoomError) or room.result is None:  # pragma: no cover - caller checked ENDED
            return
        await self._broadcast(
            room,
            RoundEndedMessage(result=room.result, final_order=final_order).model_dump(mode="json"),
        )

    async def _broadcast_state(self, room: Room) -> None:
        """Send every player their own filtered snapshot of the room."""
        for player in list(room.players):
            state = project(room, player.id)
            await send_quietly(
                self._connections.get(player.id),
                RoomStateMessage(**state.model_dump()).model_dump(mode="json"),
            )

    async def _broadcast(
        self,
        room: Room,
        message: dict[str, Any],
        exclude_player_id: str | None = None,
    ) -> None:
        await broadcast_to_players(
            self._connections,
            [p.id for p in room.players],
            message,
            exclude_player_id=exclude_player_id,
        )

    @staticmethod
    async def _send_error(connection: ConnectionProtocol, error: RoomError) -> None:
        await connection.send_message(ErrorMessage(code=error.code, message=error.message).model_dump(mode="json"))

    @staticmethod
    async def _send_session_error(connection: ConnectionProtocol, code: SessionErrorCode, message: str) -> None:
        await connection.send_message(ErrorMessage(code=code, message=message).model_dump(mode="json"))
