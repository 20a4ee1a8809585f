"""Room registry: the only owner of Room objects."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from ito.logic.codes import generate_room_code, normalize_room_code
from ito.logic.errors import RoomError, RoomErrorCode
from ito.logic.room import Player, Room, RoomStatus

if TYPE_CHECKING:
    import random

logger = structlog.get_logger()


class RoomRegistry:
    """Maps room codes to rooms and handles seating.

    Purely state management, no I/O. Callers serialize access per room.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rooms: dict[str, Room] = {}
        self._rng = rng

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def codes(self) -> list[str]:
        return list(self._rooms)

    def get(self, code: str) -> Room | None:
        return self._rooms.get(normalize_room_code(code))

    def create_room(self, host_id: str, host_name: str) -> Room:
        code = generate_room_code(self._rooms, self._rng)
        room = Room(code=code, host_id=host_id, players=[Player(id=host_id, name=host_name)])
        self._rooms[code] = room
        logger.info("room created", room_code=code, host_id=host_id)
        return room

    def join_room(self, code: str, player_id: str, player_name: str) -> Room | RoomError:
        room = self.get(code)
        if room is None:
            return RoomError.of(RoomErrorCode.ROOM_NOT_FOUND)
        if room.status != RoomStatus.LOBBY:
            return RoomError.of(RoomErrorCode.ROOM_NOT_JOINABLE)
        if room.has_player(player_id):
            return RoomError.of(RoomErrorCode.ALREADY_IN_ROOM)
        if room.is_full:
            return RoomError.of(RoomErrorCode.ROOM_FULL)

        room.players.append(Player(id=player_id, name=player_name))
        logger.info("player joined room", room_code=room.code, player_id=player_id, player_count=room.player_count)
        return room

    def remove_player(self, code: str, player_id: str) -> Room | None:
        """Unseat a player. Returns the room, or None if it was deleted or never existed.

        A placed card leaves the line with its owner; later cards shift left.
        If the card had already been revealed the reveal counter shifts with it.
        When that leaves a revealing room with nothing hidden, the round ends.
        """
        room = self.get(code)
        if room is None:
            return None
        player = room.get_player(player_id)
        if player is None:
            return room

        room.players.remove(player)
        if player_id in room.card_line:
            position = room.card_line.index(player_id)
            room.card_line.pop(position)
            if position < room.revealed_count:
                room.revealed_count -= 1

        if room.is_empty:
            del self._rooms[room.code]
            logger.info("room deleted", room_code=room.code, lifetime_seconds=round(room.age_seconds, 1))
            return None

        if room.host_id == player_id:
            room.host_id = room.players[0].id
            logger.info("host reassigned", room_code=room.code, host_id=room.host_id)

        if room.status == RoomStatus.REVEALING and room.fully_revealed:
            room.conclude_round()
            logger.info("round ended after departure", room_code=room.code, result=room.result)

        logger.info("player left room", room_code=room.code, player_id=player_id, player_count=room.player_count)
        return room
