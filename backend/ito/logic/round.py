"""Round lifecycle for a room.

lobby -> playing -> revealing -> ended, and ended -> playing again on replay.
start_round is the single entry point for both the first round and replays.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from ito.logic.dealer import deal_numbers
from ito.logic.errors import RoomError, RoomErrorCode
from ito.logic.room import MIN_PLAYERS, RoomStatus
from ito.logic.types import CardReveal, FinalResultEntry, MoveResult, PlacementResult, RevealResult

if TYPE_CHECKING:
    import random

    from ito.logic.registry import RoomRegistry
    from ito.logic.room import Room

logger = structlog.get_logger()

_REPLAYABLE_STATUSES = (RoomStatus.LOBBY, RoomStatus.ENDED)


class RoundStateMachine:
    """Applies round operations to rooms held by a RoomRegistry.

    Every operation validates first and mutates only once all checks pass,
    so a returned RoomError always means the room is unchanged.
    """

    def __init__(self, registry: RoomRegistry, rng: random.Random | None = None) -> None:
        self._registry = registry
        self._rng = rng

    def start_round(self, code: str, requester_id: str) -> Room | RoomError:
        room = self._registry.get(code)
        if room is None:
            return RoomError.of(RoomErrorCode.ROOM_NOT_FOUND)
        if requester_id != room.host_id:
            return RoomError.of(RoomErrorCode.NOT_HOST)
        if room.status not in _REPLAYABLE_STATUSES:
            return RoomError.of(RoomErrorCode.ROUND_IN_PROGRESS)
        if room.player_count < MIN_PLAYERS:
            return RoomError.of(RoomErrorCode.TOO_FEW_PLAYERS)

        numbers = deal_numbers(room.player_count, self._rng)
        for player, number in zip(room.players, numbers, strict=True):
            player.number = number
        room.card_line.clear()
        room.revealed_count = 0
        room.result = None
        room.status = RoomStatus.PLAYING

        logger.info("round started", room_code=room.code, player_count=room.player_count)
        return room

    def place_card(self, code: str, player_id: str, position: int) -> PlacementResult | RoomError:
        room = self._registry.get(code)
        if room is None:
            return RoomError.of(RoomErrorCode.ROOM_NOT_FOUND)
        if room.status != RoomStatus.PLAYING:
            return RoomError.of(RoomErrorCode.NOT_PLAYING)
        if not room.has_player(player_id):
            return RoomError.of(RoomErrorCode.PLAYER_NOT_FOUND)
        if player_id in room.card_line:
            return RoomError.of(RoomErrorCode.ALREADY_PLACED)
        # Append-only: a card can only go down at the right end of the line.
        if position != len(room.card_line):
            return RoomError.of(RoomErrorCode.INVALID_POSITION)

        room.card_line.append(player_id)
        logger.debug("card placed", room_code=room.code, player_id=player_id, position=position)
        return PlacementResult(position=position)

    def move_card(self, code: str, from_index: int, to_index: int) -> MoveResult | RoomError:
        room = self._registry.get(code)
        if room is None:
            return RoomError.of(RoomErrorCode.ROOM_NOT_FOUND)
        if room.status != RoomStatus.PLAYING:
            return RoomError.of(RoomErrorCode.NOT_PLAYING)
        line_length = len(room.card_line)
        if not (0 <= from_index < line_length and 0 <= to_index < line_length):
            return RoomError.of(RoomErrorCode.INDEX_OUT_OF_RANGE)

        player_id = room.card_line.pop(from_index)
        room.card_line.insert(to_index, player_id)
        logger.debug("card moved", room_code=room.code, from_index=from_index, to_index=to_index)
        return MoveResult(from_index=from_index, to_index=to_index)

    def start_reveal(self, code: str) -> Room | RoomError:
        room = self._registry.get(code)
        if room is None:
            return RoomError.of(RoomErrorCode.ROOM_NOT_FOUND)
        if room.status != RoomStatus.PLAYING:
            return RoomError.of(RoomErrorCode.NOT_PLAYING)
        if not room.all_placed:
            return RoomError.of(RoomErrorCode.NOT_ALL_PLACED)

        room.status = RoomStatus.REVEALING
        room.revealed_count = 0
        logger.info("reveal started", room_code=room.code)
        return room

    def reveal_next(self, code: str) -> RevealResult | RoomError:
        room = self._registry.get(code)
        if room is None:
            return RoomError.of(RoomErrorCode.ROOM_NOT_FOUND)
        if room.status != RoomStatus.REVEALING:
            return RoomError.of(RoomErrorCode.NOT_REVEALING)
        if room.fully_revealed:
            return RoomError.of(RoomErrorCode.NOTHING_TO_REVEAL)

        numbers = room.line_numbers()
        index = room.revealed_count
        number = numbers[index]
        # A wrong card does not stop the reveal; it only decides the final result.
        is_correct = index == 0 or number >= max(numbers[:index])
        player_id = room.card_line[index]
        player = room.get_player(player_id)
        reveal = CardReveal(
            index=index,
            player_id=player_id,
            player_name=player.name if player is not None else "",
            number=number,
            is_correct=is_correct,
        )

        room.revealed_count += 1
        if room.fully_revealed:
            room.conclude_round()
            logger.info("round ended", room_code=room.code, result=room.result)

        return RevealResult(reveal=reveal, room=room)

    def get_final_results(self, code: str) -> list[FinalResultEntry] | RoomError:
        room = self._registry.get(code)
        if room is None:
            return RoomError.of(RoomErrorCode.ROOM_NOT_FOUND)
        if room.status != RoomStatus.ENDED:
            return RoomError.of(RoomErrorCode.ROUND_NOT_ENDED)

        entries = []
        for player_id, number in zip(room.card_line, room.line_numbers(), strict=True):
            player = room.get_player(player_id)
            entries.append(FinalResultEntry(name=player.name if player is not None else "", number=number))
        return entries
