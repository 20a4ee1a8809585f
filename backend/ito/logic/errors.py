"""Rule violations returned by room and round operations.

Core operations never raise for an illegal request. They return a RoomError
value and leave the room untouched, and the session layer turns it into an
error message for the requester only.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class RoomErrorCode(StrEnum):
    ROOM_NOT_FOUND = "room_not_found"
    ROOM_NOT_JOINABLE = "room_not_joinable"
    ROOM_FULL = "room_full"
    ALREADY_IN_ROOM = "already_in_room"
    PLAYER_NOT_FOUND = "player_not_found"
    NOT_HOST = "not_host"
    TOO_FEW_PLAYERS = "too_few_players"
    ROUND_IN_PROGRESS = "round_in_progress"
    NOT_PLAYING = "not_playing"
    ALREADY_PLACED = "already_placed"
    INVALID_POSITION = "invalid_position"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    NOT_ALL_PLACED = "not_all_placed"
    NOT_REVEALING = "not_revealing"
    NOTHING_TO_REVEAL = "nothing_to_reveal"
    ROUND_NOT_ENDED = "round_not_ended"


_DEFAULT_MESSAGES: dict[RoomErrorCode, str] = {
    RoomErrorCode.ROOM_NOT_FOUND: "Room not found",
    RoomErrorCode.ROOM_NOT_JOINABLE: "Game already in progress",
    RoomErrorCode.ROOM_FULL: "Room is full",
    RoomErrorCode.ALREADY_IN_ROOM: "You are already in this room",
    RoomErrorCode.PLAYER_NOT_FOUND: "You are not in this room",
    RoomErrorCode.NOT_HOST: "Only the host can start the round",
    RoomErrorCode.TOO_FEW_PLAYERS: "Need at least 2 players",
    RoomErrorCode.ROUND_IN_PROGRESS: "A round is already in progress",
    RoomErrorCode.NOT_PLAYING: "Cards can only be placed or moved during play",
    RoomErrorCode.ALREADY_PLACED: "You already placed your card",
    RoomErrorCode.INVALID_POSITION: "Cards can only be placed at the end of the line",
    RoomErrorCode.INDEX_OUT_OF_RANGE: "Card index out of range",
    RoomErrorCode.NOT_ALL_PLACED: "All players must place their cards first",
    RoomErrorCode.NOT_REVEALING: "The reveal has not started",
    RoomErrorCode.NOTHING_TO_REVEAL: "All cards are already revealed",
    RoomErrorCode.ROUND_NOT_ENDED: "The round has not ended",
}


@dataclass(frozen=True)
class RoomError:
    code: RoomErrorCode
    message: str

    @classmethod
    def of(cls, code: RoomErrorCode) -> RoomError:
        return cls(code=code, message=_DEFAULT_MESSAGES[code])
