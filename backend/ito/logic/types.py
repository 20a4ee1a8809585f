"""Results and snapshots that leave the core.

The pydantic models here go over the wire as-is, so they carry numbers only
where a number is allowed to be seen.
"""

from typing import NamedTuple

from pydantic import BaseModel

from ito.logic.room import Room, RoomStatus, RoundResult


class PlayerView(BaseModel):
    id: str
    name: str


class ViewState(BaseModel):
    """One player's view of a room. my_number is the only number in it."""

    code: str
    host_id: str
    status: RoomStatus
    players: list[PlayerView]
    card_line: list[str]
    revealed_count: int
    result: RoundResult | None = None
    my_number: int | None = None


class CardReveal(BaseModel):
    index: int
    player_id: str
    player_name: str
    number: int
    is_correct: bool


class FinalResultEntry(BaseModel):
    name: str
    number: int


class PlacementResult(NamedTuple):
    position: int


class MoveResult(NamedTuple):
    from_index: int
    to_index: int


class RevealResult(NamedTuple):
    reveal: CardReveal
    room: Room
