"""Room and player state for one game table."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum

# One player per number in the deck, so a deal can never run out.
MAX_PLAYERS = 100
MIN_PLAYERS = 2


class RoomStatus(StrEnum):
    LOBBY = "lobby"
    PLAYING = "playing"
    REVEALING = "revealing"
    ENDED = "ended"


class RoundResult(StrEnum):
    WIN = "win"
    LOSE = "lose"


@dataclass
class Player:
    """A seated player. The number is only set while a round is dealt."""

    id: str
    name: str
    number: int | None = None


@dataclass
class Room:
    """A game table: its players, the shared card line and the reveal progress.

    players keeps join order, which decides who inherits the host role.
    card_line holds player ids from left to right.
    """

    code: str
    host_id: str
    players: list[Player] = field(default_factory=list)
    status: RoomStatus = RoomStatus.LOBBY
    card_line: list[str] = field(default_factory=list)
    revealed_count: int = 0
    result: RoundResult | None = None
    created_at: float = field(default_factory=time.monotonic)

    @property
    def age_seconds(self) -> float:
        return time.monotonic() - self.created_at

    @property
    def player_count(self) -> int:
        return len(self.players)

    @property
    def is_empty(self) -> bool:
        return not self.players

    @property
    def is_full(self) -> bool:
        return self.player_count >= MAX_PLAYERS

    @property
    def all_placed(self) -> bool:
        return len(self.card_line) == self.player_count

    @property
    def fully_revealed(self) -> bool:
        return self.revealed_count == len(self.card_line)

    def get_player(self, player_id: str) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def has_player(self, player_id: str) -> bool:
        return self.get_player(player_id) is not None

    def line_numbers(self) -> list[int]:
        """Return the dealt numbers in card line order."""
        numbers = []
        for player_id in self.card_line:
            player = self.get_player(player_id)
            if player is None or player.number is None:  # pragma: no cover - guarded by invariants
                raise RuntimeError(f"card line entry {player_id} has no dealt number")
            numbers.append(player.number)
        return numbers

    def is_line_ascending(self) -> bool:
        numbers = self.line_numbers()
        return all(left <= right for left, right in zip(numbers, numbers[1:], strict=False))

    def conclude_round(self) -> None:
        """Close a fully revealed round and record whether the line was in order."""
        self.status = RoomStatus.ENDED
        self.result = RoundResult.WIN if self.is_line_ascending() else RoundResult.LOSE
