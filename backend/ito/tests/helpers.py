"""Builders for rooms in a known state."""

from ito.logic.errors import RoomError
from ito.logic.registry import RoomRegistry
from ito.logic.room import Room
from ito.logic.round import RoundStateMachine


def seat_players(registry: RoomRegistry, names: list[str]) -> Room:
    """Create a room hosted by the first name and seat the rest. Player ids are the lowercased names."""
    host, *guests = names
    room = registry.create_room(host.lower(), host)
    for name in guests:
        result = registry.join_room(room.code, name.lower(), name)
        assert not isinstance(result, RoomError)
    return room


def start_with_numbers(rounds: RoundStateMachine, room: Room, numbers: dict[str, int]) -> None:
    """Start a round, then overwrite the dealt numbers by player id."""
    result = rounds.start_round(room.code, room.host_id)
    assert not isinstance(result, RoomError)
    for player in room.players:
        player.number = numbers[player.id]


def place_in_order(rounds: RoundStateMachine, room: Room, player_ids: list[str]) -> None:
    for player_id in player_ids:
        result = rounds.place_card(room.code, player_id, len(room.card_line))
        assert not isinstance(result, RoomError)


def reveal_all(rounds: RoundStateMachine, room: Room) -> list:
    result = rounds.start_reveal(room.code)
    assert not isinstance(result, RoomError)
    reveals = []
    while room.revealed_count < len(room.card_line):
        step = rounds.reveal_next(room.code)
        assert not isinstance(step, RoomError)
        reveals.append(step.reveal)
    return reveals
