from ito.messaging.types import ServerMessageType
from ito.tests.mocks import MockConnection


async def seat_connections(
    manager,
    names: list[str],
    connection_cls: type[MockConnection] = MockConnection,
) -> tuple[str, list[MockConnection]]:
    """Open one connection per name; the first creates a room and the rest join it.

    Connection ids are the lowercased names. Outboxes are cleared before returning.
    """
    connections = [connection_cls(name.lower()) for name in names]
    for connection in connections:
        manager.register_connection(connection)

    host, *guests = connections
    await manager.create_room(host, names[0])
    code = host.last_message(ServerMessageType.ROOM_CREATED)["room_code"]
    for connection, name in zip(guests, names[1:], strict=True):
        await manager.join_room(connection, code, name)

    for connection in connections:
        connection.clear()
    return code, connections


def set_numbers(manager, code: str, numbers: dict[str, int]) -> None:
    """Overwrite the dealt numbers of a started round by player id."""
    room = manager.get_room(code)
    for player in room.players:
        player.number = numbers[player.id]


def clear_all(connections: list[MockConnection]) -> None:
    for connection in connections:
        connection.clear()
