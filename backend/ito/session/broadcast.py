"""Fan-out helpers for sending one message to several players."""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from ito.messaging.protocol import ConnectionProtocol


async def send_quietly(connection: ConnectionProtocol | None, message: dict[str, Any]) -> None:
    """Send to one connection, ignoring a socket that is already gone."""
    if connection is None:
        return
    with contextlib.suppress(RuntimeError, OSError):
        await connection.send_message(message)


async def broadcast_to_players(
    connections: Mapping[str, ConnectionProtocol],
    player_ids: Iterable[str],
    message: dict[str, Any],
    exclude_player_id: str | None = None,
) -> None:
    # Snapshot ids first: a concurrent disconnect may unregister a connection while we yield.
    for player_id in list(player_ids):
        if player_id != exclude_player_id:
            await send_quietly(connections.get(player_id), message)
