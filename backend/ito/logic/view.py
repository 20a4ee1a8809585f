from ito.logic.room import Room
from ito.logic.types import PlayerView, ViewState


def project(room: Room, viewer_id: str) -> ViewState:
    """Build the room snapshot a single player is allowed to see.

    Other players' numbers are never copied in; the viewer gets only their own.
    """
    viewer = room.get_player(viewer_id)
    return ViewState(
        code=room.code,
        host_id=room.host_id,
        status=room.status,
        players=[PlayerView(id=p.id, name=p.name) for p in room.players],
        card_line=list(room.card_line),
        revealed_count=room.revealed_count,
        result=room.result,
        my_number=viewer.number if viewer is not None else None,
    )
