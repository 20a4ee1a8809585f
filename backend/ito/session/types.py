from pydantic import BaseModel

from ito.logic.room import RoomStatus


class RoomInfo(BaseModel):
    """Public summary of a room, served before a player joins."""

    room_code: str
    status: RoomStatus
    player_count: int
    joinable: bool
    age_seconds: int
