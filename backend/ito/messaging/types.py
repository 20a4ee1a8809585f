from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, Field, TypeAdapter

from ito.logic.errors import RoomErrorCode
from ito.logic.room import RoundResult
from ito.logic.types import CardReveal, FinalResultEntry, ViewState

# ASCII control character boundaries for input validation
_SPACE_ORD = 0x20
_DEL_ORD = 0x7F
_MAX_NAME_LENGTH = 50


class ClientMessageType(StrEnum):
    CREATE_ROOM = "create_room"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"
    START_ROUND = "start_round"
    PLAY_AGAIN = "play_again"
    PLACE_CARD = "place_card"
    MOVE_CARD = "move_card"
    START_REVEAL = "start_reveal"
    REVEAL_NEXT = "reveal_next"
    PING = "ping"


class ServerMessageType(StrEnum):
    ROOM_CREATED = "room_created"
    ROOM_JOINED = "room_joined"
    ROOM_LEFT = "room_left"
    ROOM_STATE = "room_state"
    PLAYER_JOINED = "player_joined"
    PLAYER_LEFT = "player_left"
    HOST_CHANGED = "host_changed"
    ROUND_STARTED = "round_started"
    CARD_PLACED = "card_placed"
    CARD_MOVED = "card_moved"
    REVEAL_STARTED = "reveal_started"
    CARD_REVEALED = "card_revealed"
    ROUND_ENDED = "round_ended"
    PONG = "pong"
    ERROR = "error"


class SessionErrorCode(StrEnum):
    INVALID_MESSAGE = "invalid_message"
    NOT_IN_ROOM = "not_in_room"
    SERVER_AT_CAPACITY = "server_at_capacity"
    INTERNAL_ERROR = "internal_error"


def _validate_player_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError("player_name must not be blank")
    if len(name) > _MAX_NAME_LENGTH:
        raise ValueError(f"player_name must be at most {_MAX_NAME_LENGTH} characters")
    if any(ord(c) < _SPACE_ORD or ord(c) == _DEL_ORD for c in name):
        raise ValueError("player_name must not contain control characters")
    return name


PlayerName = Annotated[str, AfterValidator(_validate_player_name)]


class CreateRoomMessage(BaseModel):
    type: Literal[ClientMessageType.CREATE_ROOM] = ClientMessageType.CREATE_ROOM
    player_name: PlayerName


class JoinRoomMessage(BaseModel):
    type: Literal[ClientMessageType.JOIN_ROOM] = ClientMessageType.JOIN_ROOM
    room_code: str = Field(min_length=1, max_length=16)
    player_name: PlayerName


class LeaveRoomMessage(BaseModel):
    type: Literal[ClientMessageType.LEAVE_ROOM] = ClientMessageType.LEAVE_ROOM


class StartRoundMessage(BaseModel):
    type: Literal[ClientMessageType.START_ROUND, ClientMessageType.PLAY_AGAIN] = ClientMessageType.START_ROUND


class PlaceCardMessage(BaseModel):
    type: Literal[ClientMessageType.PLACE_CARD] = ClientMessageType.PLACE_CARD
    position: int = Field(ge=0, strict=True)


class MoveCardMessage(BaseModel):
    type: Literal[ClientMessageType.MOVE_CARD] = ClientMessageType.MOVE_CARD
    from_index: int = Field(ge=0, strict=True)
    to_index: int = Field(ge=0, strict=True)


class StartRevealMessage(BaseModel):
    type: Literal[ClientMessageType.START_REVEAL] = ClientMessageType.START_REVEAL


class RevealNextMessage(BaseModel):
    type: Literal[ClientMessageType.REVEAL_NEXT] = ClientMessageType.REVEAL_NEXT


class PingMessage(BaseModel):
    type: Literal[ClientMessageType.PING] = ClientMessageType.PING


ClientMessage = (
    CreateRoomMessage
    | JoinRoomMessage
    | LeaveRoomMessage
    | StartRoundMessage
    | PlaceCardMessage
    | MoveCardMessage
    | StartRevealMessage
    | RevealNextMessage
    | PingMessage
)

_client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(
    Annotated[ClientMessage, Field(discriminator="type")],
)


def parse_client_message(data: dict[str, Any]) -> ClientMessage:
    """Validate a decoded frame into a typed client message."""
    return _client_message_adapter.validate_python(data)


class RoomCreatedMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_CREATED] = ServerMessageType.ROOM_CREATED
    room_code: str


class RoomJoinedMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_JOINED] = ServerMessageType.ROOM_JOINED
    room_code: str


class RoomLeftMessage(BaseModel):
    type: Literal[ServerMessageType.ROOM_LEFT] = ServerMessageType.ROOM_LEFT


class RoomStateMessage(ViewState):
    """Per-viewer room snapshot; the only full state ever broadcast."""

    type: Literal[ServerMessageType.ROOM_STATE] = ServerMessageType.ROOM_STATE


class PlayerJoinedMessage(BaseModel):
    type: Literal[ServerMessageType.PLAYER_JOINED] = ServerMessageType.PLAYER_JOINED
    player_id: str
    player_name: str


class PlayerLeftMessage(BaseModel):
    type: Literal[ServerMessageType.PLAYER_LEFT] = ServerMessageType.PLAYER_LEFT
    player_id: str
    player_name: str


class HostChangedMessage(BaseModel):
    type: Literal[ServerMessageType.HOST_CHANGED] = ServerMessageType.HOST_CHANGED
    new_host_id: str


class RoundStartedMessage(BaseModel):
    type: Literal[ServerMessageType.ROUND_STARTED] = ServerMessageType.ROUND_STARTED
    your_number: int


class CardPlacedMessage(BaseModel):
    type: Literal[ServerMessageType.CARD_PLACED] = ServerMessageType.CARD_PLACED
    player_id: str
    player_name: str
    position: int


class CardMovedMessage(BaseModel):
    type: Literal[ServerMessageType.CARD_MOVED] = ServerMessageType.CARD_MOVED
    from_index: int
    to_index: int


class RevealStartedMessage(BaseModel):
    type: Literal[ServerMessageType.REVEAL_STARTED] = ServerMessageType.REVEAL_STARTED


class CardRevealedMessage(CardReveal):
    type: Literal[ServerMessageType.CARD_REVEALED] = ServerMessageType.CARD_REVEALED


class RoundEndedMessage(BaseModel):
    type: Literal[ServerMessageType.ROUND_ENDED] = ServerMessageType.ROUND_ENDED
    result: RoundResult
    final_order: list[FinalResultEntry]


class PongMessage(BaseModel):
    type: Literal[ServerMessageType.PONG] = ServerMessageType.PONG


class ErrorMessage(BaseModel):
    type: Literal[ServerMessageType.ERROR] = ServerMessageType.ERROR
    code: RoomErrorCode | SessionErrorCode
    message: str
