from unittest.mock import patch

import pytest

from ito.logic.errors import RoomErrorCode
from ito.messaging.types import ClientMessageType, ServerMessageType, SessionErrorCode
from ito.tests.mocks import MockConnection


class TestMessageRouter:
    @pytest.fixture
    async def connection(self, router):
        connection = MockConnection("alice")
        await router.handle_connect(connection)
        return connection

    async def test_schema_error_answers_invalid_message(self, router, connection):
        await router.handle_message(connection, {"type": "place_card", "position": "first"})

        assert len(connection.sent_messages) == 1
        response = connection.sent_messages[0]
        assert response["type"] == ServerMessageType.ERROR
        assert response["code"] == SessionErrorCode.INVALID_MESSAGE

    async def test_unknown_type_answers_invalid_message(self, router, connection):
        await router.handle_message(connection, {"type": "deal_me_100"})
        assert connection.last_message()["code"] == SessionErrorCode.INVALID_MESSAGE

    async def test_create_room_routes_to_manager(self, router, manager, connection):
        await router.handle_message(connection, {"type": ClientMessageType.CREATE_ROOM, "player_name": "Alice"})

        created = connection.last_message(ServerMessageType.ROOM_CREATED)
        assert manager.get_room(created["room_code"]) is not None

    async def test_ping(self, router, connection):
        await router.handle_message(connection, {"type": ClientMessageType.PING})
        assert connection.sent_messages == [{"type": "pong"}]

    @pytest.mark.parametrize(
        "data",
        [
            {"type": "start_round"},
            {"type": "play_again"},
            {"type": "place_card", "position": 0},
            {"type": "move_card", "from_index": 0, "to_index": 1},
            {"type": "start_reveal"},
            {"type": "reveal_next"},
        ],
    )
    async def test_room_actions_need_a_room(self, router, connection, data):
        await router.handle_message(connection, data)
        assert connection.last_message()["code"] == SessionErrorCode.NOT_IN_ROOM

    async def test_join_unknown_room(self, router, connection):
        await router.handle_message(connection, {"type": "join_room", "room_code": "zzzz", "player_name": "Alice"})
        assert connection.last_message()["code"] == RoomErrorCode.ROOM_NOT_FOUND

    async def test_unexpected_exception_answers_internal_error(self, router, manager, connection):
        with patch.object(manager, "handle_ping", side_effect=KeyError("boom")):
            await router.handle_message(connection, {"type": "ping"})

        assert connection.last_message()["code"] == SessionErrorCode.INTERNAL_ERROR

    async def test_disconnect_leaves_room_silently(self, router, manager, connection):
        await router.handle_message(connection, {"type": "create_room", "player_name": "Alice"})
        code = connection.last_message(ServerMessageType.ROOM_CREATED)["room_code"]
        connection.clear()

        await router.handle_disconnect(connection)

        assert manager.get_room(code) is None
        assert connection.sent_messages == []
        assert not manager.is_in_room("alice")
