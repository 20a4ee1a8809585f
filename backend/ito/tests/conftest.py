import random

import pytest

from ito.logic.registry import RoomRegistry
from ito.logic.round import RoundStateMachine
from ito.messaging.router import MessageRouter
from ito.server.app import create_app
from ito.server.settings import ItoServerSettings
from ito.session.manager import SessionManager


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def registry(rng):
    return RoomRegistry(rng)


@pytest.fixture
def rounds(registry, rng):
    return RoundStateMachine(registry, rng)


@pytest.fixture
def manager(rng):
    return SessionManager(max_rooms=10, rng=rng)


@pytest.fixture
def router(manager):
    return MessageRouter(manager)


@pytest.fixture
def app(manager):
    settings = ItoServerSettings(max_rooms=10, cors_origins=["http://localhost:5173"])
    return create_app(settings=settings, session_manager=manager)
