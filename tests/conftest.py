import itertools

import pytest
from fastapi.testclient import TestClient

from gamechooser.main import app, get_manager
from gamechooser.manager import RoomManager
from gamechooser.rooms import InMemoryRoomRepository


def _fixed(*values):
    """Random source that replays ``values`` forever."""
    cycle = itertools.cycle(values)
    return lambda: next(cycle)


@pytest.fixture()
def repository():
    return InMemoryRoomRepository()


@pytest.fixture()
def manager(repository):
    return RoomManager(repository, rng=_fixed(0.0))


@pytest.fixture()
def client(manager):
    app.dependency_overrides[get_manager] = lambda: manager
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def fixed():
    return _fixed
