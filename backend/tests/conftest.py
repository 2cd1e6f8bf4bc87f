import pytest

from monikers.game import service
from monikers.realtime import handlers
from monikers.server import create_app


class TestConfig:
    TESTING = True
    SECRET_KEY = "test-secret"
    CORS_ORIGINS = "*"
    TRUST_PROXY_HEADERS = False
    SOCKETIO_ASYNC_MODE = "threading"
    TURN_DURATION_SEC = 60
    # Countdowns are stepped through service.tick in unit tests
    TICK_INTERVAL_SEC = 3600
    TOTAL_ROUNDS = 3
    MIN_PLAYERS = 2
    ROOM_EMPTY_TTL_SEC = 600
    REAPER_INTERVAL_SEC = 3600


@pytest.fixture(autouse=True)
def clean_registry():
    service.registry.clear()
    handlers.reset_connection_context()
    yield
    service.registry.clear()
    handlers.reset_connection_context()


@pytest.fixture()
def app_and_socketio():
    return create_app(TestConfig)


@pytest.fixture()
def flask_app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(app_and_socketio):
    flask_app, socketio = app_and_socketio
    created = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        created.append(test_client)
        return test_client

    yield _make

    for test_client in created:
        if test_client.is_connected():
            test_client.disconnect()
