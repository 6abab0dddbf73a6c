import os
import sys
from datetime import date
from types import SimpleNamespace

import pytest

# Ensure the backend root (containing the `scoreboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from scoreboard import create_app, db, socketio


DAY1 = date(2025, 7, 14)
DAY2 = date(2025, 7, 15)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    WTF_CSRF_ENABLED = False
    CORS_ORIGINS = ['http://localhost:5173']
    MAX_INDIVIDUAL_POINTS = 1000
    MAX_TEAM_POINTS = 10000
    MAX_REASON_LENGTH = 500
    RECENT_ENTRIES_LIMIT = 10
    TOP_PLAYERS_LIMIT = 3


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import scoreboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


def seed_camp():
    """Two teams (Blue with three campers, Red with one) and two games."""
    from scoreboard.models import Game, Player, Team

    blue = Team(name='Blue', color='#1d4ed8')
    red = Team(name='Red', color='#dc2626')
    for name in ('Ana', 'Ben', 'Cy'):
        blue.players.append(Player(name=name))
    red.players.append(Player(name='Dee'))
    night = Game(title='Night Game')
    flag = Game(title='Capture the Flag')
    db.session.add_all([blue, red, night, flag])
    db.session.commit()

    return SimpleNamespace(
        blue=blue.id,
        red=red.id,
        blue_players=[p.id for p in blue.players],
        red_player=red.players[0].id,
        night=night.id,
        flag=flag.id,
    )


@pytest.fixture()
def camp(flask_app):
    return seed_camp()


@pytest.fixture()
def file_app(tmp_path):
    """App on a file-backed SQLite database.

    Each app context gets its own session and connection, so two contexts
    behave like two concurrent requests.
    """
    config = type('FileConfig', (TestConfig,), {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'ledger.db'}",
    })
    application = create_app(config)
    with application.app_context():
        import scoreboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
