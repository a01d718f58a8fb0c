import os
import sys
import pytest

# Ensure the backend root (containing the `kartboard` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from kartboard import create_app, db, socketio


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ADMIN_CODE = 'letmein'
    ENFORCE_UNIQUE_TRACKS = False
    # Keep bcrypt cheap in tests
    BCRYPT_LOG_ROUNDS = 4


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import kartboard.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def admin_headers():
    return {'X-Admin-Code': TestConfig.ADMIN_CODE}


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


@pytest.fixture()
def players(flask_app):
    """Four players; returns their ids in creation order."""
    from kartboard.models import Player
    rows = [Player(name=n) for n in ('Matt', 'Jake', 'Ian', 'Sam')]
    db.session.add_all(rows)
    db.session.commit()
    return [p.id for p in rows]


@pytest.fixture()
def tracks(flask_app):
    from kartboard.models import Track
    rows = [Track(name=n) for n in ('Water Park', 'Toad Harbor', 'Mute City', 'Big Blue', 'Rainbow Road')]
    db.session.add_all(rows)
    db.session.commit()
    return [t.id for t in rows]


@pytest.fixture()
def make_round(client):
    def _make(player_ids):
        res = client.post('/api/rounds', json={'player_ids': player_ids})
        assert res.status_code == 201, res.get_json()
        return res.get_json()['round_id']
    return _make


@pytest.fixture()
def post_race(client):
    """Submit a race given the player ids in finishing order (winner first)."""
    def _post(round_id, race_index, track_id, finish_order):
        results = [
            {'player_id': pid, 'finish_position': pos}
            for pos, pid in enumerate(finish_order, start=1)
        ]
        return client.post(
            f'/api/rounds/{round_id}/races/{race_index}',
            json={'track_id': track_id, 'results': results},
        )
    return _post
