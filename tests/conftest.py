import os
import random
import sys
import pytest

# Ensure the project root (containing the `banqi` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from banqi import create_app, socketio
from banqi.models import Board, Piece, create_shuffled_board
from banqi.services.games.session import Notifier


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ROOM_CODE_LENGTH = 4
    ROOM_IDLE_TIMEOUT_SEC = 0
    REAPER_INTERVAL_SEC = 30


class RecordingNotifier(Notifier):
    """Keeps every outbound notification for later assertions."""

    def __init__(self):
        self.events = []

    def state_changed(self, room_id, payload):
        self.events.append(('state_changed', room_id, payload))

    def action_rejected(self, room_id, participant_id, payload):
        self.events.append(('action_rejected', room_id, participant_id, payload))

    def participant_left(self, room_id, participant_id):
        self.events.append(('participant_left', room_id, participant_id))

    def session_ended(self, room_id):
        self.events.append(('session_ended', room_id))

    def named(self, name):
        return [e for e in self.events if e[0] == name]


def place(board, row, col, piece_type, color, face_up=True):
    piece = Piece(piece_type, color, face_up=face_up)
    board.set(row, col, piece)
    return piece


def dealt_board(seed=0, at_origin=None):
    """A full shuffled board; ``at_origin=(type, color)`` swaps such a piece onto (0, 0)."""
    board = create_shuffled_board(random.Random(seed))
    if at_origin is not None:
        piece_type, color = at_origin
        for row, col, piece in list(board.occupied()):
            if piece.type.value == piece_type and piece.color.value == color:
                origin = board.at(0, 0)
                board.set(0, 0, piece)
                board.set(row, col, origin)
                break
    return board


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def empty_board():
    return Board()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


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
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
