from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

ROOMS_EXTENSION = 'banqi_rooms'


def get_rooms(app=None):
    """Return the room registry of ``app`` (or of the current app)."""
    return (app or current_app).extensions[ROOMS_EXTENSION]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app; rooms live only in process memory
    from banqi.services.games.session import RoomRegistry
    from banqi.socketio_events import SocketIONotifier
    flask_app.extensions[ROOMS_EXTENSION] = RoomRegistry(
        notifier=SocketIONotifier(),
        code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 4)),
    )

    # Import and register blueprints here
    from banqi.routes import main
    flask_app.register_blueprint(main)

    from banqi.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from banqi.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from banqi.services.games.reaper import start_idle_reaper
    start_idle_reaper(flask_app)

    @click.command('deal')
    @click.option('--seed', type=int, default=None, help='Seed for a reproducible deal.')
    def deal_command(seed):
        """Prints a freshly shuffled board with every piece shown."""
        import random
        from banqi.models import create_shuffled_board
        board = create_shuffled_board(random.Random(seed) if seed is not None else None)
        for row in board.to_dict(reveal_all=True):
            click.echo('  '.join(f"{c['color'][0]}{c['type'][:3]}" for c in row))

    flask_app.cli.add_command(deal_command)

    return flask_app
