from flask import current_app, has_request_context, request
from flask_socketio import emit, join_room, leave_room

from banqi import get_rooms, socketio
from banqi.services.games.errors import GameError, OutOfBoundsError, RoomNotFoundError
from banqi.services.games.session import Notifier

DEFAULT_NAMESPACE = '/ws'


def _room_name(game_code: str) -> str:
    return f"game:{game_code}"


def _namespace() -> str:
    # Handlers may be mirrored on '/' in tests; answer on the namespace asked on.
    if has_request_context():
        return getattr(request, 'namespace', None) or DEFAULT_NAMESPACE
    return DEFAULT_NAMESPACE


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


class SocketIONotifier(Notifier):
    """Delivers room notifications as Socket.IO events."""

    def state_changed(self, room_id, payload):
        socketio.emit('state_update', payload, to=_room_name(room_id), namespace=_namespace())

    def action_rejected(self, room_id, participant_id, payload):
        socketio.emit('action_rejected', payload, to=participant_id, namespace=_namespace())

    def participant_left(self, room_id, participant_id):
        socketio.emit(
            'opponent_left',
            {'game_code': room_id, 'participant_id': participant_id},
            to=_room_name(room_id),
            skip_sid=participant_id,
            namespace=_namespace(),
        )

    def session_ended(self, room_id):
        namespace = _namespace()
        socketio.emit('session_ended', {'game_code': room_id}, to=_room_name(room_id), namespace=namespace)
        socketio.close_room(_room_name(room_id), namespace=namespace)


def _coord(data, key) -> int:
    value = (data or {}).get(key)
    if isinstance(value, bool):
        raise OutOfBoundsError(f"'{key}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise OutOfBoundsError(f"'{key}' must be an integer")


def _reject(exc: GameError) -> None:
    payload = dict(exc.to_dict(), participant_id=_get_sid())
    emit('action_rejected', payload)


def _current_room():
    room = get_rooms().room_of(_get_sid())
    if room is None:
        _reject(RoomNotFoundError(None, 'Join a game first'))
    return room


def _leave_current_room():
    room = get_rooms().leave(_get_sid())
    if room is not None:
        _left(room)
    return room


def _left(room):
    """Socket-side cleanup once the registry has taken the caller out of ``room``."""
    sid = _get_sid()
    leave_room(_room_name(room.room_id))
    current_app.logger.info(f"[leave] room={room.room_id} sid={sid} remaining={len(room.participants)}")
    if not room.is_empty:
        room.notifier.state_changed(room.room_id, room.to_dict())


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws', 'participant_id': _get_sid()})


def handle_disconnect(reason=None):
    _leave_current_room()


def handle_create_game(data=None):
    rooms = get_rooms()
    _leave_current_room()
    room = rooms.create()
    rooms.join(room.room_id, _get_sid())
    join_room(_room_name(room.room_id))
    current_app.logger.info(f"[create] room={room.room_id} sid={_get_sid()}")
    emit('game_created', {'game_code': room.room_id, 'player_number': 1})


def handle_join_game(data):
    game_code = (data or {}).get('game_code')
    if not game_code:
        emit('error', {'message': 'game_code is required'})
        return
    rooms = get_rooms()
    previous = rooms.room_of(_get_sid())
    try:
        room = rooms.join(game_code, _get_sid())
    except GameError as exc:
        emit('error', exc.to_dict())
        return
    if previous is not None and previous is not room:
        _left(previous)
    join_room(_room_name(room.room_id))
    player_number = room.participants.index(_get_sid()) + 1
    emit('game_joined', {'game_code': room.room_id, 'player_number': player_number})
    if room.active:
        emit('game_ready', {'game_code': room.room_id}, to=_room_name(room.room_id))
    room.notifier.state_changed(room.room_id, room.to_dict())


def handle_leave_game(data=None):
    room = _leave_current_room()
    if room is None:
        emit('error', {'message': 'Not in a game'})
        return
    emit('left', {'game_code': room.room_id})


def handle_reveal(data):
    room = _current_room()
    if room is None:
        return
    try:
        row, col = _coord(data, 'row'), _coord(data, 'col')
    except GameError as exc:
        _reject(exc)
        return
    room.reveal(_get_sid(), row, col)


def handle_move(data):
    room = _current_room()
    if room is None:
        return
    try:
        coords = [_coord(data, key) for key in ('from_row', 'from_col', 'to_row', 'to_col')]
    except GameError as exc:
        _reject(exc)
        return
    room.move(_get_sid(), *coords)


def handle_reset(data=None):
    room = _current_room()
    if room is None:
        return
    room.reset()


def handle_get_available_games(data=None):
    emit('available_games', get_rooms().available())


def handle_ping(data=None):
    emit('pong', data or {})


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'create_game': handle_create_game,
    'join_game': handle_join_game,
    'leave_game': handle_leave_game,
    'reveal': handle_reveal,
    'move': handle_move,
    'reset': handle_reset,
    'get_available_games': handle_get_available_games,
    'ping': handle_ping,
}


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=DEFAULT_NAMESPACE)

    if testing:
        # Test-only mirror on default namespace
        for event, handler in HANDLERS.items():
            socketio.on_event(event, handler, namespace='/')
