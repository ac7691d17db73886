from flask import Blueprint, jsonify, request, current_app

from banqi import get_rooms
from banqi.services.games.errors import GameError, OutOfBoundsError, RoomFullError, RoomNotFoundError
from banqi.services.games.rules import legal_destinations


games = Blueprint('games', __name__)


@games.errorhandler(GameError)
def handle_game_error(exc):
    if isinstance(exc, RoomNotFoundError):
        status = 404
    elif isinstance(exc, RoomFullError):
        status = 409
    else:
        status = 400
    return jsonify(exc.to_dict()), status


@games.route('/create', methods=['POST'])
def create_game():
    """
    Creates an empty room. Participants take their seats over the socket.
    """
    room = get_rooms().create()
    current_app.logger.info(f"[create] room={room.room_id} via=http")
    return jsonify({
        'message': 'New game created!',
        'game_code': room.room_id
    }), 201


@games.route('/available', methods=['GET'])
def available_games():
    """
    Returns rooms waiting for a second player.
    """
    return jsonify(get_rooms().available())


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    room = get_rooms().get(game_code)
    return jsonify(room.to_dict())


@games.route('/<string:game_code>/moves', methods=['GET'])
def get_legal_moves(game_code):
    """
    Lists where the face-up piece on (row, col) may go. Advisory only:
    every submitted move is validated again when it arrives.
    """
    room = get_rooms().get(game_code)
    row = request.args.get('row', type=int)
    col = request.args.get('col', type=int)
    if row is None or col is None:
        raise OutOfBoundsError('row and col query parameters are required')
    targets = legal_destinations(room.game.board, row, col)
    return jsonify({'from': [row, col], 'moves': [list(t) for t in targets]})


@games.route('/<string:game_code>/reset', methods=['POST'])
def reset_game(game_code):
    room = get_rooms().get(game_code)
    room.reset()
    return jsonify(room.to_dict())


@games.route('/<string:game_code>', methods=['DELETE'])
def delete_game(game_code):
    room = get_rooms().destroy(game_code)
    if room is None:
        raise RoomNotFoundError(game_code)
    current_app.logger.info(f"[teardown] room={room.room_id} via=http")
    return jsonify({'message': f'Game {room.room_id} ended.'}), 200
