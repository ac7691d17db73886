"""Rejection reasons for game intents.

Every error here ends processing of a single intent only; the room and the
game it holds are left untouched.
"""


class GameError(Exception):
    reason = 'GAME_ERROR'
    default_message = 'Action rejected'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.reason, 'message': self.message}


class OutOfBoundsError(GameError):
    reason = 'OUT_OF_BOUNDS'
    default_message = 'Cell is off the board'


class IllegalRevealError(GameError):
    reason = 'ILLEGAL_REVEAL'
    default_message = 'That cell cannot be revealed'


class IllegalMoveError(GameError):
    reason = 'ILLEGAL_MOVE'
    default_message = 'Illegal move'


class NotYourTurnError(GameError):
    reason = 'NOT_YOUR_TURN'
    default_message = 'Not your turn'


class GameOverError(GameError):
    reason = 'GAME_OVER'
    default_message = 'The game is over'


class GameInactiveError(GameError):
    reason = 'GAME_INACTIVE'
    default_message = 'Waiting for an opponent'


class RoomNotFoundError(GameError):
    reason = 'ROOM_NOT_FOUND'
    default_message = 'Game not found. Check your game code.'

    def __init__(self, room_id, message=None):
        self.room_id = room_id
        super().__init__(message)


class RoomFullError(GameError):
    reason = 'ROOM_FULL'
    default_message = 'Game is full. Try another code.'

    def __init__(self, room_id, message=None):
        self.room_id = room_id
        super().__init__(message)
