from enum import Enum
from typing import List, Optional

from banqi.models import Board, Color, Piece, create_shuffled_board
from .errors import GameOverError, IllegalMoveError, IllegalRevealError, NotYourTurnError
from .rules import Position, apply_move, can_reveal, check_move, check_terminal


class Phase(str, Enum):
    AWAITING_FIRST_REVEAL = 'awaiting_first_reveal'
    IN_PROGRESS = 'in_progress'
    OVER = 'over'


class BanqiGame:
    """One game of Banqi: the board plus turn, color and phase state.

    ``current_color`` is the color to move next. It stays unset until the
    first reveal, which decides it: whoever reveals plays the revealed
    piece's color, so the other color moves next. Which participant owns
    which color is not tracked here; ``reveal`` reports the color it bound
    so the room can record it.
    """

    def __init__(self, board: Optional[Board] = None, rng=None):
        self._rng = rng
        self._start(board)

    def _start(self, board: Optional[Board] = None) -> None:
        self.board = board if board is not None else create_shuffled_board(self._rng)
        self.current_color: Optional[Color] = None
        self.phase = Phase.AWAITING_FIRST_REVEAL
        self.winner: Optional[Color] = None
        self.turn_count = 0
        self.captured: List[Piece] = []
        self.last_action: Optional[dict] = None

    def reset(self, board: Optional[Board] = None) -> None:
        self._start(board)

    @property
    def is_over(self) -> bool:
        return self.phase is Phase.OVER

    def reveal(self, row: int, col: int, requester: Optional[Color] = None) -> dict:
        """Flip the piece at ``(row, col)`` for ``requester``.

        Before the first reveal ``requester`` is ignored. The returned action
        carries ``bound_color`` (the revealer's color) when this was the
        first reveal, None otherwise.
        """
        if self.is_over:
            raise GameOverError()
        if not can_reveal(self.board, row, col):
            raise IllegalRevealError('Only a face-down piece can be revealed')
        if self.phase is Phase.IN_PROGRESS and requester != self.current_color:
            raise IllegalRevealError('Only the color to move may reveal')

        piece = self.board.flip(row, col)
        bound_color = None
        if self.phase is Phase.AWAITING_FIRST_REVEAL:
            bound_color = mover = piece.color
            self.phase = Phase.IN_PROGRESS
        else:
            mover = self.current_color

        action = {
            'kind': 'reveal',
            'color': mover.value,
            'from': [row, col],
            'to': [row, col],
            'piece': piece.to_dict(),
            'captured': None,
            'bound_color': bound_color.value if bound_color else None,
        }
        self._finish_turn(mover, action)
        return action

    def move(self, src: Position, dst: Position, requester: Optional[Color]) -> dict:
        if self.is_over:
            raise GameOverError()
        piece = self.board.at(*src)
        self.board.at(*dst)
        # Moving a face-down piece is never a turn question.
        if piece is None or not piece.face_up:
            raise IllegalMoveError('Only a face-up piece can move')
        if requester is None or requester != self.current_color:
            raise NotYourTurnError()
        check_move(self.board, src, dst, self.current_color)

        mover = self.current_color
        captured = apply_move(self.board, src, dst)
        if captured is not None:
            self.captured.append(captured)
        action = {
            'kind': 'move',
            'color': mover.value,
            'from': list(src),
            'to': list(dst),
            'piece': piece.to_dict(),
            'captured': captured.to_dict() if captured is not None else None,
            'bound_color': None,
        }
        self._finish_turn(mover, action)
        return action

    def _finish_turn(self, mover: Color, action: dict) -> None:
        self.current_color = mover.opponent
        self.turn_count += 1
        self.last_action = action
        result = check_terminal(self.board, self.current_color)
        if result.over:
            self.phase = Phase.OVER
            self.winner = result.winner

    def to_dict(self) -> dict:
        return {
            'board': self.board.to_dict(),
            'current_color': self.current_color.value if self.current_color else None,
            'phase': self.phase.value,
            'winner': self.winner.value if self.winner else None,
            'turn_count': self.turn_count,
            'captured': [p.to_dict() for p in self.captured],
            'last_action': self.last_action,
        }
