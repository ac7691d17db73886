"""Banqi move legality.

Pure functions over a ``Board``. Nothing in here knows about rooms,
participants or turns beyond the color passed in. Positions are
``(row, col)`` tuples.
"""
from collections import namedtuple
from typing import List, Optional, Tuple

from banqi.models import Board, Color, Piece, PieceType, ROWS, COLS
from .errors import IllegalMoveError

Position = Tuple[int, int]
TerminalResult = namedtuple('TerminalResult', ['over', 'winner'])


def can_reveal(board: Board, row: int, col: int) -> bool:
    piece = board.at(row, col)
    return piece is not None and not piece.face_up


def is_orthogonal_adjacent(src: Position, dst: Position) -> bool:
    return abs(src[0] - dst[0]) + abs(src[1] - dst[1]) == 1


def can_capture(attacker: Piece, defender: Piece) -> bool:
    """Rank rule for every attacker except the cannon.

    The soldier/general exception overrides the rank comparison both ways.
    """
    if attacker.color == defender.color:
        return False
    if attacker.type is PieceType.SOLDIER and defender.type is PieceType.GENERAL:
        return True
    if attacker.type is PieceType.GENERAL and defender.type is PieceType.SOLDIER:
        return False
    return attacker.rank >= defender.rank


def count_screens(board: Board, src: Position, dst: Position) -> Optional[int]:
    """Occupied cells strictly between two cells on one row or column.

    Returns None when the cells do not share a line.
    """
    (r1, c1), (r2, c2) = src, dst
    if r1 == r2:
        step = 1 if c2 > c1 else -1
        between = [(r1, c) for c in range(c1 + step, c2, step)]
    elif c1 == c2:
        step = 1 if r2 > r1 else -1
        between = [(r, c1) for r in range(r1 + step, r2, step)]
    else:
        return None
    return sum(1 for r, c in between if board.at(r, c) is not None)


def can_cannon_capture(board: Board, src: Position, dst: Position) -> bool:
    # Face and color of the screen do not matter; the caller checks the target.
    if abs(src[0] - dst[0]) + abs(src[1] - dst[1]) < 2:
        return False
    return count_screens(board, src, dst) == 1


def check_move(board: Board, src: Position, dst: Position, mover: Color) -> None:
    """Raise ``IllegalMoveError`` describing why ``src -> dst`` is illegal for ``mover``."""
    piece = board.at(*src)
    target = board.at(*dst)
    if piece is None:
        raise IllegalMoveError('There is no piece on that cell')
    if not piece.face_up:
        raise IllegalMoveError('Face-down pieces must be revealed, not moved')
    if piece.color != mover:
        raise IllegalMoveError(f"That {piece.color.value} piece is not yours")
    if src == dst:
        raise IllegalMoveError('A piece must move to a different cell')

    if target is not None:
        if not target.face_up:
            raise IllegalMoveError('Cannot capture a face-down piece')
        if target.color == piece.color:
            raise IllegalMoveError('Cannot capture your own piece')

    if piece.type is PieceType.CANNON:
        if target is None:
            if not is_orthogonal_adjacent(src, dst):
                raise IllegalMoveError('The cannon moves one cell orthogonally')
            return
        if not can_cannon_capture(board, src, dst):
            raise IllegalMoveError('The cannon must jump exactly one piece to capture')
        return

    if not is_orthogonal_adjacent(src, dst):
        raise IllegalMoveError(f"The {piece.type.value.lower()} moves one cell orthogonally")
    if target is not None and not can_capture(piece, target):
        raise IllegalMoveError(f"{piece.label()} cannot capture {target.label()}")


def is_legal_move(board: Board, src: Position, dst: Position, mover: Color) -> bool:
    try:
        check_move(board, src, dst, mover)
    except IllegalMoveError:
        return False
    return True


def apply_move(board: Board, src: Position, dst: Position) -> Optional[Piece]:
    """Move the piece at ``src`` onto ``dst``. Returns the captured piece, if any.

    Legality is the caller's job.
    """
    captured = board.clear(*dst)
    board.set(*dst, board.clear(*src))
    return captured


def legal_destinations(board: Board, row: int, col: int) -> List[Position]:
    piece = board.at(row, col)
    if piece is None or not piece.face_up:
        return []
    src = (row, col)
    return [
        (r, c)
        for r in range(ROWS)
        for c in range(COLS)
        if is_legal_move(board, src, (r, c), piece.color)
    ]


def has_any_legal_action(board: Board, color: Color) -> bool:
    for row, col, piece in board.occupied():
        if not piece.face_up:
            return True
    for row, col, piece in board.occupied():
        if piece.color == color and legal_destinations(board, row, col):
            return True
    return False


def check_terminal(board: Board, color_to_move: Optional[Color]) -> TerminalResult:
    """Decide whether the game has ended with ``color_to_move`` about to play.

    A color with no pieces left anywhere has lost. So has the color to move
    when it has neither a reveal nor a legal move available.
    """
    if color_to_move is None:
        return TerminalResult(False, None)
    for color in (color_to_move, color_to_move.opponent):
        if board.count(color) == 0:
            return TerminalResult(True, color.opponent)
    if not has_any_legal_action(board, color_to_move):
        return TerminalResult(True, color_to_move.opponent)
    return TerminalResult(False, None)
