from enum import Enum
import random

from banqi.services.games.errors import OutOfBoundsError

ROWS = 4
COLS = 8


class Color(str, Enum):
    RED = 'red'
    BLACK = 'black'

    @property
    def opponent(self):
        return Color.BLACK if self is Color.RED else Color.RED


class PieceType(str, Enum):
    GENERAL = 'GENERAL'
    ADVISOR = 'ADVISOR'
    ELEPHANT = 'ELEPHANT'
    CHARIOT = 'CHARIOT'
    HORSE = 'HORSE'
    CANNON = 'CANNON'
    SOLDIER = 'SOLDIER'


# type -> (rank, copies per color)
PIECE_SET = {
    PieceType.GENERAL: (7, 1),
    PieceType.ADVISOR: (6, 2),
    PieceType.ELEPHANT: (5, 2),
    PieceType.CHARIOT: (4, 2),
    PieceType.HORSE: (3, 2),
    PieceType.CANNON: (2, 2),
    PieceType.SOLDIER: (1, 5),
}

PIECES_PER_COLOR = sum(count for _, count in PIECE_SET.values())


class Piece:
    """A single Banqi piece.

    Type and color are fixed at construction. The face-up flag only ever
    goes from False to True, through ``flip``.
    """

    def __init__(self, piece_type, color, face_up=False):
        self._type = PieceType(piece_type)
        self._color = Color(color)
        self._face_up = bool(face_up)

    @property
    def type(self):
        return self._type

    @property
    def color(self):
        return self._color

    @property
    def rank(self):
        return PIECE_SET[self._type][0]

    @property
    def face_up(self):
        return self._face_up

    def flip(self):
        self._face_up = True

    def label(self):
        return f"{self._color.name} {self._type.value}"

    def to_dict(self, reveal_all=False):
        if not self._face_up and not reveal_all:
            return {'face_up': False}
        return {
            'type': self._type.value,
            'color': self._color.value,
            'rank': self.rank,
            'face_up': self._face_up,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(data['type'], data['color'], face_up=data.get('face_up', False))

    def __repr__(self):
        state = 'up' if self._face_up else 'down'
        return f"<Piece {self.label()} {state}>"


def full_piece_set():
    """Return the 32 face-down pieces of a new game, 16 per color."""
    pieces = []
    for color in (Color.RED, Color.BLACK):
        for piece_type, (_, count) in PIECE_SET.items():
            pieces.extend(Piece(piece_type, color) for _ in range(count))
    return pieces


class Board:
    """The 4x8 grid. Each cell holds one ``Piece`` or ``None``."""

    def __init__(self, cells=None):
        if cells is None:
            cells = [[None] * COLS for _ in range(ROWS)]
        if len(cells) != ROWS or any(len(row) != COLS for row in cells):
            raise ValueError(f"board must be {ROWS}x{COLS}")
        self._cells = [list(row) for row in cells]

    @staticmethod
    def in_bounds(row, col):
        return 0 <= row < ROWS and 0 <= col < COLS

    def _check(self, row, col):
        if not (isinstance(row, int) and isinstance(col, int)) or not self.in_bounds(row, col):
            raise OutOfBoundsError(f"cell ({row}, {col}) is off the {ROWS}x{COLS} board")

    def at(self, row, col):
        self._check(row, col)
        return self._cells[row][col]

    def set(self, row, col, piece):
        self._check(row, col)
        self._cells[row][col] = piece

    def clear(self, row, col):
        self._check(row, col)
        piece = self._cells[row][col]
        self._cells[row][col] = None
        return piece

    def flip(self, row, col):
        piece = self.at(row, col)
        if piece is not None:
            piece.flip()
        return piece

    def occupied(self):
        """Yield ``(row, col, piece)`` for every non-empty cell."""
        for r in range(ROWS):
            for c in range(COLS):
                piece = self._cells[r][c]
                if piece is not None:
                    yield r, c, piece

    def count(self, color=None, face_up=None):
        total = 0
        for _, _, piece in self.occupied():
            if color is not None and piece.color != color:
                continue
            if face_up is not None and piece.face_up != face_up:
                continue
            total += 1
        return total

    def to_dict(self, reveal_all=False):
        return [
            [cell.to_dict(reveal_all=reveal_all) if cell is not None else None for cell in row]
            for row in self._cells
        ]

    @classmethod
    def from_dict(cls, data):
        """Rebuild a board from ``to_dict(reveal_all=True)`` output.

        Broadcast payloads hide face-down pieces and cannot be restored.
        """
        cells = []
        for row in data:
            cells.append([])
            for cell in row:
                if cell is not None and 'type' not in cell:
                    raise ValueError('face-down cell carries no piece; serialize with reveal_all=True')
                cells[-1].append(Piece.from_dict(cell) if cell is not None else None)
        return cls(cells)


def create_shuffled_board(rng=None):
    """Deal the full piece set face down in a uniformly random order."""
    pieces = full_piece_set()
    (rng or random).shuffle(pieces)
    return Board([pieces[r * COLS:(r + 1) * COLS] for r in range(ROWS)])
