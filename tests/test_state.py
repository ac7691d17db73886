import random

import pytest

from banqi.models import Board, Color, PIECES_PER_COLOR
from banqi.services.games import rules
from banqi.services.games.errors import (
    GameOverError,
    IllegalMoveError,
    IllegalRevealError,
    NotYourTurnError,
    OutOfBoundsError,
)
from banqi.services.games.state import BanqiGame, Phase

from conftest import dealt_board, place

RED, BLACK = Color.RED, Color.BLACK


def test_new_game_awaits_first_reveal():
    game = BanqiGame(rng=random.Random(1))
    assert game.phase is Phase.AWAITING_FIRST_REVEAL
    assert game.current_color is None
    assert game.winner is None
    assert game.turn_count == 0
    assert game.board.count() == 32


def test_first_reveal_binds_revealed_color_and_passes_turn():
    game = BanqiGame(board=dealt_board(seed=5, at_origin=('SOLDIER', 'red')))
    action = game.reveal(0, 0)
    assert action['bound_color'] == 'red'
    assert action['piece']['type'] == 'SOLDIER'
    assert game.phase is Phase.IN_PROGRESS
    assert game.current_color is BLACK
    assert game.turn_count == 1

    second = game.reveal(0, 1, BLACK)
    assert second['bound_color'] is None
    assert game.turn_count == 2
    assert game.current_color is RED


def test_first_reveal_of_black_piece():
    game = BanqiGame(board=dealt_board(seed=5, at_origin=('GENERAL', 'black')))
    action = game.reveal(0, 0, None)
    assert action['bound_color'] == 'black'
    assert game.current_color is RED


def test_reveal_rejections_leave_state_untouched():
    game = BanqiGame(board=dealt_board(seed=2))
    game.reveal(0, 0)
    before = game.to_dict()

    with pytest.raises(IllegalRevealError):
        game.reveal(0, 0, game.current_color)
    with pytest.raises(IllegalRevealError):
        game.reveal(1, 1, game.current_color.opponent)
    with pytest.raises(OutOfBoundsError):
        game.reveal(4, 0, game.current_color)
    assert game.to_dict() == before


def test_moving_face_down_piece_is_illegal_for_anyone():
    game = BanqiGame(board=dealt_board(seed=3))
    game.reveal(0, 0)
    for requester in (RED, BLACK, None):
        with pytest.raises(IllegalMoveError):
            game.move((1, 1), (1, 2), requester)
    assert game.turn_count == 1


def test_move_out_of_turn_is_rejected():
    board = Board()
    place(board, 0, 0, 'CHARIOT', RED, face_up=False)
    place(board, 3, 7, 'SOLDIER', BLACK, face_up=False)
    game = BanqiGame(board=board)
    game.reveal(0, 0)
    assert game.current_color is BLACK
    with pytest.raises(NotYourTurnError):
        game.move((0, 0), (0, 1), RED)
    assert game.board.at(0, 0) is not None
    assert game.turn_count == 1


def test_illegal_move_by_current_color():
    board = Board()
    place(board, 0, 0, 'CHARIOT', RED)
    place(board, 0, 1, 'GENERAL', BLACK)
    place(board, 3, 7, 'SOLDIER', BLACK, face_up=False)
    game = BanqiGame(board=board)
    game.phase = Phase.IN_PROGRESS
    game.current_color = RED
    with pytest.raises(IllegalMoveError):
        game.move((0, 0), (0, 1), RED)
    with pytest.raises(IllegalMoveError):
        game.move((0, 0), (2, 0), RED)


def test_capturing_last_piece_ends_game():
    board = Board()
    place(board, 0, 0, 'CHARIOT', RED)
    place(board, 0, 1, 'HORSE', BLACK)
    game = BanqiGame(board=board)
    game.phase = Phase.IN_PROGRESS
    game.current_color = RED

    action = game.move((0, 0), (0, 1), RED)
    assert action['captured']['type'] == 'HORSE'
    assert game.phase is Phase.OVER
    assert game.winner is RED
    assert [p.type.value for p in game.captured] == ['HORSE']

    with pytest.raises(GameOverError):
        game.reveal(1, 1, BLACK)
    with pytest.raises(GameOverError):
        game.move((0, 1), (0, 2), BLACK)


def test_stalemate_after_move_ends_game():
    board = Board()
    place(board, 0, 0, 'SOLDIER', BLACK)
    place(board, 0, 2, 'HORSE', RED)
    place(board, 1, 0, 'HORSE', RED)
    game = BanqiGame(board=board)
    game.phase = Phase.IN_PROGRESS
    game.current_color = RED
    game.move((0, 2), (0, 1), RED)
    assert game.phase is Phase.OVER
    assert game.winner is RED


def test_cannon_capture_through_game():
    board = Board()
    place(board, 0, 0, 'CANNON', RED)
    place(board, 0, 1, 'SOLDIER', BLACK, face_up=False)
    place(board, 0, 2, 'ADVISOR', BLACK)
    game = BanqiGame(board=board)
    game.phase = Phase.IN_PROGRESS
    game.current_color = RED
    game.move((0, 0), (0, 2), RED)
    assert game.board.at(0, 2).type.value == 'CANNON'
    assert game.board.at(0, 0) is None
    assert game.current_color is BLACK
    assert game.phase is Phase.IN_PROGRESS


def test_reset_starts_over():
    game = BanqiGame(board=dealt_board(seed=9), rng=random.Random(9))
    game.reveal(0, 0)
    game.reset()
    assert game.phase is Phase.AWAITING_FIRST_REVEAL
    assert game.current_color is None
    assert game.turn_count == 0
    assert game.captured == []
    assert game.board.count(face_up=True) == 0


def _random_action(game, rng):
    color = game.current_color
    options = []
    for row, col, piece in game.board.occupied():
        if not piece.face_up:
            options.append(('reveal', (row, col), None))
        elif piece.color == color:
            for dst in rules.legal_destinations(game.board, row, col):
                options.append(('move', (row, col), dst))
    return rng.choice(options)


@pytest.mark.parametrize('seed', [1, 2, 3])
def test_random_play_conserves_pieces_and_never_unflips(seed):
    rng = random.Random(seed)
    game = BanqiGame(rng=rng)
    seen_up = set()
    while not game.is_over and game.turn_count < 400:
        kind, src, dst = _random_action(game, rng)
        if kind == 'reveal':
            game.reveal(*src, game.current_color)
        else:
            game.move(src, dst, game.current_color)

        for color in Color:
            captured = sum(1 for p in game.captured if p.color == color)
            assert game.board.count(color) + captured == PIECES_PER_COLOR
        assert game.board.count() + len(game.captured) == 32
        up_now = {id(p) for _, _, p in game.board.occupied() if p.face_up}
        captured_ids = {id(p) for p in game.captured}
        assert seen_up - captured_ids <= up_now
        seen_up |= up_now
