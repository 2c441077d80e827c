"""Tests for game state: turns, capture chains, promotion and serialization."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from checkers.core.board import (
    Board, EMPTY, NO_CAPTURE, WHITE_MAN, WHITE_KING, BLACK_MAN, BLACK_KING
)
from checkers.core.moves import MoveGenerator
from checkers.core.state import GameState


NEW_GAME_STRING = "6" * 12 + "0" * 8 + "4" * 12 + "0" + "-1"


def make_state(pieces: dict[int, int], black_to_move: bool = False) -> GameState:
    board = Board.empty()
    for index, code in pieces.items():
        board.set(index, code)
    return GameState(board=board, black_to_move=black_to_move)


@pytest.fixture
def chain_state():
    """White man on 25 can capture 21 and then 13 in one turn."""
    return make_state({
        25: WHITE_MAN, 31: WHITE_MAN,
        21: BLACK_MAN, 13: BLACK_MAN, 0: BLACK_MAN,
    })


class TestNewGame:
    def test_initial_values(self):
        state = GameState.new_game()
        assert not state.black_to_move
        assert not state.is_p1_turn()
        assert state.pending_capture_index == NO_CAPTURE
        assert state.ply == 0
        assert not state.is_game_over()
        assert state.get_winner() is None

    def test_initial_pieces(self):
        board = GameState.new_game().get_board()
        assert board.count_side(True) == 12
        assert board.count_side(False) == 12

    def test_black_cannot_move_first(self):
        state = GameState.new_game()
        assert not state.move(8, 12)
        assert state.ply == 0

    def test_restart(self):
        state = GameState.new_game()
        state.move(21, 17)
        state.restart()
        assert state == GameState.new_game()
        assert state.ply == 0
        assert state.history == []


class TestMove:
    def test_opening_exchange(self):
        state = GameState.new_game()
        assert state.move(21, 17)
        assert state.black_to_move
        assert state.move(8, 12)
        assert not state.black_to_move
        assert not state.is_game_over()
        board = state.get_board()
        assert board.count_side(True) + board.count_side(False) == 24
        assert state.ply == 2

    def test_move_between_points(self):
        state = GameState.new_game()
        assert state.move_between((2, 5), (3, 4))
        assert state.get_board().get(17) == WHITE_MAN

    def test_move_between_invalid_points(self):
        state = GameState.new_game()
        assert not state.move_between(None, (3, 4))
        assert not state.move_between((0, 0), (1, 1))

    def test_illegal_move_leaves_state_untouched(self):
        state = GameState.new_game()
        before = state.get_game_state()
        assert not state.move(21, 13)
        assert not state.move(28, 24)
        assert state.get_game_state() == before
        assert state.ply == 0
        assert state.history == []

    def test_capture_removes_piece(self):
        state = make_state({21: WHITE_MAN, 17: BLACK_MAN, 0: BLACK_MAN})
        assert state.move(21, 14)
        board = state.get_board()
        assert board.get(17) == EMPTY
        assert board.get(21) == EMPTY
        assert board.get(14) == WHITE_MAN
        assert state.black_to_move

    def test_mandatory_capture(self):
        state = make_state({21: WHITE_MAN, 17: BLACK_MAN, 27: WHITE_MAN})
        assert not state.move(27, 23)
        assert state.move(21, 14)

    def test_board_snapshot_is_a_copy(self):
        state = GameState.new_game()
        snapshot = state.get_board()
        snapshot.set(21, EMPTY)
        assert state.get_board().get(21) == WHITE_MAN


class TestCaptureChain:
    def test_chain_keeps_turn(self, chain_state):
        assert chain_state.move(25, 16)
        assert chain_state.pending_capture_index == 16
        assert not chain_state.black_to_move

    def test_other_piece_locked_out(self, chain_state):
        chain_state.move(25, 16)
        assert not chain_state.move(31, 27)

    def test_plain_step_locked_out(self, chain_state):
        chain_state.move(25, 16)
        assert not chain_state.move(16, 12)

    def test_chain_ends(self, chain_state):
        chain_state.move(25, 16)
        assert chain_state.move(16, 9)
        assert chain_state.black_to_move
        assert chain_state.pending_capture_index == NO_CAPTURE
        assert chain_state.get_board().count_side(True) == 1

    def test_legal_moves_during_chain(self, chain_state):
        chain_state.move(25, 16)
        moves = chain_state.legal_moves()
        assert [(m.start_index, m.end_index) for m in moves] == [(16, 9)]


class TestPromotion:
    def test_white_man_crowned(self):
        state = make_state({5: WHITE_MAN, 28: BLACK_MAN})
        assert state.move(5, 0)
        assert state.get_board().get(0) == WHITE_KING
        assert state.black_to_move

    def test_black_man_crowned(self):
        state = make_state({25: BLACK_MAN, 3: WHITE_MAN}, black_to_move=True)
        assert state.move(25, 29)
        assert state.get_board().get(29) == BLACK_KING
        assert not state.black_to_move

    def test_promotion_ends_turn(self):
        # White man jumps 7 to reach the back row; as a king it could jump 6 next
        state = make_state({11: WHITE_MAN, 7: BLACK_MAN, 6: BLACK_MAN})
        assert state.move(11, 2)
        board = state.get_board()
        assert board.get(2) == WHITE_KING
        assert MoveGenerator.get_skips(board, 2)
        assert state.black_to_move
        assert state.pending_capture_index == NO_CAPTURE


class TestUndo:
    def test_undo_restores_position(self):
        state = GameState.new_game()
        state.move(21, 17)
        state.move(8, 12)
        assert state.undo_move()
        assert state.undo_move()
        assert state == GameState.new_game()
        assert state.ply == 0

    def test_undo_capture_chain(self, chain_state):
        before = chain_state.get_game_state()
        chain_state.move(25, 16)
        chain_state.move(16, 9)
        chain_state.undo_move()
        assert chain_state.pending_capture_index == 16
        chain_state.undo_move()
        assert chain_state.get_game_state() == before

    def test_nothing_to_undo(self):
        assert not GameState.new_game().undo_move()


class TestGameOver:
    def test_stalemate(self):
        # White man in the corner: its step and its jump are both blocked
        state = make_state({28: WHITE_MAN, 24: BLACK_MAN, 21: BLACK_MAN})
        assert state.is_game_over()
        assert state.get_winner() == 'black'

    def test_not_over_when_other_side_stuck(self):
        state = make_state({28: WHITE_MAN, 24: BLACK_MAN, 21: BLACK_MAN}, black_to_move=True)
        assert not state.is_game_over()

    def test_no_pieces_left(self):
        state = make_state({5: BLACK_MAN})
        assert state.is_game_over()
        assert state.get_winner() == 'black'

        state = make_state({20: WHITE_KING}, black_to_move=True)
        assert state.is_game_over()
        assert state.get_winner() == 'white'

    def test_empty_board(self):
        assert make_state({}).is_game_over()

    def test_recomputed_after_change(self):
        state = make_state({21: WHITE_MAN, 17: BLACK_MAN})
        assert not state.is_game_over()
        state.move(21, 14)
        assert state.is_game_over()
        assert state.get_winner() == 'white'


class TestSerialization:
    def test_new_game_string(self):
        assert GameState.new_game().get_game_state() == NEW_GAME_STRING

    def test_round_trip(self):
        state = GameState.new_game()
        state.move(21, 17)
        state.move(8, 12)
        restored = GameState.from_string(state.get_game_state())
        assert restored == state

    def test_round_trip_mid_chain(self, chain_state):
        chain_state.move(25, 16)
        text = chain_state.get_game_state()
        assert text.endswith("016")
        restored = GameState.from_string(text)
        assert restored.pending_capture_index == 16
        assert restored == chain_state

    def test_black_to_move_flag(self):
        state = GameState.new_game()
        state.move(21, 17)
        assert state.get_game_state()[32] == '1'

    def test_empty_and_none(self):
        assert GameState.from_string("") == GameState.new_game()
        assert GameState.from_string(None) == GameState.new_game()

    def test_short_string_keeps_reset_values(self):
        state = GameState.from_string("0000")
        board = state.get_board()
        for i in range(4):
            assert board.get(i) == EMPTY
        assert board.get(4) == BLACK_MAN
        assert not state.black_to_move
        assert state.pending_capture_index == NO_CAPTURE

    def test_malformed_square_ignored(self):
        text = "x" + NEW_GAME_STRING[1:]
        state = GameState.from_string(text)
        assert state.get_board().get(0) == BLACK_MAN

    def test_unknown_occupant_digit_ignored(self):
        for digit in "12389":
            state = GameState.from_string(digit + NEW_GAME_STRING[1:])
            assert state.get_board().get(0) == BLACK_MAN
        # Squares 12-19 start empty and stay so
        state = GameState.from_string(NEW_GAME_STRING[:12] + "9" + NEW_GAME_STRING[13:])
        assert state.get_board().get(12) == EMPTY

    def test_malformed_tail(self):
        text = NEW_GAME_STRING[:32] + "1zz"
        state = GameState.from_string(text)
        assert state.black_to_move
        assert state.pending_capture_index == NO_CAPTURE

    def test_out_of_range_pending(self):
        state = GameState.from_string(NEW_GAME_STRING[:32] + "040")
        assert state.pending_capture_index == NO_CAPTURE

    def test_pending_on_opponent_piece_dropped(self):
        # Square 5 holds a black man but white is to move
        state = GameState.from_string(NEW_GAME_STRING[:32] + "05")
        assert state.pending_capture_index == NO_CAPTURE
        assert len(state.legal_moves()) == 7
        assert not state.is_game_over()

    def test_pending_without_capture_dropped(self):
        # White man on 21 has nothing to jump
        state = GameState.from_string(NEW_GAME_STRING[:32] + "021")
        assert state.pending_capture_index == NO_CAPTURE

    def test_pending_on_empty_square_dropped(self):
        state = GameState.from_string(NEW_GAME_STRING[:32] + "016")
        assert state.pending_capture_index == NO_CAPTURE

    def test_set_game_state_clears_history(self):
        state = GameState.new_game()
        state.move(21, 17)
        state.set_game_state(NEW_GAME_STRING)
        assert state.history == []
        assert state == GameState.new_game()


class TestEquality:
    def test_history_not_compared(self):
        a = GameState.new_game()
        a.move(21, 17)
        b = GameState.from_string(a.get_game_state())
        assert a == b
        assert hash(a) == hash(b)

    def test_copy_is_independent(self):
        state = GameState.new_game()
        copy = state.copy()
        copy.move(21, 17)
        assert state == GameState.new_game()
        assert copy.history
        assert not state.history
