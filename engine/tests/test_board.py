"""Tests for board representation and coordinate helpers."""

import pytest
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from checkers.core.board import (
    Board, Point, INVALID, EMPTY, WHITE_MAN, WHITE_KING, BLACK_MAN, BLACK_KING,
    NUM_SQUARES, INVALID_POINT, bit, popcount, lsb, iter_bits,
    to_index, to_point, point_index, middle,
    is_black, is_white, is_king, is_piece
)


class TestBitOperations:
    def test_bit(self):
        assert bit(0) == 1
        assert bit(5) == 32

    def test_popcount(self):
        assert popcount(0) == 0
        assert popcount(0b1011) == 3

    def test_lsb(self):
        assert lsb(0) == -1
        assert lsb(0b1000) == 3

    def test_iter_bits(self):
        assert list(iter_bits(0b10101)) == [0, 2, 4]


class TestCoordinates:
    def test_index_round_trip(self):
        for i in range(NUM_SQUARES):
            x, y = to_point(i)
            assert to_index(x, y) == i

    def test_point_round_trip(self):
        for y in range(8):
            for x in range(8):
                if (x + y) % 2 == 1:
                    assert to_point(to_index(x, y)) == (x, y)

    def test_known_squares(self):
        assert to_point(0) == Point(1, 0)
        assert to_point(4) == Point(0, 1)
        assert to_point(8) == Point(1, 2)
        assert to_point(12) == Point(0, 3)
        assert to_point(31) == Point(6, 7)

    def test_light_square_is_invalid(self):
        assert to_index(0, 0) == -1
        assert to_index(3, 3) == -1

    def test_off_board_is_invalid(self):
        assert to_index(-1, 0) == -1
        assert to_index(8, 1) == -1
        assert to_index(1, 8) == -1

    def test_invalid_index_gives_invalid_point(self):
        assert to_point(-1) == INVALID_POINT
        assert to_point(32) == INVALID_POINT
        assert to_point(None) == INVALID_POINT

    def test_point_index_none(self):
        assert point_index(None) == -1

    def test_middle_of_jump(self):
        # (1, 2) -> (3, 4) jumps over (2, 3)
        assert middle(8, 17) == Point(2, 3)
        assert point_index(middle(8, 17)) == 13

    def test_middle_of_step_is_invalid(self):
        assert middle(8, 12) == INVALID_POINT

    def test_middle_out_of_range(self):
        assert middle(-1, 8) == INVALID_POINT
        assert middle(8, 40) == INVALID_POINT


class TestPredicates:
    def test_colors(self):
        assert is_black(BLACK_MAN) and is_black(BLACK_KING)
        assert is_white(WHITE_MAN) and is_white(WHITE_KING)
        assert not is_black(WHITE_MAN)
        assert not is_white(EMPTY)

    def test_kings(self):
        assert is_king(BLACK_KING) and is_king(WHITE_KING)
        assert not is_king(BLACK_MAN)
        assert not is_king(INVALID)

    def test_is_piece(self):
        assert is_piece(WHITE_MAN)
        assert not is_piece(EMPTY)
        assert not is_piece(INVALID)

    def test_colors_differ_in_one_bit(self):
        assert BLACK_MAN ^ WHITE_MAN == 0b010
        assert BLACK_KING ^ WHITE_KING == 0b010


class TestBoard:
    def test_starting_position(self):
        board = Board()
        for i in range(12):
            assert board.get(i) == BLACK_MAN
        for i in range(12, 20):
            assert board.get(i) == EMPTY
        for i in range(20, 32):
            assert board.get(i) == WHITE_MAN

    def test_get_out_of_range(self):
        board = Board()
        assert board.get(-1) == INVALID
        assert board.get(32) == INVALID

    def test_get_at(self):
        board = Board()
        assert board.get_at(1, 0) == BLACK_MAN
        assert board.get_at(0, 0) == INVALID
        assert board.get_at(8, 8) == INVALID
        assert board.get_at(0, 7) == WHITE_MAN

    def test_set(self):
        board = Board.empty()
        board.set(14, WHITE_KING)
        assert board.get(14) == WHITE_KING
        board.set(14, BLACK_MAN)
        assert board.get(14) == BLACK_MAN
        board.set(14, EMPTY)
        assert board.get(14) == EMPTY

    def test_set_invalid_index_is_noop(self):
        board = Board()
        before = board.copy()
        board.set(-1, WHITE_KING)
        board.set(32, WHITE_KING)
        assert board == before

    def test_set_unknown_code_empties_square(self):
        board = Board()
        board.set(0, 3)
        assert board.get(0) == EMPTY
        board.set(1, -4)
        assert board.get(1) == EMPTY

    def test_copy_is_independent(self):
        board = Board()
        copy = board.copy()
        copy.set(0, EMPTY)
        assert board.get(0) == BLACK_MAN

        board.set(31, EMPTY)
        assert copy.get(31) == WHITE_MAN

    def test_reset(self):
        board = Board.empty()
        board.set(16, BLACK_KING)
        board.reset()
        assert board == Board()

    def test_find_order(self):
        board = Board()
        assert board.find(BLACK_MAN) == [to_point(i) for i in range(12)]
        assert board.find(BLACK_KING) == []

    def test_pieces_men_then_kings(self):
        board = Board.empty()
        board.set(3, BLACK_KING)
        board.set(20, BLACK_MAN)
        assert board.pieces(True) == [to_point(20), to_point(3)]
        assert board.pieces(False) == []

    def test_counts(self):
        board = Board()
        assert board.count(BLACK_MAN) == 12
        assert board.count(WHITE_MAN) == 12
        assert board.count(EMPTY) == 8
        assert board.count_side(True) == 12
        assert board.count_side(False) == 12

    def test_mask_unknown_code(self):
        assert Board().mask(3) == 0

    def test_to_array(self):
        grid = Board().to_array()
        assert grid.shape == (8, 8)
        assert grid[0, 0] == INVALID
        assert grid[0, 1] == BLACK_MAN
        assert grid[7, 0] == WHITE_MAN
        assert grid[3, 0] == EMPTY
        assert (grid == INVALID).sum() == 32

    def test_equality_and_hash(self):
        a = Board()
        b = Board()
        assert a == b
        assert hash(a) == hash(b)
        b.set(12, BLACK_MAN)
        assert a != b

    def test_repr(self):
        text = repr(Board())
        assert 'b' in text
        assert 'w' in text
