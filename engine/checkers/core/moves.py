"""
Move generation for checkers.

Handles plain diagonal steps and two-step captures ("skips") from a
single square, filtered against the current board occupancy.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from .board import (
    Board, Point, EMPTY, BLACK_MAN, WHITE_MAN, NO_CAPTURE,
    is_black, is_king, is_piece, is_valid_index, middle, point_index,
    to_point
)

# Weight of a move that could not be applied
WEIGHT_INVALID = float('-inf')


@dataclass
class Move:
    """
    A start -> end transition between two square indices.

    The weight is scratch space for the move selector and is never part
    of the game state.
    """
    start_index: int
    end_index: int
    weight: float = 0.0

    @property
    def start(self) -> Point:
        return to_point(self.start_index)

    @property
    def end(self) -> Point:
        return to_point(self.end_index)

    @property
    def is_capture(self) -> bool:
        return middle(self.start_index, self.end_index)[0] >= 0

    def change_weight(self, delta: float) -> None:
        self.weight += delta


class MoveGenerator:
    """Generates candidate steps, plain moves and captures from a square."""

    @staticmethod
    def candidate_steps(board: Optional[Board], index: int, step: int) -> list[Point]:
        """
        Diagonal targets at distance `step` for the occupant of `index`.

        Men only head toward the opponent's back rank; kings use all four
        diagonals. Targets are not checked against the board edges.
        """
        if board is None or not is_valid_index(index):
            return []
        code = board.get(index)
        x, y = to_point(index)
        points = []
        king = is_king(code)
        if king or code == BLACK_MAN:
            points.append(Point(x + step, y + step))
            points.append(Point(x - step, y + step))
        if king or code == WHITE_MAN:
            points.append(Point(x + step, y - step))
            points.append(Point(x - step, y - step))
        return points

    @staticmethod
    def get_moves(board: Optional[Board], index: int) -> list[Point]:
        """Empty dark squares one diagonal step away that the piece may move to."""
        if board is None or not is_valid_index(index):
            return []
        return [
            p for p in MoveGenerator.candidate_steps(board, index, 1)
            if board.get_at(p.x, p.y) == EMPTY
        ]

    @staticmethod
    def get_skips(board: Optional[Board], index: int) -> list[Point]:
        """Landing squares of the captures available to the piece at `index`."""
        if board is None or not is_valid_index(index):
            return []
        return [
            p for p in MoveGenerator.candidate_steps(board, index, 2)
            if MoveGenerator.is_valid_skip(board, index, point_index(p))
        ]

    @staticmethod
    def is_valid_skip(board: Optional[Board], start_index: int, end_index: int) -> bool:
        """
        Check whether start -> end jumps an opposing piece onto an empty square.

        Direction of travel is not considered here.
        """
        if board is None:
            return False
        if board.get(end_index) != EMPTY:
            return False
        code = board.get(start_index)
        mid_code = board.get(point_index(middle(start_index, end_index)))
        if not is_piece(code) or not is_piece(mid_code):
            return False
        return is_black(code) != is_black(mid_code)

    @staticmethod
    def has_captures(board: Board, black: bool) -> bool:
        """Whether any piece of the given side has a capture available."""
        for p in board.pieces(black):
            if MoveGenerator.get_skips(board, point_index(p)):
                return True
        return False

    @staticmethod
    def get_legal_moves(
        board: Board,
        black: bool,
        pending_capture_index: int = NO_CAPTURE
    ) -> list[Move]:
        """
        All legal moves for one side.

        Rules:
        1. During a capture chain only captures from the locked piece count
        2. If any piece can capture, plain moves are excluded
        3. Otherwise every plain move of every piece is legal
        """
        if is_valid_index(pending_capture_index):
            return [
                Move(pending_capture_index, point_index(p))
                for p in MoveGenerator.get_skips(board, pending_capture_index)
            ]

        pieces = [point_index(p) for p in board.pieces(black)]

        captures = [
            Move(idx, point_index(p))
            for idx in pieces
            for p in MoveGenerator.get_skips(board, idx)
        ]
        if captures:
            return captures

        return [
            Move(idx, point_index(p))
            for idx in pieces
            for p in MoveGenerator.get_moves(board, idx)
        ]


# Convenience functions
def get_moves(board: Board, index: int) -> list[Point]:
    return MoveGenerator.get_moves(board, index)


def get_skips(board: Board, index: int) -> list[Point]:
    return MoveGenerator.get_skips(board, index)


def is_valid_skip(board: Board, start_index: int, end_index: int) -> bool:
    return MoveGenerator.is_valid_skip(board, start_index, end_index)


def get_legal_moves(board: Board, black: bool, pending_capture_index: int = NO_CAPTURE) -> list[Move]:
    """Get all legal moves for one side."""
    return MoveGenerator.get_legal_moves(board, black, pending_capture_index)
