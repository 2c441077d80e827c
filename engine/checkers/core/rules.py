"""
Move legality and piece safety.

A move is checked against, in order: index bounds, the capture chain
lock, the destination, the mover's colour, the jumped piece's colour,
the move geometry and finally the mandatory capture rule.
"""

from __future__ import annotations
from typing import Optional

from .board import (
    Board, Point, EMPTY, INVALID, BLACK_MAN, WHITE_MAN, NO_CAPTURE,
    is_black, is_white, is_king, is_valid_index, middle, point_index, to_point
)
from .moves import MoveGenerator

# Unit steps toward the four diagonal neighbours
DIAGONALS = ((1, 1), (-1, 1), (1, -1), (-1, -1))


class MoveValidator:
    """Decides whether a single start -> end transition is legal."""

    @staticmethod
    def is_valid_move(
        board: Optional[Board],
        black_to_move: bool,
        start_index: int,
        end_index: int,
        pending_capture_index: int = NO_CAPTURE
    ) -> bool:
        if board is None or not is_valid_index(start_index) or not is_valid_index(end_index):
            return False
        if start_index == end_index:
            return False
        if is_valid_index(pending_capture_index) and start_index != pending_capture_index:
            return False
        if not MoveValidator._validate_codes(board, black_to_move, start_index, end_index):
            return False
        return MoveValidator._validate_distance(board, black_to_move, start_index, end_index)

    @staticmethod
    def _validate_codes(board: Board, black_to_move: bool, start_index: int, end_index: int) -> bool:
        """Destination empty, mover owned by the side to move, jumped piece owned by the other."""
        if board.get(end_index) != EMPTY:
            return False

        code = board.get(start_index)
        if black_to_move and not is_black(code):
            return False
        if not black_to_move and not is_white(code):
            return False

        mid_code = board.get(point_index(middle(start_index, end_index)))
        if mid_code == INVALID:
            # Not a jump
            return True
        return is_white(mid_code) if black_to_move else is_black(mid_code)

    @staticmethod
    def _validate_distance(board: Board, black_to_move: bool, start_index: int, end_index: int) -> bool:
        """Diagonal of length 1 or 2, forward for men, and no skipped capture elsewhere."""
        start = to_point(start_index)
        end = to_point(end_index)
        dx = end.x - start.x
        dy = end.y - start.y
        if abs(dx) != abs(dy) or abs(dx) > 2 or dx == 0:
            return False

        code = board.get(start_index)
        if (code == WHITE_MAN and dy > 0) or (code == BLACK_MAN and dy < 0):
            return False

        # A plain step is only allowed when no piece of this side can capture
        if middle(start_index, end_index) == (-1, -1):
            if MoveGenerator.has_captures(board, black_to_move):
                return False
        return True

    @staticmethod
    def is_safe(board: Optional[Board], point: Optional[tuple[int, int]]) -> bool:
        """
        Check that no opposing piece can capture the piece at `point` next turn.

        Empty squares and points off the board are always safe.
        """
        if board is None or point is None:
            return True
        index = point_index(point)
        if index < 0:
            return True
        code = board.get(index)
        if code == EMPTY:
            return True

        black = is_black(code)
        x, y = point
        for ddx, ddy in DIAGONALS:
            nx, ny = x + ddx, y + ddy
            attacker_index = point_index((nx, ny))
            attacker = board.get(attacker_index)
            if attacker == EMPTY or attacker == INVALID:
                continue
            if is_black(attacker) == black:
                continue
            dx = (x - nx) * 2
            dy = (y - ny) * 2
            # Men only capture toward the opponent's back rank
            if not is_king(attacker) and (is_white(attacker) != (dy < 0)):
                continue
            landing = point_index(Point(nx + dx, ny + dy))
            if MoveGenerator.is_valid_skip(board, attacker_index, landing):
                return False
        return True


# Convenience functions
def is_valid_move(
    board: Board,
    black_to_move: bool,
    start_index: int,
    end_index: int,
    pending_capture_index: int = NO_CAPTURE
) -> bool:
    """Check if a move is legal."""
    return MoveValidator.is_valid_move(board, black_to_move, start_index, end_index, pending_capture_index)


def is_safe(board: Board, point: Optional[tuple[int, int]]) -> bool:
    """Check if the piece at `point` cannot be captured next turn."""
    return MoveValidator.is_safe(board, point)
