"""
Game state for checkers.

Owns the board plus the turn and capture-chain bookkeeping. This is the
only place board occupancy changes during play.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import logging

from .board import (
    Board, CODES, EMPTY, NUM_SQUARES, NO_CAPTURE, BLACK_MAN, WHITE_MAN,
    BLACK_KING, WHITE_KING, is_black, is_valid_index, middle, point_index, to_point
)
from .moves import Move, MoveGenerator
from .rules import MoveValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=False)
class GameState:
    """
    Represents the complete state of a checkers game.

    Attributes:
        board: Current occupancy (handed out only as copies via `get_board`)
        black_to_move: True when black (player 1) is to move
        pending_capture_index: Square of the piece that must continue a
            capture chain, or NO_CAPTURE
        ply: Number of moves applied
        history: Stack of (start, end, planes, black_to_move,
            pending_capture_index) for undo and game records
    """
    board: Board = field(default_factory=Board)
    black_to_move: bool = False
    pending_capture_index: int = NO_CAPTURE
    ply: int = 0
    history: list = field(default_factory=list)

    @classmethod
    def new_game(cls) -> GameState:
        """Create a new game in the starting position. White moves first."""
        return cls()

    @classmethod
    def from_string(cls, text: Optional[str]) -> GameState:
        """Create a game from a string produced by `get_game_state`."""
        state = cls()
        state.set_game_state(text)
        return state

    def restart(self) -> None:
        """Reset to the starting position."""
        self.board = Board()
        self.black_to_move = False
        self.pending_capture_index = NO_CAPTURE
        self.ply = 0
        self.history = []

    def copy(self) -> GameState:
        """Create an independent copy (history is not carried over)."""
        return GameState(
            board=self.board.copy(),
            black_to_move=self.black_to_move,
            pending_capture_index=self.pending_capture_index,
            ply=self.ply,
            history=[]
        )

    def get_board(self) -> Board:
        """Snapshot of the board. Changes to it do not affect the game."""
        return self.board.copy()

    def is_p1_turn(self) -> bool:
        """Player 1 plays black."""
        return self.black_to_move

    def is_valid_move(self, start_index: int, end_index: int) -> bool:
        return MoveValidator.is_valid_move(
            self.board, self.black_to_move, start_index, end_index, self.pending_capture_index
        )

    def move(self, start_index: int, end_index: int) -> bool:
        """
        Apply a move by square index. Modifies state in-place.

        Returns True if the move was legal and applied. Illegal moves leave
        the state untouched.

        A man reaching the far row is crowned and the turn ends there, even
        if another capture would be available. After a capture that leaves
        the same piece with another capture, the turn stays with the mover
        and the piece is locked in as the pending capture.
        """
        if not self.is_valid_move(start_index, end_index):
            logger.debug("Rejected move %d -> %d", start_index, end_index)
            return False

        # Save state for undo
        self.history.append((start_index, end_index, self.board.planes, self.black_to_move, self.pending_capture_index))

        mid_index = point_index(middle(start_index, end_index))
        self.board.set(end_index, self.board.get(start_index))
        self.board.set(mid_index, EMPTY)
        self.board.set(start_index, EMPTY)
        self.ply += 1

        end = to_point(end_index)
        code = self.board.get(end_index)
        switch_turn = False
        if end.y == 0 and code == WHITE_MAN:
            self.board.set(end_index, WHITE_KING)
            switch_turn = True
        elif end.y == 7 and code == BLACK_MAN:
            self.board.set(end_index, BLACK_KING)
            switch_turn = True

        captured = is_valid_index(mid_index)
        if not captured or not MoveGenerator.get_skips(self.board, end_index):
            switch_turn = True

        if switch_turn:
            self.black_to_move = not self.black_to_move
            self.pending_capture_index = NO_CAPTURE
        else:
            self.pending_capture_index = end_index
        return True

    def move_between(self, start: Optional[tuple[int, int]], end: Optional[tuple[int, int]]) -> bool:
        """Same as `move`, but takes (x, y) points."""
        if start is None or end is None:
            return False
        return self.move(point_index(start), point_index(end))

    def undo_move(self) -> bool:
        """Undo the last applied move. Returns False if there is nothing to undo."""
        if not self.history:
            return False
        _, _, planes, self.black_to_move, self.pending_capture_index = self.history.pop()
        self.board = Board(planes)
        self.ply -= 1
        return True

    def legal_moves(self) -> list[Move]:
        """All legal moves for the side to move."""
        return MoveGenerator.get_legal_moves(self.board, self.black_to_move, self.pending_capture_index)

    def is_game_over(self) -> bool:
        """
        Check if the game is over.

        The game ends when either side has no pieces left, or when the side
        to move has neither a plain move nor a capture.
        """
        black = self.board.pieces(True)
        if not black:
            return True
        white = self.board.pieces(False)
        if not white:
            return True

        for p in (black if self.black_to_move else white):
            index = point_index(p)
            if MoveGenerator.get_moves(self.board, index) or MoveGenerator.get_skips(self.board, index):
                return False
        return True

    def get_winner(self) -> Optional[str]:
        """Return 'black' or 'white' once the game is over, else None."""
        if not self.is_game_over():
            return None
        if self.board.count_side(True) == 0:
            return 'white'
        if self.board.count_side(False) == 0:
            return 'black'
        # The side to move is stuck
        return 'white' if self.black_to_move else 'black'

    def get_game_state(self) -> str:
        """
        Serialize to the text snapshot format.

        32 occupant digits, then '1' if black is to move else '0', then the
        pending capture index in decimal ('-1' when there is none).
        """
        codes = ''.join(str(self.board.get(i)) for i in range(NUM_SQUARES))
        return f"{codes}{'1' if self.black_to_move else '0'}{self.pending_capture_index}"

    def set_game_state(self, text: Optional[str]) -> None:
        """
        Restore from a string produced by `get_game_state`.

        Decoding is best effort: missing or malformed characters keep the
        values of a freshly reset game.
        """
        self.restart()
        if not text:
            return

        n = len(text)
        for i in range(min(NUM_SQUARES, n)):
            ch = text[i]
            if ch.isdigit() and int(ch) in CODES:
                self.board.set(i, int(ch))

        if n > NUM_SQUARES:
            self.black_to_move = text[NUM_SQUARES] == '1'
        if n > NUM_SQUARES + 1:
            try:
                pending = int(text[NUM_SQUARES + 1:])
            except ValueError:
                pending = NO_CAPTURE
            if self._can_continue_from(pending):
                self.pending_capture_index = pending

    def _can_continue_from(self, index: int) -> bool:
        """A chain may resume only on a piece of the side to move that can still capture."""
        if not is_valid_index(index):
            return False
        code = self.board.get(index)
        if code == EMPTY or is_black(code) != self.black_to_move:
            return False
        return bool(MoveGenerator.get_skips(self.board, index))

    def __hash__(self) -> int:
        """Hash for transposition lookups."""
        return hash((self.board.planes, self.black_to_move, self.pending_capture_index))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GameState):
            return False
        return (
            self.board == other.board and
            self.black_to_move == other.black_to_move and
            self.pending_capture_index == other.pending_capture_index
        )

    def __repr__(self) -> str:
        """Pretty print the board."""
        side = "Black" if self.black_to_move else "White"
        lines = [repr(self.board), f"\n{side} to move (ply {self.ply})"]
        if is_valid_index(self.pending_capture_index):
            lines.append(f"Capture must continue from square {self.pending_capture_index}")
        return "\n".join(lines)
