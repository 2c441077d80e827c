"""
Heuristic move selection for the automated player.

Every candidate move is scored on its own copy of the game: piece safety
before and after the move, the length of the capture chain it starts or
continues, and the safety of both sides' pieces. The best-scoring
candidates are tied and one of them is picked at random.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import logging

import numpy as np

from ..core.board import Board, is_king, is_valid_index, middle, point_index
from ..core.moves import Move, MoveGenerator, WEIGHT_INVALID
from ..core.rules import MoveValidator
from ..core.state import GameState

logger = logging.getLogger(__name__)


@dataclass
class SelectorConfig:
    """Weights for move scoring."""
    weight_skip: float = 25  # A capture is available / chain continues this turn
    skip_on_next: float = 20  # Capture continuation once the turn has passed
    safe_safe: float = 5  # Moved piece safe before and after
    safe_unsafe: float = -40  # Moved piece walks into a capture
    unsafe_safe: float = 40  # Moved piece escapes a capture
    unsafe_unsafe: float = -40  # Moved piece stays capturable
    safe: float = 3  # Per safe piece
    unsafe: float = -5  # Per capturable piece
    king_factor: float = 2  # Multiplier for penalties on kings


class MoveSelector:
    """
    Picks a move for the side to move.

    Usage:
        selector = MoveSelector(seed=42)
        selector.choose_and_apply(state)
    """

    def __init__(self, config: Optional[SelectorConfig] = None, seed: Optional[int] = None):
        self.config = config or SelectorConfig()
        self.rng = np.random.default_rng(seed)

    def candidate_moves(self, state: GameState) -> list[Move]:
        """
        Moves the automated player may choose from.

        Captures are mandatory here too: if any capture exists only
        captures are returned, each pre-weighted with `weight_skip`. During
        a capture chain the candidates are the locked piece's captures.
        """
        board = state.get_board()
        if is_valid_index(state.pending_capture_index):
            return [
                Move(state.pending_capture_index, point_index(end))
                for end in MoveGenerator.get_skips(board, state.pending_capture_index)
            ]

        pieces = [point_index(p) for p in board.pieces(state.black_to_move)]

        moves = []
        for index in pieces:
            for end in MoveGenerator.get_skips(board, index):
                move = Move(index, point_index(end))
                move.change_weight(self.config.weight_skip)
                moves.append(move)
        if moves:
            return moves

        for index in pieces:
            for end in MoveGenerator.get_moves(board, index):
                moves.append(Move(index, point_index(end)))
        return moves

    def safety_weight(self, board: Board, black: bool) -> float:
        """Sum of per-piece safety weights for one side."""
        weight = 0.0
        for p in board.pieces(black):
            if MoveValidator.is_safe(board, p):
                weight += self.config.safe
            else:
                factor = self.config.king_factor if is_king(board.get(point_index(p))) else 1
                weight += self.config.unsafe * factor
        return weight

    def skip_depth(self, state: GameState, start_index: int, black: bool) -> int:
        """
        Longest capture chain the piece at `start_index` can still make this turn.

        Returns 0 once the turn has passed to the other side. Each level
        removes a piece, so the recursion is bounded by the piece count.
        """
        if state.black_to_move != black:
            return 0
        depth = 0
        for end in MoveGenerator.get_skips(state.get_board(), start_index):
            end_index = point_index(end)
            child = state.copy()
            if not child.move(start_index, end_index):
                continue
            depth = max(depth, 1 + self.skip_depth(child, end_index, black))
        return depth

    def threat_depth(self, state: GameState, target_index: int) -> int:
        """
        Longest capture chain the side to move can make that starts by
        capturing the piece on `target_index`.
        """
        board = state.get_board()
        black = state.black_to_move
        depth = 0
        for p in board.pieces(black):
            start_index = point_index(p)
            for end in MoveGenerator.get_skips(board, start_index):
                end_index = point_index(end)
                if point_index(middle(start_index, end_index)) != target_index:
                    continue
                child = state.copy()
                if not child.move(start_index, end_index):
                    continue
                depth = max(depth, 1 + self.skip_depth(child, end_index, black))
        return depth

    def score(self, state: GameState, move: Move) -> float:
        """
        Add the heuristic score of `move` to its weight and return it.

        Works on a copy; `state` is never modified.
        """
        cfg = self.config
        game = state.copy()
        board = game.get_board()
        black = game.black_to_move
        safe_before = MoveValidator.is_safe(board, move.start)

        move.change_weight(self.safety_weight(board, black))

        if not game.move(move.start_index, move.end_index):
            move.weight = WEIGHT_INVALID
            return move.weight

        board = game.get_board()
        changed_turn = game.black_to_move != black
        king = is_king(board.get(move.end_index))
        safe_after = True

        if changed_turn:
            safe_after = MoveValidator.is_safe(board, move.end)
            depth = self.threat_depth(game, move.end_index)
            if safe_after:
                move.change_weight(cfg.skip_on_next * depth * depth)
            else:
                move.change_weight(cfg.skip_on_next)
        else:
            depth = self.skip_depth(game, move.end_index, black)
            move.change_weight(cfg.weight_skip * depth * depth)

        if safe_before and safe_after:
            move.change_weight(cfg.safe_safe)
        elif not safe_before and safe_after:
            move.change_weight(cfg.unsafe_safe)
        elif safe_before:
            move.change_weight(cfg.safe_unsafe * (cfg.king_factor if king else 1))
        else:
            move.change_weight(cfg.unsafe_unsafe)

        move.change_weight(self.safety_weight(board, not black))
        return move.weight

    def evaluate(self, state: GameState) -> list[Move]:
        """Score every candidate move. Returned moves carry their weights."""
        moves = self.candidate_moves(state)
        for move in moves:
            self.score(state, move)
        return moves

    def choose(self, state: GameState) -> Optional[Move]:
        """Pick one of the best-scoring moves, or None if there is nothing to play."""
        if state.is_game_over():
            return None
        moves = [m for m in self.evaluate(state) if m.weight != WEIGHT_INVALID]
        if not moves:
            return None

        best_weight = max(m.weight for m in moves)
        best = [m for m in moves if m.weight == best_weight]
        choice = best[int(self.rng.integers(len(best)))]
        logger.debug(
            "Chose %d -> %d (weight %.1f, %d tied of %d)",
            choice.start_index, choice.end_index, best_weight, len(best), len(moves)
        )
        return choice

    def choose_and_apply(self, state: GameState) -> bool:
        """Pick a move and play it on `state`. Returns False if no move was made."""
        move = self.choose(state)
        if move is None:
            return False
        return state.move(move.start_index, move.end_index)

    def analyze(self, state: GameState, top_k: int = 5) -> list[dict]:
        """Best candidate moves with their scores, highest first."""
        moves = sorted(self.evaluate(state), key=lambda m: m.weight, reverse=True)
        return [
            {
                'start': m.start_index,
                'end': m.end_index,
                'capture': m.is_capture,
                'weight': m.weight,
            }
            for m in moves[:top_k]
        ]


def choose_and_apply(state: GameState, seed: Optional[int] = None) -> bool:
    """Let the automated player make one move on `state`."""
    return MoveSelector(seed=seed).choose_and_apply(state)
