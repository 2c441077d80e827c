"""
Operations offered to front ends.

Front ends (the terminal client, the HTTP server) drive a game only
through these functions. Boards handed out are always copies.
"""

from __future__ import annotations
from typing import Optional

from .core.board import Board, is_valid_index, point_index
from .core.state import GameState
from .ai.selector import MoveSelector

_default_selector: Optional[MoveSelector] = None


def _get_selector() -> MoveSelector:
    global _default_selector
    if _default_selector is None:
        _default_selector = MoveSelector()
    return _default_selector


def new_game() -> GameState:
    """Standard starting position, white to move."""
    return GameState.new_game()


def restart(state: GameState) -> None:
    state.restart()


def move(state: GameState, start: Optional[tuple[int, int]], end: Optional[tuple[int, int]]) -> bool:
    """Play a move given as (x, y) points. Returns False if it was not legal."""
    return state.move_between(start, end)


def move_index(state: GameState, start_index: int, end_index: int) -> bool:
    return state.move(start_index, end_index)


def get_board_snapshot(state: GameState) -> Board:
    return state.get_board()


def is_p1_turn(state: GameState) -> bool:
    """True when black (player 1) is to move."""
    return state.is_p1_turn()


def is_game_over(state: GameState) -> bool:
    return state.is_game_over()


def pending_capture_index(state: GameState) -> Optional[int]:
    """Square the next move must start from during a capture chain, else None."""
    index = state.pending_capture_index
    return index if is_valid_index(index) else None


def choose_and_apply_automated_move(state: GameState, selector: Optional[MoveSelector] = None) -> bool:
    """Let the automated player move. Returns False if it found no move."""
    return (selector or _get_selector()).choose_and_apply(state)


def get_game_state(state: GameState) -> str:
    return state.get_game_state()


def set_game_state(state: GameState, text: Optional[str]) -> None:
    state.set_game_state(text)


def is_legal(state: GameState, start: Optional[tuple[int, int]], end: Optional[tuple[int, int]]) -> bool:
    """Check a point-based move without playing it."""
    return state.is_valid_move(point_index(start), point_index(end))
