#!/usr/bin/env python3
"""
Terminal-based checkers client.

Play against the computer, against another person at the same terminal,
or watch the computer play itself.
"""

from __future__ import annotations
import argparse
import logging
import sys
import time
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from checkers import api
from checkers.core.board import (
    ROWS, COLS, EMPTY, INVALID, BLACK_MAN, BLACK_KING, WHITE_MAN, WHITE_KING,
    to_point
)
from checkers.core.moves import Move
from checkers.core.notation import FILES, game_to_pdn, move_to_algebraic, parse_chain
from checkers.core.state import GameState
from checkers.ai.players import Player, PlayerKind
from checkers.ai.selector import MoveSelector


def print_board(state: GameState, highlight_moves: list[Move] = None) -> None:
    """Print the board with optional move highlighting.

    Symbols:
        b / B = black man / king
        w / W = white man / king
        Green = move target, bold = piece that must keep capturing
    """
    # ANSI color codes
    GREEN = '\033[92m'
    BOLD = '\033[1m'
    RESET = '\033[0m'

    symbols = {
        EMPTY: '.',
        BLACK_MAN: 'b', BLACK_KING: 'B',
        WHITE_MAN: 'w', WHITE_KING: 'W',
    }

    targets = set()
    if highlight_moves:
        for move in highlight_moves:
            targets.add(tuple(move.end))

    pending = api.pending_capture_index(state)
    pending_point = tuple(to_point(pending)) if pending is not None else None

    board = api.get_board_snapshot(state)
    print()
    print("  +" + "-" * (COLS * 2 + 1) + "+")
    for y in range(ROWS - 1, -1, -1):
        line = f"{y + 1} |"
        for x in range(COLS):
            code = board.get_at(x, y)
            if code == INVALID:
                line += "  "
                continue
            sym = symbols[code]
            if (x, y) in targets:
                line += f" {GREEN}{sym}{RESET}"
            elif (x, y) == pending_point:
                line += f" {BOLD}{sym}{RESET}"
            else:
                line += f" {sym}"
        line += " |"
        print(line)
    print("  +" + "-" * (COLS * 2 + 1) + "+")
    print("    " + " ".join(FILES))
    print()


def show_legal_moves(state: GameState) -> None:
    """Display all legal moves."""
    moves = state.legal_moves()
    if not moves:
        print("No legal moves!")
        return

    label = "Captures" if moves[0].is_capture else "Moves"
    print(f"{label}:", ", ".join(move_to_algebraic(m) for m in moves))


def parse_user_input(input_str: str):
    """Parse user input into a command name or a list of (start, end) moves."""
    input_str = input_str.strip().lower()

    if input_str in ['q', 'quit', 'exit']:
        return 'quit'
    if input_str in ['h', 'help', '?']:
        return 'help'
    if input_str in ['m', 'moves']:
        return 'show_moves'
    if input_str in ['u', 'undo']:
        return 'undo'
    if input_str in ['r', 'restart']:
        return 'restart'
    if input_str in ['s', 'state']:
        return 'state'
    if input_str in ['p', 'pdn']:
        return 'pdn'

    # Notation such as "c3-d4", "e3xc5xe7" or "21-17"
    try:
        return parse_chain(input_str)
    except ValueError:
        print(f"Invalid format: {input_str}. Use notation like 'c3-d4'")
        return None


def play_moves(state: GameState, moves: list[tuple[int, int]]) -> bool:
    """Play every hop of a move, or none of them."""
    played = 0
    for start, end in moves:
        if not state.move(start, end):
            for _ in range(played):
                state.undo_move()
            return False
        played += 1
    return True


def undo_turn(state: GameState, players: dict[bool, Player]) -> bool:
    """Undo back to the last position where a person was to move."""
    if not state.undo_move():
        return False
    while state.history and not players[state.black_to_move].is_human:
        state.undo_move()
    return True


def side_name(black: bool) -> str:
    return "Black" if black else "White"


def play_game(
    black: Player,
    white: Player,
    state: GameState | None = None,
    delay: float = 0.5
) -> GameState:
    """Run a game until it ends or a person quits."""
    if state is None:
        state = api.new_game()
    players = {True: black, False: white}
    watching = not black.is_human and not white.is_human

    print("\n=== Checkers ===")
    print(f"Black: {black.kind.value}  White: {white.kind.value}")
    print("Commands: move (e.g. 'c3-d4'), 'm' moves, 'u' undo, 'r' restart, 's' state, 'q' quit")

    while not api.is_game_over(state):
        black_to_move = api.is_p1_turn(state)
        player = players[black_to_move]

        if player.is_human:
            print_board(state)
            pending = api.pending_capture_index(state)
            if pending is not None:
                print(f"{side_name(black_to_move)} must keep capturing")
            else:
                print(f"{side_name(black_to_move)} to move")

            try:
                user_input = input("> ").strip()
            except EOFError:
                return state

            result = parse_user_input(user_input)

            if result == 'quit':
                print("Thanks for playing!")
                return state
            elif result == 'help':
                print("Enter moves like 'c3-d4'; write a whole capture chain as 'e3xc5xe7'")
                print("'m' legal moves, 'u' undo, 'r' restart, 's' state, 'p' record, 'q' quit")
            elif result == 'show_moves':
                print_board(state, state.legal_moves())
                show_legal_moves(state)
            elif result == 'undo':
                print("Move undone." if undo_turn(state, players) else "Nothing to undo.")
            elif result == 'restart':
                api.restart(state)
                print("New game.")
            elif result == 'state':
                print(api.get_game_state(state))
            elif result == 'pdn':
                print(game_to_pdn(state))
            elif result is not None:
                if play_moves(state, result):
                    print(f"You played: {user_input}")
                else:
                    print(f"Illegal move: {user_input}")
        else:
            if watching:
                print_board(state)
            if delay > 0:
                time.sleep(delay)
            if not player.take_turn(state):
                break
            start, end = state.history[-1][:2]
            print(f"{side_name(black_to_move)} plays: {move_to_algebraic((start, end))}")

    print_board(state)
    winner = state.get_winner()
    if winner is not None:
        print(f"Game over after {state.ply} moves. {winner.capitalize()} wins!")
    return state


def main():
    parser = argparse.ArgumentParser(description='Checkers Terminal Client')
    parser.add_argument('--black', type=str, choices=['human', 'computer'], default='human',
                        help='Who plays black')
    parser.add_argument('--white', type=str, choices=['human', 'computer'], default='computer',
                        help='Who plays white (white moves first)')
    parser.add_argument('--watch', action='store_true', help='Watch computer vs computer')
    parser.add_argument('--delay', type=float, default=0.5, help='Seconds to wait before computer moves')
    parser.add_argument('--seed', type=int, default=None, help='Random seed for tie-breaking')
    parser.add_argument('--state', type=str, default=None, help='Start from a saved state string')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log engine decisions')

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.watch:
        args.black = args.white = 'computer'

    selector = MoveSelector(seed=args.seed)
    black = Player(PlayerKind.parse(args.black), selector)
    white = Player(PlayerKind.parse(args.white), selector)

    state = api.new_game()
    if args.state:
        api.set_game_state(state, args.state)

    play_game(black, white, state, args.delay)


if __name__ == '__main__':
    main()
