"""
Game notation for checkers (PDN-like format).

Format example:
```
[Event "Casual Game"]
[Date "2026.10.18"]
[Black "Player 1"]
[White "Player 2"]
[Result "*"]

1. c6-d5 d3-c4 2. d5-e4 f3xd5 ...
```

Squares are written as a file letter a-h for x and a rank 1-8 for y + 1.
A plain move is "c6-d5"; a capture uses 'x' and a whole capture chain
played in one turn is a single token (e.g. "f3xd5xb7"). White moves
first, so each move number starts with white.

Games that do not start from the standard position carry their first
position in a [Setup "..."] tag using the text snapshot format of
`GameState.get_game_state`.
"""

from __future__ import annotations
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Union

from .board import Board, COLS, ROWS, is_valid_index, middle, to_index, to_point
from .moves import Move
from .state import GameState

FILES = 'abcdefgh'

MoveLike = Union[Move, tuple[int, int]]


def index_to_algebraic(index: int) -> str:
    """Convert a square index to algebraic notation (e.g. 'b1')."""
    if not is_valid_index(index):
        raise ValueError(f"Invalid square index: {index}")
    x, y = to_point(index)
    return f"{FILES[x]}{y + 1}"


def algebraic_to_index(s: str) -> int:
    """Convert algebraic notation to a square index."""
    s = s.strip().lower()
    if len(s) != 2 or s[0] not in FILES or not s[1].isdigit():
        raise ValueError(f"Invalid square: {s}")
    x = FILES.index(s[0])
    y = int(s[1]) - 1
    if not (0 <= y < ROWS and 0 <= x < COLS):
        raise ValueError(f"Square off the board: {s}")
    index = to_index(x, y)
    if index < 0:
        raise ValueError(f"Not a playable square: {s}")
    return index


def _endpoints(move: MoveLike) -> tuple[int, int]:
    if isinstance(move, Move):
        return move.start_index, move.end_index
    return move[0], move[1]


def move_to_algebraic(move: MoveLike) -> str:
    """Convert a move to notation: 'c6-d5' for a step, 'f3xd5' for a capture."""
    start, end = _endpoints(move)
    sep = 'x' if middle(start, end)[0] >= 0 else '-'
    return f"{index_to_algebraic(start)}{sep}{index_to_algebraic(end)}"


def _parse_square(token: str) -> int:
    token = token.strip()
    if token.isdigit():
        index = int(token)
        if not is_valid_index(index):
            raise ValueError(f"Invalid square index: {token}")
        return index
    return algebraic_to_index(token)


def algebraic_to_move(s: str) -> tuple[int, int]:
    """
    Parse a single move into (start, end) indices.

    Accepts 'c6-d5', 'f3xd5' and bare index pairs such as '8-12'.
    """
    parts = re.split(r'[-x]', s.strip().lower())
    if len(parts) != 2:
        raise ValueError(f"Invalid move format: {s}")
    return _parse_square(parts[0]), _parse_square(parts[1])


def parse_chain(token: str) -> list[tuple[int, int]]:
    """Parse a token like 'f3xd5xb7' into its individual moves."""
    parts = re.split(r'[-x]', token.strip().lower())
    if len(parts) < 2:
        raise ValueError(f"Invalid move format: {token}")
    squares = [_parse_square(p) for p in parts]
    return list(zip(squares, squares[1:]))


@dataclass
class GameRecord:
    """Record of a complete or in-progress game."""

    # Metadata (PDN-style tags)
    event: str = "Checkers Game"
    site: str = "?"
    date: str = field(default_factory=lambda: date.today().strftime("%Y.%m.%d"))
    black: str = "Player 1"
    white: str = "Player 2"
    result: str = "*"  # "*" = ongoing, "1-0" = black wins, "0-1" = white wins
    setup: Optional[str] = None  # starting position if not the standard one

    # Move history as (start, end) index pairs
    moves: list[tuple[int, int]] = field(default_factory=list)

    @classmethod
    def from_state(cls, state: GameState, **metadata) -> GameRecord:
        """Create a record from a game state with history."""
        record = cls(**metadata)

        if state.history:
            _, _, planes, black_to_move, pending = state.history[0]
            start = GameState(
                board=Board(planes),
                black_to_move=black_to_move,
                pending_capture_index=pending
            )
        else:
            start = state
        if start != GameState.new_game():
            record.setup = start.get_game_state()

        for entry in state.history:
            record.moves.append((entry[0], entry[1]))

        winner = state.get_winner()
        if winner == 'black':
            record.result = "1-0"
        elif winner == 'white':
            record.result = "0-1"

        return record

    def start_state(self) -> GameState:
        return GameState.from_string(self.setup) if self.setup else GameState.new_game()

    def to_pdn(self) -> str:
        """Export to PDN-like format."""
        lines = [
            f'[Event "{self.event}"]',
            f'[Site "{self.site}"]',
            f'[Date "{self.date}"]',
            f'[Black "{self.black}"]',
            f'[White "{self.white}"]',
            f'[Result "{self.result}"]',
        ]
        if self.setup:
            lines.append(f'[Setup "{self.setup}"]')
        lines.append('')

        # Word wrap at 80 chars
        current_line = ""
        for word in self._format_moves().split():
            if len(current_line) + len(word) + 1 > 80:
                lines.append(current_line)
                current_line = word
            else:
                current_line = f"{current_line} {word}".strip()
        if current_line:
            lines.append(current_line)

        if self.result != "*":
            lines.append(self.result)

        return '\n'.join(lines)

    def _format_moves(self) -> str:
        """
        Format moves into notation string.

        Consecutive moves by the same side (a capture chain) share a token.
        """
        state = self.start_state()
        turns: list[tuple[bool, list[str], str]] = []

        for start, end in self.moves:
            side = state.black_to_move
            continuing = is_valid_index(state.pending_capture_index)
            if not state.move(start, end):
                break
            sep = 'x' if middle(start, end)[0] >= 0 else '-'
            if continuing and turns:
                turns[-1][1].append(index_to_algebraic(end))
            else:
                turns.append((side, [index_to_algebraic(start), index_to_algebraic(end)], sep))

        if not turns:
            return ""

        parts = []
        move_num = 1
        leading_side = turns[0][0]
        for side, squares, sep in turns:
            token = sep.join(squares)
            if side == leading_side:
                parts.append(f"{move_num}. {token}")
            else:
                parts.append(token)
                move_num += 1
        return ' '.join(parts)

    @classmethod
    def from_pdn(cls, pdn_text: str) -> GameRecord:
        """Parse PDN-like format. Unparseable tokens are skipped."""
        record = cls()

        tag_pattern = r'\[(\w+)\s+"([^"]*)"\]'
        for match in re.finditer(tag_pattern, pdn_text):
            tag, value = match.groups()
            tag_lower = tag.lower()
            if tag_lower in ('event', 'site', 'date', 'black', 'white', 'result'):
                setattr(record, tag_lower, value)
            elif tag_lower == 'setup':
                record.setup = value or None

        move_text = re.sub(tag_pattern, '', pdn_text)
        move_text = re.sub(r'\s*(1-0|0-1|1/2-1/2|\*)\s*$', '', move_text)

        for token in move_text.split():
            # Skip move numbers like "1." or "12..."
            if re.match(r'^\d+\.+$', token):
                continue
            try:
                record.moves.extend(parse_chain(token))
            except ValueError:
                continue

        return record

    def replay(self) -> Optional[GameState]:
        """Replay all moves and return the final state, or None on an illegal move."""
        state = self.start_state()
        for start, end in self.moves:
            if not state.move(start, end):
                return None
        return state


def game_to_pdn(state: GameState, **metadata) -> str:
    """Convert a game state to PDN notation."""
    return GameRecord.from_state(state, **metadata).to_pdn()


def pdn_to_game(pdn_text: str) -> Optional[GameState]:
    """Parse PDN and return the resulting game state."""
    return GameRecord.from_pdn(pdn_text).replay()
