"""
Board representation for checkers.

Only the 32 dark squares of the 8x8 board are playable. Each one holds a
3-bit occupant code, and the board stores those codes as three 32-bit
planes (one per code bit), so a copy is three ints.

  y \\ x  0  1  2  3  4  5  6  7
    0  |  .  0  .  1  .  2  .  3
    1  |  4  .  5  .  6  .  7  .
    2  |  .  8  .  9  . 10  . 11
    3  | 12  . 13  . 14  . 15  .
    4  |  . 16  . 17  . 18  . 19
    5  | 20  . 21  . 22  . 23  .
    6  |  . 24  . 25  . 26  . 27
    7  | 28  . 29  . 30  . 31  .

Square index = y * 4 + x // 2, valid only where (x + y) is odd.
Black starts on rows 0-2 and moves toward row 7; white starts on
rows 5-7 and moves toward row 0.
"""

from __future__ import annotations
from typing import Iterator, NamedTuple, Optional

import numpy as np

# Board dimensions
ROWS = 8
COLS = 8
NUM_SQUARES = 32

# Mask for valid squares (bits 0-31)
VALID_MASK = (1 << NUM_SQUARES) - 1

# Occupant codes. Bit 2 marks a piece, bit 1 black, bit 0 king.
INVALID = -1
EMPTY = 0
WHITE_MAN = 0b100
WHITE_KING = 0b101
BLACK_MAN = 0b110
BLACK_KING = 0b111

CODES = (EMPTY, WHITE_MAN, WHITE_KING, BLACK_MAN, BLACK_KING)

# Sentinel for "no capture chain in progress"
NO_CAPTURE = -1

# Starting positions
BLACK_START = 0x00000FFF  # squares 0-11
WHITE_START = 0xFFF00000  # squares 20-31


class Point(NamedTuple):
    """Board coordinate: x is the column, y the row."""
    x: int
    y: int


INVALID_POINT = Point(-1, -1)


def bit(sq: int) -> int:
    """Return bitboard with single bit set at square."""
    return 1 << sq


def popcount(bb: int) -> int:
    """Count number of set bits."""
    return bin(bb).count('1')


def lsb(bb: int) -> int:
    """Return index of least significant bit (or -1 if empty)."""
    if bb == 0:
        return -1
    return (bb & -bb).bit_length() - 1


def iter_bits(bb: int) -> Iterator[int]:
    """Iterate over indices of set bits, lowest first."""
    while bb:
        sq = lsb(bb)
        yield sq
        bb &= bb - 1


def is_valid_index(index: Optional[int]) -> bool:
    return index is not None and 0 <= index < NUM_SQUARES


def is_valid_point(x: int, y: int) -> bool:
    """Check if (x, y) is a dark square on the board."""
    return 0 <= x < COLS and 0 <= y < ROWS and (x + y) % 2 == 1


def to_index(x: int, y: int) -> int:
    """Convert (x, y) to a square index, or -1 for light/off-board squares."""
    if not is_valid_point(x, y):
        return -1
    return y * 4 + x // 2


def point_index(p: Optional[tuple[int, int]]) -> int:
    """Same as to_index but takes a point; None maps to -1."""
    if p is None:
        return -1
    return to_index(p[0], p[1])


def to_point(index: int) -> Point:
    """Convert a square index to (x, y), or (-1, -1) if out of range."""
    if not is_valid_index(index):
        return INVALID_POINT
    y = index // 4
    x = 2 * (index % 4) + (y + 1) % 2
    return Point(x, y)


def middle(start_index: int, end_index: int) -> Point:
    """
    Midpoint of a two-step diagonal jump between two squares.

    Returns (-1, -1) unless both squares are valid and exactly two
    diagonal steps apart.
    """
    if not (is_valid_index(start_index) and is_valid_index(end_index)):
        return INVALID_POINT
    x1, y1 = to_point(start_index)
    x2, y2 = to_point(end_index)
    dx, dy = x2 - x1, y2 - y1
    if abs(dx) != abs(dy) or abs(dx) != 2:
        return INVALID_POINT
    return Point(x1 + dx // 2, y1 + dy // 2)


def is_black(code: int) -> bool:
    return code == BLACK_MAN or code == BLACK_KING


def is_white(code: int) -> bool:
    return code == WHITE_MAN or code == WHITE_KING


def is_king(code: int) -> bool:
    return code == BLACK_KING or code == WHITE_KING


def is_piece(code: int) -> bool:
    return code in (WHITE_MAN, WHITE_KING, BLACK_MAN, BLACK_KING)


class Board:
    """
    The 32 playable squares and their occupants.

    Attributes:
        planes: (high, mid, low) bitboards holding bit 2, 1 and 0 of each
            square's occupant code. Plain ints, so copies never alias.
    """
    __slots__ = ('planes',)

    def __init__(self, planes: Optional[tuple[int, int, int]] = None):
        if planes is None:
            self.reset()
        else:
            self.planes = tuple(p & VALID_MASK for p in planes)

    @classmethod
    def empty(cls) -> Board:
        """Create a board with no pieces on it."""
        return cls((0, 0, 0))

    def reset(self) -> None:
        """Restore the standard position: 12 men per side."""
        occupied = BLACK_START | WHITE_START
        # Black men are 0b110, white men 0b100
        self.planes = (occupied, BLACK_START, 0)

    def copy(self) -> Board:
        return Board(self.planes)

    def get(self, index: int) -> int:
        """Occupant code at a square index, or INVALID if out of range."""
        if not is_valid_index(index):
            return INVALID
        high, mid, low = self.planes
        return (((high >> index) & 1) << 2) | (((mid >> index) & 1) << 1) | ((low >> index) & 1)

    def get_at(self, x: int, y: int) -> int:
        """Occupant code at (x, y), or INVALID for light/off-board squares."""
        return self.get(to_index(x, y))

    def set(self, index: int, code: int) -> None:
        """Set a square's occupant. Invalid indices are ignored, unknown codes empty the square."""
        if not is_valid_index(index):
            return
        if code not in CODES:
            code = EMPTY
        sq = bit(index)
        self.planes = tuple(
            (plane | sq) if code & (1 << shift) else (plane & ~sq)
            for plane, shift in zip(self.planes, (2, 1, 0))
        )

    def mask(self, code: int) -> int:
        """Bitboard of squares holding exactly this code."""
        if code not in CODES:
            return 0
        result = VALID_MASK
        for plane, shift in zip(self.planes, (2, 1, 0)):
            result &= plane if code & (1 << shift) else ~plane
        return result & VALID_MASK

    def find(self, code: int) -> list[Point]:
        """All squares holding this code, in increasing index order."""
        return [to_point(sq) for sq in iter_bits(self.mask(code))]

    def pieces(self, black: bool) -> list[Point]:
        """One side's men followed by its kings."""
        if black:
            return self.find(BLACK_MAN) + self.find(BLACK_KING)
        return self.find(WHITE_MAN) + self.find(WHITE_KING)

    def count(self, code: int) -> int:
        return popcount(self.mask(code))

    def count_side(self, black: bool) -> int:
        """Number of men and kings one side has left."""
        high, mid, _ = self.planes
        return popcount(high & mid) if black else popcount(high & ~mid)

    def to_array(self) -> np.ndarray:
        """8x8 int8 grid of occupant codes, indexed [y, x]. Light squares are INVALID."""
        grid = np.full((ROWS, COLS), INVALID, dtype=np.int8)
        for index in range(NUM_SQUARES):
            x, y = to_point(index)
            grid[y, x] = self.get(index)
        return grid

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return False
        return self.planes == other.planes

    def __hash__(self) -> int:
        return hash(self.planes)

    def __repr__(self) -> str:
        symbols = {
            EMPTY: '.',
            BLACK_MAN: 'b', BLACK_KING: 'B',
            WHITE_MAN: 'w', WHITE_KING: 'W',
        }
        lines = []
        for y in range(ROWS):
            row = f"{y} |"
            for x in range(COLS):
                code = self.get_at(x, y)
                row += " " + (symbols[code] if code != INVALID else " ")
            lines.append(row)
        lines.append("   +" + "-" * (COLS * 2))
        lines.append("    " + " ".join(str(x) for x in range(COLS)))
        return "\n".join(lines)
