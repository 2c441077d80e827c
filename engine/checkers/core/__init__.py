"""Core game logic: board, move generation, rules and state."""

from .board import *
from .moves import Move, MoveGenerator
from .rules import MoveValidator
from .state import GameState
