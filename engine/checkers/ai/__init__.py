"""Automated play: heuristic move selection and player kinds."""

from .selector import MoveSelector, SelectorConfig
from .players import Player, PlayerKind
