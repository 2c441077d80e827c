"""
Player kinds.

A player is either interactive (moves come from outside, e.g. a person at
a terminal or a web client) or automated (the move selector plays). Front
ends branch on the kind to decide whether to wait for input or call
`take_turn`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..core.state import GameState
from .selector import MoveSelector


class PlayerKind(str, Enum):
    INTERACTIVE = "human"
    AUTOMATED = "computer"

    @classmethod
    def parse(cls, value: str) -> PlayerKind:
        """Accept either the value ('human') or the member name ('interactive')."""
        value = value.strip().lower()
        for kind in cls:
            if value in (kind.value, kind.name.lower()):
                return kind
        raise ValueError(f"Unknown player kind: {value}")


@dataclass
class Player:
    kind: PlayerKind = PlayerKind.INTERACTIVE
    selector: Optional[MoveSelector] = field(default=None, repr=False)

    def __post_init__(self):
        if self.kind == PlayerKind.AUTOMATED and self.selector is None:
            self.selector = MoveSelector()

    @property
    def is_human(self) -> bool:
        return self.kind == PlayerKind.INTERACTIVE

    def take_turn(self, state: GameState) -> bool:
        """
        Make a move for this player if it plays on its own.

        Interactive players never move here; returns False so the caller
        knows to wait for external input.
        """
        if self.kind == PlayerKind.INTERACTIVE:
            return False
        return self.selector.choose_and_apply(state)


def automated(seed: Optional[int] = None) -> Player:
    return Player(PlayerKind.AUTOMATED, MoveSelector(seed=seed))


def interactive() -> Player:
    return Player(PlayerKind.INTERACTIVE)
