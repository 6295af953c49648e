"""Terminal game results."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from grove.core.atoms import Team


class WinReason(Enum):
    CHECKMATE = "checkmate"
    RESIGNATION = "resignation"


class DrawReason(Enum):
    STALEMATE = "stalemate"
    DEAD_POSITION = "dead position"
    THREEFOLD_REPETITION = "threefold repetition"
    FIVEFOLD_REPETITION = "fivefold repetition"
    FIFTY_MOVE_RULE = "fifty-move rule"
    SEVENTY_FIVE_MOVE_RULE = "seventy-five-move rule"
    AGREEMENT = "agreement"


@dataclass(frozen=True)
class Win:
    winner: Team
    reason: WinReason

    is_draw = False

    def __str__(self) -> str:
        name = "White" if self.winner is Team.WHITE else "Black"
        return f"{name} wins by {self.reason.value}"


@dataclass(frozen=True)
class Draw:
    reason: DrawReason

    is_draw = True

    @property
    def winner(self) -> Optional[Team]:
        return None

    def __str__(self) -> str:
        return f"Draw by {self.reason.value}"


Outcome = Union[Win, Draw]


@dataclass(frozen=True)
class DrawClaim:
    """Answer to a draw claim. Never raised, always returned."""

    accepted: bool
    reason: str

    def __bool__(self) -> bool:
        return self.accepted
