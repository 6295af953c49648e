"""Atomic value types: teams, coordinates, castling rights and move counters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

BOARD_ROWS = 8
BOARD_COLUMNS = 8

FILES = "abcdefgh"


class Team(Enum):
    WHITE = "w"
    BLACK = "b"

    def opposite(self) -> "Team":
        return Team.BLACK if self is Team.WHITE else Team.WHITE

    @property
    def forward(self) -> int:
        """Row delta of a pawn push. Row 0 is rank 8, so White moves up (-1)."""
        return -1 if self is Team.WHITE else 1

    @property
    def home_row(self) -> int:
        return 7 if self is Team.WHITE else 0


class CastlingSide(Enum):
    SHORT = "king"
    LONG = "queen"


@dataclass(frozen=True)
class Coordinates:
    """A validated board cell. Row 0 is rank 8, column 0 is file a."""

    row: int
    column: int

    def __post_init__(self):
        if not (0 <= self.row < BOARD_ROWS and 0 <= self.column < BOARD_COLUMNS):
            raise ValueError(f"coordinates out of board: ({self.row}, {self.column})")

    @staticmethod
    def at(row: int, column: int) -> Optional["Coordinates"]:
        """Cached instance for (row, column), or None when off the board."""
        if 0 <= row < BOARD_ROWS and 0 <= column < BOARD_COLUMNS:
            return _ALL_COORDINATES[row][column]
        return None

    def offset(self, d_row: int, d_column: int) -> Optional["Coordinates"]:
        return Coordinates.at(self.row + d_row, self.column + d_column)

    def to_algebraic(self) -> str:
        return f"{FILES[self.column]}{BOARD_ROWS - self.row}"

    @staticmethod
    def from_algebraic(square: str) -> "Coordinates":
        if len(square) != 2 or square[0] not in FILES or not square[1].isdigit():
            raise ValueError(f"not a square: {square!r}")
        return Coordinates(BOARD_ROWS - int(square[1]), FILES.index(square[0]))

    def __deepcopy__(self, memo) -> "Coordinates":
        return self

    def __repr__(self) -> str:
        return f"Coordinates({self.to_algebraic()})"


_ALL_COORDINATES = [
    [Coordinates(row, column) for column in range(BOARD_COLUMNS)]
    for row in range(BOARD_ROWS)
]


@dataclass(frozen=True)
class CastlingRights:
    white_king_side: bool = True
    white_queen_side: bool = True
    black_king_side: bool = True
    black_queen_side: bool = True

    @classmethod
    def none(cls) -> "CastlingRights":
        return cls(False, False, False, False)

    def has(self, team: Team, side: CastlingSide) -> bool:
        return getattr(self, _field_name(team, side))

    def without(self, team: Team, side: CastlingSide) -> "CastlingRights":
        if not self.has(team, side):
            return self
        values = self._as_dict()
        values[_field_name(team, side)] = False
        return CastlingRights(**values)

    def without_team(self, team: Team) -> "CastlingRights":
        return self.without(team, CastlingSide.SHORT).without(team, CastlingSide.LONG)

    def any(self) -> bool:
        return (self.white_king_side or self.white_queen_side
                or self.black_king_side or self.black_queen_side)

    def to_fen(self) -> str:
        out = ""
        if self.white_king_side:
            out += "K"
        if self.white_queen_side:
            out += "Q"
        if self.black_king_side:
            out += "k"
        if self.black_queen_side:
            out += "q"
        return out or "-"

    def _as_dict(self):
        return {
            "white_king_side": self.white_king_side,
            "white_queen_side": self.white_queen_side,
            "black_king_side": self.black_king_side,
            "black_queen_side": self.black_queen_side,
        }


def _field_name(team: Team, side: CastlingSide) -> str:
    return f"{'white' if team is Team.WHITE else 'black'}_{side.value}_side"


class MoveCounter:
    """Halfmove/fullmove bookkeeping with a stack of fifty-move sub-counters.

    A capture or pawn move pushes a fresh zero instead of overwriting the
    active counter, so `untick` can restore the pre-reset value exactly.
    """

    def __init__(self, fifty_move_counter: int = 0, fullmove: int = 1, halfmove: int = 0):
        self._fifty: List[int] = [fifty_move_counter]
        self.halfmove = halfmove
        self.fullmove = fullmove

    @property
    def fifty_move_counter(self) -> int:
        return self._fifty[-1]

    def tick(self, reset_fifty_move_counter: bool, mover: Team):
        if reset_fifty_move_counter:
            self._fifty.append(0)
        else:
            self._fifty[-1] += 1
        self.halfmove += 1
        if mover is Team.BLACK:
            self.fullmove += 1

    def untick(self, mover: Team):
        if self._fifty[-1] > 0:
            self._fifty[-1] -= 1
        elif len(self._fifty) > 1:
            self._fifty.pop()
        self.halfmove = max(0, self.halfmove - 1)
        if mover is Team.BLACK:
            self.fullmove = max(1, self.fullmove - 1)

    def __eq__(self, other) -> bool:
        if not isinstance(other, MoveCounter):
            return NotImplemented
        return (self._fifty == other._fifty and self.halfmove == other.halfmove
                and self.fullmove == other.fullmove)

    def __repr__(self) -> str:
        return (f"MoveCounter(fifty={self._fifty}, halfmove={self.halfmove}, "
                f"fullmove={self.fullmove})")
