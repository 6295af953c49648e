"""Piece kinds, pieces and pieces bound to a square."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from grove.core.atoms import Coordinates, Team


class Kind(Enum):
    KING = "k"
    QUEEN = "q"
    ROOK = "r"
    BISHOP = "b"
    KNIGHT = "n"
    PAWN = "p"


PROMOTION_KINDS = (Kind.QUEEN, Kind.ROOK, Kind.BISHOP, Kind.KNIGHT)


@dataclass(frozen=True)
class Piece:
    team: Team
    kind: Kind

    def symbol(self) -> str:
        """FEN letter: uppercase for White, lowercase for Black."""
        letter = self.kind.value
        return letter.upper() if self.team is Team.WHITE else letter

    @staticmethod
    def from_symbol(symbol: str) -> "Piece":
        kind = Kind(symbol.lower())
        team = Team.WHITE if symbol.isupper() else Team.BLACK
        return PIECES[team][kind]

    def promoted(self, kind: Kind) -> "Piece":
        return PIECES[self.team][kind]

    def __deepcopy__(self, memo) -> "Piece":
        return self

    def __repr__(self) -> str:
        return f"Piece({self.symbol()})"


# Interned pieces; generators hand these out instead of building new ones.
PIECES = {team: {kind: Piece(team, kind) for kind in Kind} for team in Team}


class LocatedPiece(NamedTuple):
    piece: Piece
    position: Coordinates
