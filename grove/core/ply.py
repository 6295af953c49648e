"""Half-move records and the special mechanics some of them carry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from grove.core.atoms import CastlingSide, Coordinates
from grove.core.pieces import Kind, Piece


@dataclass(frozen=True)
class Castle:
    side: CastlingSide


@dataclass(frozen=True)
class EnPassant:
    captured_at: Coordinates  # square of the captured pawn, never the landing square


@dataclass(frozen=True)
class Promotion:
    kind: Kind


SpecialMove = Union[Castle, EnPassant, Promotion]


@dataclass(frozen=True)
class Ply:
    """One half-move, carrying everything needed to apply and revert it."""

    start: Coordinates
    end: Coordinates
    piece_moved: Piece
    piece_captured: Optional[Piece] = None
    special_move: Optional[SpecialMove] = None

    @property
    def is_capture(self) -> bool:
        return self.piece_captured is not None

    @property
    def promotion(self) -> Optional[Kind]:
        if isinstance(self.special_move, Promotion):
            return self.special_move.kind
        return None

    def __deepcopy__(self, memo) -> "Ply":
        return self

    def uci(self) -> str:
        promotion = self.promotion
        suffix = promotion.value if promotion else ""
        return f"{self.start.to_algebraic()}{self.end.to_algebraic()}{suffix}"

    def __str__(self) -> str:
        if isinstance(self.special_move, Castle):
            return "O-O" if self.special_move.side is CastlingSide.SHORT else "O-O-O"
        letter = "" if self.piece_moved.kind is Kind.PAWN else self.piece_moved.kind.value.upper()
        separator = "x" if self.is_capture else "-"
        promotion = self.promotion
        suffix = promotion.value.upper() if promotion else ""
        return f"{letter}{self.start.to_algebraic()}{separator}{self.end.to_algebraic()}{suffix}"
