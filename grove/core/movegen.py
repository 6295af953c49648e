"""Pseudo-legal move generation.

Every generator writes into a caller-supplied buffer so the legality filter
can reuse one list across all pieces of a position. Moves produced here obey
piece geometry only; they may still leave the mover's own king attacked.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from grove.core.atoms import CastlingRights, CastlingSide, Coordinates, Team
from grove.core.directions import ALL_DIRECTIONS, DIAGONAL, KNIGHT_JUMPS, MAX_SLIDE, ORTHOGONAL
from grove.core.grid import CASTLING_COLUMNS, KING_START_COLUMN, BoardGrid
from grove.core.pieces import PROMOTION_KINDS, Kind, LocatedPiece
from grove.core.ply import Castle, EnPassant, Ply, Promotion

_PROMOTIONS = tuple(Promotion(kind) for kind in PROMOTION_KINDS)
_CASTLES = {side: Castle(side) for side in CastlingSide}

# Columns that must be empty between king and rook, and columns the king crosses.
_CASTLING_EMPTY_COLUMNS = {
    CastlingSide.SHORT: (5, 6),
    CastlingSide.LONG: (1, 2, 3),
}
_CASTLING_TRANSIT_COLUMNS = {
    CastlingSide.SHORT: (5, 6),
    CastlingSide.LONG: (3, 2),
}


def slide(what: LocatedPiece, distance: int, directions: Sequence[Tuple[int, int]],
          backend: BoardGrid, buffer: List[Ply]):
    """Walk each direction up to `distance` steps.

    An empty square yields a quiet move and the walk continues; an enemy
    yields a capture and stops it; a friendly piece or the edge stops it
    without a move.
    """
    piece, start = what
    team = piece.team
    squares = backend._squares
    for d_row, d_column in directions:
        row, column = start.row, start.column
        for _ in range(distance):
            row += d_row
            column += d_column
            end = Coordinates.at(row, column)
            if end is None:
                break
            target = squares[row][column]
            if target is None:
                buffer.append(Ply(start, end, piece))
                continue
            if target.team is not team:
                buffer.append(Ply(start, end, piece, target))
            break


def rook_moves(what: LocatedPiece, backend: BoardGrid, buffer: List[Ply]):
    slide(what, MAX_SLIDE, ORTHOGONAL, backend, buffer)


def bishop_moves(what: LocatedPiece, backend: BoardGrid, buffer: List[Ply]):
    slide(what, MAX_SLIDE, DIAGONAL, backend, buffer)


def queen_moves(what: LocatedPiece, backend: BoardGrid, buffer: List[Ply]):
    slide(what, MAX_SLIDE, ALL_DIRECTIONS, backend, buffer)


def knight_moves(what: LocatedPiece, backend: BoardGrid, buffer: List[Ply]):
    slide(what, 1, KNIGHT_JUMPS, backend, buffer)


def king_moves(what: LocatedPiece, backend: BoardGrid, castling_rights: CastlingRights,
               buffer: List[Ply]):
    slide(what, 1, ALL_DIRECTIONS, backend, buffer)
    _castling_moves(what, backend, castling_rights, buffer)


def _castling_moves(what: LocatedPiece, backend: BoardGrid, castling_rights: CastlingRights,
                    buffer: List[Ply]):
    king, start = what
    team = king.team
    row = team.home_row
    if start.row != row or start.column != KING_START_COLUMN:
        return

    enemy = team.opposite()
    squares = backend._squares
    in_check = None
    for side in (CastlingSide.SHORT, CastlingSide.LONG):
        if not castling_rights.has(team, side):
            continue
        king_to, rook_from, _ = CASTLING_COLUMNS[side]
        rook = squares[row][rook_from]
        if rook is None or rook.team is not team or rook.kind is not Kind.ROOK:
            continue
        if any(squares[row][column] is not None for column in _CASTLING_EMPTY_COLUMNS[side]):
            continue
        if in_check is None:
            in_check = backend.is_square_under_attack(start, enemy)
        if in_check:
            return
        if any(backend.is_square_under_attack(Coordinates.at(row, column), enemy)
               for column in _CASTLING_TRANSIT_COLUMNS[side]):
            continue
        buffer.append(Ply(start, Coordinates.at(row, king_to), king, None, _CASTLES[side]))


def pawn_moves(what: LocatedPiece, backend: BoardGrid, en_passant_target: Optional[Coordinates],
               buffer: List[Ply]):
    pawn, start = what
    team = pawn.team
    forward = team.forward
    starting_row = 6 if team is Team.WHITE else 1
    promotion_row = 0 if team is Team.WHITE else 7
    squares = backend._squares

    forward_row = start.row + forward
    if not 0 <= forward_row < 8:
        return

    one_forward = Coordinates.at(forward_row, start.column)
    if squares[forward_row][start.column] is None:
        if forward_row == promotion_row:
            for promotion in _PROMOTIONS:
                buffer.append(Ply(start, one_forward, pawn, None, promotion))
        else:
            buffer.append(Ply(start, one_forward, pawn))
            if start.row == starting_row:
                two_forward_row = forward_row + forward
                if squares[two_forward_row][start.column] is None:
                    buffer.append(Ply(start, Coordinates.at(two_forward_row, start.column), pawn))

    for column in (start.column - 1, start.column + 1):
        if not 0 <= column < 8:
            continue
        target_square = Coordinates.at(forward_row, column)
        if en_passant_target is not None and target_square == en_passant_target:
            captured = squares[start.row][column]
            if (captured is not None and captured.kind is Kind.PAWN and captured.team is not team
                    and squares[forward_row][column] is None):
                buffer.append(Ply(start, target_square, pawn, captured,
                                  EnPassant(Coordinates.at(start.row, column))))
            continue
        target = squares[forward_row][column]
        if target is None or target.team is team:
            continue
        if forward_row == promotion_row:
            for promotion in _PROMOTIONS:
                buffer.append(Ply(start, target_square, pawn, target, promotion))
        else:
            buffer.append(Ply(start, target_square, pawn, target))


def generate_pseudo_legal_moves(what: LocatedPiece, backend: BoardGrid,
                                en_passant_target: Optional[Coordinates],
                                castling_rights: CastlingRights,
                                buffer: Optional[List[Ply]] = None) -> List[Ply]:
    """Dispatch on piece kind. Appends to `buffer` when given and returns it."""
    if buffer is None:
        buffer = []
    kind = what.piece.kind
    if kind is Kind.PAWN:
        pawn_moves(what, backend, en_passant_target, buffer)
    elif kind is Kind.KNIGHT:
        knight_moves(what, backend, buffer)
    elif kind is Kind.BISHOP:
        bishop_moves(what, backend, buffer)
    elif kind is Kind.ROOK:
        rook_moves(what, backend, buffer)
    elif kind is Kind.QUEEN:
        queen_moves(what, backend, buffer)
    else:
        king_moves(what, backend, castling_rights, buffer)
    return buffer
