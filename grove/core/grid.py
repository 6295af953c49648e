"""Board model: the 8x8 grid of optional pieces with cached king locations.

The grid knows nothing about turns or legality. It places and removes
pieces, answers attack probes, and applies/reverts the mechanical effects
of a ply so that `undo_move(make_move(m))` restores it exactly.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from grove.core.atoms import BOARD_COLUMNS, BOARD_ROWS, CastlingSide, Coordinates, Team
from grove.core.directions import DIAGONAL, KNIGHT_JUMPS, ALL_DIRECTIONS, ORTHOGONAL
from grove.core.pieces import Kind, LocatedPiece, PIECES, Piece
from grove.core.ply import Castle, EnPassant, Ply, Promotion

Square = Optional[Piece]
Grid = Tuple[Tuple[Square, ...], ...]

# King start square -> (king target column, rook start column, rook target column)
CASTLING_COLUMNS = {
    CastlingSide.SHORT: (6, 7, 5),
    CastlingSide.LONG: (2, 0, 3),
}
KING_START_COLUMN = 4

# Rook corner -> the castling right it carries.
CORNER_RIGHTS = {
    Coordinates(7, 7): (Team.WHITE, CastlingSide.SHORT),
    Coordinates(7, 0): (Team.WHITE, CastlingSide.LONG),
    Coordinates(0, 7): (Team.BLACK, CastlingSide.SHORT),
    Coordinates(0, 0): (Team.BLACK, CastlingSide.LONG),
}

_BACK_RANK = (Kind.ROOK, Kind.KNIGHT, Kind.BISHOP, Kind.QUEEN,
              Kind.KING, Kind.BISHOP, Kind.KNIGHT, Kind.ROOK)

STARTING_POSITION: Grid = (
    tuple(PIECES[Team.BLACK][kind] for kind in _BACK_RANK),
    tuple(PIECES[Team.BLACK][Kind.PAWN] for _ in range(BOARD_COLUMNS)),
    (None,) * BOARD_COLUMNS,
    (None,) * BOARD_COLUMNS,
    (None,) * BOARD_COLUMNS,
    (None,) * BOARD_COLUMNS,
    tuple(PIECES[Team.WHITE][Kind.PAWN] for _ in range(BOARD_COLUMNS)),
    tuple(PIECES[Team.WHITE][kind] for kind in _BACK_RANK),
)

_ROOK_LIKE = (Kind.ROOK, Kind.QUEEN)
_BISHOP_LIKE = (Kind.BISHOP, Kind.QUEEN)


class InvalidBoardError(ValueError):
    """The grid breaks the one-king-per-team invariant."""


class PositionSnapshot:
    """Hashable identity of a position: placement, turn, rights, en-passant.

    Move counters are deliberately absent, so equal snapshots mean the same
    position for repetition purposes. The hash is computed once.
    """

    __slots__ = ("grid", "turn", "castling_rights", "en_passant", "_hash")

    def __init__(self, grid: Grid, turn: Team, castling_rights, en_passant: Optional[Coordinates]):
        self.grid = grid
        self.turn = turn
        self.castling_rights = castling_rights
        self.en_passant = en_passant
        self._hash = hash((grid, turn, castling_rights, en_passant))

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other) -> bool:
        if not isinstance(other, PositionSnapshot):
            return NotImplemented
        return (self._hash == other._hash
                and self.turn is other.turn
                and self.en_passant == other.en_passant
                and self.castling_rights == other.castling_rights
                and self.grid == other.grid)

    def __deepcopy__(self, memo) -> "PositionSnapshot":
        return self

    def __reduce__(self):
        # String hashes differ between processes; rebuild instead of copying _hash.
        return (PositionSnapshot, (self.grid, self.turn, self.castling_rights, self.en_passant))

    def __repr__(self) -> str:
        return (f"PositionSnapshot(turn={self.turn.name}, castling={self.castling_rights.to_fen()}, "
                f"en_passant={self.en_passant})")


class BoardGrid:
    def __init__(self, squares: Optional[Sequence[Sequence[Square]]] = None):
        if squares is None:
            squares = STARTING_POSITION
        if len(squares) != BOARD_ROWS or any(len(row) != BOARD_COLUMNS for row in squares):
            raise InvalidBoardError("grid must be 8x8")
        self._squares: List[List[Square]] = [list(row) for row in squares]
        self._kings: Dict[Team, Coordinates] = {}

        counts = {Team.WHITE: 0, Team.BLACK: 0}
        for row in range(BOARD_ROWS):
            for column in range(BOARD_COLUMNS):
                piece = self._squares[row][column]
                if piece is not None and piece.kind is Kind.KING:
                    counts[piece.team] += 1
                    self._kings[piece.team] = Coordinates.at(row, column)
        for team, count in counts.items():
            if count != 1:
                raise InvalidBoardError(f"{team.name} must have exactly one king, found {count}")

    @classmethod
    def from_starting_position(cls) -> "BoardGrid":
        return cls(STARTING_POSITION)

    @property
    def grid(self) -> Grid:
        return tuple(tuple(row) for row in self._squares)

    def get(self, coordinates: Coordinates) -> Square:
        return self._squares[coordinates.row][coordinates.column]

    def set(self, piece: Piece, coordinates: Coordinates):
        self._squares[coordinates.row][coordinates.column] = piece
        if piece.kind is Kind.KING:
            self._kings[piece.team] = coordinates

    def unset(self, coordinates: Coordinates):
        piece = self._squares[coordinates.row][coordinates.column]
        self._squares[coordinates.row][coordinates.column] = None
        if piece is not None and piece.kind is Kind.KING and self._kings.get(piece.team) == coordinates:
            del self._kings[piece.team]

    def king(self, team: Team) -> Coordinates:
        return self._kings[team]

    def pieces(self, team: Team) -> List[LocatedPiece]:
        return [lp for lp in self.all_pieces() if lp.piece.team is team]

    def all_pieces(self) -> List[LocatedPiece]:
        located = []
        for row, squares in enumerate(self._squares):
            for column, piece in enumerate(squares):
                if piece is not None:
                    located.append(LocatedPiece(piece, Coordinates.at(row, column)))
        return located

    def is_square_under_attack(self, location: Coordinates, attacker: Team) -> bool:
        """Reverse probe: look outward from `location` for an `attacker` piece that hits it."""
        squares = self._squares
        row, column = location.row, location.column

        for d_row, d_column in KNIGHT_JUMPS:
            r, c = row + d_row, column + d_column
            if 0 <= r < 8 and 0 <= c < 8:
                piece = squares[r][c]
                if piece is not None and piece.team is attacker and piece.kind is Kind.KNIGHT:
                    return True

        for d_row, d_column in ALL_DIRECTIONS:
            r, c = row + d_row, column + d_column
            if 0 <= r < 8 and 0 <= c < 8:
                piece = squares[r][c]
                if piece is not None and piece.team is attacker and piece.kind is Kind.KING:
                    return True

        # An attacking pawn sits one row behind the target from its own point of view.
        r = row - attacker.forward
        if 0 <= r < 8:
            for c in (column - 1, column + 1):
                if 0 <= c < 8:
                    piece = squares[r][c]
                    if piece is not None and piece.team is attacker and piece.kind is Kind.PAWN:
                        return True

        return (self._ray_hits(row, column, ORTHOGONAL, attacker, _ROOK_LIKE)
                or self._ray_hits(row, column, DIAGONAL, attacker, _BISHOP_LIKE))

    def _ray_hits(self, row: int, column: int, directions: Iterable[Tuple[int, int]],
                  attacker: Team, kinds: Tuple[Kind, ...]) -> bool:
        squares = self._squares
        for d_row, d_column in directions:
            r, c = row + d_row, column + d_column
            while 0 <= r < 8 and 0 <= c < 8:
                piece = squares[r][c]
                if piece is not None:
                    if piece.team is attacker and piece.kind in kinds:
                        return True
                    break
                r += d_row
                c += d_column
        return False

    def make_move(self, ply: Ply):
        squares = self._squares
        start, end, piece = ply.start, ply.end, ply.piece_moved
        special = ply.special_move

        squares[start.row][start.column] = None
        if isinstance(special, Promotion):
            squares[end.row][end.column] = piece.promoted(special.kind)
        else:
            squares[end.row][end.column] = piece

        if piece.kind is Kind.KING:
            self._kings[piece.team] = end

        if isinstance(special, EnPassant):
            captured_at = special.captured_at
            squares[captured_at.row][captured_at.column] = None
        elif isinstance(special, Castle):
            _, rook_from, rook_to = CASTLING_COLUMNS[special.side]
            row = start.row
            squares[row][rook_to] = squares[row][rook_from]
            squares[row][rook_from] = None

    def undo_move(self, ply: Ply):
        squares = self._squares
        start, end, piece = ply.start, ply.end, ply.piece_moved
        special = ply.special_move

        squares[start.row][start.column] = piece
        if isinstance(special, EnPassant):
            squares[end.row][end.column] = None
            captured_at = special.captured_at
            squares[captured_at.row][captured_at.column] = ply.piece_captured
        else:
            squares[end.row][end.column] = ply.piece_captured

        if isinstance(special, Castle):
            _, rook_from, rook_to = CASTLING_COLUMNS[special.side]
            row = start.row
            squares[row][rook_from] = squares[row][rook_to]
            squares[row][rook_to] = None

        if piece.kind is Kind.KING:
            self._kings[piece.team] = start

    def copy(self) -> "BoardGrid":
        clone = BoardGrid.__new__(BoardGrid)
        clone._squares = [list(row) for row in self._squares]
        clone._kings = dict(self._kings)
        return clone

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoardGrid):
            return NotImplemented
        return self._squares == other._squares and self._kings == other._kings

    def __str__(self) -> str:
        files = "    a   b   c   d   e   f   g   h"
        border = "  +---+---+---+---+---+---+---+---+"
        lines = [files]
        for row, squares in enumerate(self._squares):
            rank = BOARD_ROWS - row
            lines.append(border)
            cells = " | ".join(p.symbol() if p else " " for p in squares)
            lines.append(f"{rank} | {cells} | {rank}")
        lines.append(border)
        lines.append(files)
        return "\n".join(lines)
