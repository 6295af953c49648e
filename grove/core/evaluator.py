"""Static evaluation: material plus piece-square tables, from the side to move."""

from typing import Dict, Optional

from grove.config import CONFIG, EvalConfig
from grove.core.atoms import Team
from grove.core.board import ChessBoard
from grove.core.pieces import Kind
from grove.core.ply import Ply, Promotion

CHECKMATE_SCORE = 1_000_000
DRAW_SCORE = 0

# Tables read from White's side: index 0 is a8, index 63 is h1.
PAWN_TABLE = (
     0,   0,   0,   0,   0,   0,   0,   0,
    50,  50,  50,  50,  50,  50,  50,  50,
    10,  10,  20,  30,  30,  20,  10,  10,
     5,   5,  10,  25,  25,  10,   5,   5,
     0,   0,   0,  20,  20,   0,   0,   0,
     5,  -5, -10,   0,   0, -10,  -5,   5,
     5,  10,  10, -20, -20,  10,  10,   5,
     0,   0,   0,   0,   0,   0,   0,   0,
)

KNIGHT_TABLE = (
    -50, -40, -30, -30, -30, -30, -40, -50,
    -40, -20,   0,   0,   0,   0, -20, -40,
    -30,   0,  10,  15,  15,  10,   0, -30,
    -30,   5,  15,  20,  20,  15,   5, -30,
    -30,   0,  15,  20,  20,  15,   0, -30,
    -30,   5,  10,  15,  15,  10,   5, -30,
    -40, -20,   0,   5,   5,   0, -20, -40,
    -50, -40, -30, -30, -30, -30, -40, -50,
)

BISHOP_TABLE = (
    -20, -10, -10, -10, -10, -10, -10, -20,
    -10,   0,   0,   0,   0,   0,   0, -10,
    -10,   0,   5,  10,  10,   5,   0, -10,
    -10,   5,   5,  10,  10,   5,   5, -10,
    -10,   0,  10,  10,  10,  10,   0, -10,
    -10,  10,  10,  10,  10,  10,  10, -10,
    -10,   5,   0,   0,   0,   0,   5, -10,
    -20, -10, -10, -10, -10, -10, -10, -20,
)

ROOK_TABLE = (
     0,   0,   0,   0,   0,   0,   0,   0,
     5,  10,  10,  10,  10,  10,  10,   5,
    -5,   0,   0,   0,   0,   0,   0,  -5,
    -5,   0,   0,   0,   0,   0,   0,  -5,
    -5,   0,   0,   0,   0,   0,   0,  -5,
    -5,   0,   0,   0,   0,   0,   0,  -5,
    -5,   0,   0,   0,   0,   0,   0,  -5,
     0,   0,   0,   5,   5,   0,   0,   0,
)

QUEEN_TABLE = (
    -20, -10, -10,  -5,  -5, -10, -10, -20,
    -10,   0,   0,   0,   0,   0,   0, -10,
    -10,   0,   5,   5,   5,   5,   0, -10,
     -5,   0,   5,   5,   5,   5,   0,  -5,
      0,   0,   5,   5,   5,   5,   0,  -5,
    -10,   5,   5,   5,   5,   5,   0, -10,
    -10,   0,   5,   0,   0,   0,   0, -10,
    -20, -10, -10,  -5,  -5, -10, -10, -20,
)

KING_TABLE = (
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -20, -30, -30, -40, -40, -30, -30, -20,
    -10, -20, -20, -20, -20, -20, -20, -10,
     20,  20,   0,   0,   0,   0,  20,  20,
     20,  30,  10,   0,   0,  10,  30,  20,
)

PIECE_SQUARE_TABLES = {
    Kind.PAWN: PAWN_TABLE,
    Kind.KNIGHT: KNIGHT_TABLE,
    Kind.BISHOP: BISHOP_TABLE,
    Kind.ROOK: ROOK_TABLE,
    Kind.QUEEN: QUEEN_TABLE,
    Kind.KING: KING_TABLE,
}


def flip_square(index: int) -> int:
    """Mirror a 0..63 index vertically (a8 <-> a1)."""
    return index ^ 56


def piece_values(cfg: Optional[EvalConfig] = None) -> Dict[Kind, int]:
    cfg = cfg or CONFIG.eval
    return {kind: cfg.piece_values.get(kind.name, 0) for kind in Kind}


def terminal_score(board: ChessBoard) -> Optional[int]:
    """Mate/draw score from the side to move, or None while the game is on."""
    outcome = board.outcome
    if outcome is None:
        return None
    if outcome.is_draw:
        return DRAW_SCORE
    return CHECKMATE_SCORE if outcome.winner is board.turn else -CHECKMATE_SCORE


class Evaluator:
    def __init__(self, cfg: Optional[EvalConfig] = None):
        self.cfg = cfg or CONFIG.eval
        self.values = piece_values(self.cfg)

    def evaluate(self, board: ChessBoard) -> int:
        """Return static eval in centipawns, positive favors side to move."""
        terminal = terminal_score(board)
        if terminal is not None:
            return terminal

        turn = board.turn
        use_positional = self.cfg.use_positional
        score = 0
        for piece, position in board.backend.all_pieces():
            value = self.values[piece.kind]
            if use_positional:
                index = position.row * 8 + position.column
                if piece.team is Team.BLACK:
                    index = flip_square(index)
                value += PIECE_SQUARE_TABLES[piece.kind][index]
            score += value if piece.team is turn else -value
        return score

    def score_move(self, ply: Ply, promotion_bonus: Optional[int] = None) -> int:
        """MVV-LVA: 10 x victim - aggressor, plus a bonus for promotions."""
        score = 0
        if ply.piece_captured is not None:
            score += 10 * self.values[ply.piece_captured.kind] - self.values[ply.piece_moved.kind]
        if isinstance(ply.special_move, Promotion):
            score += CONFIG.search.promotion_bonus if promotion_bonus is None else promotion_bonus
        return score
