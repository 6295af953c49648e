"""Position controller: turn order, rights, counters, history and outcome.

`ChessBoard` drives the move generator and mutates its `BoardGrid` through
paired make/undo calls. Every per-move field (castling rights, fifty-move
counter, snapshots) is kept on a stack so that `undo_last_move` restores the
previous state exactly.
"""

from __future__ import annotations

import copy
import logging
from collections import Counter
from typing import List, Optional

from grove.core.atoms import CastlingRights, Coordinates, MoveCounter, Team
from grove.core.fen import STARTING_FEN, parse, to_fen
from grove.core.grid import CORNER_RIGHTS, BoardGrid, PositionSnapshot
from grove.core.movegen import generate_pseudo_legal_moves
from grove.core.outcome import Draw, DrawClaim, DrawReason, Outcome, Win, WinReason
from grove.core.pieces import Kind
from grove.core.ply import Ply

logger = logging.getLogger(__name__)

CLAIMABLE_REPETITIONS = 3
FORCED_REPETITIONS = 5
CLAIMABLE_FIFTY_MOVE_PLIES = 100
FORCED_FIFTY_MOVE_PLIES = 150


class ChessBoard:
    def __init__(self, fen: Optional[str] = None):
        """Initialize from FEN or the standard starting position."""
        self._load(STARTING_FEN if fen is None else fen)

    @classmethod
    def from_starting_position(cls) -> "ChessBoard":
        return cls()

    @classmethod
    def from_fen(cls, fen: str) -> "ChessBoard":
        return cls(fen)

    def _load(self, fen: str):
        snapshot, counter = parse(fen)
        self._grid = BoardGrid(snapshot.grid)
        self._turn = snapshot.turn
        self._castling_log: List[CastlingRights] = [snapshot.castling_rights]
        self._initial_en_passant = snapshot.en_passant
        self._en_passant = snapshot.en_passant
        self._counter = counter
        self._move_log: List[Ply] = []
        self._undo_log: List[Ply] = []
        self._snapshots: List[PositionSnapshot] = [snapshot]
        self._repetitions = Counter({snapshot: 1})
        self._outcome: Optional[Outcome] = None
        self._outcome_log: List[Optional[Outcome]] = []
        self._legal_cache: Optional[List[Ply]] = None
        self._in_check = self._grid.is_square_under_attack(
            self._grid.king(self._turn), self._turn.opposite())
        self._outcome = self._detect_outcome(self._legal_moves())

    def reset(self):
        """Reset to the initial position."""
        self._load(STARTING_FEN)

    def set_fen(self, fen: str):
        """Replace the whole state with the position described by `fen`."""
        self._load(fen)

    def to_fen(self) -> str:
        return to_fen(self.snapshot(), self._counter)

    def copy(self) -> "ChessBoard":
        return copy.deepcopy(self)

    # ── Accessors ─────────────────────────────────────────────────────────

    @property
    def backend(self) -> BoardGrid:
        return self._grid

    @property
    def turn(self) -> Team:
        return self._turn

    @property
    def outcome(self) -> Optional[Outcome]:
        return self._outcome

    @property
    def castling_rights(self) -> CastlingRights:
        return self._castling_log[-1]

    @property
    def en_passant_target(self) -> Optional[Coordinates]:
        return self._en_passant

    @property
    def move_counter(self) -> MoveCounter:
        return self._counter

    @property
    def move_log(self) -> List[Ply]:
        return list(self._move_log)

    def snapshot(self) -> PositionSnapshot:
        return self._snapshots[-1]

    def is_in_check(self) -> bool:
        return self._in_check

    def is_game_over(self) -> bool:
        return self._outcome is not None

    def repetition_count(self) -> int:
        return self._repetitions[self.snapshot()]

    # ── Move generation ───────────────────────────────────────────────────

    def get_legal_moves(self) -> List[Ply]:
        """Legal moves for the side to move, independent of any outcome."""
        return list(self._legal_moves())

    def _legal_moves(self) -> List[Ply]:
        if self._legal_cache is None:
            self._legal_cache = self._generate_legal_moves()
        return self._legal_cache

    def _generate_legal_moves(self) -> List[Ply]:
        grid = self._grid
        team = self._turn
        enemy = team.opposite()
        rights = self._castling_log[-1]

        pseudo_legal: List[Ply] = []
        for located in grid.pieces(team):
            generate_pseudo_legal_moves(located, grid, self._en_passant, rights, pseudo_legal)

        legal = []
        for ply in pseudo_legal:
            grid.make_move(ply)
            if not grid.is_square_under_attack(grid.king(team), enemy):
                legal.append(ply)
            grid.undo_move(ply)
        return legal

    def parse_uci(self, move_str: str) -> Optional[Ply]:
        """Legal ply matching a coordinate move such as 'e2e4' or 'e7e8q', else None."""
        for ply in self._legal_moves():
            if ply.uci() == move_str:
                return ply
        return None

    # ── Make / undo ───────────────────────────────────────────────────────

    def push_uci(self, move_str: str) -> bool:
        """Play a UCI move (e.g. 'e2e4'). Returns True if it was legal and played."""
        if self._outcome is not None:
            return False
        ply = self.parse_uci(move_str)
        if ply is None:
            return False
        self.make_move(ply)
        return True

    def make_move(self, ply: Ply):
        if self._outcome is not None:
            return
        self._undo_log.clear()
        self._apply(ply)

    def push_unchecked(self, ply: Ply):
        """Play a legal ply even after the game has ended, for exhaustive tree walks.

        `undo_last_move` restores whatever outcome was in force before it.
        """
        self._undo_log.clear()
        self._apply(ply)

    def _apply(self, ply: Ply):
        mover = self._turn
        self._outcome_log.append(self._outcome)
        self._grid.make_move(ply)
        self._move_log.append(ply)

        self._en_passant = _en_passant_after(ply)
        self._castling_log.append(_rights_after(self._castling_log[-1], ply))

        self._turn = mover.opposite()
        self._in_check = self._grid.is_square_under_attack(self._grid.king(self._turn), mover)

        snapshot = PositionSnapshot(self._grid.grid, self._turn, self._castling_log[-1], self._en_passant)
        self._snapshots.append(snapshot)
        self._repetitions[snapshot] += 1

        self._counter.tick(ply.is_capture or ply.piece_moved.kind is Kind.PAWN, mover)

        self._legal_cache = self._generate_legal_moves()
        self._outcome = self._detect_outcome(self._legal_cache)
        if self._outcome is not None:
            logger.debug("game over after %s: %s", ply, self._outcome)

    def undo_last_move(self):
        if not self._move_log:
            return
        ply = self._move_log.pop()
        self._outcome = self._outcome_log.pop()

        snapshot = self._snapshots.pop()
        self._repetitions[snapshot] -= 1
        if self._repetitions[snapshot] <= 0:
            del self._repetitions[snapshot]

        self._grid.undo_move(ply)
        if self._move_log:
            self._en_passant = _en_passant_after(self._move_log[-1])
        else:
            self._en_passant = self._initial_en_passant

        self._turn = self._turn.opposite()
        self._counter.untick(self._turn)
        self._castling_log.pop()
        self._in_check = self._grid.is_square_under_attack(
            self._grid.king(self._turn), self._turn.opposite())
        self._legal_cache = None
        self._undo_log.append(ply)

    def redo_move(self):
        """Replay the most recently undone ply."""
        if self._undo_log and self._outcome is None:
            self._apply(self._undo_log.pop())

    # ── Outcome ───────────────────────────────────────────────────────────

    def _detect_outcome(self, legal_moves: List[Ply]) -> Optional[Outcome]:
        if not legal_moves:
            if self._in_check:
                return Win(self._turn.opposite(), WinReason.CHECKMATE)
            return Draw(DrawReason.STALEMATE)
        if self._counter.fifty_move_counter >= FORCED_FIFTY_MOVE_PLIES:
            return Draw(DrawReason.SEVENTY_FIVE_MOVE_RULE)
        if self._is_dead_position():
            return Draw(DrawReason.DEAD_POSITION)
        if self._repetitions[self.snapshot()] >= FORCED_REPETITIONS:
            return Draw(DrawReason.FIVEFOLD_REPETITION)
        return None

    def _is_dead_position(self) -> bool:
        """No sequence of legal moves can mate.

        Recognizes bare kings, a single minor piece against a bare king, and
        positions where every remaining piece besides the kings is a bishop
        standing on the same square colour.
        """
        others = [lp for lp in self._grid.all_pieces() if lp.piece.kind is not Kind.KING]
        if not others:
            return True
        if len(others) == 1 and others[0].piece.kind in (Kind.KNIGHT, Kind.BISHOP):
            return True
        if all(lp.piece.kind is Kind.BISHOP for lp in others):
            colours = {(lp.position.row + lp.position.column) % 2 for lp in others}
            return len(colours) == 1
        return False

    def can_claim_threefold_repetition(self) -> bool:
        return self.repetition_count() >= CLAIMABLE_REPETITIONS

    def can_claim_fifty_move_rule(self) -> bool:
        return self._counter.fifty_move_counter >= CLAIMABLE_FIFTY_MOVE_PLIES

    def claim_threefold_repetition(self) -> DrawClaim:
        if self._outcome is not None:
            return DrawClaim(False, f"game is already over: {self._outcome}")
        count = self.repetition_count()
        if count < CLAIMABLE_REPETITIONS:
            return DrawClaim(False, f"position has occurred {count} time(s), "
                                    f"{CLAIMABLE_REPETITIONS} needed")
        self._outcome = Draw(DrawReason.THREEFOLD_REPETITION)
        return DrawClaim(True, f"position has occurred {count} times")

    def claim_fifty_move_rule(self) -> DrawClaim:
        if self._outcome is not None:
            return DrawClaim(False, f"game is already over: {self._outcome}")
        plies = self._counter.fifty_move_counter
        if plies < CLAIMABLE_FIFTY_MOVE_PLIES:
            return DrawClaim(False, f"{plies} half-moves without capture or pawn move, "
                                    f"{CLAIMABLE_FIFTY_MOVE_PLIES} needed")
        self._outcome = Draw(DrawReason.FIFTY_MOVE_RULE)
        return DrawClaim(True, f"{plies} half-moves without capture or pawn move")

    def resign(self):
        """The side to move resigns."""
        if self._outcome is None:
            self._outcome = Win(self._turn.opposite(), WinReason.RESIGNATION)

    def agree_draw(self):
        if self._outcome is None:
            self._outcome = Draw(DrawReason.AGREEMENT)

    # ── Misc ──────────────────────────────────────────────────────────────

    def __eq__(self, other) -> bool:
        if not isinstance(other, ChessBoard):
            return NotImplemented
        return (self._grid == other._grid
                and self._turn is other._turn
                and self._castling_log == other._castling_log
                and self._en_passant == other._en_passant
                and self._counter == other._counter
                and self._move_log == other._move_log
                and self._repetitions == other._repetitions
                and self._outcome == other._outcome
                and self._in_check == other._in_check)

    def __str__(self) -> str:
        return str(self._grid)

    def print_board(self):
        """Print ASCII representation."""
        print(self)


def _en_passant_after(ply: Ply) -> Optional[Coordinates]:
    if ply.piece_moved.kind is Kind.PAWN and abs(ply.start.row - ply.end.row) == 2:
        return Coordinates.at((ply.start.row + ply.end.row) // 2, ply.start.column)
    return None


def _rights_after(rights: CastlingRights, ply: Ply) -> CastlingRights:
    if not rights.any():
        return rights
    if ply.piece_moved.kind is Kind.KING:
        rights = rights.without_team(ply.piece_moved.team)
    for square in (ply.start, ply.end):
        corner = CORNER_RIGHTS.get(square)
        if corner is not None:
            rights = rights.without(*corner)
    return rights
