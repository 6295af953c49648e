"""Transposition table keyed by position snapshots.

A `PositionSnapshot` already hashes placement, side to move, castling rights
and the en-passant square, so it serves directly as the key; no Zobrist keys
and no collision check are needed.

Usage:

    from grove.core.transposition import TranspositionTable, TT_EXACT

    tt = TranspositionTable()
    tt.store(board.snapshot(), depth=3, value=120, flag=TT_EXACT, best_move=ply)
    entry = tt.get(board.snapshot())
    if entry is not None and entry.depth >= wanted_depth:
        ...

Lookups return an entry whatever its depth (its move is still a good
ordering hint); callers trust the score only when it was searched deep
enough. A store replaces an existing entry only when the new depth is at
least the stored one. The table is owned by one search at a time and is not
thread-safe.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from grove.core.grid import PositionSnapshot
from grove.core.ply import Ply

TT_EXACT = 0
TT_LOWER = 1  # fail-high: true score >= value
TT_UPPER = 2  # fail-low: true score <= value


@dataclass
class TTEntry:
    depth: int
    value: int
    flag: int
    best_move: Optional[Ply]

    def __iter__(self):
        return iter((self.depth, self.value, self.flag, self.best_move))


class TranspositionTable:
    def __init__(self):
        self._table: Dict[PositionSnapshot, TTEntry] = {}

    def get(self, snapshot: PositionSnapshot) -> Optional[TTEntry]:
        return self._table.get(snapshot)

    def store(self, snapshot: PositionSnapshot, depth: int, value: int, flag: int,
              best_move: Optional[Ply]) -> bool:
        """Insert unless a deeper result is already held. Returns True when written."""
        existing = self._table.get(snapshot)
        if existing is not None and depth < existing.depth:
            return False
        self._table[snapshot] = TTEntry(depth, value, flag, best_move)
        return True

    def clear(self):
        self._table.clear()

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, snapshot: PositionSnapshot) -> bool:
        return snapshot in self._table
