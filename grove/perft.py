"""Perft: count the leaves of the legal move tree to verify move generation.

Known-good counts for the standard starting position are kept in
`EXPECTED_STARTING_POSITION` (source: chessprogramming.org Perft Results).

Usage:

    python -m grove.perft 5
"""
import logging
import sys
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import astuple, dataclass
from typing import Iterable, Optional

from grove.config import CONFIG, configure_logging
from grove.core.board import ChessBoard
from grove.core.ply import Castle, EnPassant, Ply, Promotion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerftResults:
    nodes: int = 0
    captures: int = 0
    en_passant: int = 0
    castles: int = 0
    promotions: int = 0

    def __add__(self, other: "PerftResults") -> "PerftResults":
        if not isinstance(other, PerftResults):
            return NotImplemented
        return PerftResults(*(a + b for a, b in zip(astuple(self), astuple(other))))

    @classmethod
    def from_moves(cls, moves: Iterable[Ply]) -> "PerftResults":
        nodes = captures = en_passant = castles = promotions = 0
        for move in moves:
            nodes += 1
            if move.is_capture:
                captures += 1
            special = move.special_move
            if isinstance(special, Castle):
                castles += 1
            elif isinstance(special, EnPassant):
                en_passant += 1
            elif isinstance(special, Promotion):
                promotions += 1
        return cls(nodes, captures, en_passant, castles, promotions)


EXPECTED_STARTING_POSITION = (
    PerftResults(1),
    PerftResults(20),
    PerftResults(400),
    PerftResults(8_902, captures=34),
    PerftResults(197_281, captures=1_576),
    PerftResults(4_865_609, captures=82_719, en_passant=258),
    PerftResults(119_060_324, captures=2_812_008, en_passant=5_248),
)


def perft(board: ChessBoard, depth: int) -> PerftResults:
    """Serial walk. Depth 1 is bulk-counted from the legal move list."""
    if depth == 0:
        return PerftResults(1)

    moves = board.get_legal_moves()
    if depth == 1:
        return PerftResults.from_moves(moves)

    # Positions ended by a draw rule are walked like any other.
    results = PerftResults()
    for move in moves:
        board.push_unchecked(move)
        results += perft(board, depth - 1)
        board.undo_last_move()
    return results


def root_level_perft(board: ChessBoard, depth: int, workers: Optional[int] = None) -> PerftResults:
    """Perft with every root move handed to its own worker process.

    Each worker receives an independent copy of the position with its root
    move already played; the sub-results are summed once all have finished.
    """
    if depth <= 1:
        return perft(board, depth)

    children = []
    for move in board.get_legal_moves():
        child = board.copy()
        child.push_unchecked(move)
        children.append(child)

    workers = workers if workers is not None else CONFIG.perft.workers
    total = PerftResults()
    with ProcessPoolExecutor(max_workers=workers) as pool:
        for result in pool.map(perft, children, [depth - 1] * len(children)):
            total += result
    return total


def main() -> None:
    configure_logging()
    max_depth = 5
    if len(sys.argv) > 1:
        try:
            max_depth = int(sys.argv[1])
        except ValueError:
            print(f"Unknown depth: {sys.argv[1]}")
            print("Usage: python -m grove.perft [depth]")
            sys.exit(1)
        if not 0 <= max_depth < len(EXPECTED_STARTING_POSITION):
            print(f"Depth must be between 0 and {len(EXPECTED_STARTING_POSITION) - 1}")
            sys.exit(1)

    failed = False
    for depth in range(max_depth + 1):
        board = ChessBoard.from_starting_position()
        print(f"--- Depth: {depth} ---")

        start = time.time()
        result = root_level_perft(board, depth)
        elapsed = time.time() - start

        print(result)
        print(f"Took: {elapsed:.3f} seconds\n")

        expected = EXPECTED_STARTING_POSITION[depth]
        if result != expected:
            logger.error("perft(%d) mismatch: expected %s, got %s", depth, expected, result)
            failed = True

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
