"""Polyglot opening book lookup.

With no book files configured this never yields a move, which keeps the
search fully deterministic. Book files are read with python-chess.
"""
import logging
import os
from typing import Iterable, List, Optional

import chess
from chess import polyglot

from grove.core.board import ChessBoard
from grove.core.ply import Ply

logger = logging.getLogger(__name__)


class OpeningBook:
    def __init__(self, paths: Optional[Iterable[str]] = None):
        self.paths: List[str] = list(paths or [])

    def lookup(self, board: ChessBoard) -> Optional[Ply]:
        """Check if the current position is in one of the books, in order."""
        if not self.paths or board.is_game_over():
            return None
        position = chess.Board(board.to_fen())
        for book_path in self.paths:
            if not os.path.exists(book_path):
                continue
            try:
                with polyglot.open_reader(book_path) as reader:
                    entry = reader.weighted_choice(position)
            except IndexError:
                continue
            except OSError as exc:
                logger.warning("cannot read opening book %s: %s", book_path, exc)
                continue
            ply = board.parse_uci(entry.move.uci())
            if ply is not None:
                logger.info("[%s] Book Move: %s", os.path.basename(book_path), ply.uci())
                return ply
        return None
