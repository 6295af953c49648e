from typing import Optional, Tuple

from grove.core.board import ChessBoard
from grove.core.evaluator import Evaluator
from grove.core.search import SearchEngine


class Engine:
    def __init__(self, depth: Optional[int] = None, time_budget_ms: Optional[int] = None,
                 fen: Optional[str] = None):
        self.board = ChessBoard(fen)
        self.search = SearchEngine(Evaluator(), max_depth=depth, time_budget_ms=time_budget_ms)

    def get_best_move(self) -> Tuple[Optional[str], int]:
        result = self.search.search(self.board)
        move = result.best_move.uci() if result.best_move else None
        return move, result.score

    def make_move(self, move_uci: str) -> bool:
        return self.board.push_uci(move_uci)

    def undo(self, plies: int = 1):
        for _ in range(plies):
            self.board.undo_last_move()

    def print_board(self):
        self.board.print_board()
