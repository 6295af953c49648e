import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from grove.config import CONFIG, SearchConfig
from grove.core.board import ChessBoard
from grove.core.book import OpeningBook
from grove.core.evaluator import CHECKMATE_SCORE, DRAW_SCORE, Evaluator, terminal_score
from grove.core.ply import Ply
from grove.core.transposition import TT_EXACT, TT_LOWER, TT_UPPER, TranspositionTable
from grove.core.utils import format_info

logger = logging.getLogger(__name__)

INF = 10_000_000
MAX_DEPTH = 50

SearchCallback = Callable[[Optional[Ply], int, int], None]


@dataclass
class SearchResult:
    best_move: Optional[Ply]
    score: int
    depth: int
    nodes: int
    pv: List[Ply] = field(default_factory=list)


def terminal_value(board: ChessBoard, depth: int) -> Optional[int]:
    """Outcome score from the side to move, mates biased by the remaining depth.

    A mate found with more depth left is closer to the root, so the winner
    prefers it and the loser avoids it.
    """
    score = terminal_score(board)
    if score is None or score == DRAW_SCORE:
        return score
    return score + depth if score > 0 else score - depth


class SearchEngine:
    def __init__(self, evaluator: Optional[Evaluator] = None, max_depth: Optional[int] = None,
                 time_budget_ms: Optional[int] = None, book: Optional[OpeningBook] = None,
                 cfg: Optional[SearchConfig] = None):
        self.cfg = cfg or CONFIG.search
        self.evaluator = evaluator or Evaluator()
        self.max_depth = min(max_depth or self.cfg.max_depth, MAX_DEPTH)
        self.time_budget_ms = self.cfg.time_budget_ms if time_budget_ms is None else time_budget_ms
        if book is None and self.cfg.use_opening_book:
            book = OpeningBook(self.cfg.book_paths)
        self.book = book
        self.tt = TranspositionTable()

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._root_best: Optional[Ply] = None
        self.nodes = 0

    # Public API
    def search(self, board: ChessBoard, time_budget_ms: Optional[int] = None,
               max_depth: Optional[int] = None) -> SearchResult:
        """Iterative deepening on a copy of `board`. The caller's board is not touched."""
        self._stop_event.clear()
        return self._iterate(board, time_budget_ms, max_depth, None)

    def best_move(self, board: ChessBoard, time_budget_ms: Optional[int] = None) -> Optional[Ply]:
        return self.search(board, time_budget_ms).best_move

    def start_search(self, board: ChessBoard, callback: Optional[SearchCallback] = None,
                     time_budget_ms: Optional[int] = None, max_depth: Optional[int] = None):
        """Search on a background thread.

        `callback(best_move, depth, score)` runs after every completed depth
        and once more with depth -1 when the search ends.
        """
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        position = board.copy()

        def worker():
            result = None
            try:
                result = self._iterate(position, time_budget_ms, max_depth, callback)
            except Exception:
                logger.exception("background search failed")
            finally:
                if callback:
                    if result is None:
                        callback(self._root_best, -1, 0)
                    else:
                        callback(result.best_move, -1, result.score)

        self._thread = threading.Thread(target=worker, daemon=True)
        self._thread.start()

    def stop(self):
        """Request cancellation. The running depth is always completed first."""
        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=0.2)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the background search. Returns True once it has finished."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def is_searching(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # Iterative deepening
    def _iterate(self, board: ChessBoard, time_budget_ms: Optional[int], max_depth: Optional[int],
                 callback: Optional[SearchCallback]) -> SearchResult:
        if board.is_game_over():
            return SearchResult(None, terminal_value(board, 0), 0, 0, [])

        if self.book is not None:
            book_move = self.book.lookup(board)
            if book_move is not None:
                return SearchResult(book_move, 0, 0, 0, [book_move])

        budget = self.time_budget_ms if time_budget_ms is None else time_budget_ms
        target_depth = min(max_depth or self.max_depth, MAX_DEPTH)

        search_board = board.copy()
        self.tt.clear()
        self.nodes = 0
        result = SearchResult(None, 0, 0, 0, [])
        start_time = time.time()

        for d in range(1, target_depth + 1):
            if self._stop_event.is_set():
                break

            self._root_best = None
            score = self._alpha_beta(search_board, d, -INF, INF, 0)

            pv_moves = self._get_pv_line(search_board, d)
            best_move = self._root_best or (pv_moves[0] if pv_moves else result.best_move)
            result = SearchResult(best_move, score, d, self.nodes, pv_moves)

            elapsed = time.time() - start_time
            logger.info(format_info(d, score, self.nodes, elapsed, pv_moves, CHECKMATE_SCORE))
            if callback:
                callback(best_move, d, score)

            if budget and elapsed * 1000 >= budget:
                break

        return result

    def _get_pv_line(self, board: ChessBoard, depth: int) -> List[Ply]:
        pv_moves = []
        seen = {board.snapshot()}

        for _ in range(depth):
            entry = self.tt.get(board.snapshot())
            if entry is None or entry.best_move is None or board.is_game_over():
                break
            move = entry.best_move
            if move not in board.get_legal_moves():
                break

            pv_moves.append(move)
            board.make_move(move)

            # cycle detection
            if board.snapshot() in seen:
                break
            seen.add(board.snapshot())

        for _ in pv_moves:
            board.undo_last_move()
        return pv_moves

    # Core negamax (alpha-beta)
    def _alpha_beta(self, board: ChessBoard, depth: int, alpha: int, beta: int, ply: int) -> int:
        self.nodes += 1
        alpha_orig, beta_orig = alpha, beta
        snapshot = board.snapshot()

        # TT Lookup
        tt_entry = self.tt.get(snapshot)
        tt_move = None
        if tt_entry is not None:
            tt_move = tt_entry.best_move
            if tt_entry.depth >= depth:
                if tt_entry.flag == TT_EXACT:
                    if ply == 0:
                        self._root_best = tt_move
                    return tt_entry.value
                elif tt_entry.flag == TT_LOWER:
                    alpha = max(alpha, tt_entry.value)
                elif tt_entry.flag == TT_UPPER:
                    beta = min(beta, tt_entry.value)
                if alpha >= beta:
                    if ply == 0:
                        self._root_best = tt_move
                    return tt_entry.value

        terminal = terminal_value(board, depth)
        if terminal is not None:
            return terminal

        if depth <= 0:
            if self.cfg.use_quiescence:
                return self._quiescence(board, alpha, beta)
            return self.evaluator.evaluate(board)

        moves = board.get_legal_moves()
        if not moves:
            return self.evaluator.evaluate(board)
        moves = self._order_moves(moves, tt_move)

        best_score = -INF
        best_move_found = None
        for move in moves:
            board.make_move(move)
            score = -self._alpha_beta(board, depth - 1, -beta, -alpha, ply + 1)
            board.undo_last_move()

            if score > best_score:
                best_score = score
                best_move_found = move
            if score > alpha:
                alpha = score
            if alpha >= beta:
                break

        if best_score <= alpha_orig:
            flag = TT_UPPER
        elif best_score >= beta_orig:
            flag = TT_LOWER
        else:
            flag = TT_EXACT

        self.tt.store(snapshot, depth, best_score, flag, best_move_found)
        if ply == 0:
            self._root_best = best_move_found
        return best_score

    # Quiescence search (captures only)
    def _quiescence(self, board: ChessBoard, alpha: int, beta: int) -> int:
        self.nodes += 1
        terminal = terminal_value(board, 0)
        if terminal is not None:
            return terminal

        stand_pat = self.evaluator.evaluate(board)
        if stand_pat >= beta:
            return beta
        if stand_pat > alpha:
            alpha = stand_pat

        captures = [m for m in board.get_legal_moves() if m.is_capture]
        captures.sort(key=self._score_move, reverse=True)

        for move in captures:
            board.make_move(move)
            score = -self._quiescence(board, -beta, -alpha)
            board.undo_last_move()
            if score >= beta:
                return beta
            if score > alpha:
                alpha = score

        return alpha

    # Move ordering
    def _order_moves(self, moves: List[Ply], tt_move: Optional[Ply]) -> List[Ply]:
        """Hash move first, then captures and promotions by MVV-LVA."""
        return sorted(moves, key=lambda m: (m == tt_move, self._score_move(m)), reverse=True)

    def _score_move(self, ply: Ply) -> int:
        return self.evaluator.score_move(ply, self.cfg.promotion_bonus)
