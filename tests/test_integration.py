"""
Integration test suite for the grove chess engine.

Tests components working together end-to-end:
- Perft against published node counts (serial and process-parallel)
- Legal move generation cross-checked against python-chess
- Full game simulations (engine vs engine, engine vs scripted)
- Opening book lookup and its use by the search
- Terminal front end driven by scripted input
- Perft entry point
"""

import random
from unittest.mock import MagicMock, patch

import chess
import pytest

from grove import perft as perft_module
from grove.core.atoms import Team
from grove.core.board import ChessBoard
from grove.core.book import OpeningBook
from grove.core.evaluator import Evaluator
from grove.core.outcome import Win, WinReason
from grove.core.search import SearchEngine
from grove.main import Engine
from grove.perft import EXPECTED_STARTING_POSITION, PerftResults, perft, root_level_perft
from interface import cli

KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"
POSITION_3 = "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1"
POSITION_4 = "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1"
POSITION_5 = "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8"


def fields(fen: str, *indices: int):
    parts = fen.split()
    return [parts[i] for i in indices]


def oracle_perft(board: chess.Board, depth: int) -> int:
    if depth == 0:
        return 1
    total = 0
    for move in board.legal_moves:
        board.push(move)
        total += oracle_perft(board, depth - 1)
        board.pop()
    return total


# ════════════════════════════════════════════════════════════════════════════
#  PERFT
# ════════════════════════════════════════════════════════════════════════════


class TestPerft:
    """Leaf counts from chessprogramming.org Perft Results."""

    @pytest.mark.parametrize("depth", [0, 1, 2, 3])
    def test_starting_position(self, depth):
        assert perft(ChessBoard(), depth) == EXPECTED_STARTING_POSITION[depth]

    @pytest.mark.slow
    @pytest.mark.parametrize("depth", [4, 5])
    def test_starting_position_deep(self, depth):
        assert root_level_perft(ChessBoard(), depth) == EXPECTED_STARTING_POSITION[depth]

    @pytest.mark.parametrize("fen, depth", [
        # dead position at the root
        ("8/8/8/4k3/8/8/8/2B1K3 w - - 0 1", 2),
        # Kxd2 leaves king and knight against king
        ("8/8/8/4k3/8/8/3n4/4K2N w - - 0 1", 3),
        # any quiet move reaches the 75-move rule
        ("4k3/8/8/8/8/8/8/R3K3 w - - 149 90", 2),
    ])
    def test_walks_past_drawn_positions(self, fen, depth):
        board = ChessBoard(fen)
        expected = oracle_perft(chess.Board(fen), depth)
        assert perft(board, depth).nodes == expected
        assert root_level_perft(board, depth, workers=2).nodes == expected
        assert board.to_fen() == fen

    def test_kiwipete(self):
        board = ChessBoard(KIWIPETE)
        assert perft(board, 1) == PerftResults(48, captures=8, castles=2)
        assert perft(board, 2) == PerftResults(2039, captures=351, en_passant=1, castles=91)

    @pytest.mark.parametrize("fen, counts", [
        (POSITION_3, [14, 191, 2812]),
        (POSITION_4, [6, 264, 9467]),
        (POSITION_5, [44, 1486, 62379]),
    ])
    def test_node_counts(self, fen, counts):
        board = ChessBoard(fen)
        for depth, expected in enumerate(counts, start=1):
            assert perft(board, depth).nodes == expected, f"depth {depth}"

    def test_perft_leaves_board_unchanged(self):
        board = ChessBoard(KIWIPETE)
        perft(board, 2)
        assert board.to_fen() == KIWIPETE
        assert board == ChessBoard(KIWIPETE)

    def test_results_add_fieldwise(self):
        total = PerftResults(1, 2, 3, 4, 5) + PerftResults(10, 20, 30, 40, 50)
        assert total == PerftResults(11, 22, 33, 44, 55)


class TestParallelPerft:
    def test_matches_serial(self):
        board = ChessBoard(KIWIPETE)
        assert root_level_perft(board, 2, workers=2) == perft(ChessBoard(KIWIPETE), 2)

    def test_starting_position_depth_3(self):
        assert root_level_perft(ChessBoard(), 3, workers=2) == EXPECTED_STARTING_POSITION[3]

    def test_shallow_depths_run_serially(self):
        with patch("grove.perft.ProcessPoolExecutor") as pool:
            assert root_level_perft(ChessBoard(), 1) == EXPECTED_STARTING_POSITION[1]
            assert root_level_perft(ChessBoard(), 0) == EXPECTED_STARTING_POSITION[0]
            pool.assert_not_called()

    def test_root_board_untouched(self):
        board = ChessBoard(POSITION_3)
        root_level_perft(board, 2, workers=2)
        assert board.to_fen() == POSITION_3

    def test_main_reports_success(self, capsys):
        with patch("sys.argv", ["grove-perft", "2"]):
            perft_module.main()
        out = capsys.readouterr().out
        assert "--- Depth: 2 ---" in out
        assert "nodes=400" in out

    def test_main_rejects_bad_depth(self):
        with patch("sys.argv", ["grove-perft", "deep"]):
            with pytest.raises(SystemExit):
                perft_module.main()


# ════════════════════════════════════════════════════════════════════════════
#  LEGAL MOVES VS PYTHON-CHESS
# ════════════════════════════════════════════════════════════════════════════


class TestAgainstPythonChess:
    """Random walks where every position is checked against python-chess."""

    @pytest.mark.parametrize("fen, seed", [
        (chess.STARTING_FEN, 1),
        (chess.STARTING_FEN, 7),
        (KIWIPETE, 3),
        (POSITION_3, 5),
        (POSITION_4, 11),
        (POSITION_5, 13),
    ])
    def test_random_walk(self, fen, seed):
        rng = random.Random(seed)
        board = ChessBoard(fen)
        oracle = chess.Board(fen)

        for _ in range(80):
            ours = {m.uci() for m in board.get_legal_moves()}
            theirs = {m.uci() for m in oracle.legal_moves}
            assert ours == theirs, board.to_fen()
            assert board.is_in_check() == oracle.is_check()
            assert fields(board.to_fen(), 0, 1, 2, 4, 5) == fields(oracle.fen(), 0, 1, 2, 4, 5)

            if board.is_game_over():
                if isinstance(board.outcome, Win):
                    assert oracle.is_checkmate()
                break
            move = rng.choice(sorted(ours))
            assert board.push_uci(move)
            oracle.push_uci(move)

        # unwind the whole walk
        while board.move_log:
            board.undo_last_move()
            oracle.pop()
            assert fields(board.to_fen(), 0, 1, 2, 4, 5) == fields(oracle.fen(), 0, 1, 2, 4, 5)
        assert board.to_fen() == fen

    def test_stalemate_agrees(self):
        fen = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
        assert ChessBoard(fen).is_game_over()
        assert chess.Board(fen).is_stalemate()


# ════════════════════════════════════════════════════════════════════════════
#  ENGINE VS ENGINE — FULL GAME SIMULATIONS
# ════════════════════════════════════════════════════════════════════════════


class TestFullGame:
    """Tests that the engine can play complete games without crashing."""

    def test_engine_vs_engine_plays_legal_moves(self):
        engine = SearchEngine(Evaluator(), max_depth=1, time_budget_ms=0)
        board = ChessBoard()
        oracle = chess.Board()
        move_count = 0

        while not board.is_game_over() and move_count < 40:
            move = engine.best_move(board)
            assert move is not None
            assert chess.Move.from_uci(move.uci()) in oracle.legal_moves
            board.make_move(move)
            oracle.push_uci(move.uci())
            move_count += 1

        assert move_count > 10

    def test_engine_converts_mate(self):
        """KQ vs K: the engine delivers mate from a nearly finished position."""
        engine = SearchEngine(Evaluator(), max_depth=3, time_budget_ms=0)
        board = ChessBoard("7k/8/5K2/8/8/8/8/6Q1 w - - 0 1")
        for _ in range(6):
            if board.is_game_over():
                break
            board.make_move(engine.best_move(board))
        assert board.outcome == Win(Team.WHITE, WinReason.CHECKMATE)

    def test_engine_plays_from_midgame(self):
        engine = Engine(depth=2, time_budget_ms=0,
                        fen="r1bqkb1r/pppppppp/2n2n2/8/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 3")
        for _ in range(6):
            move, _ = engine.get_best_move()
            assert engine.make_move(move)
        assert len(engine.board.move_log) == 6


# ════════════════════════════════════════════════════════════════════════════
#  OPENING BOOK
# ════════════════════════════════════════════════════════════════════════════


def _reader_with(move_uci):
    reader = MagicMock()
    reader.__enter__.return_value.weighted_choice.return_value = MagicMock(
        move=chess.Move.from_uci(move_uci))
    return reader


class TestOpeningBook:
    def test_no_books_configured(self):
        assert OpeningBook().lookup(ChessBoard()) is None

    def test_missing_file_skipped(self, tmp_path):
        book = OpeningBook([str(tmp_path / "missing.bin")])
        assert book.lookup(ChessBoard()) is None

    def test_book_move_mapped_to_ply(self, tmp_path):
        path = tmp_path / "book.bin"
        path.write_bytes(b"")
        with patch("grove.core.book.polyglot.open_reader", return_value=_reader_with("e2e4")):
            ply = OpeningBook([str(path)]).lookup(ChessBoard())
        assert ply is not None
        assert ply.uci() == "e2e4"

    def test_position_not_in_book(self, tmp_path):
        path = tmp_path / "book.bin"
        path.write_bytes(b"")
        reader = MagicMock()
        reader.__enter__.return_value.weighted_choice.side_effect = IndexError
        with patch("grove.core.book.polyglot.open_reader", return_value=reader):
            assert OpeningBook([str(path)]).lookup(ChessBoard()) is None

    def test_search_plays_book_move(self, tmp_path):
        path = tmp_path / "book.bin"
        path.write_bytes(b"")
        engine = SearchEngine(Evaluator(), max_depth=3, time_budget_ms=0,
                              book=OpeningBook([str(path)]))
        with patch("grove.core.book.polyglot.open_reader", return_value=_reader_with("d2d4")):
            result = engine.search(ChessBoard())
        assert result.best_move.uci() == "d2d4"
        assert result.depth == 0


# ════════════════════════════════════════════════════════════════════════════
#  TERMINAL FRONT END
# ════════════════════════════════════════════════════════════════════════════


class TestCLI:
    def test_human_delivers_mate(self, capsys):
        engine = Engine(depth=1, time_budget_ms=0, fen="7k/8/6K1/8/8/8/8/R7 w - - 0 1")
        with patch("builtins.input", side_effect=["a1a8"]):
            outcome = cli.play(Team.WHITE, engine)
        assert outcome == Win(Team.WHITE, WinReason.CHECKMATE)
        assert "Game Over" in capsys.readouterr().out

    def test_illegal_move_then_quit(self, capsys):
        with patch("builtins.input", side_effect=["e2e5", "quit"]):
            outcome = cli.play(Team.WHITE, Engine(depth=1, time_budget_ms=0))
        assert outcome is None
        assert "Illegal move" in capsys.readouterr().out

    def test_engine_replies(self):
        engine = Engine(depth=1, time_budget_ms=0)
        with patch("builtins.input", side_effect=["e2e4", "quit"]):
            cli.play(Team.WHITE, engine)
        assert len(engine.board.move_log) == 2

    def test_undo_takes_back_both_plies(self):
        engine = Engine(depth=1, time_budget_ms=0)
        with patch("builtins.input", side_effect=["e2e4", "undo", "quit"]):
            cli.play(Team.WHITE, engine)
        assert engine.board.move_log == []

    def test_resign(self):
        with patch("builtins.input", side_effect=["resign"]):
            outcome = cli.play(Team.WHITE, Engine(depth=1, time_budget_ms=0))
        assert outcome == Win(Team.BLACK, WinReason.RESIGNATION)

    def test_rejected_draw_claim(self, capsys):
        with patch("builtins.input", side_effect=["draw", "quit"]):
            cli.play(Team.WHITE, Engine(depth=1, time_budget_ms=0))
        assert "Draw claim rejected" in capsys.readouterr().out

    def test_human_plays_black(self):
        engine = Engine(depth=1, time_budget_ms=0)
        with patch("builtins.input", side_effect=["quit"]):
            cli.play(Team.BLACK, engine)
        assert len(engine.board.move_log) == 1
