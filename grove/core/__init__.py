"""Core engine components: board, move generation, evaluation, search, and transposition table."""

from .board import ChessBoard
from .evaluator import Evaluator
from .fen import FenParsingError
from .grid import BoardGrid, InvalidBoardError
from .ply import Ply
from .search import SearchEngine, SearchResult
from .transposition import TranspositionTable
