"""Forsyth-Edwards Notation: lexer, parser and writer.

    <FEN> ::= <placement> ' ' <side> ' ' <castling> ' ' <en passant> ' ' <halfmove> ' ' <fullmove>

The lexer turns the text into typed tokens field by field; the parser checks
the grammar (rank widths, canonical castling order, en-passant ranks, clock
values) and builds a `PositionSnapshot` plus a `MoveCounter`. Every failure is
a `FenParsingError` naming the field and the offending content.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from grove.core.atoms import BOARD_COLUMNS, BOARD_ROWS, FILES, CastlingRights, Coordinates, MoveCounter, Team
from grove.core.grid import PositionSnapshot
from grove.core.pieces import Piece

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

FIELD_NAMES = (
    "piece placement",
    "side to move",
    "castling ability",
    "en passant target",
    "halfmove clock",
    "fullmove number",
)

_PIECE_LETTERS = "PNBRQKpnbrqk"
_CASTLING_ORDER = "KQkq"


class FenErrorKind(Enum):
    EMPTY_INPUT = "empty input"
    MISSING_FIELD = "missing field"
    TOO_MANY_FIELDS = "too many fields"
    INVALID_PIECE = "invalid piece character"
    WRONG_RANK_COUNT = "wrong number of ranks"
    WRONG_RANK_WIDTH = "rank does not describe exactly 8 squares"
    INVALID_SIDE_TO_MOVE = "invalid side to move"
    INVALID_CASTLING = "invalid castling ability"
    INVALID_EN_PASSANT = "invalid en passant target"
    INVALID_HALFMOVE = "invalid halfmove clock"
    INVALID_FULLMOVE = "invalid fullmove number"


class FenParsingError(ValueError):
    def __init__(self, kind: FenErrorKind, field: int, content: str):
        self.kind = kind
        self.field = field
        self.content = content
        super().__init__(f"{kind.value} in {FIELD_NAMES[field]}: {content!r}")


class TokenKind(Enum):
    EMPTY_SQUARES = "empty squares"
    PIECE = "piece"
    RANK_SEPARATOR = "rank separator"
    SIDE_TO_MOVE = "side to move"
    NO_CASTLING = "no castling"
    CASTLING = "castling"
    NO_EN_PASSANT = "no en passant"
    EN_PASSANT = "en passant"
    HALFMOVE = "halfmove"
    FULLMOVE = "fullmove"


@dataclass(frozen=True)
class FenToken:
    kind: TokenKind
    value: object
    field: int
    text: str


def tokenize(fen: str) -> List[FenToken]:
    fields = fen.split()
    if not fields:
        raise FenParsingError(FenErrorKind.EMPTY_INPUT, 0, fen)
    if len(fields) > len(FIELD_NAMES):
        raise FenParsingError(FenErrorKind.TOO_MANY_FIELDS, len(FIELD_NAMES) - 1, fields[-1])
    if len(fields) < len(FIELD_NAMES):
        raise FenParsingError(FenErrorKind.MISSING_FIELD, len(fields), fen)

    tokens: List[FenToken] = []
    tokens.extend(_lex_placement(fields[0]))
    tokens.append(_lex_side(fields[1]))
    tokens.extend(_lex_castling(fields[2]))
    tokens.append(_lex_en_passant(fields[3]))
    tokens.append(_lex_number(fields[4], 4, TokenKind.HALFMOVE, FenErrorKind.INVALID_HALFMOVE))
    tokens.append(_lex_number(fields[5], 5, TokenKind.FULLMOVE, FenErrorKind.INVALID_FULLMOVE))
    return tokens


def _lex_placement(text: str) -> List[FenToken]:
    tokens = []
    for char in text:
        if char == "/":
            tokens.append(FenToken(TokenKind.RANK_SEPARATOR, None, 0, char))
        elif char in "12345678":
            tokens.append(FenToken(TokenKind.EMPTY_SQUARES, int(char), 0, char))
        elif char in _PIECE_LETTERS:
            tokens.append(FenToken(TokenKind.PIECE, Piece.from_symbol(char), 0, char))
        else:
            raise FenParsingError(FenErrorKind.INVALID_PIECE, 0, char)
    return tokens


def _lex_side(text: str) -> FenToken:
    if text == "w":
        return FenToken(TokenKind.SIDE_TO_MOVE, Team.WHITE, 1, text)
    if text == "b":
        return FenToken(TokenKind.SIDE_TO_MOVE, Team.BLACK, 1, text)
    raise FenParsingError(FenErrorKind.INVALID_SIDE_TO_MOVE, 1, text)


def _lex_castling(text: str) -> List[FenToken]:
    if text == "-":
        return [FenToken(TokenKind.NO_CASTLING, None, 2, text)]
    tokens = []
    for char in text:
        if char not in _CASTLING_ORDER:
            raise FenParsingError(FenErrorKind.INVALID_CASTLING, 2, text)
        tokens.append(FenToken(TokenKind.CASTLING, char, 2, char))
    return tokens


def _lex_en_passant(text: str) -> FenToken:
    if text == "-":
        return FenToken(TokenKind.NO_EN_PASSANT, None, 3, text)
    if len(text) == 2 and text[0] in FILES and text[1] in "36":
        return FenToken(TokenKind.EN_PASSANT, Coordinates.from_algebraic(text), 3, text)
    raise FenParsingError(FenErrorKind.INVALID_EN_PASSANT, 3, text)


def _lex_number(text: str, field: int, kind: TokenKind, error: FenErrorKind) -> FenToken:
    if not text.isascii() or not text.isdigit():
        raise FenParsingError(error, field, text)
    return FenToken(kind, int(text), field, text)


def parse(fen: str) -> Tuple[PositionSnapshot, MoveCounter]:
    """Parse a FEN string into a position snapshot and its move counters."""
    tokens = tokenize(fen)

    rows: List[List[Optional[Piece]]] = [[]]
    turn = Team.WHITE
    castling = ""
    en_passant = None
    halfmove = 0
    fullmove = 1

    for token in tokens:
        if token.kind is TokenKind.RANK_SEPARATOR:
            _check_rank(rows[-1], fen.split()[0])
            rows.append([])
        elif token.kind is TokenKind.EMPTY_SQUARES:
            rows[-1].extend([None] * token.value)
        elif token.kind is TokenKind.PIECE:
            rows[-1].append(token.value)
        elif token.kind is TokenKind.SIDE_TO_MOVE:
            turn = token.value
        elif token.kind is TokenKind.CASTLING:
            castling += token.value
        elif token.kind is TokenKind.EN_PASSANT:
            en_passant = token.value
        elif token.kind is TokenKind.HALFMOVE:
            halfmove = token.value
        elif token.kind is TokenKind.FULLMOVE:
            fullmove = token.value

    placement = fen.split()[0]
    _check_rank(rows[-1], placement)
    if len(rows) != BOARD_ROWS:
        raise FenParsingError(FenErrorKind.WRONG_RANK_COUNT, 0, placement)

    if castling and not _is_canonical_castling(castling):
        raise FenParsingError(FenErrorKind.INVALID_CASTLING, 2, castling)
    rights = CastlingRights(
        "K" in castling, "Q" in castling, "k" in castling, "q" in castling,
    )

    if fullmove < 1:
        raise FenParsingError(FenErrorKind.INVALID_FULLMOVE, 5, str(fullmove))

    grid = tuple(tuple(row) for row in rows)
    snapshot = PositionSnapshot(grid, turn, rights, en_passant)
    return snapshot, MoveCounter(halfmove, fullmove)


def _check_rank(rank: List[Optional[Piece]], placement: str):
    if len(rank) != BOARD_COLUMNS:
        raise FenParsingError(FenErrorKind.WRONG_RANK_WIDTH, 0, placement)


def _is_canonical_castling(castling: str) -> bool:
    position = -1
    for char in castling:
        index = _CASTLING_ORDER.index(char)
        if index <= position:
            return False
        position = index
    return True


def to_fen(snapshot: PositionSnapshot, counter: MoveCounter) -> str:
    ranks = []
    for row in snapshot.grid:
        rank = ""
        empty = 0
        for piece in row:
            if piece is None:
                empty += 1
                continue
            if empty:
                rank += str(empty)
                empty = 0
            rank += piece.symbol()
        if empty:
            rank += str(empty)
        ranks.append(rank)

    en_passant = snapshot.en_passant.to_algebraic() if snapshot.en_passant else "-"
    return " ".join((
        "/".join(ranks),
        snapshot.turn.value,
        snapshot.castling_rights.to_fen(),
        en_passant,
        str(counter.fifty_move_counter),
        str(counter.fullmove),
    ))
