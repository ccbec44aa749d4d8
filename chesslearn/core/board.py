"""Board wrappers over python-chess: immutable positions and a game board with SAN history."""

from dataclasses import dataclass
from functools import cached_property
from typing import Dict, Optional, Tuple

import chess
import chess.pgn


@dataclass(frozen=True)
class Position:
    """Serialized board state (FEN) plus its derived legality metadata."""

    fen: str = chess.STARTING_FEN

    def __post_init__(self):
        # Raises ValueError on malformed FEN.
        chess.Board(self.fen)

    @classmethod
    def from_board(cls, board: chess.Board) -> "Position":
        return cls(board.fen())

    def board(self) -> chess.Board:
        """Return a fresh board; callers may mutate it freely."""
        return chess.Board(self.fen)

    @cached_property
    def legal_moves(self) -> Tuple[str, ...]:
        """Legal moves in SAN, in python-chess enumeration order."""
        board = self.board()
        return tuple(board.san(m) for m in board.legal_moves)

    @cached_property
    def outcome(self) -> Optional[chess.Outcome]:
        return self.board().outcome()

    @cached_property
    def piece_count(self) -> int:
        return chess.popcount(self.board().occupied)

    def is_legal(self, move_san: str) -> bool:
        return move_san in self.legal_moves

    def apply(self, move_san: str) -> "Position":
        """Return the position after `move_san`. Raises ValueError if illegal."""
        board = self.board()
        board.push_san(move_san)
        return Position.from_board(board)


class GameBoard:
    """A game in progress: python-chess board plus SAN move history."""

    def __init__(self, fen: str = None):
        self.board = chess.Board(fen) if fen else chess.Board()
        self.move_history = []

    def get_fen(self) -> str:
        return self.board.fen()

    def position(self) -> Position:
        return Position.from_board(self.board)

    def make_move(self, move_san: str) -> bool:
        """Push a SAN move (e.g. 'Nf3'). Returns True if legal; the board is untouched otherwise."""
        if move_san not in self.get_legal_moves():
            return False
        self.board.push_san(move_san)
        self.move_history.append(move_san)
        return True

    def get_legal_moves(self):
        """SAN moves playable from the current board."""
        return [self.board.san(m) for m in self.board.legal_moves]

    def is_game_over(self) -> bool:
        """Game over, counting draws a player could claim (threefold, fifty-move)."""
        return self.board.is_game_over(claim_draw=True)

    def outcome(self) -> Optional[chess.Outcome]:
        return self.board.outcome(claim_draw=True)

    def termination(self) -> str:
        """Lower-case termination name, or 'unterminated' while the game can go on."""
        outcome = self.outcome()
        if outcome is None:
            return "unterminated"
        return outcome.termination.name.lower()

    def pgn(self, headers: Optional[Dict[str, str]] = None) -> str:
        game = chess.pgn.Game.from_board(self.board)
        for key, value in (headers or {}).items():
            game.headers[key] = value
        return str(game)
