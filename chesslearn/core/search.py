"""Minimax search with alpha-beta pruning over python-chess boards."""

import chess
import math
from dataclasses import dataclass
from typing import Optional, Tuple

from chesslearn.config import CONFIG
from chesslearn.core.evaluator import PositionEvaluator

INF = math.inf


@dataclass(frozen=True)
class SearchResult:
    move: Optional[str]  # SAN, None on a terminal root
    evaluation: float
    nodes: int = 0


class MinimaxSearch:
    """Full-width minimax with alpha-beta pruning.

    White maximizes and Black minimizes the evaluator's White-relative score.
    Moves are tried in python-chess legal-move order and only a strictly
    better score replaces the current best, so the first move reaching the
    extremal value wins ties.
    """

    def __init__(self, evaluator: Optional[PositionEvaluator] = None, depth: int = None):
        self.evaluator = evaluator or PositionEvaluator()
        self.max_depth = CONFIG.search.depth if depth is None else depth
        self.nodes = 0

    def search(self, board: chess.Board, depth: Optional[int] = None) -> SearchResult:
        """Return the best move (SAN) and its minimax value for the side to move."""
        target_depth = self.max_depth if depth is None else depth
        self.nodes = 0
        # Private copy: the caller's board is never touched.
        search_board = board.copy()
        value, move = self._minimax(search_board, target_depth, -INF, INF)
        move_san = board.san(move) if move is not None else None
        return SearchResult(move_san, value, self.nodes)

    def _minimax(self, board: chess.Board, depth: int, alpha: float, beta: float) -> Tuple[float, Optional[chess.Move]]:
        self.nodes += 1
        if depth <= 0 or board.is_game_over():
            return self.evaluator.evaluate(board), None

        best_move = None
        if board.turn == chess.WHITE:
            best_score = -INF
            for move in list(board.legal_moves):
                board.push(move)
                score, _ = self._minimax(board, depth - 1, alpha, beta)
                board.pop()
                if score > best_score:
                    best_score = score
                    best_move = move
                alpha = max(alpha, score)
                if beta <= alpha:
                    break
        else:
            best_score = INF
            for move in list(board.legal_moves):
                board.push(move)
                score, _ = self._minimax(board, depth - 1, alpha, beta)
                board.pop()
                if score < best_score:
                    best_score = score
                    best_move = move
                beta = min(beta, score)
                if beta <= alpha:
                    break
        return best_score, best_move
