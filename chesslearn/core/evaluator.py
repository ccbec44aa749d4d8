"""
Position Evaluator
==================

Static evaluation for the self-play agents. Scores are centipawns from
White's point of view: positive favours White, negative favours Black.

Components:
    - Terminal scoring (checkmate = +/- mate score, draws = 0).
    - Material, using the configured piece values.
    - Positional terms: central knights and bishops, advanced pawns, and a
      king that hides in the middlegame but centralizes in the endgame.
    - Mobility: legal-move count difference between the two sides.

The evaluator never mutates the board it is given, so the search can call
it on every leaf.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Optional

import chess

from chesslearn.config import CONFIG

PIECE_NAMES = {
    chess.PAWN: "PAWN",
    chess.KNIGHT: "KNIGHT",
    chess.BISHOP: "BISHOP",
    chess.ROOK: "ROOK",
    chess.QUEEN: "QUEEN",
    chess.KING: "KING",
}

# Non-pawn material phase contribution, used to detect the endgame.
PHASE_WEIGHTS = {chess.KNIGHT: 1, chess.BISHOP: 1, chess.ROOK: 2, chess.QUEEN: 4}


@dataclass
class EvalWeights:
    """Tunable weights of the evaluator. Exported with an agent's knowledge."""

    piece_values: Dict[str, int] = field(default_factory=lambda: dict(CONFIG.eval.piece_values))
    mate_score: float = CONFIG.eval.mate_score
    mobility_weight: float = CONFIG.eval.mobility_weight
    center_weight: float = CONFIG.eval.center_weight
    pawn_advance_weight: float = CONFIG.eval.pawn_advance_weight
    king_activity_weight: float = CONFIG.eval.king_activity_weight
    king_safety_weight: float = CONFIG.eval.king_safety_weight
    endgame_phase: int = CONFIG.eval.endgame_phase

    def to_dict(self) -> Dict:
        return asdict(self)


def center_bonus(square: chess.Square) -> float:
    """0 on the rim, up to 5 on the four central squares."""
    rank = chess.square_rank(square)
    file = chess.square_file(square)
    return max(0.0, 3 - abs(3.5 - rank)) + max(0.0, 3 - abs(3.5 - file))


class PositionEvaluator:
    def __init__(self, weights: Optional[EvalWeights] = None):
        self.weights = weights or EvalWeights()

    def evaluate(self, board: chess.Board) -> float:
        w = self.weights
        outcome = board.outcome()
        if outcome is not None:
            if outcome.termination == chess.Termination.CHECKMATE:
                # The side to move is the mated side.
                return -w.mate_score if board.turn == chess.WHITE else w.mate_score
            return 0.0

        piece_map = board.piece_map()
        endgame = self.is_endgame(piece_map)

        score = 0.0
        for sq, piece in piece_map.items():
            value = w.piece_values[PIECE_NAMES[piece.piece_type]]
            value += self.positional_value(piece, sq, endgame)
            score += value if piece.color == chess.WHITE else -value

        score += w.mobility_weight * self.mobility(board)
        return score

    def is_endgame(self, piece_map: Dict[chess.Square, chess.Piece]) -> bool:
        phase = sum(PHASE_WEIGHTS.get(p.piece_type, 0) for p in piece_map.values())
        return phase <= self.weights.endgame_phase

    def positional_value(self, piece: chess.Piece, square: chess.Square, endgame: bool) -> float:
        w = self.weights
        pt = piece.piece_type
        if pt == chess.PAWN:
            rank = chess.square_rank(square)
            advance = rank - 1 if piece.color == chess.WHITE else 6 - rank
            return w.pawn_advance_weight * advance
        if pt in (chess.KNIGHT, chess.BISHOP):
            return w.center_weight * center_bonus(square)
        if pt == chess.KING:
            if endgame:
                return w.king_activity_weight * center_bonus(square)
            return -w.king_safety_weight * center_bonus(square)
        return 0.0

    def mobility(self, board: chess.Board) -> int:
        """White legal-move count minus Black legal-move count."""
        own = board.legal_moves.count()
        other = board.copy(stack=False)
        other.turn = not board.turn
        other.ep_square = None
        theirs = other.legal_moves.count()
        if board.turn == chess.WHITE:
            return own - theirs
        return theirs - own
