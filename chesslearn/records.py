"""Per-ply trajectory records and finished-game results."""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional, Tuple

import chess

OUTCOME_REWARDS: Dict[str, float] = {"win": 1.0, "loss": -1.0, "draw": 0.0}


@dataclass
class TrajectoryRecord:
    """One ply as seen by the agent that played it.

    `reward` and `outcome` stay unset until the game is over.
    """
    position: str
    move: str
    next_position: str
    evaluation: float
    reward: float = 0.0
    outcome: Optional[str] = None


@dataclass(frozen=True)
class GameResult:
    game_id: str
    white_id: str
    white_name: str
    black_id: str
    black_name: str
    result: str  # "white" | "black" | "draw"
    termination: str
    moves: Tuple[str, ...]
    final_fen: str
    pgn: str
    duration_ms: float
    white_rating: float
    black_rating: float
    timestamp: datetime

    @property
    def plies(self) -> int:
        return len(self.moves)

    def outcome_for(self, agent_id: str) -> str:
        """'win', 'loss' or 'draw' for the given participant."""
        if self.result == "draw":
            return "draw"
        if agent_id == self.white_id:
            return "win" if self.result == "white" else "loss"
        if agent_id == self.black_id:
            return "win" if self.result == "black" else "loss"
        raise ValueError(f"Agent {agent_id} did not play game {self.game_id}")


def result_from_outcome(outcome: Optional[chess.Outcome]) -> str:
    """Map a python-chess outcome to 'white' / 'black' / 'draw'. No outcome counts as a draw."""
    if outcome is None or outcome.winner is None:
        return "draw"
    return "white" if outcome.winner == chess.WHITE else "black"


PGN_RESULTS = {"white": "1-0", "black": "0-1", "draw": "1/2-1/2"}
