"""
Knowledge Store - what an agent has learned from its own games.

Four maps keyed by FEN:
- opening book: the preferred continuation per position, with how often it
  was reinforced and how well it scored
- position values: smoothed outcome estimates
- tactical motifs: forcing moves that won games
- endgame answers: moves played in positions with few pieces left

plus the aggregate game statistics of the owning agent.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class OpeningContinuation:
    move: str
    frequency: int = 1
    win_rate: float = 0.5


@dataclass
class TacticalMotif:
    label: str
    solution: str
    frequency: int = 1


@dataclass
class EndgameAnswer:
    best_move: str
    evaluation: float


@dataclass
class AgentStatistics:
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    draws: int = 0
    elo_rating: float = 1500.0
    learning_progress: List[float] = field(default_factory=list)
    positions_analyzed: int = 0
    average_thinking_time: float = 1000.0  # ms
    last_updated: datetime = field(default_factory=utcnow)

    @property
    def win_rate(self) -> float:
        if self.games_played == 0:
            return 0.0
        return self.wins / self.games_played


class KnowledgeStore:
    """Owned, in-memory maps of learned knowledge. One store per agent."""

    def __init__(self):
        self.opening_book: Dict[str, OpeningContinuation] = {}
        self.position_values: Dict[str, float] = {}
        self.tactical_motifs: Dict[str, TacticalMotif] = {}
        self.endgame_answers: Dict[str, EndgameAnswer] = {}

    # -------------------------
    # Opening book
    # -------------------------
    def continuation(self, fen: str) -> Optional[OpeningContinuation]:
        return self.opening_book.get(fen)

    def add_continuation(self, fen: str, move: str, frequency: int = 1, win_rate: float = 0.5) -> OpeningContinuation:
        if not 0.0 <= win_rate <= 1.0:
            raise ValueError(f"win_rate must be within [0, 1], got {win_rate}")
        entry = OpeningContinuation(move, frequency, win_rate)
        self.opening_book[fen] = entry
        return entry

    def reinforce_opening(self, fen: str, move: str, score: float) -> OpeningContinuation:
        """Reinforce `move` at `fen` with a game score in [0, 1].

        The same move gains frequency and its win rate is averaged toward the
        score; a different or unknown move replaces the entry.
        """
        entry = self.opening_book.get(fen)
        if entry is not None and entry.move == move:
            entry.frequency += 1
            entry.win_rate = (entry.win_rate + score) / 2
            return entry
        return self.add_continuation(fen, move, frequency=1, win_rate=score)

    # -------------------------
    # Position values
    # -------------------------
    def position_value(self, fen: str) -> float:
        return self.position_values.get(fen, 0.0)

    def update_position_value(self, fen: str, target: float, learning_rate: float) -> float:
        old = self.position_values.get(fen, 0.0)
        new = old + learning_rate * (target - old)
        self.position_values[fen] = new
        return new

    # -------------------------
    # Motifs and endgames
    # -------------------------
    def record_motif(self, fen: str, label: str, solution: str) -> TacticalMotif:
        motif = self.tactical_motifs.get(fen)
        if motif is not None and motif.solution == solution:
            motif.frequency += 1
            motif.label = label
            return motif
        motif = TacticalMotif(label, solution)
        self.tactical_motifs[fen] = motif
        return motif

    def record_endgame(self, fen: str, best_move: str, evaluation: float) -> EndgameAnswer:
        answer = EndgameAnswer(best_move, evaluation)
        self.endgame_answers[fen] = answer
        return answer

    def summary(self) -> Dict[str, float]:
        values = list(self.position_values.values())
        return {
            "opening_book_size": len(self.opening_book),
            "position_values_size": len(self.position_values),
            "tactical_motifs_size": len(self.tactical_motifs),
            "endgame_answers_size": len(self.endgame_answers),
            "average_position_value": sum(values) / len(values) if values else 0.0,
        }
