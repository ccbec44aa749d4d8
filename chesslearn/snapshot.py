"""
Wire format of exported knowledge and training sessions.

Maps are flattened to ordered ``[key, value]`` pairs so that a snapshot is
plain JSON and insertion order survives a round trip. Everything is validated
up front; an agent only applies a snapshot that parsed completely.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from chesslearn.config import LearningParameters
from chesslearn.core.evaluator import PIECE_NAMES, EvalWeights
from chesslearn.knowledge import (
    AgentStatistics,
    EndgameAnswer,
    KnowledgeStore,
    OpeningContinuation,
    TacticalMotif,
)
from chesslearn.metrics import TrainingMetrics
from chesslearn.records import GameResult

SNAPSHOT_VERSION = 1


class KnowledgeSnapshot(BaseModel):
    opening_book: List[Tuple[str, OpeningContinuation]] = Field(default_factory=list)
    position_values: List[Tuple[str, float]] = Field(default_factory=list)
    tactical_motifs: List[Tuple[str, TacticalMotif]] = Field(default_factory=list)
    endgame_answers: List[Tuple[str, EndgameAnswer]] = Field(default_factory=list)

    @field_validator("opening_book")
    @classmethod
    def _check_book(cls, entries):
        for fen, entry in entries:
            if not 0.0 <= entry.win_rate <= 1.0:
                raise ValueError(f"win_rate {entry.win_rate} out of [0, 1] for {fen}")
            if entry.frequency < 1:
                raise ValueError(f"frequency must be positive for {fen}")
            if not entry.move:
                raise ValueError(f"empty book move for {fen}")
        return entries

    @classmethod
    def from_store(cls, store: KnowledgeStore) -> "KnowledgeSnapshot":
        return cls.model_validate({
            "opening_book": [(k, vars(v)) for k, v in store.opening_book.items()],
            "position_values": list(store.position_values.items()),
            "tactical_motifs": [(k, vars(v)) for k, v in store.tactical_motifs.items()],
            "endgame_answers": [(k, vars(v)) for k, v in store.endgame_answers.items()],
        })

    def to_store(self) -> KnowledgeStore:
        store = KnowledgeStore()
        store.opening_book = {k: OpeningContinuation(v.move, v.frequency, v.win_rate) for k, v in self.opening_book}
        store.position_values = {k: float(v) for k, v in self.position_values}
        store.tactical_motifs = {k: TacticalMotif(v.label, v.solution, v.frequency) for k, v in self.tactical_motifs}
        store.endgame_answers = {k: EndgameAnswer(v.best_move, v.evaluation) for k, v in self.endgame_answers}
        return store


class AgentSnapshot(BaseModel):
    version: int = SNAPSHOT_VERSION
    id: str
    name: str
    learning_params: LearningParameters
    depth: int = Field(ge=0)
    knowledge: KnowledgeSnapshot
    stats: AgentStatistics
    evaluator_weights: EvalWeights

    @field_validator("learning_params")
    @classmethod
    def _check_params(cls, params):
        for name in ("learning_rate", "exploration_rate", "discount_factor"):
            value = getattr(params, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} {value} out of [0, 1]")
        if params.memory_size < 0:
            raise ValueError(f"memory_size must not be negative, got {params.memory_size}")
        if params.batch_size < 1 or params.update_frequency < 1:
            raise ValueError("batch_size and update_frequency must be positive")
        if params.temperature <= 0:
            raise ValueError(f"temperature must be positive, got {params.temperature}")
        return params

    @field_validator("evaluator_weights")
    @classmethod
    def _check_weights(cls, weights):
        expected = set(PIECE_NAMES.values())
        if set(weights.piece_values) != expected:
            raise ValueError(f"piece_values must name exactly {sorted(expected)}")
        return weights

    @model_validator(mode="after")
    def _check_stats(self):
        s = self.stats
        if min(s.wins, s.losses, s.draws) < 0:
            raise ValueError("game counters must not be negative")
        if s.games_played != s.wins + s.losses + s.draws:
            raise ValueError(
                f"games_played ({s.games_played}) != wins + losses + draws "
                f"({s.wins + s.losses + s.draws})"
            )
        return self


class SessionInfo(BaseModel):
    id: str
    state: str
    start_time: datetime
    end_time: Optional[datetime] = None
    games_played: int
    target_games: int
    max_plies: int
    error: Optional[str] = None


class SessionSnapshot(BaseModel):
    version: int = SNAPSHOT_VERSION
    session: SessionInfo
    agent1: AgentSnapshot
    agent2: AgentSnapshot
    results: List[GameResult]
    metrics: TrainingMetrics
