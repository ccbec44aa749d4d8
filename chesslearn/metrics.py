"""Training metrics computed on demand from a session's results."""

import statistics
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Sequence

from chesslearn.records import GameResult

if TYPE_CHECKING:
    from chesslearn.agent import ChessAgent
    from chesslearn.training import TrainingSession

CONVERGENCE_WINDOW = 10
CONVERGENCE_SCALE = 2000.0
LENGTH_VARIANCE_SCALE = 1000.0
OUTCOME_KINDS = 3  # white, black, draw


@dataclass
class AgentSessionStats:
    agent_id: str
    name: str
    wins: int
    losses: int
    draws: int
    elo_rating: float
    learning_progress: List[float] = field(default_factory=list)


@dataclass
class TrainingMetrics:
    session_id: str
    total_games: int
    agent1: AgentSessionStats
    agent2: AgentSessionStats
    convergence_rate: float
    diversity_score: float
    average_game_length: float
    total_training_time: float  # seconds


def variance(values: Sequence[float]) -> float:
    """Population variance; 0 for an empty sequence."""
    if not values:
        return 0.0
    return statistics.pvariance(values)


def convergence_rate(progress1: Sequence[float], progress2: Sequence[float], window: int = CONVERGENCE_WINDOW) -> float:
    """How settled both rating curves are: 1 is flat, 0 is noisy (or too short to tell)."""
    recent1 = list(progress1)[-window:]
    recent2 = list(progress2)[-window:]
    if len(recent1) < 2 or len(recent2) < 2:
        return 0.0
    mean_variance = (variance(recent1) + variance(recent2)) / 2
    return max(0.0, 1.0 - mean_variance / CONVERGENCE_SCALE)


def diversity_score(results: Sequence[GameResult]) -> float:
    """Average of outcome variety and game-length spread, both in [0, 1]."""
    if not results:
        return 0.0
    outcome_diversity = len({r.result for r in results}) / OUTCOME_KINDS
    length_diversity = min(1.0, variance([r.plies for r in results]) / LENGTH_VARIANCE_SCALE)
    return (outcome_diversity + length_diversity) / 2


def agent_session_stats(agent: "ChessAgent", results: Sequence[GameResult]) -> AgentSessionStats:
    outcomes = [r.outcome_for(agent.id) for r in results]
    return AgentSessionStats(
        agent_id=agent.id,
        name=agent.name,
        wins=outcomes.count("win"),
        losses=outcomes.count("loss"),
        draws=outcomes.count("draw"),
        elo_rating=agent.stats.elo_rating,
        learning_progress=list(agent.stats.learning_progress),
    )


def compute_metrics(session: "TrainingSession") -> TrainingMetrics:
    results = list(session.results)
    end = session.end_time or datetime.now(timezone.utc)
    average_length = sum(r.plies for r in results) / len(results) if results else 0.0
    return TrainingMetrics(
        session_id=session.id,
        total_games=session.games_played,
        agent1=agent_session_stats(session.agent1, results),
        agent2=agent_session_stats(session.agent2, results),
        convergence_rate=convergence_rate(
            session.agent1.stats.learning_progress,
            session.agent2.stats.learning_progress,
        ),
        diversity_score=diversity_score(results),
        average_game_length=average_length,
        total_training_time=(end - session.start_time).total_seconds(),
    )
