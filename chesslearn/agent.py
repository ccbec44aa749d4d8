"""
Chess Agent: move selection and learning for one self-play participant.

An agent couples the minimax search, its own knowledge store and a set of
learning hyperparameters. It exposes two operations:

    select_move(position)          pick a move (book → search → exploration)
    record_game(outcome, records)  absorb a finished game into the knowledge store

and can export/import its full knowledge as a JSON snapshot.
"""

import copy
import logging
import random
import time
import uuid
from collections import deque
from dataclasses import asdict, dataclass, replace
from typing import Any, Deque, Dict, List, Optional, Union

from pydantic import ValidationError

from chesslearn.config import CONFIG, LearningParameters
from chesslearn.core.board import Position
from chesslearn.core.evaluator import EvalWeights, PositionEvaluator
from chesslearn.core.search import MinimaxSearch
from chesslearn.exceptions import KnowledgeImportError, NoLegalMoves
from chesslearn.knowledge import AgentStatistics, KnowledgeStore, utcnow
from chesslearn.records import OUTCOME_REWARDS, TrajectoryRecord
from chesslearn.snapshot import AgentSnapshot, KnowledgeSnapshot

logger = logging.getLogger(__name__)

# (moves leading to the position, book move, frequency, win rate)
SEED_OPENINGS = (
    ((), "e4", 100, 0.52),
    (("e4",), "e5", 90, 0.48),
)


def motif_label(move_san: str) -> Optional[str]:
    """Classify a forcing move from its SAN suffixes."""
    if move_san.endswith("#"):
        return "checkmate"
    if move_san.endswith("+"):
        return "check"
    if "x" in move_san:
        return "capture"
    return None


@dataclass(frozen=True)
class MoveChoice:
    move: str
    evaluation: float
    elapsed_ms: float
    source: str  # "book", "search", "fallback" or "exploration"


class ChessAgent:
    def __init__(
        self,
        agent_id: str,
        name: str,
        params: Optional[LearningParameters] = None,
        depth: Optional[int] = None,
        initial_elo: float = 1500.0,
        evaluator_weights: Optional[EvalWeights] = None,
        seed: Optional[int] = None,
        seed_book: Optional[bool] = None,
    ):
        self.id = agent_id
        self.name = name
        self.params = params or replace(CONFIG.learning)
        self.depth = CONFIG.search.depth if depth is None else depth
        self.knowledge = KnowledgeStore()
        self.stats = AgentStatistics(elo_rating=initial_elo)
        self.memory: Deque[TrajectoryRecord] = deque(maxlen=self.params.memory_size)
        self.evaluator = PositionEvaluator(evaluator_weights)
        self.search = MinimaxSearch(self.evaluator, depth=self.depth)
        self.rng = random.Random(seed)

        if CONFIG.training.seed_book if seed_book is None else seed_book:
            self._seed_opening_book()

    def __repr__(self) -> str:
        return f"ChessAgent(id={self.id!r}, name={self.name!r}, elo={self.stats.elo_rating:.1f})"

    def _seed_opening_book(self):
        for line, move, frequency, win_rate in SEED_OPENINGS:
            position = Position()
            for san in line:
                position = position.apply(san)
            self.knowledge.add_continuation(position.fen, move, frequency, win_rate)

    # -------------------------
    # Move selection
    # -------------------------
    def select_move(self, position: Position) -> MoveChoice:
        """Pick a move for the side to move.

        1. Book hit, taken with probability 1 - exploration_rate.
        2. Otherwise minimax search at the agent's depth (first legal move if
           the search has nothing to say).
        3. With probability exploration_rate, any of the above is replaced by
           a uniformly random legal move.
        """
        start = time.perf_counter()
        legal = position.legal_moves
        if not legal:
            raise NoLegalMoves(position.fen)

        board = position.board()
        continuation = self.knowledge.continuation(position.fen)
        if continuation is not None and self.rng.random() < 1 - self.params.exploration_rate:
            move = continuation.move
            evaluation = self.evaluator.evaluate(board)
            source = "book"
        else:
            result = self.search.search(board, self.depth)
            move = result.move or legal[0]
            evaluation = result.evaluation
            source = "search" if result.move else "fallback"

        if self.rng.random() < self.params.exploration_rate:
            move = self.rng.choice(legal)
            source = "exploration"

        elapsed_ms = (time.perf_counter() - start) * 1000
        self.stats.positions_analyzed += 1
        self.stats.average_thinking_time = (self.stats.average_thinking_time + elapsed_ms) / 2
        return MoveChoice(move, evaluation, elapsed_ms, source)

    # -------------------------
    # Learning
    # -------------------------
    def record_game(self, outcome: str, trajectory: List[TrajectoryRecord]):
        """Absorb one finished game, seen from this agent's side."""
        if outcome not in OUTCOME_REWARDS:
            raise ValueError(f"Unknown outcome {outcome!r}; expected win, loss or draw")
        reward = OUTCOME_REWARDS[outcome]
        for record in trajectory:
            record.outcome = outcome
            record.reward = reward

        self._learn_from_game(trajectory, reward)

        stats = self.stats
        stats.games_played += 1
        if outcome == "win":
            stats.wins += 1
        elif outcome == "loss":
            stats.losses += 1
        else:
            stats.draws += 1
        # Self-referential rating: derived from this agent's own win rate only.
        stats.elo_rating = 1500 + (stats.win_rate - 0.5) * 400

        stats.learning_progress.append(stats.elo_rating)
        del stats.learning_progress[:-CONFIG.training.progress_window]
        self.memory.extend(trajectory)
        stats.last_updated = utcnow()

        logger.debug(
            "%s recorded a %s over %d plies (elo %.1f, book %d, values %d)",
            self.name, outcome, len(trajectory), stats.elo_rating,
            len(self.knowledge.opening_book), len(self.knowledge.position_values),
        )

    def _learn_from_game(self, trajectory: List[TrajectoryRecord], reward: float):
        params = self.params
        n = len(trajectory)
        opening_score = (reward + 1) / 2
        for i, record in enumerate(trajectory):
            discounted = reward * params.discount_factor ** (n - 1 - i)
            self.knowledge.update_position_value(record.position, discounted, params.learning_rate)

            if i < CONFIG.training.opening_plies:
                self.knowledge.reinforce_opening(record.position, record.move, opening_score)

            if reward >= 0 and Position(record.position).piece_count <= CONFIG.training.endgame_pieces:
                self.knowledge.record_endgame(record.position, record.move, record.evaluation)

            if reward > 0:
                label = motif_label(record.move)
                if label:
                    self.knowledge.record_motif(record.position, label, record.move)

    def adjust_learning_parameters(self, **changes):
        """Update hyperparameters in place, e.g. ``adjust_learning_parameters(exploration_rate=0.05)``."""
        self.params = replace(self.params, **changes)
        if self.memory.maxlen != self.params.memory_size:
            self.memory = deque(self.memory, maxlen=self.params.memory_size)

    def knowledge_summary(self) -> Dict[str, Any]:
        summary = self.knowledge.summary()
        summary["memory_size"] = len(self.memory)
        return summary

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "depth": self.depth,
            "learning_params": asdict(self.params),
            "stats": asdict(self.stats),
            "knowledge": self.knowledge_summary(),
        }

    # -------------------------
    # Persistence
    # -------------------------
    def to_snapshot(self) -> AgentSnapshot:
        return AgentSnapshot.model_validate({
            "id": self.id,
            "name": self.name,
            "learning_params": asdict(self.params),
            "depth": self.depth,
            "knowledge": KnowledgeSnapshot.from_store(self.knowledge),
            "stats": asdict(self.stats),
            "evaluator_weights": asdict(self.evaluator.weights),
        })

    def export_knowledge(self) -> str:
        return self.to_snapshot().model_dump_json()

    def import_knowledge(self, data: Union[str, bytes, Dict[str, Any], AgentSnapshot]):
        """Replace parameters, knowledge, statistics and evaluator weights from a snapshot.

        The agent keeps its own id and name. Raises KnowledgeImportError and
        leaves the agent untouched if the snapshot is malformed.
        """
        snapshot = parse_snapshot(data)
        store = snapshot.knowledge.to_store()
        params = replace(snapshot.learning_params)
        stats = copy.deepcopy(snapshot.stats)
        memory = deque(self.memory, maxlen=params.memory_size)
        evaluator = PositionEvaluator(copy.deepcopy(snapshot.evaluator_weights))
        search = MinimaxSearch(evaluator, depth=snapshot.depth)

        # Nothing is assigned until every replacement is built.
        self.params = params
        self.depth = snapshot.depth
        self.knowledge = store
        self.stats = stats
        self.memory = memory
        self.evaluator = evaluator
        self.search = search
        logger.info(
            "%s imported knowledge of %s (%d book entries, %d position values)",
            self.name, snapshot.name, len(store.opening_book), len(store.position_values),
        )

    @classmethod
    def from_snapshot(cls, data: Union[str, bytes, Dict[str, Any], AgentSnapshot], seed: Optional[int] = None) -> "ChessAgent":
        snapshot = parse_snapshot(data)
        agent = cls(snapshot.id, snapshot.name, depth=snapshot.depth, seed=seed, seed_book=False)
        agent.import_knowledge(snapshot)
        return agent


def parse_snapshot(data: Union[str, bytes, Dict[str, Any], AgentSnapshot]) -> AgentSnapshot:
    if isinstance(data, AgentSnapshot):
        return data
    try:
        if isinstance(data, (str, bytes)):
            return AgentSnapshot.model_validate_json(data)
        return AgentSnapshot.model_validate(data)
    except ValidationError as e:
        raise KnowledgeImportError(f"Malformed knowledge snapshot: {e}") from e


def create_agent(
    name: str,
    depth: Optional[int] = None,
    initial_elo: float = 1500.0,
    seed: Optional[int] = None,
    seed_book: Optional[bool] = None,
    **param_overrides,
) -> ChessAgent:
    """Build an agent with a fresh id and the configured default hyperparameters."""
    params = replace(CONFIG.learning, **param_overrides)
    agent_id = f"agent_{uuid.uuid4().hex[:12]}"
    return ChessAgent(agent_id, name, params, depth=depth, initial_elo=initial_elo, seed=seed, seed_book=seed_book)
