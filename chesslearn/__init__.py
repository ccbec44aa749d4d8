"""Self-play training of chess agents: search, knowledge store, learning loop and persistence."""

from .agent import ChessAgent, MoveChoice, create_agent
from .exceptions import (
    ChessLearnError,
    IllegalMoveProduced,
    KnowledgeImportError,
    NoLegalMoves,
    SessionNotFound,
)
from .knowledge import KnowledgeStore
from .records import GameResult, TrajectoryRecord
from .registry import SessionRegistry
from .training import SelfPlayTrainer, SessionState, TrainingSession
