"""Core game components: positions, evaluator and minimax search."""

from .board import GameBoard, Position
from .evaluator import EvalWeights, PositionEvaluator
from .search import MinimaxSearch, SearchResult
