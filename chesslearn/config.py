# chesslearn/config.py
from dataclasses import dataclass, field
from typing import Dict, Optional
import logging
import os
import tomllib  # python >=3.11

logger = logging.getLogger(__name__)

# Defaults (centipawns)
PIECE_VALUES = {
    "PAWN": 100,
    "KNIGHT": 320,
    "BISHOP": 330,
    "ROOK": 500,
    "QUEEN": 900,
    "KING": 20000,
}

@dataclass
class SearchConfig:
    depth: int = 4

@dataclass
class EvalConfig:
    piece_values: Dict[str, int] = field(default_factory=lambda: PIECE_VALUES.copy())
    mate_score: float = 10000.0
    mobility_weight: float = 5.0
    center_weight: float = 5.0          # knights / bishops
    pawn_advance_weight: float = 10.0   # per rank from the pawn's own back rank
    king_activity_weight: float = 3.0   # endgame only
    king_safety_weight: float = 5.0     # penalty outside the endgame
    endgame_phase: int = 6              # N/B = 1, R = 2, Q = 4, summed over both sides

@dataclass
class LearningParameters:
    learning_rate: float = 0.01
    exploration_rate: float = 0.1
    discount_factor: float = 0.95
    memory_size: int = 10000
    batch_size: int = 32
    update_frequency: int = 10
    temperature: float = 1.0

@dataclass
class TrainingConfig:
    target_games: int = 100
    max_plies: int = 300
    opening_plies: int = 10
    endgame_pieces: int = 10
    progress_window: int = 100     # learning-curve samples kept per agent
    game_pause_seconds: float = 0.1
    history_size: int = 10000      # games kept in the registry-wide history
    log_interval: int = 10
    agents_dir: str = ".cache/agents"
    seed_book: bool = True

@dataclass
class APIConfig:
    title: str = "chesslearn"
    default_depth: int = 2
    port: int = 8000

@dataclass
class Config:
    search: SearchConfig = field(default_factory=SearchConfig)
    eval: EvalConfig = field(default_factory=EvalConfig)
    learning: LearningParameters = field(default_factory=LearningParameters)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log_level: str = "INFO"

    @staticmethod
    def load_from_toml(path: str = "config.toml") -> "Config":
        cfg = Config()
        if not os.path.exists(path):
            return cfg
        with open(path, "rb") as f:
            raw = tomllib.load(f)
        for section in ("search", "eval", "learning", "training", "api"):
            target = getattr(cfg, section)
            for k, v in raw.get(section, {}).items():
                if hasattr(target, k):
                    setattr(target, k, v)
                else:
                    logger.warning("Ignoring unknown config key %s.%s", section, k)
        if "log_level" in raw:
            cfg.log_level = raw["log_level"]
        return cfg

def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", name, value)
        return None

# single globally importable config instance
CONFIG = Config.load_from_toml(os.environ.get("CHESSLEARN_CONFIG_TOML", "config.toml"))
# allow env override of depth for quick debugging
override_depth = _env_int("CHESSLEARN_SEARCH_DEPTH")
if override_depth:
    CONFIG.search.depth = override_depth
