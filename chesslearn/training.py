"""
Self-play orchestration.

A TrainingSession pairs two agents for a number of games. SelfPlayTrainer.run
drives one session as a coroutine:

    created -> running -> completed   (target reached)
                       -> stopped     (stop requested, or a game faulted)

Colors alternate by games_played parity. Each game is played ply by ply, the
agents' move requests run in a worker thread, and after the game both agents
absorb their own trajectory before the GameResult is appended.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import chess

from chesslearn.agent import ChessAgent
from chesslearn.config import CONFIG
from chesslearn.core.board import GameBoard
from chesslearn.exceptions import IllegalMoveProduced
from chesslearn.knowledge import utcnow
from chesslearn.records import PGN_RESULTS, GameResult, TrajectoryRecord, result_from_outcome

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass
class TrainingSession:
    id: str
    agent1: ChessAgent
    agent2: ChessAgent
    target_games: int
    max_plies: int = field(default_factory=lambda: CONFIG.training.max_plies)
    start_time: datetime = field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    games_played: int = 0
    running: bool = False
    state: SessionState = SessionState.CREATED
    results: List[GameResult] = field(default_factory=list)
    error: Optional[str] = None
    task: Optional[asyncio.Task] = field(default=None, repr=False, compare=False)

    def request_stop(self) -> bool:
        """Clear the running flag. The game in flight is allowed to finish."""
        if not self.running:
            return False
        self.running = False
        return True

    def status(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "state": self.state.value,
            "running": self.running,
            "games_played": self.games_played,
            "target_games": self.target_games,
            "max_plies": self.max_plies,
            "agent1": {"id": self.agent1.id, "name": self.agent1.name, "elo_rating": self.agent1.stats.elo_rating},
            "agent2": {"id": self.agent2.id, "name": self.agent2.name, "elo_rating": self.agent2.stats.elo_rating},
            "start_time": self.start_time,
            "end_time": self.end_time,
            "error": self.error,
        }


GameListener = Callable[[TrainingSession, GameResult], None]


class SelfPlayTrainer:
    def __init__(self, game_pause_seconds: Optional[float] = None, log_interval: Optional[int] = None):
        self.game_pause_seconds = CONFIG.training.game_pause_seconds if game_pause_seconds is None else game_pause_seconds
        self.log_interval = log_interval or CONFIG.training.log_interval
        self.listeners: List[GameListener] = []

    def add_listener(self, listener: GameListener):
        self.listeners.append(listener)

    async def run(self, session: TrainingSession) -> TrainingSession:
        if session.state == SessionState.CREATED:
            session.running = True
            session.state = SessionState.RUNNING
        logger.info(
            "Training session %s started: %s vs %s, %d games",
            session.id, session.agent1.name, session.agent2.name, session.target_games,
        )
        try:
            while session.running and session.games_played < session.target_games:
                if session.games_played % 2 == 0:
                    white, black = session.agent1, session.agent2
                else:
                    white, black = session.agent2, session.agent1

                try:
                    result = await self.play_game(white, black, max_plies=session.max_plies)
                except IllegalMoveProduced as e:
                    logger.error("Training session %s aborted: %s", session.id, e)
                    session.error = str(e)
                    session.running = False
                    break

                session.results.append(result)
                session.games_played += 1
                for listener in self.listeners:
                    listener(session, result)

                if session.games_played % self.log_interval == 0:
                    logger.info(
                        "Training session %s: %d/%d games completed (%s %.1f, %s %.1f)",
                        session.id, session.games_played, session.target_games,
                        session.agent1.name, session.agent1.stats.elo_rating,
                        session.agent2.name, session.agent2.stats.elo_rating,
                    )

                if self.game_pause_seconds > 0 and session.games_played < session.target_games:
                    await asyncio.sleep(self.game_pause_seconds)
        except asyncio.CancelledError:
            session.error = session.error or "cancelled"
            raise
        except Exception as e:
            logger.exception("Error in training session %s", session.id)
            session.error = str(e)
        finally:
            session.running = False
            session.end_time = utcnow()
            if session.error is None and session.games_played >= session.target_games:
                session.state = SessionState.COMPLETED
            else:
                session.state = SessionState.STOPPED
            logger.info(
                "Training session %s %s after %d games",
                session.id, session.state.value, session.games_played,
            )
        return session

    async def play_game(
        self,
        white: ChessAgent,
        black: ChessAgent,
        max_plies: Optional[int] = None,
        start_fen: Optional[str] = None,
    ) -> GameResult:
        """Play one game, let both agents learn from it, and return its result.

        Raises IllegalMoveProduced, without touching the board or either
        agent's knowledge, if an agent picks a move outside the legal set.
        """
        max_plies = max_plies or CONFIG.training.max_plies
        game = GameBoard(start_fen)
        game_id = f"game_{uuid.uuid4().hex[:12]}"
        agents = {chess.WHITE: white, chess.BLACK: black}
        trajectories: Dict[chess.Color, List[TrajectoryRecord]] = {chess.WHITE: [], chess.BLACK: []}
        start = time.perf_counter()
        plies = 0

        while not game.is_game_over() and plies < max_plies:
            color = game.board.turn
            agent = agents[color]
            before = game.position()
            choice = await asyncio.to_thread(agent.select_move, before)
            if not before.is_legal(choice.move):
                raise IllegalMoveProduced(choice.move, before.fen, agent.id)
            game.make_move(choice.move)
            trajectories[color].append(
                TrajectoryRecord(before.fen, choice.move, game.get_fen(), choice.evaluation)
            )
            plies += 1

        outcome = game.outcome()
        result = result_from_outcome(outcome)
        termination = game.termination() if outcome is not None else "max_plies"
        if result == "white":
            white_outcome, black_outcome = "win", "loss"
        elif result == "black":
            white_outcome, black_outcome = "loss", "win"
        else:
            white_outcome = black_outcome = "draw"

        white.record_game(white_outcome, trajectories[chess.WHITE])
        black.record_game(black_outcome, trajectories[chess.BLACK])

        duration_ms = (time.perf_counter() - start) * 1000
        pgn = game.pgn({
            "Event": "Self-play training",
            "White": white.name,
            "Black": black.name,
            "Result": PGN_RESULTS[result],
        })
        logger.debug("Game %s: %s by %s in %d plies", game_id, result, termination, plies)
        return GameResult(
            game_id=game_id,
            white_id=white.id,
            white_name=white.name,
            black_id=black.id,
            black_name=black.name,
            result=result,
            termination=termination,
            moves=tuple(game.move_history),
            final_fen=game.get_fen(),
            pgn=pgn,
            duration_ms=duration_ms,
            white_rating=white.stats.elo_rating,
            black_rating=black.stats.elo_rating,
            timestamp=utcnow(),
        )
