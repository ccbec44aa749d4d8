"""Registry of training sessions: start, stop, inspect and export by id."""

import asyncio
import logging
import time
import uuid
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from chesslearn.agent import ChessAgent
from chesslearn.config import CONFIG
from chesslearn.exceptions import SessionNotFound
from chesslearn.metrics import TrainingMetrics, compute_metrics
from chesslearn.records import GameResult
from chesslearn.snapshot import SessionInfo, SessionSnapshot
from chesslearn.training import SelfPlayTrainer, SessionState, TrainingSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Caller-owned collection of training sessions, one asyncio task each.

    Sessions stay registered after they finish until removed, so their
    results, metrics and export remain available.
    """

    def __init__(self, trainer: Optional[SelfPlayTrainer] = None, history_size: Optional[int] = None):
        self.trainer = trainer or SelfPlayTrainer()
        self.trainer.add_listener(self._on_game_finished)
        self._sessions: Dict[str, TrainingSession] = {}
        self.game_history: Deque[GameResult] = deque(maxlen=history_size or CONFIG.training.history_size)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def _on_game_finished(self, session: TrainingSession, result: GameResult):
        if session.id in self._sessions:
            self.game_history.append(result)

    async def start_session(
        self,
        agent1: ChessAgent,
        agent2: ChessAgent,
        target_games: Optional[int] = None,
        session_id: Optional[str] = None,
        max_plies: Optional[int] = None,
    ) -> str:
        """Register a session and schedule its training loop. Returns the session id."""
        target_games = CONFIG.training.target_games if target_games is None else target_games
        if target_games < 1:
            raise ValueError(f"target_games must be positive, got {target_games}")
        sid = session_id or f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
        if sid in self._sessions:
            raise ValueError(f"Training session {sid} already exists")

        session = TrainingSession(
            id=sid,
            agent1=agent1,
            agent2=agent2,
            target_games=target_games,
            max_plies=max_plies or CONFIG.training.max_plies,
        )
        # Running from registration, not from the task's first step.
        session.running = True
        session.state = SessionState.RUNNING
        self._sessions[sid] = session
        session.task = asyncio.create_task(self.trainer.run(session), name=sid)
        return sid

    def get_session(self, session_id: str) -> TrainingSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def stop_session(self, session_id: str) -> bool:
        """Request a cooperative stop. False if the session is no longer running."""
        stopped = self.get_session(session_id).request_stop()
        if stopped:
            logger.info("Stop requested for training session %s", session_id)
        return stopped

    async def wait(self, session_id: str, timeout: Optional[float] = None) -> TrainingSession:
        """Wait until the session's loop has exited."""
        session = self.get_session(session_id)
        if session.task is not None:
            await asyncio.wait_for(asyncio.shield(session.task), timeout)
        return session

    def status(self, session_id: str) -> Dict[str, Any]:
        return self.get_session(session_id).status()

    def metrics(self, session_id: str) -> TrainingMetrics:
        return compute_metrics(self.get_session(session_id))

    def export_session(self, session_id: str) -> str:
        """One JSON document: session header, both agents' knowledge, results and metrics."""
        session = self.get_session(session_id)
        snapshot = SessionSnapshot(
            session=SessionInfo(
                id=session.id,
                state=session.state.value,
                start_time=session.start_time,
                end_time=session.end_time,
                games_played=session.games_played,
                target_games=session.target_games,
                max_plies=session.max_plies,
                error=session.error,
            ),
            agent1=session.agent1.to_snapshot(),
            agent2=session.agent2.to_snapshot(),
            results=list(session.results),
            metrics=compute_metrics(session),
        )
        return snapshot.model_dump_json()

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def active_session_ids(self) -> List[str]:
        return [sid for sid, s in self._sessions.items() if s.running]

    def recent_games(self, limit: int = 10) -> List[GameResult]:
        if limit <= 0:
            return []
        return list(self.game_history)[-limit:]

    def remove_session(self, session_id: str) -> TrainingSession:
        """Forget a session, stopping it first if it is still running."""
        session = self.get_session(session_id)
        session.request_stop()
        return self._sessions.pop(session_id)

    async def shutdown(self):
        """Stop every session and wait for all training loops to exit."""
        tasks = []
        for session in self._sessions.values():
            session.request_stop()
            if session.task is not None:
                tasks.append(session.task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
