"""Errors raised by agents, the self-play loop and the session registry."""

from typing import Optional


class ChessLearnError(Exception):
    """Base class for every error raised by chesslearn."""


class NoLegalMoves(ChessLearnError):
    """Move selection was asked for a move in a position that has none."""

    def __init__(self, fen: str):
        super().__init__(f"No legal moves in position {fen}")
        self.fen = fen


class IllegalMoveProduced(ChessLearnError):
    """An agent returned a move outside the position's legal set."""

    def __init__(self, move: str, fen: str, agent_id: Optional[str] = None):
        who = f"Agent {agent_id}" if agent_id else "Agent"
        super().__init__(f"{who} produced illegal move {move!r} in position {fen}")
        self.move = move
        self.fen = fen
        self.agent_id = agent_id


class KnowledgeImportError(ChessLearnError):
    """A knowledge snapshot could not be parsed or validated."""


class SessionNotFound(ChessLearnError, KeyError):
    def __init__(self, session_id: str):
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Training session {self.session_id} not found"
