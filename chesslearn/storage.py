"""Agent persistence on disk: one JSON knowledge snapshot per agent."""

import logging
import os
from typing import List, Optional

from chesslearn.agent import ChessAgent
from chesslearn.config import CONFIG

logger = logging.getLogger(__name__)

SUFFIX = ".json"


class AgentStorage:
    def __init__(self, directory: Optional[str] = None):
        self.directory = directory or CONFIG.training.agents_dir
        os.makedirs(self.directory, exist_ok=True)

    def path_for(self, agent_id: str) -> str:
        if not agent_id or os.sep in agent_id or agent_id.startswith("."):
            raise ValueError(f"Invalid agent id: {agent_id!r}")
        return os.path.join(self.directory, agent_id + SUFFIX)

    def save(self, agent: ChessAgent) -> str:
        path = self.path_for(agent.id)
        tmp_path = path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(agent.export_knowledge())
        os.replace(tmp_path, path)
        logger.info("Saved agent %s (%s) to %s", agent.id, agent.name, path)
        return path

    def load(self, agent_id: str, seed: Optional[int] = None) -> Optional[ChessAgent]:
        """Rebuild a stored agent, or None if nothing is stored under that id."""
        path = self.path_for(agent_id)
        if not os.path.exists(path):
            return None
        with open(path, "r", encoding="utf-8") as f:
            return ChessAgent.from_snapshot(f.read(), seed=seed)

    def list_ids(self) -> List[str]:
        return sorted(
            name[: -len(SUFFIX)]
            for name in os.listdir(self.directory)
            if name.endswith(SUFFIX)
        )

    def delete(self, agent_id: str) -> bool:
        path = self.path_for(agent_id)
        if not os.path.exists(path):
            return False
        os.remove(path)
        return True
