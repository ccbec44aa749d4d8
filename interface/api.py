"""FastAPI REST interface for agents and training sessions."""

from dataclasses import asdict
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, Response
from pydantic import BaseModel, Field

from chesslearn.agent import ChessAgent, create_agent
from chesslearn.config import CONFIG
from chesslearn.exceptions import KnowledgeImportError, SessionNotFound
from chesslearn.registry import SessionRegistry
from chesslearn.training import TrainingSession

app = FastAPI(title=CONFIG.api.title, version="1.0.0")

# Process-wide state, owned by this module.
registry = SessionRegistry()
agents: Dict[str, ChessAgent] = {}


class AgentRequest(BaseModel):
    name: str = Field(min_length=1)
    depth: Optional[int] = Field(None, ge=0)
    seed: Optional[int] = None
    initial_elo: float = 1500.0
    learning_rate: Optional[float] = Field(None, ge=0, le=1)
    exploration_rate: Optional[float] = Field(None, ge=0, le=1)
    discount_factor: Optional[float] = Field(None, ge=0, le=1)
    memory_size: Optional[int] = Field(None, ge=1)


class SessionRequest(BaseModel):
    agent1_id: str
    agent2_id: str
    target_games: int = Field(CONFIG.training.target_games, ge=1)
    session_id: Optional[str] = None
    max_plies: Optional[int] = Field(None, ge=1)


def _get_agent(agent_id: str) -> ChessAgent:
    agent = agents.get(agent_id)
    if agent is None:
        raise HTTPException(status_code=404, detail=f"Agent {agent_id} not found")
    return agent


def _get_session(session_id: str) -> TrainingSession:
    try:
        return registry.get_session(session_id)
    except SessionNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/agents")
def add_agent(req: AgentRequest):
    overrides = req.model_dump(
        include={"learning_rate", "exploration_rate", "discount_factor", "memory_size"},
        exclude_none=True,
    )
    depth = CONFIG.api.default_depth if req.depth is None else req.depth
    agent = create_agent(req.name, depth=depth, initial_elo=req.initial_elo, seed=req.seed, **overrides)
    agents[agent.id] = agent
    return agent.summary()


@app.get("/agents")
def list_agents():
    return [agent.summary() for agent in agents.values()]


@app.get("/agents/{agent_id}")
def get_agent(agent_id: str):
    return _get_agent(agent_id).summary()


@app.get("/agents/{agent_id}/knowledge")
def export_knowledge(agent_id: str):
    return Response(content=_get_agent(agent_id).export_knowledge(), media_type="application/json")


@app.post("/agents/{agent_id}/knowledge")
def import_knowledge(agent_id: str, snapshot: Dict):
    agent = _get_agent(agent_id)
    try:
        agent.import_knowledge(snapshot)
    except KnowledgeImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return agent.summary()


@app.post("/sessions")
async def start_session(req: SessionRequest):
    agent1 = _get_agent(req.agent1_id)
    agent2 = _get_agent(req.agent2_id)
    try:
        session_id = await registry.start_session(
            agent1, agent2,
            target_games=req.target_games,
            session_id=req.session_id,
            max_plies=req.max_plies,
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"session_id": session_id}


@app.get("/sessions")
def list_sessions(active: bool = False):
    ids = registry.active_session_ids() if active else registry.session_ids()
    return [registry.status(sid) for sid in ids]


@app.get("/sessions/{session_id}")
def session_status(session_id: str):
    return _get_session(session_id).status()


@app.post("/sessions/{session_id}/stop")
def stop_session(session_id: str):
    _get_session(session_id)
    return {"session_id": session_id, "stopped": registry.stop_session(session_id)}


@app.get("/sessions/{session_id}/metrics")
def session_metrics(session_id: str):
    _get_session(session_id)
    return asdict(registry.metrics(session_id))


@app.get("/sessions/{session_id}/export")
def export_session(session_id: str):
    _get_session(session_id)
    return Response(content=registry.export_session(session_id), media_type="application/json")


@app.get("/games/recent")
def recent_games(limit: int = 10):
    return [asdict(game) for game in registry.recent_games(limit)]
