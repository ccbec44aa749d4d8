"""
Command-line entry point for self-play training.

Usage:
    python -m interface.cli train --games 20 --depth 2
    python -m interface.cli train --agent1 agent_ab12 --agent2 agent_cd34 --save
    python -m interface.cli agents
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from chesslearn.agent import ChessAgent, create_agent
from chesslearn.config import CONFIG
from chesslearn.logging_config import setup_logging
from chesslearn.registry import SessionRegistry
from chesslearn.storage import AgentStorage
from chesslearn.training import SelfPlayTrainer

logger = logging.getLogger("chesslearn.cli")


def _load_or_create(storage: AgentStorage, agent_id: Optional[str], name: str, args) -> ChessAgent:
    if agent_id:
        agent = storage.load(agent_id, seed=args.seed)
        if agent is None:
            raise SystemExit(f"No stored agent with id {agent_id} in {storage.directory}")
        return agent
    return create_agent(
        name,
        depth=args.depth,
        seed=args.seed,
        learning_rate=args.learning_rate,
        exploration_rate=args.exploration,
    )


async def cmd_train(args) -> int:
    storage = AgentStorage(args.agents_dir)
    agent1 = _load_or_create(storage, args.agent1, "Agent-1", args)
    agent2 = _load_or_create(storage, args.agent2, "Agent-2", args)

    registry = SessionRegistry(SelfPlayTrainer(game_pause_seconds=args.pause, log_interval=args.log_interval))
    session_id = await registry.start_session(agent1, agent2, target_games=args.games, max_plies=args.max_plies)
    try:
        session = await registry.wait(session_id)
    except asyncio.CancelledError:
        registry.stop_session(session_id)
        raise

    metrics = registry.metrics(session_id)
    print(f"Session {session_id}: {session.state.value}, {session.games_played}/{session.target_games} games")
    for stats in (metrics.agent1, metrics.agent2):
        print(
            f"  {stats.name} ({stats.agent_id}): "
            f"+{stats.wins} -{stats.losses} ={stats.draws} | ELO {stats.elo_rating:.1f}"
        )
    print(
        f"  Convergence: {metrics.convergence_rate:.3f} | Diversity: {metrics.diversity_score:.3f} | "
        f"Avg length: {metrics.average_game_length:.1f} plies"
    )

    if args.export:
        with open(args.export, "w", encoding="utf-8") as f:
            f.write(registry.export_session(session_id))
        print(f"Session exported to {args.export}")
    if args.save:
        for agent in (agent1, agent2):
            print(f"Saved {agent.name} to {storage.save(agent)}")
    return 0 if session.error is None else 1


async def cmd_agents(args) -> int:
    storage = AgentStorage(args.agents_dir)
    ids = storage.list_ids()
    if not ids:
        print(f"No stored agents in {storage.directory}")
    for agent_id in ids:
        agent = storage.load(agent_id)
        s = agent.stats
        print(f"{agent_id}  {agent.name:<16} games {s.games_played:<5} ELO {s.elo_rating:.1f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chesslearn", description="Self-play chess training")
    parser.add_argument("--log-level", default=CONFIG.log_level)
    parser.add_argument("--agents-dir", default=CONFIG.training.agents_dir)
    sub = parser.add_subparsers(dest="command", required=True)

    train = sub.add_parser("train", help="Run a self-play training session")
    train.add_argument("--games", type=int, default=CONFIG.training.target_games)
    train.add_argument("--depth", type=int, default=CONFIG.search.depth)
    train.add_argument("--max-plies", type=int, default=CONFIG.training.max_plies)
    train.add_argument("--learning-rate", type=float, default=CONFIG.learning.learning_rate)
    train.add_argument("--exploration", type=float, default=CONFIG.learning.exploration_rate)
    train.add_argument("--seed", type=int, default=None)
    train.add_argument("--pause", type=float, default=CONFIG.training.game_pause_seconds)
    train.add_argument("--log-interval", type=int, default=CONFIG.training.log_interval)
    train.add_argument("--agent1", help="Id of a stored agent to train as agent 1")
    train.add_argument("--agent2", help="Id of a stored agent to train as agent 2")
    train.add_argument("--save", action="store_true", help="Store both agents after training")
    train.add_argument("--export", help="Write the session export to this JSON file")

    sub.add_parser("agents", help="List stored agents")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    commands = {"train": cmd_train, "agents": cmd_agents}
    try:
        return asyncio.run(commands[args.command](args))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
