"""Command-line entrypoint for running goals and inspecting stored state."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from praxis_engine.agent import build_agent
from praxis_engine.answers.profile import ProfileStore
from praxis_engine.browser.actuator import PlaywrightActuator
from praxis_engine.cognition.service import OpenAICognitionService
from praxis_engine.config_loader import PraxisSettings, load_settings, resolve_settings
from praxis_engine.human.channel import ConsoleHumanChannel
from praxis_engine.memory.memory_manager import MemoryManager
from praxis_engine.memory.reuse_store import ReuseStore
from praxis_engine.utils.logging_utils import ArtifactLogger, configure_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="praxis", description="Autonomous browser agent")
    parser.add_argument("--config", default=None, help="Path to settings.yaml")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Pursue a goal in the browser")
    run.add_argument("--goal", required=True, help="Natural language goal")
    run.add_argument("--orchestrate", action="store_true", help="Decompose the goal into subtasks first")
    run.add_argument("--url", default=None, help="Starting URL")
    run.add_argument("--headless", action="store_true", help="Run the browser without a window")
    run.add_argument("--max-iterations", type=int, default=None, help="Iteration ceiling per goal")

    sub.add_parser("stats", help="Print memory and answer store statistics")
    sub.add_parser("profile", help="Print user profile completeness")
    return parser.parse_args(argv)


def _settings(args: argparse.Namespace) -> PraxisSettings:
    path = Path(args.config) if args.config else None
    return resolve_settings(load_settings(path))


def _print(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def _run_goal(args: argparse.Namespace, settings: PraxisSettings) -> bool:
    if args.headless:
        settings.browser.headless = True
    if args.max_iterations:
        settings.loop.max_iterations = args.max_iterations
    artifact_logger = ArtifactLogger(
        root=Path(settings.logging.artifact_root),
        prefix="orchestrated" if args.orchestrate else "run",
        goal_name=args.goal,
    )
    async with PlaywrightActuator(settings.browser) as actuator:
        agent = build_agent(
            settings,
            actuator,
            OpenAICognitionService(settings.cognition),
            ConsoleHumanChannel(),
            artifact_logger=artifact_logger,
        )
        if args.url:
            await actuator.navigate(args.url)
        if args.orchestrate:
            outcome = await agent.orchestrator.execute_goal(args.goal)
            _print(outcome.to_dict())
            return outcome.success
        result = await agent.loop.run(args.goal)
        payload = {
            "success": result.success,
            "result": result.result,
            "iterations": result.iterations,
            "reason": result.reason,
            "artifacts": artifact_logger.to_dict(),
        }
        artifact_logger.write_summary({"goal": args.goal, **payload})
        _print(payload)
        return result.success


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = _settings(args)
    configure_logging(args.log_level or settings.logging.level)
    if args.command == "run":
        return 0 if asyncio.run(_run_goal(args, settings)) else 1
    if args.command == "stats":
        memory = MemoryManager(settings.memory)
        store = ReuseStore(settings.answers.reuse_dir, similarity_threshold=settings.answers.reuse_similarity)
        _print({"memory": memory.get_stats(), "answers": store.stats()})
        return 0
    if args.command == "profile":
        _print(ProfileStore(settings.answers.profile_path).stats())
        return 0
    logger.error("Unknown command %s", args.command)
    return 1


if __name__ == "__main__":  # pragma: no cover - exercised via CLI test
    sys.exit(main())
