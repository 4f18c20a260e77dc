"""Wires the engine components together around an actuator and cognition service."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from praxis_engine.answers.profile import ProfileStore
from praxis_engine.answers.resolver import TieredAnswerResolver
from praxis_engine.browser.actuator import Actuator
from praxis_engine.browser.observation import ObservationLayer
from praxis_engine.cognition.service import CognitionService
from praxis_engine.config_loader import PraxisSettings
from praxis_engine.core.control_loop import ReActLoop
from praxis_engine.core.orchestrator import GoalOrchestrator
from praxis_engine.human.channel import HumanChannel
from praxis_engine.memory.memory_manager import MemoryManager
from praxis_engine.memory.reuse_store import ReuseStore
from praxis_engine.recovery.engine import ErrorRecoveryEngine
from praxis_engine.tools.builtin import build_default_registry
from praxis_engine.tools.context import ToolContext
from praxis_engine.tools.dispatcher import ToolDispatcher
from praxis_engine.tools.registry import ToolRegistry
from praxis_engine.utils.logging_utils import ArtifactLogger

SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class Agent:
    loop: ReActLoop
    orchestrator: GoalOrchestrator
    memory: MemoryManager
    reuse_store: ReuseStore
    profile: ProfileStore
    resolver: TieredAnswerResolver
    recovery: ErrorRecoveryEngine
    registry: ToolRegistry


def build_agent(
    settings: PraxisSettings,
    actuator: Actuator,
    cognition: CognitionService,
    human: HumanChannel,
    *,
    registry: Optional[ToolRegistry] = None,
    artifact_logger: Optional[ArtifactLogger] = None,
    sleep_fn: Optional[SleepFn] = None,
) -> Agent:
    sleep = sleep_fn or asyncio.sleep
    memory = MemoryManager(settings.memory)
    reuse_store = ReuseStore(settings.answers.reuse_dir, similarity_threshold=settings.answers.reuse_similarity)
    profile = ProfileStore(settings.answers.profile_path, human=human)
    resolver = TieredAnswerResolver(reuse_store, profile, cognition, human, settings.answers)
    recovery = ErrorRecoveryEngine(
        actuator,
        cognition,
        human=human,
        memory=memory,
        settings=settings.recovery,
        sleep_fn=sleep,
    )
    registry = registry or build_default_registry()
    tool_context = ToolContext(
        actuator=actuator,
        cognition=cognition,
        human=human,
        memory=memory,
        profile=profile,
        reuse_store=reuse_store,
        resolver=resolver,
        sleep_fn=sleep,
    )
    loop = ReActLoop(
        ObservationLayer(actuator, cognition, sleep_fn=sleep),
        cognition,
        ToolDispatcher(registry),
        human,
        tool_context,
        memory=memory,
        recovery=recovery,
        settings=settings.loop,
        artifact_logger=artifact_logger,
        sleep_fn=sleep,
    )
    orchestrator = GoalOrchestrator(loop, cognition, memory=memory, artifact_logger=artifact_logger)
    return Agent(
        loop=loop,
        orchestrator=orchestrator,
        memory=memory,
        reuse_store=reuse_store,
        profile=profile,
        resolver=resolver,
        recovery=recovery,
        registry=registry,
    )


__all__ = ["Agent", "build_agent"]
