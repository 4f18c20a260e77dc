"""Collaborators and per-iteration state handed to every tool invocation."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from praxis_engine.answers.profile import ProfileStore
from praxis_engine.answers.resolver import TieredAnswerResolver
from praxis_engine.browser.actuator import Actuator
from praxis_engine.cognition.service import CognitionService
from praxis_engine.core.types import Observation
from praxis_engine.human.channel import HumanChannel
from praxis_engine.memory.memory_manager import MemoryManager
from praxis_engine.memory.reuse_store import ReuseStore


@dataclass
class ToolContext:
    actuator: Actuator
    cognition: CognitionService
    human: HumanChannel
    memory: Optional[MemoryManager] = None
    profile: Optional[ProfileStore] = None
    reuse_store: Optional[ReuseStore] = None
    resolver: Optional[TieredAnswerResolver] = None
    sleep_fn: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep)
    goal: str = ""
    observation: Optional[Observation] = None
    iteration: int = 0


__all__ = ["ToolContext"]
