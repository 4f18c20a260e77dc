"""Observe-think-act-reflect control loop."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import replace
from typing import Awaitable, Callable, Deque, Dict, List, Optional

from praxis_engine.browser.observation import ObservationLayer
from praxis_engine.cognition.prompts import build_reasoning_prompt
from praxis_engine.cognition.service import CognitionService
from praxis_engine.config_loader import LoopSettings
from praxis_engine.human.channel import HumanChannel
from praxis_engine.memory.memory_manager import MemoryManager
from praxis_engine.memory.models import Episode
from praxis_engine.recovery.engine import ErrorRecoveryEngine
from praxis_engine.tools.context import ToolContext
from praxis_engine.tools.dispatcher import ToolDispatcher
from praxis_engine.utils.logging_utils import ArtifactLogger

from .loop_state import LoopState, LoopStateMachine, LoopTransition
from .types import LoopResult, MemoryEntry, NextAction, Observation, Thought, ToolResult

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

APPROACH = "ReAct loop"
DECLINED_MESSAGE = "Agent unable to proceed and user declined to help"
MAX_ITERATIONS_MESSAGE = "Maximum iterations reached"
MAX_ITERATIONS_LEARNING = "Maximum iterations reached without achieving goal"
SKIP_KEYWORD = "skip"


class ReActLoop:
    """Drives one goal to completion, escalation or the iteration ceiling.

    Each iteration reasons over the latest observation, escalates to the
    operator when the model proposes nothing or is unsure, dispatches the
    chosen tool, records the step in short-term memory and re-observes. A
    failed step is handed to the recovery engine before the next iteration.
    """

    def __init__(
        self,
        observer: ObservationLayer,
        cognition: CognitionService,
        dispatcher: ToolDispatcher,
        human: HumanChannel,
        tool_context: ToolContext,
        *,
        memory: MemoryManager | None = None,
        recovery: ErrorRecoveryEngine | None = None,
        settings: LoopSettings | None = None,
        artifact_logger: ArtifactLogger | None = None,
        sleep_fn: SleepFn | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.observer = observer
        self.cognition = cognition
        self.dispatcher = dispatcher
        self.human = human
        self.tool_context = tool_context
        self.memory = memory
        self.recovery = recovery
        self.settings = settings or LoopSettings()
        self.artifact_logger = artifact_logger
        self._sleep: SleepFn = sleep_fn or asyncio.sleep
        self._clock = clock
        self.state_machine = LoopStateMachine(listener=self._on_transition)
        self._recent: Deque[MemoryEntry] = deque(maxlen=self.settings.short_term_capacity)
        self._iteration = 0

    @property
    def recent_actions(self) -> List[MemoryEntry]:
        return list(self._recent)

    def _on_transition(self, transition: LoopTransition) -> None:
        logger.debug(
            "Loop transition",
            extra={"from_state": transition.previous.value, "to_state": transition.next_state.value},
        )
        if self.artifact_logger is not None:
            self.artifact_logger.log_trace(
                event="transition",
                step_index=self._iteration,
                state=transition.next_state.value,
                payload={"previous": transition.previous.value, **transition.context},
            )

    async def run(self, goal: str, *, max_iterations: int | None = None) -> LoopResult:
        ceiling = max_iterations or self.settings.max_iterations
        started = self._clock()
        self.state_machine.reset()
        self._iteration = 0
        self._recent.clear()
        if self.memory is not None:
            self._recent.extend(self.memory.get_recent_actions(self.settings.short_term_capacity))
        logger.info("Starting goal", extra={"goal": goal, "max_iterations": ceiling})

        self.state_machine.next(LoopState.OBSERVING)
        observation = await self.observer.observe()
        if self.recovery is not None and await self.recovery.detect_challenge():
            logger.info("Challenge page detected before first iteration")
            await self.recovery.wait_for_challenge()
            observation = await self.observer.observe()

        while self._iteration < ceiling:
            self._iteration += 1
            iteration = self._iteration
            logger.info("Iteration %s/%s", iteration, ceiling)
            self.state_machine.next(LoopState.REASONING, {"iteration": iteration})
            thought = await self._reason(goal, observation)
            logger.info(
                "Agent thought",
                extra={"goal_achieved": thought.goal_achieved, "confidence": thought.confidence},
            )

            if thought.goal_achieved:
                self.state_machine.next(LoopState.GOAL_ACHIEVED)
                self._record_episode(goal, True, started, [f"Achieved in {iteration} iterations"])
                self.state_machine.next(LoopState.HALTED)
                self._log_step(observation, thought, None, None)
                logger.info("Goal achieved", extra={"goal": goal, "iterations": iteration})
                return LoopResult(success=True, result=thought.analysis, iterations=iteration, reason="goal_achieved")

            action = thought.next_action
            if action is None:
                self.state_machine.next(LoopState.ESCALATING_NO_ACTION)
                action = await self._escalate_no_action(goal, thought)
                if action is None:
                    self._record_episode(goal, False, started, [DECLINED_MESSAGE])
                    self.state_machine.next(LoopState.HALTED, {"reason": "user_declined"})
                    return LoopResult(
                        success=False,
                        result=DECLINED_MESSAGE,
                        iterations=iteration,
                        reason="user_declined",
                    )

            if thought.confidence < self.settings.confidence_gate:
                self.state_machine.next(LoopState.ESCALATING_LOW_CONFIDENCE, {"confidence": thought.confidence})
                action = await self._escalate_low_confidence(thought, action)
                if action is None:
                    logger.info("Operator skipped iteration", extra={"iteration": iteration})
                    continue

            self.state_machine.next(LoopState.ACTING, {"tool": action.tool})
            context = replace(self.tool_context, goal=goal, observation=observation, iteration=iteration)
            result = await self.dispatcher.dispatch(action, context)

            entry = MemoryEntry(observation=observation, thought=thought, action=action, result=result)
            self._recent.append(entry)
            if self.memory is not None:
                self.memory.add_recent_action(entry)
            self._log_step(observation, thought, action, result)

            await self._sleep(self.settings.settle_delay_secs)
            self.state_machine.next(LoopState.OBSERVING)
            observation = await self.observer.observe()

            if not result.success:
                self.state_machine.next(LoopState.REFLECTING, {"error": result.error})
                logger.warning("Action failed", extra={"tool": action.tool, "error_text": result.error})
                if self.recovery is not None:
                    outcome = await self.recovery.handle_error(
                        result.error or "Action failed",
                        {"action": action.tool, "params": action.params},
                    )
                    if self.artifact_logger is not None:
                        self.artifact_logger.log_trace(
                            event="recovery",
                            step_index=iteration,
                            state=LoopState.REFLECTING.value,
                            payload=outcome.to_dict(),
                        )
                    if outcome.recovered:
                        self.state_machine.next(LoopState.OBSERVING)
                        observation = await self.observer.observe()
                    else:
                        logger.warning("Could not recover from error; continuing")

        self._record_episode(goal, False, started, [MAX_ITERATIONS_LEARNING])
        self.state_machine.next(LoopState.HALTED, {"reason": "max_iterations"})
        logger.error("Max iterations reached without achieving goal", extra={"goal": goal})
        return LoopResult(
            success=False,
            result=MAX_ITERATIONS_MESSAGE,
            iterations=self._iteration,
            reason="max_iterations",
        )

    async def _reason(self, goal: str, observation: Observation) -> Thought:
        window = self.settings.history_window
        history = [entry.summary() for entry in list(self._recent)[-window:]] if window else []
        prompt = build_reasoning_prompt(
            goal,
            observation,
            history,
            self.dispatcher.registry.catalogue(),
            self.memory.prompt_context() if self.memory is not None else "",
        )
        return await self.cognition.reason(prompt)

    async def _escalate_no_action(self, goal: str, thought: Thought) -> Optional[NextAction]:
        logger.warning("Agent has no next action planned")
        await self.human.notify(
            f"\nThe agent is unsure how to proceed.\nGoal: {goal}\nCurrent situation: {thought.analysis}\n"
        )
        if not await self.human.confirm("Would you like to provide guidance?", default=True):
            return None
        guidance = await self.human.ask("What should the agent do next? (describe the action)")
        logger.info("Human provided guidance", extra={"guidance": guidance})
        return NextAction(
            tool="ask_human",
            params={
                "question": "Please provide more specific instructions on how to proceed",
                "context": guidance,
            },
            reasoning="Getting human guidance on how to proceed",
        )

    async def _escalate_low_confidence(self, thought: Thought, action: NextAction) -> Optional[NextAction]:
        logger.warning("Low confidence on planned action", extra={"confidence": thought.confidence})
        await self.human.notify(
            f"\nLOW CONFIDENCE WARNING\nI'm only {thought.confidence:.0%} confident about this action:\n"
            f"Action: {action.tool}\nParameters: {action.params}\nReasoning: {action.reasoning}\n"
        )
        if await self.human.confirm("Should I proceed with this action?", default=False):
            return action
        alternative = await self.human.ask('What should I do instead? (or type "skip" to skip this action)')
        if alternative.strip().lower() == SKIP_KEYWORD:
            return None
        return NextAction(
            tool="ask_human",
            params={"question": "Please provide specific parameters for this action", "context": alternative},
            reasoning="Using human-provided alternative approach",
        )

    def _record_episode(self, goal: str, success: bool, started: float, learnings: List[str]) -> None:
        if self.memory is None:
            return
        self.memory.record_episode(
            Episode(
                task=goal,
                success=success,
                approach=APPROACH,
                duration=self._clock() - started,
                learnings=learnings,
            )
        )

    def _log_step(
        self,
        observation: Observation,
        thought: Thought,
        action: Optional[NextAction],
        result: Optional[ToolResult],
    ) -> None:
        if self.artifact_logger is None:
            return
        metadata: Dict[str, object] = {
            "iteration": self._iteration,
            "url": observation.url,
            "ui_state": observation.state.value,
            "thought": thought.model_dump(mode="json"),
            "action": action.model_dump(mode="json") if action is not None else None,
            "result": result.to_dict() if result is not None else None,
        }
        step_index = self.artifact_logger.log_step(metadata)
        if observation.screenshot:
            self.artifact_logger.save_screenshot(observation.screenshot, step_index=step_index)


__all__ = ["ReActLoop", "DECLINED_MESSAGE", "MAX_ITERATIONS_MESSAGE", "MAX_ITERATIONS_LEARNING"]
