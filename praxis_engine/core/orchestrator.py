"""Goal orchestration: decompose a goal and run the control loop per subtask."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List

from pydantic import ValidationError

from praxis_engine.cognition.parsing import extract_json, parse_subtasks
from praxis_engine.cognition.prompts import build_continuation_prompt, build_decomposition_prompt
from praxis_engine.cognition.service import CognitionService
from praxis_engine.memory.memory_manager import MemoryManager
from praxis_engine.memory.models import Episode
from praxis_engine.utils.logging_utils import ArtifactLogger

from .control_loop import ReActLoop
from .errors import CognitionProtocolError
from .types import OrchestrationResult, Subtask, SubtaskResult

logger = logging.getLogger(__name__)

DECOMPOSED_APPROACH_PREFIX = "Decomposed into"
SIMILAR_EPISODE_LIMIT = 3


class GoalOrchestrator:
    def __init__(
        self,
        loop: ReActLoop,
        cognition: CognitionService,
        *,
        memory: MemoryManager | None = None,
        artifact_logger: ArtifactLogger | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.loop = loop
        self.cognition = cognition
        self.memory = memory
        self.artifact_logger = artifact_logger
        self._clock = clock

    async def decompose_goal(self, goal: str) -> List[Subtask]:
        """Ask the cognition service for an ordered list of subtasks.

        Up to three prior successful episodes that share keywords with the
        goal are included in the prompt as examples.
        """

        examples: List[str] = []
        if self.memory is not None:
            similar = self.memory.find_similar_episodes(goal, limit=SIMILAR_EPISODE_LIMIT)
            examples = [f"{episode.task}: {episode.approach} (successful)" for episode in similar if episode.success]
        text = await self.cognition.complete(build_decomposition_prompt(goal, examples))
        try:
            subtasks = [Subtask.model_validate(item) for item in parse_subtasks(text)]
        except ValidationError as exc:
            raise CognitionProtocolError(f"Malformed subtask list: {exc}") from exc
        if not subtasks:
            raise CognitionProtocolError("Goal decomposition returned no subtasks")
        logger.info("Goal decomposed", extra={"goal": goal, "subtasks": len(subtasks)})
        return subtasks

    async def decide_continuation(
        self,
        goal: str,
        failed: SubtaskResult,
        results: List[SubtaskResult],
    ) -> bool:
        """Return True only when the cognition service explicitly says to continue."""

        prompt = build_continuation_prompt(
            goal,
            failed.subtask.id,
            failed.subtask.description,
            failed.subtask.goal,
            failed.error or failed.result or "",
            completed=sum(1 for item in results if item.success),
            failed=sum(1 for item in results if not item.success),
        )
        try:
            decision = extract_json(await self.cognition.complete(prompt), "object")
        except Exception:  # noqa: BLE001 - any failure here means stop
            logger.error("Failed to decide continuation", exc_info=True)
            return False
        should_continue = decision.get("continue") is True
        logger.info(
            "Continuation decision",
            extra={"continue_execution": should_continue, "reasoning": decision.get("reasoning")},
        )
        return should_continue

    async def execute_goal(self, goal: str) -> OrchestrationResult:
        started = self._clock()
        logger.info("Orchestrating goal", extra={"goal": goal})
        try:
            subtasks = await self.decompose_goal(goal)
        except Exception as exc:  # noqa: BLE001 - any decomposition failure ends the goal
            logger.error("Task orchestration failed", exc_info=True)
            return OrchestrationResult(success=False, results=[], summary=f"Task orchestration failed: {exc}")

        results: List[SubtaskResult] = []
        for index, subtask in enumerate(subtasks, start=1):
            logger.info(
                "Executing subtask %s/%s", index, len(subtasks), extra={"subtask_id": subtask.id}
            )
            result = await self._run_subtask(subtask)
            results.append(result)
            if result.success:
                continue
            logger.warning("Subtask failed", extra={"subtask_id": subtask.id, "error_text": result.error})
            if not await self.decide_continuation(goal, result, results):
                logger.error("Stopping execution after subtask failure", extra={"subtask_id": subtask.id})
                break

        duration = self._clock() - started
        success_count = sum(1 for item in results if item.success)
        overall = success_count == len(subtasks)
        summary = f"Completed {success_count}/{len(subtasks)} subtasks in {round(duration)}s"
        if self.memory is not None:
            self.memory.record_episode(
                Episode(
                    task=goal,
                    success=overall,
                    approach=f"{DECOMPOSED_APPROACH_PREFIX} {len(subtasks)} subtasks",
                    duration=duration,
                    learnings=[
                        f"Subtask {item.subtask.id} failed: {item.error or 'unknown'}"
                        for item in results
                        if not item.success
                    ],
                )
            )
        outcome = OrchestrationResult(success=overall, results=results, summary=summary)
        if self.artifact_logger is not None:
            self.artifact_logger.write_summary({"goal": goal, **outcome.to_dict()})
        logger.info("Goal execution complete", extra={"success": overall, "summary": summary})
        return outcome

    async def _run_subtask(self, subtask: Subtask) -> SubtaskResult:
        started = self._clock()
        previous_logger = self.loop.artifact_logger
        if self.artifact_logger is not None:
            self.loop.artifact_logger = self.artifact_logger.create_child(
                f"subtask_{subtask.id}", goal_name=subtask.goal
            )
        try:
            loop_result = await self.loop.run(subtask.goal)
        except Exception as exc:  # noqa: BLE001 - a crashed subtask is a failed subtask
            logger.error("Subtask execution error", extra={"subtask_id": subtask.id}, exc_info=True)
            return SubtaskResult(
                subtask=subtask,
                success=False,
                error=str(exc) or exc.__class__.__name__,
                duration=self._clock() - started,
            )
        finally:
            self.loop.artifact_logger = previous_logger
        return SubtaskResult(
            subtask=subtask,
            success=loop_result.success,
            result=loop_result.result,
            error=None if loop_result.success else loop_result.result,
            duration=self._clock() - started,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Success rate, mean duration and count over orchestrated goals."""

        if self.memory is None:
            return {"success_rate": 0.0, "avg_duration": 0.0, "total_executions": 0}
        episodes = [
            episode for episode in self.memory.episodes if episode.approach.startswith(DECOMPOSED_APPROACH_PREFIX)
        ]
        total = len(episodes)
        if not total:
            return {"success_rate": 0.0, "avg_duration": 0.0, "total_executions": 0}
        return {
            "success_rate": sum(1 for episode in episodes if episode.success) / total,
            "avg_duration": sum(episode.duration for episode in episodes) / total,
            "total_executions": total,
        }


__all__ = ["GoalOrchestrator"]
