"""Routes proposed actions to registered tools and normalises every outcome."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from praxis_engine.core.errors import ToolValidationError
from praxis_engine.core.types import NextAction, ToolResult

from .context import ToolContext
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Looks up, validates and runs tools. Failures come back as ``ToolResult``."""

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def dispatch(self, action: NextAction, context: ToolContext) -> ToolResult:
        return await self.execute(action.tool, action.params, context)

    async def execute(self, name: str, params: Mapping[str, Any] | None, context: ToolContext) -> ToolResult:
        spec = self.registry.get(name)
        if spec is None:
            logger.warning("Unknown tool requested", extra={"tool": name})
            return ToolResult.failure(f"Unknown tool: {name}")
        try:
            validated = spec.validate(dict(params or {}))
        except ToolValidationError as exc:
            logger.warning(str(exc))
            return ToolResult.failure(str(exc))
        logger.info("Executing tool", extra={"tool": name})
        try:
            result = await spec.execute(validated, context)
        except Exception as exc:  # noqa: BLE001 - tool failures become results
            logger.error("Tool raised", extra={"tool": name}, exc_info=True)
            return ToolResult.failure(str(exc) or exc.__class__.__name__)
        if not isinstance(result, ToolResult):
            return ToolResult.ok(result)
        return result


__all__ = ["ToolDispatcher"]
