"""Tool specifications and the name-keyed registry the loop dispatches through."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ValidationError

from praxis_engine.core.errors import ToolValidationError
from praxis_engine.core.types import ToolResult

if TYPE_CHECKING:
    from .context import ToolContext

ToolExecutor = Callable[[Any, "ToolContext"], Awaitable[ToolResult]]


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "params"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    params_model: Type[BaseModel]
    execute: ToolExecutor

    def validate(self, params: Dict[str, Any]) -> BaseModel:
        try:
            return self.params_model.model_validate(params)
        except ValidationError as exc:
            raise ToolValidationError(f"Invalid parameters for {self.name}: {_format_validation_error(exc)}") from exc

    def parameter_schema(self) -> Dict[str, Any]:
        schema = self.params_model.model_json_schema(by_alias=True)
        return {
            "properties": {key: value.get("type", "any") for key, value in schema.get("properties", {}).items()},
            "required": schema.get("required", []),
        }


@dataclass
class ToolRegistry:
    """Exact-name lookup over registered tools."""

    _tools: Dict[str, ToolSpec] = field(default_factory=dict)

    def register(self, spec: ToolSpec, *, replace: bool = False) -> None:
        if spec.name in self._tools and not replace:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def extend(self, specs: Iterable[ToolSpec]) -> None:
        for spec in specs:
            self.register(spec)

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> List[str]:
        return list(self._tools)

    def catalogue(self) -> str:
        """One line per tool, suitable for a reasoning prompt."""

        lines = []
        for spec in self._tools.values():
            params = json.dumps(spec.parameter_schema()["properties"])
            lines.append(f"- {spec.name}: {spec.description} Params: {params}")
        return "\n".join(lines)


__all__ = ["ToolSpec", "ToolRegistry", "ToolExecutor"]
