"""Shared type declarations for the Praxis engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UTC = timezone.utc

ElementKind = Literal["button", "input", "link", "text", "dropdown", "checkbox"]


def utc_now() -> datetime:
    return datetime.now(UTC)


class UIState(str, Enum):
    """Coarse page classification reported by the cognition service."""

    UNKNOWN = "unknown"
    LOGIN_PAGE = "login_page"
    CHALLENGE_PAGE = "challenge_page"
    SEARCH_PAGE = "search_page"
    LISTING_PAGE = "listing_page"
    DETAIL_PAGE = "detail_page"
    FORM_PAGE = "form_page"
    SUBMITTED_PAGE = "submitted_page"
    ERROR_PAGE = "error_page"

    @classmethod
    def coerce(cls, value: Any) -> "UIState":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text == "cloudflare_challenge":
            return cls.CHALLENGE_PAGE
        for member in cls:
            if member.value == text:
                return member
        return cls.UNKNOWN


class Coordinates(BaseModel):
    """Percentage position on the viewport, both axes in [0, 100]."""

    x: float = Field(ge=0.0, le=100.0)
    y: float = Field(ge=0.0, le=100.0)


class DetectedElement(BaseModel):
    description: str
    kind: ElementKind = Field(default="text", alias="type")
    coordinates: Optional[Coordinates] = None
    text: Optional[str] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> str:
        text = str(value or "text").strip().lower()
        if text in {"button", "input", "link", "text", "dropdown", "checkbox"}:
            return text
        return "text"


class ScreenAnalysis(BaseModel):
    """Structured description of a single screen capture."""

    model_config = ConfigDict(populate_by_name=True)

    description: str = ""
    ui_state: UIState = Field(default=UIState.UNKNOWN, alias="uiState")
    interactive_elements: List[DetectedElement] = Field(default_factory=list, alias="interactiveElements")
    page_type: str = Field(default="", alias="pageType")
    requires_action: bool = Field(default=False, alias="requiresAction")
    suggested_actions: List[str] = Field(default_factory=list, alias="suggestedActions")

    @field_validator("ui_state", mode="before")
    @classmethod
    def _coerce_state(cls, value: Any) -> UIState:
        return UIState.coerce(value)


class Observation(BaseModel):
    """Snapshot of the environment produced once per loop iteration."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    description: str = ""
    state: UIState = UIState.UNKNOWN
    timestamp: datetime = Field(default_factory=utc_now)
    elements: List[DetectedElement] = Field(default_factory=list)
    screenshot: Optional[bytes] = Field(default=None, exclude=True, repr=False)


class NextAction(BaseModel):
    """A single tool invocation proposed by the cognition service or a human."""

    tool: str
    params: Dict[str, Any] = Field(default_factory=dict)
    reasoning: str = ""

    def describe(self) -> str:
        return f"{self.tool}({self.params})"


class Thought(BaseModel):
    """Reasoning output for one iteration."""

    model_config = ConfigDict(populate_by_name=True)

    analysis: str = ""
    reasoning: str = ""
    next_action: Optional[NextAction] = Field(default=None, alias="nextAction")
    goal_achieved: bool = Field(default=False, alias="goalAchieved")
    confidence: float = 0.0

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(number, 1.0))


@dataclass
class ToolResult:
    success: bool
    result: Any = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, result: Any = None) -> "ToolResult":
        return cls(success=True, result=result)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "result": self.result, "error": self.error}


@dataclass
class MemoryEntry:
    """One loop iteration: what was seen, decided, done and what came of it."""

    observation: Observation
    thought: Thought
    action: NextAction
    result: ToolResult
    timestamp: datetime = field(default_factory=utc_now)

    def summary(self) -> str:
        outcome = "success" if self.result.success else f"failed - {self.result.error}"
        return f"Action: {self.action.describe()} -> {outcome}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "observation": self.observation.model_dump(mode="json"),
            "thought": self.thought.model_dump(mode="json"),
            "action": self.action.model_dump(mode="json"),
            "result": self.result.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class LoopResult:
    success: bool
    result: Optional[str] = None
    iterations: int = 0
    reason: Optional[str] = None


class Subtask(BaseModel):
    """One step of a decomposed goal."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    description: str
    goal: str
    dependencies: List[str] = Field(default_factory=list)
    estimated_complexity: Literal["low", "medium", "high"] = Field(default="medium", alias="estimatedComplexity")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _stringify_dependencies(cls, value: Any) -> List[str]:
        return [str(item) for item in value or []]

    @field_validator("estimated_complexity", mode="before")
    @classmethod
    def _normalize_complexity(cls, value: Any) -> str:
        text = str(value or "medium").strip().lower()
        return text if text in {"low", "medium", "high"} else "medium"


@dataclass
class SubtaskResult:
    subtask: Subtask
    success: bool
    result: Optional[str] = None
    error: Optional[str] = None
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subtask": self.subtask.model_dump(mode="json"),
            "success": self.success,
            "result": self.result,
            "error": self.error,
            "duration": self.duration,
        }


@dataclass
class OrchestrationResult:
    success: bool
    results: List[SubtaskResult] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "results": [item.to_dict() for item in self.results],
            "summary": self.summary,
        }


__all__ = [
    "UTC",
    "utc_now",
    "ElementKind",
    "UIState",
    "Coordinates",
    "DetectedElement",
    "ScreenAnalysis",
    "Observation",
    "NextAction",
    "Thought",
    "ToolResult",
    "MemoryEntry",
    "LoopResult",
    "Subtask",
    "SubtaskResult",
    "OrchestrationResult",
]
