"""Durable memory records: cached selectors and episodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from praxis_engine.core.types import utc_now


def _parse_ts(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


@dataclass
class CachedSelector:
    description: str
    selector: str
    success_count: int = 1
    failure_count: int = 0
    last_used: datetime = field(default_factory=utc_now)
    last_validated: datetime = field(default_factory=utc_now)

    @property
    def total_attempts(self) -> int:
        return self.success_count + self.failure_count

    @property
    def success_rate(self) -> float:
        total = self.total_attempts
        if total == 0:
            return 0.0
        return self.success_count / total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "selector": self.selector,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_used": self.last_used.isoformat(),
            "last_validated": self.last_validated.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "CachedSelector":
        now = utc_now()
        return cls(
            description=str(payload.get("description") or ""),
            selector=str(payload.get("selector") or ""),
            success_count=int(payload.get("success_count", 0)),
            failure_count=int(payload.get("failure_count", 0)),
            last_used=_parse_ts(payload.get("last_used")) or now,
            last_validated=_parse_ts(payload.get("last_validated")) or now,
        )


@dataclass
class Episode:
    """Outcome of one goal attempt, kept for future few-shot guidance."""

    task: str
    success: bool
    approach: str
    duration: float = 0.0
    timestamp: datetime = field(default_factory=utc_now)
    learnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task": self.task,
            "success": self.success,
            "approach": self.approach,
            "duration": self.duration,
            "timestamp": self.timestamp.isoformat(),
            "learnings": list(self.learnings),
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Episode":
        return cls(
            task=str(payload.get("task") or ""),
            success=bool(payload.get("success", False)),
            approach=str(payload.get("approach") or ""),
            duration=float(payload.get("duration") or 0.0),
            timestamp=_parse_ts(payload.get("timestamp")) or utc_now(),
            learnings=[str(item) for item in payload.get("learnings") or []],
        )


__all__ = ["CachedSelector", "Episode"]
