"""Artifact logging utilities for agent runs."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .file_ops import append_jsonl, write_text

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Install the console handler used by the CLI."""

    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(level=resolved, format=LOG_FORMAT)


class ArtifactLogger:
    """Creates timestamped run folders and persists iteration artifacts."""

    def __init__(
        self,
        *,
        root: Path | None = None,
        prefix: str | None = None,
        base_dir: Path | str | None = None,
        goal_name: str | None = None,
    ) -> None:
        if base_dir is not None:
            self.base_dir = Path(base_dir)
        else:
            run_root = root or Path("runs")
            timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S_%f")
            label = prefix or "run"
            self.base_dir = run_root / f"{label}_{timestamp}"
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.goal_name = goal_name
        self.steps_file = self.base_dir / "steps.jsonl"
        self.trace_file = self.base_dir / "trace.jsonl"
        self.summary_file = self.base_dir / "run_summary.json"
        self._step_index = 0

    def create_child(self, name: str, *, goal_name: str | None = None) -> "ArtifactLogger":
        """Return a logger rooted at a subdirectory, used once per subtask."""

        child_dir = self.base_dir / name
        return ArtifactLogger(base_dir=child_dir, goal_name=goal_name or self.goal_name)

    def log_step(self, metadata: Dict[str, Any], *, goal: str | None = None) -> int:
        """Persist one loop iteration to steps.jsonl."""

        self._step_index += 1
        entry = {"idx": self._step_index, "goal": goal or self.goal_name, "metadata": metadata}
        append_jsonl(self.steps_file, entry)
        return self._step_index

    def save_screenshot(self, payload: bytes, *, step_index: int | None = None) -> Path:
        idx = step_index or max(self._step_index, 1)
        path = self.base_dir / f"step_{idx:03d}" / "screenshot.png"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        return path

    def log_trace(
        self,
        *,
        event: str,
        step_index: int | None = None,
        state: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append a loop event (state change, escalation, recovery) to trace.jsonl."""

        record = {
            "timestamp": datetime.now(UTC).isoformat(),
            "goal": self.goal_name,
            "event": event,
            "step_index": step_index,
            "state": state,
            "payload": payload or {},
        }
        append_jsonl(self.trace_file, record)

    def to_dict(self) -> Dict[str, str]:
        return {
            "base_dir": str(self.base_dir),
            "steps_file": str(self.steps_file),
            "trace_file": str(self.trace_file),
        }

    def write_summary(self, payload: Dict[str, Any]) -> Path:
        """Persist a run-level summary file in the current run directory."""

        write_text(self.summary_file, json.dumps(payload, ensure_ascii=False, indent=2, default=str))
        return self.summary_file


__all__ = ["ArtifactLogger", "configure_logging", "LOG_FORMAT"]
