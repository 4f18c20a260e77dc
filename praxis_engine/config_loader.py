"""Utilities for loading engine configuration files."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Mapping

import yaml
from pydantic import BaseModel, Field

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parents[1] / "config" / "settings.yaml"


class LoopSettings(BaseModel):
    max_iterations: int = Field(default=50, ge=1)
    confidence_gate: float = Field(default=0.5, ge=0.0, le=1.0)
    settle_delay_secs: float = Field(default=1.0, ge=0.0)
    history_window: int = Field(default=5, ge=0)
    short_term_capacity: int = Field(default=10, ge=1)


class MemorySettings(BaseModel):
    data_dir: str = "data/agentic"
    short_term_capacity: int = Field(default=20, ge=1)
    episode_capacity: int = Field(default=100, ge=1)
    selector_validity_days: float = Field(default=7, gt=0)
    flush_every: int = Field(default=10, ge=1)
    lookup_min_attempts: int = Field(default=3, ge=1)
    lookup_min_success_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    failure_min_attempts: int = Field(default=5, ge=1)
    failure_min_success_rate: float = Field(default=0.3, ge=0.0, le=1.0)
    selector_capacity: int = Field(default=500, ge=1)


class AnswerSettings(BaseModel):
    high_threshold: float = Field(default=0.90, ge=0.0, le=1.0)
    medium_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    reuse_similarity: float = Field(default=0.85, ge=0.0, le=1.0)
    reuse_dir: str = "data/reuse"
    profile_path: str = "data/user-profile.json"


class RecoverySettings(BaseModel):
    challenge_timeout_secs: float = 30
    challenge_poll_secs: float = 3
    timeout_wait_secs: float = 10
    reload_settle_secs: float = 3
    challenge_wait_secs: float = 15
    challenge_reload_wait_secs: float = 20
    element_wait_secs: float = 5
    scroll_settle_secs: float = 2
    network_wait_secs: float = 10
    generic_wait_secs: float = 5
    probe_timeout_secs: float = 10


class CognitionSettings(BaseModel):
    vision_model: str = "gpt-4o"
    reasoning_model: str = "gpt-4o-mini"
    max_tokens: int = 2048
    timeout_secs: float = 60


class BrowserSettings(BaseModel):
    headless: bool = False
    slow_mo: int = 0
    viewport_width: int = 1280
    viewport_height: int = 800
    navigation_timeout_ms: int = 30000


class LoggingSettings(BaseModel):
    artifact_root: str = "runs"
    level: str = "INFO"


class PraxisSettings(BaseModel):
    """Typed view over settings.yaml; every section falls back to its defaults."""

    loop: LoopSettings = Field(default_factory=LoopSettings)
    memory: MemorySettings = Field(default_factory=MemorySettings)
    answers: AnswerSettings = Field(default_factory=AnswerSettings)
    recovery: RecoverySettings = Field(default_factory=RecoverySettings)
    cognition: CognitionSettings = Field(default_factory=CognitionSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(path: Path | None = None) -> Dict[str, Any]:
    """Return parsed settings YAML as a dictionary."""

    file_path = path or DEFAULT_SETTINGS_PATH
    if not file_path.exists():
        raise FileNotFoundError(f"Missing settings file at {file_path}")
    with file_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return data


def resolve_settings(settings: Mapping[str, Any] | PraxisSettings | None = None) -> PraxisSettings:
    """Validate a raw settings mapping into ``PraxisSettings``."""

    if isinstance(settings, PraxisSettings):
        return settings
    return PraxisSettings.model_validate(dict(settings or {}))


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "PraxisSettings",
    "LoopSettings",
    "MemorySettings",
    "AnswerSettings",
    "RecoverySettings",
    "CognitionSettings",
    "BrowserSettings",
    "LoggingSettings",
    "load_settings",
    "resolve_settings",
]
