from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from praxis_engine.config_loader import DEFAULT_SETTINGS_PATH, PraxisSettings, load_settings, resolve_settings


def test_bundled_settings_load() -> None:
    settings = resolve_settings(load_settings())

    assert DEFAULT_SETTINGS_PATH.exists()
    assert settings.loop.max_iterations == 50
    assert settings.loop.confidence_gate == 0.5
    assert settings.answers.high_threshold == 0.90
    assert settings.answers.medium_threshold == 0.75
    assert settings.memory.episode_capacity == 100
    assert settings.recovery.challenge_timeout_secs == 30


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "missing.yaml")


def test_partial_file_keeps_defaults(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("loop:\n  max_iterations: 7\n", encoding="utf-8")

    settings = resolve_settings(load_settings(path))

    assert settings.loop.max_iterations == 7
    assert settings.loop.history_window == 5
    assert settings.memory.short_term_capacity == 20


def test_empty_file_and_passthrough(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text("", encoding="utf-8")

    settings = resolve_settings(load_settings(path))

    assert resolve_settings(settings) is settings


def test_invalid_values_are_rejected() -> None:
    with pytest.raises(ValidationError):
        PraxisSettings.model_validate({"loop": {"confidence_gate": 1.5}})
