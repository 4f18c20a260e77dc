from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import List

from praxis_engine.config_loader import MemorySettings
from praxis_engine.core.types import UTC, MemoryEntry, NextAction, Observation, Thought, ToolResult
from praxis_engine.memory.memory_manager import MemoryManager
from praxis_engine.memory.models import Episode


class Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


def _manager(tmp_path: Path, clock: Clock | None = None, **overrides: object) -> MemoryManager:
    settings = MemorySettings(data_dir=str(tmp_path), **overrides)
    return MemoryManager(settings, clock=clock)


def _entry(index: int) -> MemoryEntry:
    return MemoryEntry(
        observation=Observation(url="https://example.com"),
        thought=Thought(),
        action=NextAction(tool="wait", params={"ms": index}),
        result=ToolResult.ok(),
    )


def test_stale_selector_is_evicted_on_lookup(tmp_path: Path) -> None:
    clock = Clock()
    manager = _manager(tmp_path, clock)
    manager.cache_selector("login button", "50.0,20.0")
    clock.advance(days=6)
    assert manager.get_cached_selector("login button") == "50.0,20.0"

    clock.advance(days=2)
    assert manager.get_cached_selector("login button") is None
    assert "login button" not in manager.selectors


def test_low_success_ratio_is_evicted_on_lookup(tmp_path: Path) -> None:
    manager = _manager(tmp_path, Clock())
    manager.cache_selector("search box", "10.0,10.0")
    manager.mark_selector_failed("search box")
    assert manager.get_cached_selector("search box") == "10.0,10.0"

    manager.mark_selector_failed("search box")
    assert "search box" in manager.selectors
    assert manager.get_cached_selector("search box") is None
    assert "search box" not in manager.selectors


def test_unreliable_selector_is_evicted_on_failure_report(tmp_path: Path) -> None:
    manager = _manager(tmp_path, Clock())
    manager.cache_selector("apply", "80.0,90.0")
    for _ in range(3):
        manager.mark_selector_failed("apply")
    assert manager.selectors["apply"].failure_count == 3

    manager.mark_selector_failed("apply")
    assert "apply" not in manager.selectors


def test_success_refreshes_validation_and_counts(tmp_path: Path) -> None:
    clock = Clock()
    manager = _manager(tmp_path, clock)
    manager.cache_selector("next", "1.0,1.0")
    clock.advance(days=3)
    entry = manager.cache_selector("next", "2.0,2.0")
    assert entry.success_count == 2
    assert entry.failure_count == 0
    assert entry.selector == "2.0,2.0"
    assert entry.last_validated == clock.now


def test_selector_cache_flushes_every_nth_insert(tmp_path: Path) -> None:
    manager = _manager(tmp_path, Clock(), flush_every=3)
    manager.cache_selector("a", "1,1")
    manager.cache_selector("b", "2,2")
    assert not manager.cache_file.exists()

    manager.cache_selector("c", "3,3")
    assert manager.cache_file.exists()


def test_flush_counts_successes_not_cache_size(tmp_path: Path) -> None:
    manager = _manager(tmp_path, Clock(), flush_every=3)
    manager.cache_selector("a", "1,1")
    manager.cache_selector("a", "1,1")
    assert not manager.cache_file.exists()

    manager.cache_selector("a", "1,1")
    assert manager.cache_file.exists()
    assert len(manager.selectors) == 1


def test_state_round_trips_through_disk(tmp_path: Path) -> None:
    clock = Clock()
    manager = _manager(tmp_path, clock, flush_every=1)
    manager.cache_selector("submit", "40.0,60.0")
    manager.record_episode(Episode(task="log in", success=True, approach="ReAct loop", duration=4.5))

    reloaded = _manager(tmp_path, clock)
    cached = reloaded.selectors["submit"]
    assert cached.selector == "40.0,60.0"
    assert cached.last_validated == clock.now
    assert cached.last_validated.tzinfo is not None
    assert [episode.task for episode in reloaded.episodes] == ["log in"]
    assert reloaded.episodes[0].duration == 4.5


def test_episode_log_keeps_the_most_recent_hundred(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    for index in range(101):
        manager.record_episode(Episode(task=f"task {index}", success=True, approach="ReAct loop"))

    episodes = manager.episodes
    assert len(episodes) == 100
    assert episodes[0].task == "task 1"
    assert episodes[-1].task == "task 100"


def test_recent_actions_buffer_is_fifo(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    for index in range(25):
        manager.add_recent_action(_entry(index))

    recent = manager.get_recent_actions(count=20)
    assert len(recent) == 20
    assert recent[0].action.params["ms"] == 5
    assert manager.get_recent_actions()[-1].action.params["ms"] == 24
    assert len(manager.get_recent_actions()) == 10

    manager.clear_recent_actions()
    assert manager.get_recent_actions() == []


def test_find_similar_episodes_ranks_by_keyword_overlap(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    manager.record_episode(Episode(task="search python jobs", success=True, approach="a"))
    manager.record_episode(Episode(task="log in to the site", success=True, approach="b"))
    manager.record_episode(Episode(task="search remote python developer jobs", success=False, approach="c"))

    similar = manager.find_similar_episodes("search python jobs remote")
    tasks: List[str] = [episode.task for episode in similar]
    assert tasks == ["search remote python developer jobs", "search python jobs"]


def test_task_success_rate_and_stats(tmp_path: Path) -> None:
    manager = _manager(tmp_path)
    manager.record_episode(Episode(task="apply to job", success=True, approach="a", duration=2))
    manager.record_episode(Episode(task="apply to job", success=False, approach="a", duration=4))

    assert manager.get_task_success_rate("apply") == 0.5
    assert manager.get_task_success_rate("unrelated") == 0.0
    stats = manager.get_stats()
    assert stats["episodes"]["total"] == 2
    assert stats["episodes"]["avg_duration"] == 3


def test_corrupt_files_are_ignored_on_load(tmp_path: Path) -> None:
    (tmp_path / "selector-cache.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "episodes.json").write_text("[broken", encoding="utf-8")

    manager = _manager(tmp_path)
    assert manager.selectors == {}
    assert manager.episodes == []
