"""Tiered agent memory: selector cache, episodic log and short-term actions."""

from __future__ import annotations

import logging
import re
from collections import OrderedDict, deque
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Deque, Dict, List, Optional

from praxis_engine.config_loader import MemorySettings
from praxis_engine.core.types import MemoryEntry, utc_now
from praxis_engine.utils.file_ops import read_json_document, write_json_document

from .models import CachedSelector, Episode

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def tokenize(text: str) -> List[str]:
    return _TOKEN_RE.findall((text or "").lower())


class MemoryManager:
    """Owns the selector reliability cache, the episode ring buffer and recent actions."""

    def __init__(
        self,
        settings: MemorySettings | None = None,
        *,
        data_dir: Path | str | None = None,
        clock: Clock | None = None,
        autoload: bool = True,
    ) -> None:
        self.settings = settings or MemorySettings()
        self.data_dir = Path(data_dir or self.settings.data_dir)
        self.cache_file = self.data_dir / "selector-cache.json"
        self.episodes_file = self.data_dir / "episodes.json"
        self._clock = clock or utc_now
        self._selectors: "OrderedDict[str, CachedSelector]" = OrderedDict()
        self._episodes: List[Episode] = []
        self._recent: Deque[MemoryEntry] = deque(maxlen=self.settings.short_term_capacity)
        self._inserts_since_flush = 0
        if autoload:
            self.load()

    # Persistence --------------------------------------------------------
    def load(self) -> None:
        try:
            payload = read_json_document(self.cache_file)
            if isinstance(payload, dict):
                self._selectors = OrderedDict(
                    (key, CachedSelector.from_dict(value)) for key, value in payload.items()
                )
                logger.info("Loaded selector cache", extra={"count": len(self._selectors)})
        except (OSError, ValueError):
            logger.warning("Failed to load selector cache from %s", self.cache_file, exc_info=True)
        try:
            payload = read_json_document(self.episodes_file)
            if isinstance(payload, list):
                self._episodes = [Episode.from_dict(item) for item in payload][-self.settings.episode_capacity :]
                logger.info("Loaded episodes", extra={"count": len(self._episodes)})
        except (OSError, ValueError):
            logger.warning("Failed to load episodes from %s", self.episodes_file, exc_info=True)

    def save(self) -> None:
        self._save_selectors()
        self._save_episodes()

    def _save_selectors(self) -> None:
        try:
            write_json_document(self.cache_file, {key: entry.to_dict() for key, entry in self._selectors.items()})
            self._inserts_since_flush = 0
        except OSError:
            logger.error("Failed to persist selector cache", exc_info=True)

    def _save_episodes(self) -> None:
        try:
            write_json_document(self.episodes_file, [episode.to_dict() for episode in self._episodes])
        except OSError:
            logger.error("Failed to persist episodes", exc_info=True)

    # Selector cache -----------------------------------------------------
    @property
    def selectors(self) -> Dict[str, CachedSelector]:
        return dict(self._selectors)

    def get_cached_selector(self, description: str) -> Optional[str]:
        """Return a trusted selector for ``description`` or ``None``.

        Stale entries and entries with a poor observed success rate are
        evicted here, before anything is returned.
        """

        cached = self._selectors.get(description)
        if cached is None:
            return None
        now = self._clock()
        max_age = timedelta(days=self.settings.selector_validity_days)
        if now - cached.last_validated > max_age:
            logger.debug("Selector cache expired", extra={"description": description})
            del self._selectors[description]
            return None
        if (
            cached.total_attempts >= self.settings.lookup_min_attempts
            and cached.success_rate < self.settings.lookup_min_success_rate
        ):
            logger.debug(
                "Selector cache has low success rate",
                extra={"description": description, "success_rate": cached.success_rate},
            )
            del self._selectors[description]
            return None
        cached.last_used = now
        self._selectors.move_to_end(description)
        return cached.selector

    def cache_selector(self, description: str, selector: str) -> CachedSelector:
        """Record a successful resolution of ``description``."""

        now = self._clock()
        existing = self._selectors.get(description)
        if existing is not None:
            existing.selector = selector
            existing.success_count += 1
            existing.last_used = now
            existing.last_validated = now
            entry = existing
        else:
            entry = CachedSelector(
                description=description,
                selector=selector,
                success_count=1,
                failure_count=0,
                last_used=now,
                last_validated=now,
            )
            self._selectors[description] = entry
        self._selectors.move_to_end(description)
        self._enforce_capacity()
        self._inserts_since_flush += 1
        if self._inserts_since_flush >= self.settings.flush_every:
            self._save_selectors()
        return entry

    def mark_selector_failed(self, description: str) -> None:
        cached = self._selectors.get(description)
        if cached is None:
            return
        cached.failure_count += 1
        if (
            cached.total_attempts >= self.settings.failure_min_attempts
            and cached.success_rate < self.settings.failure_min_success_rate
        ):
            logger.info(
                "Removing unreliable selector from cache",
                extra={"description": description, "success_rate": cached.success_rate},
            )
            del self._selectors[description]

    def _enforce_capacity(self) -> None:
        # least recently used entries sit at the front
        while len(self._selectors) > self.settings.selector_capacity:
            evicted, _ = self._selectors.popitem(last=False)
            logger.debug("Selector cache over capacity, evicted", extra={"description": evicted})

    def get_cache_stats(self) -> Dict[str, Any]:
        entries = list(self._selectors.values())
        if not entries:
            return {"total": 0, "avg_success_rate": 0.0}
        avg = sum(entry.success_rate for entry in entries) / len(entries)
        return {"total": len(entries), "avg_success_rate": avg}

    # Episodes -----------------------------------------------------------
    @property
    def episodes(self) -> List[Episode]:
        return list(self._episodes)

    def record_episode(self, episode: Episode) -> None:
        self._episodes.append(episode)
        capacity = self.settings.episode_capacity
        if len(self._episodes) > capacity:
            self._episodes = self._episodes[-capacity:]
        self.save()

    def find_similar_episodes(self, task: str, limit: int = 5) -> List[Episode]:
        """Rank stored episodes by keyword overlap with ``task``."""

        keywords = tokenize(task)
        if not keywords:
            return []
        scored = []
        for episode in self._episodes:
            episode_tokens = set(tokenize(episode.task))
            score = sum(1 for keyword in keywords if keyword in episode_tokens)
            if score > 0:
                scored.append((score, episode))
        scored.sort(key=lambda item: item[0], reverse=True)
        return [episode for _, episode in scored[:limit]]

    def get_task_success_rate(self, task_pattern: str) -> float:
        pattern = task_pattern.lower()
        matching = [episode for episode in self._episodes if pattern in episode.task.lower()]
        if not matching:
            return 0.0
        return sum(1 for episode in matching if episode.success) / len(matching)

    # Short-term actions -------------------------------------------------
    def add_recent_action(self, entry: MemoryEntry) -> None:
        self._recent.append(entry)

    def get_recent_actions(self, count: int = 10) -> List[MemoryEntry]:
        if count <= 0:
            return []
        return list(self._recent)[-count:]

    def clear_recent_actions(self) -> None:
        self._recent.clear()

    # Statistics ---------------------------------------------------------
    def get_stats(self) -> Dict[str, Any]:
        successful = sum(1 for episode in self._episodes if episode.success)
        total = len(self._episodes)
        durations = [episode.duration for episode in self._episodes]
        return {
            "selector_cache": self.get_cache_stats(),
            "episodes": {
                "total": total,
                "success_rate": successful / total if total else 0.0,
                "avg_duration": sum(durations) / total if total else 0.0,
            },
            "recent_actions": len(self._recent),
        }

    def prompt_context(self) -> str:
        """Compact memory summary injected into the reasoning prompt."""

        stats = self.get_stats()
        cache = stats["selector_cache"]
        episodes = stats["episodes"]
        return (
            f"Selector cache: {cache['total']} entries, "
            f"{cache['avg_success_rate']:.0%} average reliability. "
            f"Past episodes: {episodes['total']}, {episodes['success_rate']:.0%} succeeded."
        )


__all__ = ["MemoryManager", "tokenize"]
