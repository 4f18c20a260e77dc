from .memory_manager import MemoryManager
from .models import CachedSelector, Episode
from .reuse_store import QARecord, ReuseStore

__all__ = ["MemoryManager", "CachedSelector", "Episode", "ReuseStore", "QARecord"]
