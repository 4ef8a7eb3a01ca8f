"""Cache storage."""

from .game_cache_store import CacheFileInfo, GameCacheStore

__all__ = [
    "CacheFileInfo",
    "GameCacheStore",
]
