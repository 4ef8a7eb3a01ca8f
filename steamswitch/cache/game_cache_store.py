"""Owned games cache file.

Stores the GameCache snapshot as JSON in the user's data directory
(games_cache.json). A missing, unreadable or expired file simply means
"no cache": callers rescan instead of failing.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, NamedTuple, Optional, Union

from ..models.game import Game
from ..models.game_cache import DEFAULT_CACHE_VALID_DURATION, GameCache
from ..utils.paths import get_games_cache_path

logger = logging.getLogger(__name__)


class CacheFileInfo(NamedTuple):
    exists: bool
    last_modified: Optional[datetime]
    size_bytes: int


class GameCacheStore:
    """Reads and writes the owned games cache file."""

    def __init__(self, path: Optional[Union[str, Path]] = None, valid_duration=DEFAULT_CACHE_VALID_DURATION):
        self.path = Path(path) if path is not None else get_games_cache_path()
        self.valid_duration = valid_duration

    def load(self, include_expired: bool = False, now: Optional[datetime] = None) -> Optional[GameCache]:
        """Load the cache. Returns None if missing, malformed or expired."""
        if not self.path.exists():
            logger.info("[GameCache] No game cache file found - will fetch fresh data")
            return None

        try:
            content = self.path.read_text(encoding='utf-8')
        except OSError as e:
            logger.error(f"[GameCache] Error reading game cache {self.path}: {e}")
            return None
        except UnicodeDecodeError as e:
            logger.warning(f"[GameCache] Discarding game cache that is not UTF-8: {e}")
            return None

        if not content.strip():
            logger.warning("[GameCache] Game cache file is empty")
            return None

        try:
            cache = GameCache.from_dict(json.loads(content))
        except ValueError as e:
            # JSONDecodeError and CacheFormatError
            logger.warning(f"[GameCache] Discarding unreadable game cache: {e}")
            return None

        logger.info(f"[GameCache] Loaded {len(cache.games)} games from cache (last updated: {cache.last_updated})")

        if not include_expired and cache.is_expired(now):
            hours = cache.valid_duration.total_seconds() / 3600
            logger.info(f"[GameCache] Game cache is expired (older than {hours:g} hours) - will fetch fresh data")
            return None

        return cache

    def save(self, games: Iterable[Game], now: Optional[datetime] = None) -> Optional[GameCache]:
        """Replace the cache with a snapshot of `games`.

        Written to a temp file and renamed over the old one so readers never
        see a partial file. Returns the new snapshot, or None on failure.
        """
        cache = GameCache.from_games(games, now=now, valid_duration=self.valid_duration)
        if self.write(cache):
            logger.info(
                f"[GameCache] Saved {len(cache.games)} games to {self.path}, "
                f"expires {cache.expires_at}"
            )
            return cache
        return None

    def write(self, cache: GameCache) -> bool:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix='.tmp', dir=str(self.path.parent))
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(cache.to_dict(), f, indent=2)
            os.replace(tmp_name, self.path)
            return True
        except OSError as e:
            logger.error(f"[GameCache] Error saving game cache: {e}")
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            return False

    def clear(self) -> bool:
        """Delete the cache file."""
        try:
            if self.path.exists():
                self.path.unlink()
                logger.info("[GameCache] Game cache cleared")
            return True
        except OSError as e:
            logger.error(f"[GameCache] Error clearing game cache: {e}")
            return False

    def get_info(self) -> CacheFileInfo:
        try:
            stat = self.path.stat()
        except FileNotFoundError:
            return CacheFileInfo(False, None, 0)
        except OSError as e:
            logger.warning(f"[GameCache] Could not stat game cache: {e}")
            return CacheFileInfo(False, None, 0)
        return CacheFileInfo(True, datetime.fromtimestamp(stat.st_mtime), stat.st_size)
