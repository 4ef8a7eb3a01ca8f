"""
GameLibraryService - owns the game cache refresh workflow.

Responsibilities:
- Merge per-account game lists into one entry per app id with aggregated owners
- Load the cached library and rebuild the transient fields of each game
  (install state, launchable accounts)
- Replace the cached snapshot after a completed scan
- Report when the cache has gone stale and a rescan is due
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from ..cache.game_cache_store import GameCacheStore
from ..models.account import SteamAccount
from ..models.game import Game
from ..models.game_cache import GameCache
from ..utils.case_insensitive import CaseInsensitiveSet
from ..utils.steam_local import get_installed_app_ids

logger = logging.getLogger(__name__)


def aggregate_owned_games(games: Iterable[Game]) -> List[Game]:
    """Collapse games owned by several accounts into one entry per app id.

    The copy with the most playtime represents the title. Its owner sets
    become the union of every owner's Steam ID and account name (blank
    values skipped, names compared without case). Sorted by name.
    """
    by_app: Dict[int, List[Game]] = {}
    for game in games:
        by_app.setdefault(game.app_id, []).append(game)

    unique: List[Game] = []
    for copies in by_app.values():
        representative = max(copies, key=lambda g: g.playtime_minutes)

        steam_ids: Set[str] = set()
        account_names = CaseInsensitiveSet()
        for copy in copies:
            if copy.owner_steam_id and copy.owner_steam_id.strip():
                steam_ids.add(copy.owner_steam_id)
            if copy.owner_account_name and copy.owner_account_name.strip():
                account_names.add(copy.owner_account_name)

        representative.owner_steam_ids = steam_ids
        representative.owner_account_names = account_names
        unique.append(representative)

    unique.sort(key=lambda g: g.name.casefold())
    logger.info(f"[Library] Aggregated {sum(len(c) for c in by_app.values())} games into {len(unique)} unique titles")
    return unique


def update_installed_status(games: Iterable[Game], installed_app_ids: Set[int]) -> int:
    """Set is_installed from the detected app ids. Returns how many changed."""
    updated = 0
    for game in games:
        is_installed = game.app_id in installed_app_ids
        if game.is_installed != is_installed:
            game.is_installed = is_installed
            updated += 1

    logger.info(f"[Library] Updated installed status for {updated} games")
    return updated


def populate_available_accounts(games: Iterable[Game], accounts: List[SteamAccount]) -> None:
    """Fill available_accounts for each game.

    Free to play games can be launched from any local account; paid games
    only from the accounts that own them.
    """
    for game in games:
        if not game.is_paid:
            game.available_accounts = list(accounts)
        else:
            game.available_accounts = [
                a for a in accounts
                if a.steam_id in (game.owner_steam_ids or ()) or a.account_name in (game.owner_account_names or ())
            ]


class GameLibraryService:
    """Service for loading and replacing the cached game library.

    The current snapshot is swapped as a single reference, so readers see
    either the previous or the new library, never a mix. Only one
    replacement runs at a time.
    """

    def __init__(self, store: GameCacheStore, steam_path: Optional[str] = None):
        """Initialize GameLibraryService.

        Args:
            store: GameCacheStore used for persistence
            steam_path: Steam installation path (auto-detected if None)
        """
        self.store = store
        self.steam_path = steam_path
        self._snapshot: Optional[GameCache] = None
        self._write_lock = asyncio.Lock()

    @property
    def snapshot(self) -> Optional[GameCache]:
        return self._snapshot

    def needs_refresh(self, now: Optional[datetime] = None) -> bool:
        snapshot = self._snapshot
        return snapshot is None or snapshot.is_expired(now)

    async def load_cached_games(self, accounts: List[SteamAccount]) -> Optional[List[Game]]:
        """Load the cached library, or None if a rescan is needed.

        Args:
            accounts: Steam accounts on this machine, used to fill
                available_accounts on every game

        Returns:
            Live games with install state and available accounts refreshed
        """
        cache = await asyncio.to_thread(self.store.load)
        if cache is None:
            return None

        async with self._write_lock:
            # A scan saved while the file was being read wins over the older file
            current = self._snapshot
            if current is None or cache.last_updated > current.last_updated:
                self._snapshot = cache
            else:
                cache = current
        games = cache.to_games()

        installed = await asyncio.to_thread(get_installed_app_ids, self.steam_path)
        update_installed_status(games, installed)
        populate_available_accounts(games, accounts)

        logger.info(f"[Library] Using valid game cache with {len(games)} games")
        return games

    async def replace_games(
        self,
        games: List[Game],
        accounts: Optional[List[SteamAccount]] = None,
    ) -> Optional[GameCache]:
        """Persist a completed scan as the new snapshot.

        Args:
            games: Full library from the scan (already aggregated)
            accounts: If given, available_accounts is refreshed on `games`

        Returns:
            The new snapshot, or None if it could not be written
        """
        async with self._write_lock:
            cache = await asyncio.to_thread(self.store.save, games)
            if cache is None:
                logger.warning("[Library] Game cache was not saved, keeping previous snapshot")
                return None

            self._snapshot = cache

        if accounts is not None:
            populate_available_accounts(games, accounts)
        return cache

    async def clear_cache(self) -> bool:
        async with self._write_lock:
            self._snapshot = None
            return await asyncio.to_thread(self.store.clear)
