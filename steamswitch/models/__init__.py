# Models package
from .account import SteamAccount
from .game import Game
from .game_cache import (
    CachedGame,
    GameCache,
    DEFAULT_CACHE_VALID_DURATION,
)

__all__ = [
    'SteamAccount',
    'Game',
    'CachedGame',
    'GameCache',
    'DEFAULT_CACHE_VALID_DURATION',
]
