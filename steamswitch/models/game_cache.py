"""
Owned games cache.

GameCache is a point-in-time snapshot of the union of games owned across the
tracked accounts. Each CachedGame is the durable projection of a live Game:
ownership sets become plain string lists and `available_accounts` is dropped.

The serialized form keeps the camelCase field names used by existing cache
files (lastUpdated, validDuration, games, appId, ownerSteamIdsAll, ...).
Caches written by the original Windows build (PascalCase keys, AppId,
PlaytimeForever, ImgIconUrl, CacheValidDuration) are read as well.
"""
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .game import Game
from ..errors import CacheFormatError
from ..utils.case_insensitive import CaseInsensitiveSet

# How long a cached library is trusted before a rescan
DEFAULT_CACHE_VALID_DURATION = timedelta(hours=7)

# Zero timestamp: a cache that was never written is always expired
NEVER_UPDATED = datetime.min

# Keys written by the original Windows build, read for compatibility
_LEGACY_KEYS = {
    'lastUpdated': 'LastUpdated',
    'validDuration': 'CacheValidDuration',
    'games': 'Games',
    'appId': 'AppId',
    'name': 'Name',
    'iconUrl': 'ImgIconUrl',
    'playtimeMinutes': 'PlaytimeForever',
    'ownerSteamId': 'OwnerSteamId',
    'ownerAccountName': 'OwnerAccountName',
    'ownerPersonaName': 'OwnerPersonaName',
    'isPaid': 'IsPaid',
    'isInstalled': 'IsInstalled',
    'ownerSteamIdsAll': 'OwnerSteamIdsAll',
    'ownerAccountNamesAll': 'OwnerAccountNamesAll',
}

_FRACTION_RE = re.compile(r'(\.\d{6})\d+')
_DURATION_RE = re.compile(
    r'^(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{2}):(?P<seconds>\d{2})(?:\.(?P<fraction>\d{1,7}))?$'
)


def _get(data: Dict[str, Any], key: str, default: Any = None) -> Any:
    if key in data:
        return data[key]
    return data.get(_LEGACY_KEYS.get(key, key), default)


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime.

    Accepts the 7-digit fractions and trailing 'Z' other JSON writers emit.
    """
    if value is None:
        return NEVER_UPDATED
    if not isinstance(value, str):
        raise CacheFormatError(f"Invalid timestamp: {value!r}")

    text = _FRACTION_RE.sub(r'\1', value.strip())
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise CacheFormatError(f"Invalid timestamp: {value!r}") from e

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone().replace(tzinfo=None)
        except (OverflowError, ValueError):
            # Offset pushes the zero timestamp out of range
            return NEVER_UPDATED
    return parsed


def format_duration(value: timedelta) -> str:
    """Format as [-][d.]hh:mm:ss[.ffffff]."""
    sign = '-' if value < timedelta(0) else ''
    value = abs(value)
    hours, rest = divmod(value.seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    text = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    if value.days:
        text = f"{value.days}.{text}"
    if value.microseconds:
        text = f"{text}.{value.microseconds:06d}"
    return sign + text


def parse_duration(value: Any) -> timedelta:
    """Parse a duration from [d.]hh:mm:ss text or a number of seconds."""
    if value is None:
        return DEFAULT_CACHE_VALID_DURATION
    if isinstance(value, bool):
        raise CacheFormatError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return timedelta(seconds=value)
        except (OverflowError, ValueError) as e:
            raise CacheFormatError(f"Invalid duration: {value!r}") from e
    if not isinstance(value, str):
        raise CacheFormatError(f"Invalid duration: {value!r}")

    match = _DURATION_RE.match(value.strip())
    if not match:
        raise CacheFormatError(f"Invalid duration: {value!r}")

    fraction = (match.group('fraction') or '').ljust(6, '0')[:6]
    try:
        duration = timedelta(
            days=int(match.group('days') or 0),
            hours=int(match.group('hours')),
            minutes=int(match.group('minutes')),
            seconds=int(match.group('seconds')),
            microseconds=int(fraction),
        )
    except OverflowError as e:
        raise CacheFormatError(f"Invalid duration: {value!r}") from e
    return -duration if match.group('sign') else duration


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise CacheFormatError(f"Invalid {key}: {value!r}")
    if isinstance(value, float) and not value.is_integer():
        # also rejects Infinity and NaN
        raise CacheFormatError(f"Invalid {key}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise CacheFormatError(f"Invalid {key}: {value!r}") from e


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise CacheFormatError(f"Invalid {key}: {value!r}")
    return value


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_str_tuple(value: Any, key: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise CacheFormatError(f"Invalid {key}: expected a list, got {type(value).__name__}")
    return tuple(str(item) for item in value)


@dataclass(frozen=True)
class CachedGame:
    """Serializable projection of a live Game"""
    app_id: int = 0
    name: str = ""
    icon_url: str = ""
    playtime_minutes: int = 0
    owner_steam_id: str = ""
    owner_account_name: str = ""
    owner_persona_name: str = ""
    is_paid: bool = False
    is_installed: bool = False
    last_updated: datetime = NEVER_UPDATED
    owner_steam_ids_all: Tuple[str, ...] = ()
    owner_account_names_all: Tuple[str, ...] = ()

    @classmethod
    def from_live(cls, game: Game) -> "CachedGame":
        """Project a live game for persistence.

        Ownership sets become sequences (Steam IDs sorted, account names in
        set order). A missing set gives an empty sequence, never None.
        """
        return cls(
            app_id=game.app_id,
            name=game.name,
            icon_url=game.icon_url,
            playtime_minutes=game.playtime_minutes,
            owner_steam_id=game.owner_steam_id,
            owner_account_name=game.owner_account_name,
            owner_persona_name=game.owner_persona_name,
            is_paid=game.is_paid,
            is_installed=game.is_installed,
            last_updated=game.last_updated,
            owner_steam_ids_all=tuple(sorted(game.owner_steam_ids or ())),
            owner_account_names_all=tuple(game.owner_account_names or ()),
        )

    def to_live(self) -> Game:
        """Rebuild the live game.

        `available_accounts` starts empty; the refresh workflow fills it in
        once it knows which accounts exist on this machine.
        """
        return Game(
            app_id=self.app_id,
            name=self.name,
            playtime_minutes=self.playtime_minutes,
            icon_url=self.icon_url,
            owner_steam_id=self.owner_steam_id,
            owner_account_name=self.owner_account_name,
            owner_persona_name=self.owner_persona_name,
            is_paid=self.is_paid,
            is_installed=self.is_installed,
            last_updated=self.last_updated,
            owner_steam_ids=set(self.owner_steam_ids_all or ()),
            owner_account_names=CaseInsensitiveSet(self.owner_account_names_all or ()),
            available_accounts=[],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'appId': self.app_id,
            'name': self.name,
            'iconUrl': self.icon_url,
            'playtimeMinutes': self.playtime_minutes,
            'ownerSteamId': self.owner_steam_id,
            'ownerAccountName': self.owner_account_name,
            'ownerPersonaName': self.owner_persona_name,
            'isPaid': self.is_paid,
            'isInstalled': self.is_installed,
            'lastUpdated': format_timestamp(self.last_updated),
            'ownerSteamIdsAll': list(self.owner_steam_ids_all or ()),
            'ownerAccountNamesAll': list(self.owner_account_names_all or ()),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CachedGame":
        if not isinstance(data, dict):
            raise CacheFormatError(f"Invalid game entry: {data!r}")

        playtime = _as_int(_get(data, 'playtimeMinutes', 0), 'playtimeMinutes')
        if playtime < 0:
            raise CacheFormatError(f"Invalid playtimeMinutes: {playtime}")

        return cls(
            app_id=_as_int(_get(data, 'appId'), 'appId'),
            name=_as_str(_get(data, 'name')),
            icon_url=_as_str(_get(data, 'iconUrl')),
            playtime_minutes=playtime,
            owner_steam_id=_as_str(_get(data, 'ownerSteamId')),
            owner_account_name=_as_str(_get(data, 'ownerAccountName')),
            owner_persona_name=_as_str(_get(data, 'ownerPersonaName')),
            is_paid=_as_bool(_get(data, 'isPaid', False), 'isPaid'),
            is_installed=_as_bool(_get(data, 'isInstalled', False), 'isInstalled'),
            last_updated=parse_timestamp(_get(data, 'lastUpdated')),
            owner_steam_ids_all=_as_str_tuple(_get(data, 'ownerSteamIdsAll'), 'ownerSteamIdsAll'),
            owner_account_names_all=_as_str_tuple(_get(data, 'ownerAccountNamesAll'), 'ownerAccountNamesAll'),
        )


@dataclass(frozen=True)
class GameCache:
    """Snapshot of the owned games library.

    Replaced as a whole after every completed scan, never merged into.
    """
    last_updated: datetime = NEVER_UPDATED
    games: Tuple[CachedGame, ...] = ()
    valid_duration: timedelta = DEFAULT_CACHE_VALID_DURATION

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once more than `valid_duration` has passed since `last_updated`.

        Exactly `valid_duration` old still counts as fresh.
        """
        if now is None:
            now = datetime.now()
        if self.last_updated.tzinfo is not None and now.tzinfo is None:
            now = now.astimezone()
        elif self.last_updated.tzinfo is None and now.tzinfo is not None:
            now = now.astimezone().replace(tzinfo=None)
        return now - self.last_updated > self.valid_duration

    @property
    def expires_at(self) -> Optional[datetime]:
        try:
            return self.last_updated + self.valid_duration
        except OverflowError:
            return None

    @classmethod
    def from_games(
        cls,
        games: Iterable[Game],
        now: Optional[datetime] = None,
        valid_duration: timedelta = DEFAULT_CACHE_VALID_DURATION,
    ) -> "GameCache":
        """Snapshot a freshly scanned library."""
        return cls(
            last_updated=now or datetime.now(),
            games=tuple(CachedGame.from_live(g) for g in games),
            valid_duration=valid_duration,
        )

    def to_games(self) -> List[Game]:
        return [cached.to_live() for cached in self.games]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lastUpdated': format_timestamp(self.last_updated),
            'validDuration': format_duration(self.valid_duration),
            'games': [g.to_dict() for g in self.games],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameCache":
        if not isinstance(data, dict):
            raise CacheFormatError(f"Invalid cache document: expected an object, got {type(data).__name__}")

        games = _get(data, 'games', [])
        if games is None:
            games = []
        if not isinstance(games, list):
            raise CacheFormatError(f"Invalid games: expected a list, got {type(games).__name__}")

        return cls(
            last_updated=parse_timestamp(_get(data, 'lastUpdated')),
            games=tuple(CachedGame.from_dict(entry) for entry in games),
            valid_duration=parse_duration(_get(data, 'validDuration')),
        )
