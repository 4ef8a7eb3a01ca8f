"""
Live game model.

This is the in-memory form of an owned game used for display and filtering.
It is richer than its cached projection: ownership is held in real sets and
`available_accounts` lists the local accounts that can launch the game. The
latter is never persisted and has to be re-derived after loading the cache.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set

from .account import SteamAccount
from ..utils.case_insensitive import CaseInsensitiveSet

ICON_URL_TEMPLATE = "https://media.steampowered.com/steamcommunity/public/images/apps/{app_id}/{icon}.jpg"


@dataclass
class Game:
    """An owned Steam game, attributed to one primary owner"""
    app_id: int = 0
    name: str = ""
    playtime_minutes: int = 0
    icon_url: str = ""  # icon hash as returned by Steam
    owner_steam_id: str = ""
    owner_account_name: str = ""
    owner_persona_name: str = ""
    is_paid: bool = True  # paid unless known free-to-play
    is_installed: bool = False
    last_updated: datetime = field(default_factory=datetime.now)

    # All accounts that own this app id
    owner_steam_ids: Set[str] = field(default_factory=set)
    owner_account_names: CaseInsensitiveSet = field(default_factory=CaseInsensitiveSet)

    # Local accounts that can launch the game. Not persisted.
    available_accounts: List[SteamAccount] = field(default_factory=list)

    @property
    def playtime_display(self) -> str:
        if self.playtime_minutes <= 0:
            return "Not played"

        hours, minutes = divmod(self.playtime_minutes, 60)
        if hours == 0:
            return f"{minutes}m"
        if minutes == 0:
            return f"{hours}h"
        if hours >= 24:
            days, hours = divmod(hours, 24)
            return f"{days}d" if hours == 0 else f"{days}d {hours}h"
        return f"{hours}h {minutes}m"

    @property
    def icon_image_url(self) -> str:
        if not self.icon_url:
            return ""
        return ICON_URL_TEMPLATE.format(app_id=self.app_id, icon=self.icon_url)

    @property
    def game_type(self) -> str:
        return "Paid" if self.is_paid else "Free-to-Play"

    @property
    def owner_display(self) -> str:
        return self.owner_persona_name or self.owner_account_name

    @property
    def is_f2p_with_multiple_accounts(self) -> bool:
        return not self.is_paid and len(self.available_accounts) > 1

    def is_owned_by(self, steam_id: Optional[str] = None, account_name: Optional[str] = None) -> bool:
        """Check whether an account can use this game.

        Matches the aggregated owner sets (account names ignore case). Free
        to play games also match any account in `available_accounts`.
        """
        if steam_id and steam_id in (self.owner_steam_ids or ()):
            return True
        if account_name and account_name in (self.owner_account_names or ()):
            return True
        if not self.is_paid and steam_id:
            return any(a.steam_id == steam_id for a in self.available_accounts or ())
        return False
