"""Steam account known on this machine."""
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class SteamAccount:
    """A Steam account that has logged in on this machine"""
    steam_id: str = ""  # SteamID64
    account_name: str = ""  # login name, case-insensitive
    persona_name: str = ""
    last_login: datetime = field(default_factory=datetime.now)
    is_current: bool = False

    @property
    def display_name(self) -> str:
        return self.persona_name or self.account_name
