"""
Local Steam installation helpers.

Reads the accounts that have logged in on this machine from
config/loginusers.vdf and the installed app ids from the appmanifest files of
every Steam library folder. Both are needed to rebuild the transient parts of
a cached game (install state, launchable accounts).
"""

import os
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import vdf

from ..models.account import SteamAccount

logger = logging.getLogger(__name__)

STEAM_PATH_ENV = "STEAM_PATH"

DEFAULT_STEAM_PATHS = [
    os.path.expanduser("~/.steam/steam"),
    os.path.expanduser("~/.local/share/Steam"),
    r"C:\Program Files (x86)\Steam",
    r"C:\Program Files\Steam",
]


def _lower_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    # VDF keys are not reliably cased across Steam versions
    return {str(k).lower(): v for k, v in data.items()}


def _load_vdf(path: Path) -> Optional[Dict[str, Any]]:
    try:
        with open(path, 'r', encoding='utf-8', errors='ignore') as f:
            return vdf.load(f)
    except (OSError, SyntaxError, ValueError) as e:
        logger.warning(f"[SteamLocal] Error reading {path}: {e}")
        return None


def find_steam_path() -> Optional[str]:
    """Find Steam installation directory"""
    override = os.environ.get(STEAM_PATH_ENV)
    candidates = [override] if override else []
    candidates.extend(DEFAULT_STEAM_PATHS)

    for path in candidates:
        if os.path.exists(os.path.join(path, "steamapps")):
            return path

    return None


def discover_accounts(steam_path: Optional[str] = None) -> List[SteamAccount]:
    """
    Get the Steam accounts that have logged in on this machine.

    Accounts without an account name are skipped. Duplicates (same Steam ID,
    account name or persona name, ignoring case) keep the first entry. The
    account flagged MostRecent is marked as current.

    Args:
        steam_path: Path to Steam installation (auto-detected if None)

    Returns:
        List of SteamAccount, in file order
    """
    if steam_path is None:
        steam_path = find_steam_path()

    if not steam_path:
        logger.warning("[SteamLocal] Could not find Steam installation path")
        return []

    loginusers_path = Path(steam_path) / "config" / "loginusers.vdf"
    if not loginusers_path.exists():
        logger.info(f"[SteamLocal] loginusers.vdf not found at {loginusers_path}")
        return []

    data = _load_vdf(loginusers_path)
    if data is None:
        return []

    users = _lower_keys(data).get('users', {})
    if not isinstance(users, dict):
        return []

    accounts: List[SteamAccount] = []
    seen_ids: Set[str] = set()
    seen_names: Set[str] = set()

    for steam_id, raw_info in users.items():
        if not isinstance(raw_info, dict):
            continue
        info = _lower_keys(raw_info)

        account_name = str(info.get('accountname', '')).strip()
        if not account_name:
            continue
        persona_name = str(info.get('personaname', '')).strip() or account_name

        if steam_id in seen_ids or account_name.casefold() in seen_names or persona_name.casefold() in seen_names:
            logger.debug(f"[SteamLocal] Skipping duplicate account {account_name} ({steam_id})")
            continue

        accounts.append(SteamAccount(
            steam_id=steam_id,
            account_name=account_name,
            persona_name=persona_name,
            last_login=_parse_login_timestamp(info.get('timestamp')),
            is_current=str(info.get('mostrecent', '0')) == '1',
        ))
        seen_ids.add(steam_id)
        seen_names.add(account_name.casefold())
        seen_names.add(persona_name.casefold())

    logger.info(f"[SteamLocal] Found {len(accounts)} accounts in loginusers.vdf")
    return accounts


def _parse_login_timestamp(value: Any) -> datetime:
    try:
        return datetime.fromtimestamp(int(value))
    except (TypeError, ValueError, OverflowError, OSError):
        return datetime.now()


def get_library_folders(steam_path: str) -> List[Path]:
    """
    Get every Steam library folder, the main installation first.

    Understands both libraryfolders.vdf layouts: numbered keys holding a
    plain path (old) or a block with a "path" entry (current).
    """
    folders = [Path(steam_path)]
    libraryfolders_path = Path(steam_path) / "steamapps" / "libraryfolders.vdf"
    if not libraryfolders_path.exists():
        return folders

    data = _load_vdf(libraryfolders_path)
    if data is None:
        return folders

    entries = _lower_keys(data).get('libraryfolders', {})
    if not isinstance(entries, dict):
        return folders

    for key, entry in entries.items():
        if not str(key).isdigit():
            continue
        path = entry.get('path') if isinstance(entry, dict) else entry
        if not path:
            continue
        folder = Path(path)
        if folder not in folders:
            folders.append(folder)

    return folders


def get_installed_app_ids(steam_path: Optional[str] = None) -> Set[int]:
    """Get the app ids of all games installed in any Steam library."""
    if steam_path is None:
        steam_path = find_steam_path()

    installed: Set[int] = set()
    if not steam_path:
        logger.warning("[SteamLocal] Could not find Steam installation path")
        return installed

    for folder in get_library_folders(steam_path):
        steamapps = folder / "steamapps"
        if not steamapps.is_dir():
            logger.debug(f"[SteamLocal] Library folder missing: {steamapps}")
            continue

        for manifest in steamapps.glob("appmanifest_*.acf"):
            app_id = _read_manifest_app_id(manifest)
            if app_id is not None:
                installed.add(app_id)

    logger.info(f"[SteamLocal] Detected {len(installed)} installed apps")
    return installed


def _read_manifest_app_id(manifest: Path) -> Optional[int]:
    data = _load_vdf(manifest)
    if data:
        state = _lower_keys(data).get('appstate', {})
        if isinstance(state, dict):
            app_id = _lower_keys(state).get('appid')
            if app_id is not None and str(app_id).isdigit():
                return int(app_id)

    # appmanifest_<appid>.acf
    stem = manifest.stem.split('_', 1)[-1]
    if stem.isdigit():
        return int(stem)

    logger.warning(f"[SteamLocal] Could not determine app id for {manifest}")
    return None
