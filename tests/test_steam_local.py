from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from steamswitch.utils import steam_local

LOGINUSERS_VDF = '''"users"
{
	"76561198000000001"
	{
		"AccountName"		"alice"
		"PersonaName"		"Alice"
		"RememberPassword"		"1"
		"MostRecent"		"1"
		"Timestamp"		"1700000000"
	}
	"76561198000000002"
	{
		"AccountName"		"bob"
		"PersonaName"		""
		"MostRecent"		"0"
		"Timestamp"		"garbage"
	}
	"76561198000000003"
	{
		"AccountName"		"ALICE"
		"PersonaName"		"Someone"
	}
	"76561198000000004"
	{
		"AccountName"		"   "
		"PersonaName"		"Ghost"
	}
}
'''


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def manifest(app_id: int) -> str:
    return f'"AppState"\n{{\n\t"appid"\t\t"{app_id}"\n\t"name"\t\t"Game {app_id}"\n}}\n'


@pytest.fixture
def steam_root(tmp_path: Path) -> Path:
    root = tmp_path / "Steam"
    (root / "steamapps").mkdir(parents=True)
    return root


def test_discover_accounts(steam_root: Path) -> None:
    write(steam_root / "config" / "loginusers.vdf", LOGINUSERS_VDF)

    accounts = steam_local.discover_accounts(str(steam_root))

    assert [a.account_name for a in accounts] == ["alice", "bob"]
    alice, bob = accounts
    assert alice.steam_id == "76561198000000001"
    assert alice.persona_name == "Alice"
    assert alice.is_current is True
    assert alice.last_login == datetime.fromtimestamp(1700000000)
    # Missing persona falls back to the account name
    assert bob.persona_name == "bob"
    assert bob.is_current is False


def test_discover_accounts_missing_file(steam_root: Path) -> None:
    assert steam_local.discover_accounts(str(steam_root)) == []


def test_discover_accounts_malformed_file(steam_root: Path) -> None:
    write(steam_root / "config" / "loginusers.vdf", '"users"\n{\n\t"1"\n\t{\n')
    assert steam_local.discover_accounts(str(steam_root)) == []


def test_find_steam_path_env_override(steam_root: Path, monkeypatch) -> None:
    monkeypatch.setenv(steam_local.STEAM_PATH_ENV, str(steam_root))
    assert steam_local.find_steam_path() == str(steam_root)


def test_find_steam_path_none(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.delenv(steam_local.STEAM_PATH_ENV, raising=False)
    monkeypatch.setattr(steam_local, "DEFAULT_STEAM_PATHS", [str(tmp_path / "nowhere")])
    assert steam_local.find_steam_path() is None


def test_library_folders_new_layout(steam_root: Path, tmp_path: Path) -> None:
    second = tmp_path / "Library2"
    write(steam_root / "steamapps" / "libraryfolders.vdf", f'''"libraryfolders"
{{
	"0"
	{{
		"path"		"{steam_root.as_posix()}"
	}}
	"1"
	{{
		"path"		"{second.as_posix()}"
		"apps"
		{{
			"620"		"123"
		}}
	}}
}}
''')
    assert steam_local.get_library_folders(str(steam_root)) == [steam_root, second]


def test_library_folders_old_layout(steam_root: Path, tmp_path: Path) -> None:
    second = tmp_path / "OldLibrary"
    write(steam_root / "steamapps" / "libraryfolders.vdf", f'''"LibraryFolders"
{{
	"TimeNextStatsReport"		"1600000000"
	"ContentStatsID"		"-123"
	"1"		"{second.as_posix()}"
}}
''')
    assert steam_local.get_library_folders(str(steam_root)) == [steam_root, second]


def test_installed_app_ids_across_libraries(steam_root: Path, tmp_path: Path) -> None:
    second = tmp_path / "Library2"
    write(steam_root / "steamapps" / "libraryfolders.vdf", f'''"libraryfolders"
{{
	"1"
	{{
		"path"		"{second.as_posix()}"
	}}
	"2"
	{{
		"path"		"{(tmp_path / "unplugged").as_posix()}"
	}}
}}
''')
    write(steam_root / "steamapps" / "appmanifest_570.acf", manifest(570))
    write(second / "steamapps" / "appmanifest_620.acf", manifest(620))
    # Unparseable manifest falls back to the file name
    write(second / "steamapps" / "appmanifest_730.acf", '"AppState"\n{\n')

    assert steam_local.get_installed_app_ids(str(steam_root)) == {570, 620, 730}


def test_installed_app_ids_without_steam(monkeypatch) -> None:
    monkeypatch.setattr(steam_local, "find_steam_path", lambda: None)
    assert steam_local.get_installed_app_ids() == set()
