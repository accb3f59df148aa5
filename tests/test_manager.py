import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from smart_prefs.errors import DuplicatePrefKeyError
from smart_prefs.manager import PrefsManager
from smart_prefs.pref import Pref, PrefType
from smart_prefs.prefs import Prefs
from smart_prefs.remote.memory_impl import InMemoryRemotePrefs
from smart_prefs.state.local import MemoryLocalStore
from smart_prefs.sync.loader import LoadResult
from tests.fakes.fake_remote import ScriptedRemote


class UserPrefs(Pref):
    theme = (PrefType.LOCAL, "dark")
    language = (PrefType.LOCAL, "en")
    username = (PrefType.REMOTE, "")
    coins = (PrefType.REMOTE, 0)
    session_token = (PrefType.VOLATILE, "")


class AppPrefs(Pref):
    onboarding_done = (PrefType.LOCAL, False)
    last_sync = (PrefType.VOLATILE, "")


class ClashingPrefs(Pref):
    theme = (PrefType.REMOTE, "dark")


def test_pref_members_expose_declaration():
    assert UserPrefs.theme.key == "theme"
    assert UserPrefs.theme.storage_type is PrefType.LOCAL
    assert UserPrefs.theme.default_value == "dark"
    assert UserPrefs.coins.default_value == 0


def test_equal_declarations_stay_distinct_members():
    class TwinPrefs(Pref):
        first = (PrefType.VOLATILE, "")
        second = (PrefType.VOLATILE, "")

    assert len(list(TwinPrefs)) == 2
    assert TwinPrefs.first is not TwinPrefs.second
    assert TwinPrefs.second.key == "second"


def test_declarations_merge_groups():
    manager = PrefsManager(None, [UserPrefs, AppPrefs])
    assert manager.declarations == {
        "theme": PrefType.LOCAL,
        "language": PrefType.LOCAL,
        "username": PrefType.REMOTE,
        "coins": PrefType.REMOTE,
        "session_token": PrefType.VOLATILE,
        "onboarding_done": PrefType.LOCAL,
        "last_sync": PrefType.VOLATILE,
    }
    assert manager.preferences == [*UserPrefs, *AppPrefs]


def test_duplicate_keys_are_rejected():
    with pytest.raises(DuplicatePrefKeyError) as excinfo:
        PrefsManager(None, [UserPrefs, ClashingPrefs])
    assert excinfo.value.key == "theme"


def test_register_keeps_first_declaration_on_clash():
    manager = PrefsManager(None, [UserPrefs])
    with pytest.raises(DuplicatePrefKeyError):
        manager.register(ClashingPrefs.theme)
    manager.register(AppPrefs.last_sync)
    assert UserPrefs.theme in manager.preferences
    assert ClashingPrefs.theme not in manager.preferences
    assert manager.preferences[-1] is AppPrefs.last_sync


def test_init_loads_local_then_remote():
    async def main():
        store = MemoryLocalStore({"theme": "light", "onboarding_done": True})
        database = {"u1": {"username": "string|ada", "coins": "int|42", "theme": "string|red"}}
        remote = InMemoryRemotePrefs("u1", database=database)
        prefs = Prefs(local_store=store, retry_interval_s=0.01)
        manager = PrefsManager(remote, [UserPrefs, AppPrefs], prefs=prefs)

        session = await manager.init()

        assert session is not None
        assert await session.wait() == LoadResult(True, 1)
        # theme is declared local, so the remote copy is ignored.
        assert UserPrefs.theme.get(prefs) == "light"
        assert UserPrefs.username.get(prefs) == "ada"
        assert UserPrefs.coins.get(prefs) == 42
        assert AppPrefs.onboarding_done.get(prefs) is True
        assert UserPrefs.language.get(prefs) == "en"
        assert UserPrefs.session_token.get(prefs) == ""

    asyncio.run(main())


def test_init_without_waiting_returns_running_session():
    async def main():
        remote = ScriptedRemote([None])
        prefs = Prefs(retry_interval_s=0.01, max_retries=2)
        manager = PrefsManager(remote, [UserPrefs], prefs=prefs)

        session = await manager.init(wait_for_remote=False)

        assert session is not None and not session.settled
        assert await session.wait() == LoadResult(False, 2)
        assert UserPrefs.coins.get(prefs) == 0

    asyncio.run(main())


def test_pref_set_and_clear_route_by_storage_type():
    async def main():
        store = MemoryLocalStore()
        remote = ScriptedRemote([{}])
        prefs = Prefs(local_store=store, remote=remote)

        await UserPrefs.theme.set(prefs, "light")
        await UserPrefs.coins.set(prefs, 10)
        await UserPrefs.session_token.set(prefs, "abc")

        assert store.values == {"theme": "light"}
        assert remote.upserts == [("coins", 10)]
        assert UserPrefs.session_token.get(prefs) == "abc"
        assert UserPrefs.theme.get(prefs, default_override="blue") == "light"

        await UserPrefs.theme.clear(prefs)
        assert UserPrefs.theme.get(prefs) == "dark"
        assert store.values == {"theme": "dark"}

    asyncio.run(main())


def test_init_with_signed_out_remote_gives_up():
    async def main():
        calls: list[tuple[bool, int]] = []
        prefs = Prefs(
            retry_interval_s=0.01,
            max_retries=3,
            on_remote_load=lambda ok, n: calls.append((ok, n)),
        )
        manager = PrefsManager(InMemoryRemotePrefs(""), [UserPrefs], prefs=prefs)

        await manager.init()

        assert calls == [(False, 3)]
        assert UserPrefs.username.get(prefs) == ""

    asyncio.run(main())
