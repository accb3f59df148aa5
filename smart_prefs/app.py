from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from . import metrics
from .callbacks import ConnectivityChecker
from .config import Settings, get_settings
from .logging import configure_logging
from .pref import Pref, PrefType
from .prefs import Prefs
from .remote.base import RemotePrefs
from .state.local import JsonFileLocalStore, LocalStore


class DemoPrefs(Pref):
    theme = (PrefType.LOCAL, "dark")
    font_size = (PrefType.LOCAL, 14)
    username = (PrefType.REMOTE, "")
    is_premium = (PrefType.REMOTE, False)
    coins = (PrefType.REMOTE, 0)
    session_id = (PrefType.VOLATILE, "")


def build_prefs(
    settings: Settings | None = None,
    *,
    remote: RemotePrefs | None = None,
    local_store: LocalStore | None = None,
    **kwargs: Any,
) -> Prefs:
    """Compose a :class:`Prefs` instance from settings."""
    settings = settings or get_settings()
    if local_store is None:
        local_store = JsonFileLocalStore(settings.local_store_path)
    return Prefs.from_settings(settings, local_store=local_store, remote=remote, **kwargs)


@dataclass
class DemoReport:
    success: bool | None
    attempts: int
    values: dict[str, Any] = field(default_factory=dict)
    callbacks: list[tuple[bool, int]] = field(default_factory=list)
    metrics: dict[str, Any] = field(default_factory=dict)


class _FlakyRemote(RemotePrefs):
    """Wraps a backend and answers ``None`` for the first ``fail_first`` fetches."""

    def __init__(self, inner: RemotePrefs, fail_first: int) -> None:
        self.inner = inner
        self.remaining = fail_first
        self.fetches = 0

    async def fetch_all(self) -> dict[str, Any] | None:
        self.fetches += 1
        if self.remaining > 0:
            self.remaining -= 1
            return None
        return await self.inner.fetch_all()

    async def upsert(self, key: str, value: Any) -> None:
        await self.inner.upsert(key, value)


async def run_demo(
    settings: Settings | None = None,
    *,
    fail_first: int = 0,
    offline_ticks: int = 0,
    local_store: LocalStore | None = None,
) -> DemoReport:
    """Run a scripted startup against an in-memory remote backend."""
    from .manager import PrefsManager
    from .remote.memory_impl import InMemoryRemotePrefs

    configure_logging()
    settings = settings or get_settings()
    metrics.reset_all()
    log = logging.getLogger(__name__)

    database = {"demo-user": {"username": "string|ada", "coins": "int|42", "stale": "bool|true"}}
    remote = _FlakyRemote(InMemoryRemotePrefs("demo-user", database=database), fail_first)

    offline_left = offline_ticks

    async def connectivity() -> bool:
        nonlocal offline_left
        if offline_left > 0:
            offline_left -= 1
            return False
        return True

    checker: ConnectivityChecker | None = connectivity if offline_ticks else None

    report = DemoReport(success=None, attempts=0)
    prefs = build_prefs(
        settings,
        local_store=local_store,
        connectivity_checker=checker,
        on_remote_load=lambda ok, n: report.callbacks.append((ok, n)),
    )
    manager = PrefsManager(remote, [DemoPrefs], prefs=prefs)

    log.info(
        "demo starting",
        extra={"max_retries": settings.max_retries, "fail_first": fail_first},
    )
    session = await manager.init(wait_for_remote=True)
    if session is not None:
        result = await session.wait()
        report.success = result.success
        report.attempts = result.attempts

    await DemoPrefs.session_id.set(prefs, "demo-session")
    report.values = {pref.key: pref.get(prefs) for pref in manager.preferences}
    report.metrics = metrics.snapshot()
    return report
