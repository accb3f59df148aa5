"""Remote preference loading with timed retries."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..callbacks import ConnectivityChecker, RemoteLoadCallback
from ..errors import ErrorCategory
from ..logging import PrefsLog, PrefsLogLevel
from ..metrics import (
    remote_load_attempts_total,
    remote_load_failures_total,
    remote_load_ms,
)
from ..pref import PrefType
from ..remote.base import RemotePrefs
from ..state.cache import PrefsCache

DEFAULT_MAX_ATTEMPTS = 6
DEFAULT_INTERVAL_S = 10.0


class LoadState(str, Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({LoadState.SUCCEEDED, LoadState.EXHAUSTED, LoadState.CANCELLED})


@dataclass(frozen=True)
class LoadResult:
    success: bool
    attempts: int


def _notify(
    callback: RemoteLoadCallback | None, success: bool, attempt: int, log: PrefsLog
) -> None:
    if callback is None:
        return
    try:
        callback(success, attempt)
    except Exception as exc:
        log(
            PrefsLogLevel.ERROR,
            f"Remote load callback failed: {exc!r}",
            event_type="remote_load_callback_error",
            error_category=ErrorCategory.CALLBACK.value,
        )


class LoadSession:
    """One periodic attempt to pull remote preferences into the cache.

    The session moves ``IDLE -> ATTEMPTING -> SUCCEEDED | EXHAUSTED`` (or
    ``CANCELLED`` via :meth:`cancel`). Every ``interval_s`` seconds a tick
    checks connectivity and calls ``fetch_all``. Ticks run as their own tasks
    so a slow fetch does not hold back the timer. The first terminal
    transition stops the timer, fires ``on_complete`` and resolves
    :meth:`wait`. Anything that finishes later is discarded.

    The retry limit, interval, connectivity checker and callback are read from
    the owning :class:`RemoteLoader` each time they are needed, so changing
    them on the loader also changes a session that is already running. The
    backend is fixed when the session is created.
    """

    def __init__(self, loader: RemoteLoader, remote_keys: frozenset[str]) -> None:
        if loader.remote is None:
            raise RuntimeError("Remote preferences not configured")
        self.loader = loader
        self.remote: RemotePrefs = loader.remote
        self.cache = loader.cache
        self.remote_keys = remote_keys
        self.log = loader.log

        self.state = LoadState.IDLE
        self.attempt_count = 0
        self._done: asyncio.Future[LoadResult] | None = None
        self._timer: asyncio.Task[None] | None = None
        self._ticks: set[asyncio.Task[None]] = set()

    @property
    def max_attempts(self) -> int:
        return self.loader.max_attempts

    @property
    def interval_s(self) -> float:
        return self.loader.interval_s

    @property
    def connectivity_checker(self) -> ConnectivityChecker | None:
        return self.loader.connectivity_checker

    @property
    def on_complete(self) -> RemoteLoadCallback | None:
        return self.loader.on_complete

    @property
    def settled(self) -> bool:
        return self.state in TERMINAL_STATES

    def start(self) -> LoadSession:
        if self.state is not LoadState.IDLE:
            raise RuntimeError("Load session already started")
        self._done = asyncio.get_running_loop().create_future()
        self.state = LoadState.ATTEMPTING
        self._timer = asyncio.create_task(self._run_timer())
        return self

    async def wait(self) -> LoadResult:
        """Block until the session settles and return its outcome."""
        if self._done is None:
            raise RuntimeError("Load session not started")
        return await asyncio.shield(self._done)

    def cancel(self) -> bool:
        """Stop retrying. Returns ``False`` if the session already settled."""
        if self._done is None or self.settled:
            return False
        self.log(
            PrefsLogLevel.INFO,
            f"Remote preference loading cancelled after {self.attempt_count} attempt(s)",
            event_type="remote_load_cancelled",
            attempt=self.attempt_count,
        )
        self._settle(LoadState.CANCELLED, False, self.attempt_count)
        return True

    def _limit_label(self) -> str:
        return str(self.max_attempts) if self.max_attempts > 0 else "∞"

    async def _run_timer(self) -> None:
        if self.loader.first_attempt_immediate:
            self._spawn_tick()
        while not self.settled:
            await asyncio.sleep(self.interval_s)
            if self.settled:
                break
            self._spawn_tick()

    def _spawn_tick(self) -> None:
        task = asyncio.create_task(self._tick())
        self._ticks.add(task)
        task.add_done_callback(self._ticks.discard)

    async def _is_online(self) -> bool:
        if self.connectivity_checker is None:
            return True
        try:
            return bool(await self.connectivity_checker())
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.log(
                PrefsLogLevel.WARNING,
                f"Connectivity check failed: {exc!r}",
                event_type="connectivity_check_error",
                error_category=ErrorCategory.NETWORK.value,
            )
            return False

    async def _tick(self) -> None:
        if not await self._is_online():
            # Offline ticks are not counted against max_attempts.
            self.log(
                PrefsLogLevel.WARNING,
                "No connectivity detected, skipping remote load "
                f"(attempt {self.attempt_count + 1})",
                event_type="remote_load_offline",
                attempt=self.attempt_count + 1,
                error_category=ErrorCategory.NETWORK.value,
            )
            return
        if self.settled:
            return

        remote_load_attempts_total.inc()
        values: dict[str, Any] | None
        try:
            with remote_load_ms.measure():
                values = await self.remote.fetch_all()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.log(
                PrefsLogLevel.ERROR,
                f"Error loading remote preferences: {exc!r}",
                event_type="remote_load_error",
                attempt=self.attempt_count + 1,
                error_category=ErrorCategory.REMOTE.value,
            )
            values = None

        if self.settled:
            return

        if values is not None:
            self._merge(values)
            attempt = self.attempt_count + 1
            self.log(
                PrefsLogLevel.INFO,
                f"Remote preferences loaded successfully after {attempt} attempt(s)",
                event_type="remote_load_success",
                attempt=attempt,
                latency_ms=remote_load_ms.last_ms,
            )
            self._settle(LoadState.SUCCEEDED, True, attempt)
            return

        remote_load_failures_total.inc()
        self.attempt_count += 1
        if self.max_attempts > 0 and self.attempt_count >= self.max_attempts:
            self.log(
                PrefsLogLevel.WARNING,
                f"Failed to load remote preferences after {self.attempt_count} attempts. "
                "Giving up.",
                event_type="remote_load_exhausted",
                attempt=self.attempt_count,
                max_retries=self.max_attempts,
            )
            self._settle(LoadState.EXHAUSTED, False, self.attempt_count)
        else:
            self.log(
                PrefsLogLevel.WARNING,
                f"Could not load remote preferences, retrying in {self.interval_s:g} seconds... "
                f"(attempt {self.attempt_count}/{self._limit_label()})",
                event_type="remote_load_retry",
                attempt=self.attempt_count,
                max_retries=self.max_attempts,
            )

    def _merge(self, values: Mapping[str, Any]) -> int:
        return self.cache.merge({k: v for k, v in values.items() if k in self.remote_keys})

    def _settle(self, state: LoadState, success: bool, attempts: int) -> None:
        if self._done is None or self.settled:
            return
        self.state = state
        self._stop_timer()
        _notify(self.on_complete, success, attempts, self.log)
        if not self._done.done():
            self._done.set_result(LoadResult(success, attempts))

    def _stop_timer(self) -> None:
        current = asyncio.current_task()
        if self._timer is not None and self._timer is not current:
            self._timer.cancel()
        for task in list(self._ticks):
            if task is not current:
                task.cancel()


class RemoteLoader:
    """Pulls remote preferences into a :class:`PrefsCache`.

    :meth:`start` runs a timed :class:`LoadSession` used at startup.
    :meth:`reload` is an immediate one-shot fetch for when the caller knows
    the backend just became ready, e.g. right after sign-in.
    """

    def __init__(
        self,
        cache: PrefsCache,
        *,
        remote: RemotePrefs | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        interval_s: float = DEFAULT_INTERVAL_S,
        first_attempt_immediate: bool = False,
        connectivity_checker: ConnectivityChecker | None = None,
        on_complete: RemoteLoadCallback | None = None,
    ) -> None:
        self.cache = cache
        self.remote = remote
        self.max_attempts = max_attempts
        self.interval_s = interval_s
        self.first_attempt_immediate = first_attempt_immediate
        self.connectivity_checker = connectivity_checker
        self.on_complete = on_complete
        self.log = PrefsLog(__name__)

    def start(self, declarations: Mapping[str, PrefType]) -> LoadSession:
        if self.remote is None:
            raise RuntimeError("Remote preferences not configured")
        remote_keys = frozenset(
            k for k, t in declarations.items() if PrefType(t) is PrefType.REMOTE
        )
        return LoadSession(self, remote_keys).start()

    async def reload(self) -> bool:
        """Fetch once and merge every returned key. Reports attempt 1."""
        if self.remote is None:
            self.log(
                PrefsLogLevel.WARNING,
                "Cannot reload: Remote preferences not configured",
                event_type="remote_reload_unconfigured",
            )
            return False

        remote_load_attempts_total.inc()
        try:
            with remote_load_ms.measure():
                values = await self.remote.fetch_all()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            remote_load_failures_total.inc()
            self.log(
                PrefsLogLevel.ERROR,
                f"Failed to reload remote preferences: {exc!r}",
                event_type="remote_reload_error",
                error_category=ErrorCategory.REMOTE.value,
            )
            _notify(self.on_complete, False, 1, self.log)
            return False

        if values is None:
            remote_load_failures_total.inc()
            self.log(
                PrefsLogLevel.WARNING,
                "Remote preferences returned None (user not authenticated?)",
                event_type="remote_reload_not_ready",
            )
            _notify(self.on_complete, False, 1, self.log)
            return False

        count = self.cache.merge(values)
        self.log(
            PrefsLogLevel.INFO,
            f"Successfully reloaded {count} remote preferences",
            event_type="remote_reload_success",
            latency_ms=remote_load_ms.last_ms,
        )
        _notify(self.on_complete, True, 1, self.log)
        return True
