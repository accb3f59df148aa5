from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .callbacks import ConnectivityChecker, RemoteLoadCallback
from .codec import kind_of
from .errors import ErrorCategory
from .logging import PrefsLog, PrefsLogger, PrefsLogLevel
from .metrics import local_write_failures_total, remote_write_failures_total
from .pref import PrefType
from .remote.base import RemotePrefs
from .state.cache import PrefsCache
from .state.local import LocalStore, MemoryLocalStore
from .sync.loader import DEFAULT_INTERVAL_S, DEFAULT_MAX_ATTEMPTS, LoadSession, RemoteLoader

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .config import Settings


class Prefs:
    """Typed access to local, remote and volatile preferences.

    Every read is served from the in-memory :class:`PrefsCache`. Writes update
    the cache first and then persist according to the storage type. Persistence
    failures are logged and never raised, so the cache may briefly be ahead of
    the durable copy.
    """

    def __init__(
        self,
        *,
        cache: PrefsCache | None = None,
        local_store: LocalStore | None = None,
        remote: RemotePrefs | None = None,
        max_retries: int = DEFAULT_MAX_ATTEMPTS,
        retry_interval_s: float = DEFAULT_INTERVAL_S,
        first_attempt_immediate: bool = False,
        connectivity_checker: ConnectivityChecker | None = None,
        on_remote_load: RemoteLoadCallback | None = None,
        logger: PrefsLogger | None = None,
    ) -> None:
        self.cache = cache if cache is not None else PrefsCache()
        self.local_store: LocalStore = local_store if local_store is not None else MemoryLocalStore()
        self.loader = RemoteLoader(
            self.cache,
            remote=remote,
            max_attempts=max_retries,
            interval_s=retry_interval_s,
            first_attempt_immediate=first_attempt_immediate,
            connectivity_checker=connectivity_checker,
            on_complete=on_remote_load,
        )
        self._log = PrefsLog(__name__)
        self.set_logger(logger)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        local_store: LocalStore | None = None,
        remote: RemotePrefs | None = None,
        **kwargs: Any,
    ) -> Prefs:
        return cls(
            local_store=local_store,
            remote=remote,
            max_retries=settings.max_retries,
            retry_interval_s=settings.retry_interval_s,
            first_attempt_immediate=settings.first_attempt_immediate,
            **kwargs,
        )

    # Configuration -----------------------------------------------------------

    @property
    def remote(self) -> RemotePrefs | None:
        return self.loader.remote

    def set_logger(self, logger: PrefsLogger | None) -> None:
        """Redirect messages to ``logger``; ``None`` restores stdlib logging."""
        self._log.sink = logger
        self.loader.log.sink = logger

    def set_max_retries(self, max_retries: int) -> None:
        """Attempts before giving up on the startup load. ``0`` retries forever."""
        self.loader.max_attempts = max_retries

    def set_retry_interval(self, interval_s: float) -> None:
        self.loader.interval_s = interval_s

    def set_connectivity_checker(self, checker: ConnectivityChecker | None) -> None:
        self.loader.connectivity_checker = checker

    def set_remote_load_callback(self, callback: RemoteLoadCallback | None) -> None:
        self.loader.on_complete = callback

    def set_remote_preferences(self, remote: RemotePrefs | None) -> None:
        self.loader.remote = remote

    # Access ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value for ``key`` or ``default``.

        If the cached value is of a different kind than ``default`` (say a
        string where an int is expected) ``default`` is returned instead.
        """
        value = self.cache.get(key)
        if value is None:
            return default
        if default is None:
            return value
        expected = kind_of(default)
        actual = kind_of(value)
        if expected == actual:
            return value
        if expected == "double" and actual == "int":
            return float(value)
        self._log(
            PrefsLogLevel.DEBUG,
            f'Preference "{key}" holds {actual or type(value).__name__}, '
            f"expected {expected or type(default).__name__}; using default",
            event_type="pref_type_mismatch",
            key=key,
            error_category=ErrorCategory.CODEC.value,
        )
        return default

    async def set(self, key: str, value: Any, storage_type: PrefType) -> None:
        """Store ``value`` in the cache and persist it per ``storage_type``."""
        self.cache.put(key, value)

        storage_type = PrefType(storage_type)
        if storage_type is PrefType.LOCAL:
            self._save_local(key, value)
        elif storage_type is PrefType.REMOTE:
            await self._save_remote(key, value)
        # Volatile values live only in the cache.

    def _save_local(self, key: str, value: Any) -> bool:
        if kind_of(value) is None:
            local_write_failures_total.inc()
            self._log(
                PrefsLogLevel.ERROR,
                f'Unsupported data type for preference "{key}": {type(value).__name__}. '
                "Supported types: str, bool, int, float, list[str]",
                event_type="local_save_unsupported",
                key=key,
                error_category=ErrorCategory.LOCAL.value,
            )
            return False
        try:
            success = self.local_store.set(key, value)
        except Exception as exc:
            local_write_failures_total.inc()
            self._log(
                PrefsLogLevel.ERROR,
                f'Error saving local preference "{key}": {exc!r}',
                event_type="local_save_error",
                key=key,
                error_category=ErrorCategory.LOCAL.value,
            )
            return False
        if not success:
            local_write_failures_total.inc()
            self._log(
                PrefsLogLevel.WARNING,
                f'Failed to save local preference "{key}"',
                event_type="local_save_failed",
                key=key,
                error_category=ErrorCategory.LOCAL.value,
            )
        return bool(success)

    async def _save_remote(self, key: str, value: Any) -> None:
        remote = self.loader.remote
        if remote is None:
            self._log(
                PrefsLogLevel.DEBUG,
                f'No remote backend configured; "{key}" kept in memory only',
                event_type="remote_save_skipped",
                key=key,
            )
            return
        try:
            await remote.upsert(key, value)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            remote_write_failures_total.inc()
            self._log(
                PrefsLogLevel.ERROR,
                f'Error saving remote preference "{key}": {exc!r}',
                event_type="remote_save_error",
                key=key,
                error_category=ErrorCategory.REMOTE.value,
            )

    # Loading -----------------------------------------------------------------

    async def load_preferences(
        self,
        declarations: Mapping[str, PrefType],
        *,
        wait_for_remote: bool = True,
    ) -> LoadSession | None:
        """Fill the cache from local storage, then start the remote load.

        Volatile keys are left untouched. When ``wait_for_remote`` is true this
        returns only after the remote session settles.
        """
        for key, storage_type in declarations.items():
            if PrefType(storage_type) is not PrefType.LOCAL:
                continue
            try:
                value = self.local_store.get(key)
            except Exception as exc:
                self._log(
                    PrefsLogLevel.ERROR,
                    f'Error loading local preference "{key}": {exc!r}',
                    event_type="local_load_error",
                    key=key,
                    error_category=ErrorCategory.LOCAL.value,
                )
                continue
            if value is not None:
                if isinstance(value, tuple):
                    value = list(value)
                self.cache.put(key, value)

        if self.loader.remote is None:
            return None

        session = self.loader.start(declarations)
        if wait_for_remote:
            try:
                await session.wait()
            except asyncio.CancelledError:
                # The caller never receives the session, so stop it here.
                session.cancel()
                raise
        return session

    async def reload_remote_preferences(self) -> bool:
        """Fetch remote preferences now, skipping the retry timer.

        Useful right after sign-in or when connectivity returns.
        """
        return await self.loader.reload()
