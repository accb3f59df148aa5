from __future__ import annotations

from collections.abc import Awaitable, Callable

# Returns True when the network is reachable. Consulted once per retry tick.
ConnectivityChecker = Callable[[], Awaitable[bool]]

# Called with (success, attempt) once a remote load settles. Attempts start at 1.
RemoteLoadCallback = Callable[[bool, int], None]
