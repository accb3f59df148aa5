"""Local, remote and volatile preferences behind one in-memory cache.

Modules are intentionally lightweight and do not perform network or disk I/O
on import.
"""

from .codec import TypedValue
from .errors import DuplicatePrefKeyError
from .logging import PrefsLogLevel
from .manager import PrefsManager
from .pref import Pref, PrefType, PrefValue
from .prefs import Prefs
from .remote.base import RemotePrefs
from .state.cache import PrefsCache
from .sync.loader import LoadResult, LoadSession, LoadState

__all__ = [
    "__version__",
    "DuplicatePrefKeyError",
    "LoadResult",
    "LoadSession",
    "LoadState",
    "Pref",
    "PrefType",
    "PrefValue",
    "Prefs",
    "PrefsCache",
    "PrefsLogLevel",
    "PrefsManager",
    "RemotePrefs",
    "TypedValue",
]

__version__ = "0.1.0"
