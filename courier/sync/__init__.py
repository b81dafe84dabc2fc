import importlib
import typing as t

from .errors import LocalStorageError, NetworkError, NotFoundError, SyncBlockedError, SyncError

__all__ = [
    "ActivityLog",
    "AssignmentSync",
    "ConflictResolver",
    "Connectivity",
    "Decision",
    "EventBus",
    "LocalStorageError",
    "NetworkError",
    "NotFoundError",
    "NullActivityLog",
    "StaticConnectivity",
    "SyncBlockedError",
    "SyncError",
    "SyncLockService",
    "SyncScheduler",
]

if t.TYPE_CHECKING:
    from .activity import ActivityLog, NullActivityLog
    from .connectivity import Connectivity, StaticConnectivity
    from .events import EventBus
    from .lock import SyncLockService
    from .orchestrator import AssignmentSync
    from .resolver import ConflictResolver, Decision
    from .scheduler import SyncScheduler

# the offline store imports our errors, so the rest of the package loads on first use
_lazy = {
    "ActivityLog": "activity",
    "NullActivityLog": "activity",
    "Connectivity": "connectivity",
    "StaticConnectivity": "connectivity",
    "EventBus": "events",
    "SyncLockService": "lock",
    "AssignmentSync": "orchestrator",
    "ConflictResolver": "resolver",
    "Decision": "resolver",
    "SyncScheduler": "scheduler",
}


def __getattr__(name: str) -> t.Any:
    if name in _lazy:
        module = importlib.import_module(f"{__name__}.{_lazy[name]}")
        return getattr(module, name)
    raise AttributeError(f"module {__name__} has no attribute {name}")
