import importlib
import sys
import types
import typing as t

from sqlalchemy.ext.asyncio import AsyncSession

__all__ = [
    "AsyncSession",
    "OfflineStore",
    # row-level modules
    "grade",
    "submission",
    "sync_time",
]

if t.TYPE_CHECKING:
    from . import grade, submission, sync_time
    from .offline import OfflineStore


def __getattr__(name: str) -> t.Any:
    if name == "OfflineStore":
        from .offline import OfflineStore

        return OfflineStore
    if name in __all__:
        module: types.ModuleType = importlib.import_module(f"{__name__}.{name}")
        setattr(sys.modules[__name__], name, module)
        return module
    raise AttributeError(f"module {__name__} has no attribute {name}")
