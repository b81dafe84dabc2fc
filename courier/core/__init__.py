import typing as t

from . import di
from .config import Settings
from .provider import LoggingProvider, TimestampProvider

__all__ = [
    "BootConfiguration",
    "CourierContainer",
    "di",
    "LoggingProvider",
    "Settings",
    "TimestampProvider",
]

if t.TYPE_CHECKING:
    from .container import BootConfiguration, CourierContainer


def __getattr__(name: str) -> t.Any:
    # containers import the whole engine, which itself imports from courier.core
    if name in ("BootConfiguration", "CourierContainer"):
        from . import container

        return getattr(container, name)
    raise AttributeError(f"module {__name__} has no attribute {name}")
