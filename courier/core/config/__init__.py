__all__ = [
    "LoggingSettings",
    "OfflineStoreSettings",
    "Settings",
    "StorageSettings",
    "SyncSettings",
]


from .logging import LoggingSettings
from .settings import Settings
from .storage import OfflineStoreSettings, StorageSettings
from .sync import SyncSettings
