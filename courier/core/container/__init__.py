__all__ = ["BootConfiguration", "CourierContainer", "StorageContainer", "SyncContainer"]

from .courier import BootConfiguration, CourierContainer
from .storage import StorageContainer
from .sync import SyncContainer
