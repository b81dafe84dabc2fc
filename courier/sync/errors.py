from __future__ import annotations


class SyncError(Exception):
    """Base class for failures that stop a synchronization from happening."""


class SyncBlockedError(SyncError):
    """The resource is administratively blocked, typically by an open editor."""

    def __init__(self, component: str, resource_id: str | int, message: str | None = None):
        self.component = component
        self.resource_id = resource_id
        super().__init__(message or f"{component} {resource_id} is blocked from synchronizing")


class NetworkError(SyncError):
    def __init__(self, message: str = "cannot synchronize while offline"):
        super().__init__(message)


class LocalStorageError(SyncError):
    """The offline store could not be read or written."""


class NotFoundError(LookupError):
    pass
