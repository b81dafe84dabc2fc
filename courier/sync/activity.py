import typing as t


class ActivityLog(t.Protocol):
    """Sends activity events that were logged while offline."""

    async def sync_activity(self, component: str, resource_id: str | int) -> None: ...


class NullActivityLog(object):
    async def sync_activity(self, component: str, resource_id: str | int) -> None:
        return None
