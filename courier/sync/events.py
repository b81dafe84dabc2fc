from __future__ import annotations

import inspect
import logging
import typing as t

from courier.model import SyncEvent

logger = logging.getLogger(__name__)

TEvent = t.TypeVar("TEvent", bound=SyncEvent)
Handler = t.Callable[[TEvent], t.Awaitable[None] | None]


class EventBus(object):
    """In-process publish/subscribe for sync notifications."""

    def __init__(self) -> None:
        self._handlers: dict[type[SyncEvent], list[Handler[t.Any]]] = {}

    def subscribe(self, event_type: type[TEvent], handler: Handler[TEvent]) -> t.Callable[[], None]:
        """Register `handler`; returns a callable that removes it again."""
        handlers = self._handlers.setdefault(event_type, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    async def publish(self, event: SyncEvent) -> None:
        for event_type, handlers in list(self._handlers.items()):
            if not isinstance(event, event_type):
                continue
            for handler in list(handlers):
                try:
                    rv = handler(event)
                    if inspect.isawaitable(rv):
                        await rv
                except Exception:
                    logger.exception(
                        "sync event handler failed",
                        extra={"event": type(event).__name__, "assignment_id": event.assignment_id},
                    )
