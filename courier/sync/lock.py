from __future__ import annotations

import contextlib
import logging
import typing as t

logger = logging.getLogger(__name__)


class SyncLockService(object):
    """
    Advisory "edit in progress" blocks, scoped to (component, resource id).

    Several operations may block the same resource; it stays blocked until
    every one of them is released.
    """

    def __init__(self) -> None:
        self._blocks: dict[tuple[str, str], set[str]] = {}

    @staticmethod
    def _key(component: str, resource_id: str | int) -> tuple[str, str]:
        return component, str(resource_id)

    def block(self, component: str, resource_id: str | int, operation: str = "") -> None:
        self._blocks.setdefault(self._key(component, resource_id), set()).add(operation)
        logger.debug(f"blocked {component} {resource_id} for {operation or 'unnamed operation'}")

    def unblock(self, component: str, resource_id: str | int, operation: str = "") -> None:
        key = self._key(component, resource_id)
        operations = self._blocks.get(key)
        if operations is None:
            return
        operations.discard(operation)
        if not operations:
            del self._blocks[key]
        logger.debug(f"unblocked {component} {resource_id} for {operation or 'unnamed operation'}")

    def clear(self, component: str, resource_id: str | int) -> None:
        self._blocks.pop(self._key(component, resource_id), None)

    def is_blocked(self, component: str, resource_id: str | int, *, ignore: str | None = None) -> bool:
        """Whether any operation other than `ignore` holds a block on the resource."""
        operations = self._blocks.get(self._key(component, resource_id), set())
        return bool(operations - {ignore}) if ignore is not None else bool(operations)

    @contextlib.contextmanager
    def blocking(self, component: str, resource_id: str | int, operation: str = "") -> t.Iterator[None]:
        self.block(component, resource_id, operation)
        try:
            yield
        finally:
            self.unblock(component, resource_id, operation)
