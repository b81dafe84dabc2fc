"""dependency-injector re-exports, typed for the way courier commands use them."""

from __future__ import annotations

__all__ = ["NotReady", "Provide", "Provider", "containers", "inject", "providers"]

import typing as t

import dependency_injector.containers as containers
import dependency_injector.providers as providers
import dependency_injector.wiring as wiring
from dependency_injector.providers import Provider
from dependency_injector.wiring import Provide

P = t.ParamSpec("P")
R = t.TypeVar("R")


def inject(fn: t.Callable[P, R]) -> t.Callable[P, R]:
    return t.cast(t.Callable[P, R], wiring.inject(fn))


class NotReady(object):
    """Singleton placeholder for container values that only exist after boot."""

    _instance: t.ClassVar[NotReady | None] = None

    def __new__(cls) -> NotReady:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "<NotReady>"
