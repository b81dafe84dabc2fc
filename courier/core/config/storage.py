from __future__ import annotations

import typing as t
from pathlib import Path

import pydantic as p

from .base import BaseSettings


class OfflineStoreSettings(BaseSettings):
    """Where queued work is kept; no `path` means an in-memory database."""

    path: Path | None = None
    driver: t.Literal["sqlite+aiosqlite"] = "sqlite+aiosqlite"
    echo: bool = False

    @p.field_validator("path")
    @classmethod
    def expand_path(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None


class StorageSettings(BaseSettings):
    offline: OfflineStoreSettings = OfflineStoreSettings()
