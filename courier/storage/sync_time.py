from __future__ import annotations

import datetime

import sqlalchemy as sqla
from sqlalchemy.dialects.sqlite import insert

from . import AsyncSession
from .table import sync_times


async def get(component: str, resource_id: str, *, session: AsyncSession) -> datetime.datetime | None:
    stmt = sqla.select(sync_times.synced_at).where(
        sync_times.component == component,
        sync_times.resource_id == resource_id,
    )
    when = (await session.execute(stmt)).scalar_one_or_none()
    if when is not None and when.tzinfo is None:
        # sqlite drops the offset; everything is written in UTC
        when = when.replace(tzinfo=datetime.UTC)
    return when


async def upsert(component: str, resource_id: str, when: datetime.datetime, *, session: AsyncSession) -> None:
    stmt = insert(sync_times).values(component=component, resource_id=resource_id, synced_at=when)
    stmt = stmt.on_conflict_do_update(
        index_elements=["component", "resource_id"],
        set_={"synced_at": stmt.excluded.synced_at},
    )
    await session.execute(stmt)
