"""Row-level access to queued submissions."""

from __future__ import annotations

import sqlalchemy as sqla
from sqlalchemy.dialects.sqlite import insert

from courier.model import AssignmentID, PendingSubmission, UserID

from . import AsyncSession
from .table import pending_submissions


async def get(
    assignment_id: AssignmentID, user_id: UserID, *, session: AsyncSession
) -> PendingSubmission | None:
    stmt = sqla.select(pending_submissions.__table__).where(
        pending_submissions.assignment_id == assignment_id,
        pending_submissions.user_id == user_id,
    )
    row = (await session.execute(stmt)).mappings().one_or_none()
    return PendingSubmission(**row) if row else None


async def find(*, assignment_id: AssignmentID | None = None, session: AsyncSession) -> list[PendingSubmission]:
    """All queued submissions, optionally only those of one assignment."""
    stmt = sqla.select(pending_submissions.__table__)
    if assignment_id is not None:
        stmt = stmt.where(pending_submissions.assignment_id == assignment_id)
    rows = (await session.execute(stmt)).mappings().all()
    return [PendingSubmission(**row) for row in rows]


async def upsert(pending: PendingSubmission, *, session: AsyncSession) -> PendingSubmission:
    """Insert `pending`, replacing whatever was queued for the same pair."""
    values = pending.model_dump(mode="json")
    stmt = insert(pending_submissions).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["assignment_id", "user_id"],
        set_={k: stmt.excluded[k] for k in values if k not in ("assignment_id", "user_id")},
    )
    await session.execute(stmt)
    return pending


async def delete(assignment_id: AssignmentID, user_id: UserID, *, session: AsyncSession) -> bool:
    """
    Returns:
        True if a row was deleted, False if nothing was queued
    """
    stmt = sqla.delete(pending_submissions).where(
        pending_submissions.assignment_id == assignment_id,
        pending_submissions.user_id == user_id,
    )
    result = await session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore [reportAttributeAccessIssue]
