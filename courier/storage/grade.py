"""Row-level access to queued grading decisions."""

from __future__ import annotations

import sqlalchemy as sqla
from sqlalchemy.dialects.sqlite import insert

from courier.model import AssignmentID, PendingGrade, UserID

from . import AsyncSession
from .table import pending_grades


async def get(assignment_id: AssignmentID, user_id: UserID, *, session: AsyncSession) -> PendingGrade | None:
    stmt = sqla.select(pending_grades.__table__).where(
        pending_grades.assignment_id == assignment_id,
        pending_grades.user_id == user_id,
    )
    row = (await session.execute(stmt)).mappings().one_or_none()
    return PendingGrade(**row) if row else None


async def find(*, assignment_id: AssignmentID | None = None, session: AsyncSession) -> list[PendingGrade]:
    stmt = sqla.select(pending_grades.__table__)
    if assignment_id is not None:
        stmt = stmt.where(pending_grades.assignment_id == assignment_id)
    rows = (await session.execute(stmt)).mappings().all()
    return [PendingGrade(**row) for row in rows]


async def upsert(pending: PendingGrade, *, session: AsyncSession) -> PendingGrade:
    values = pending.model_dump(mode="json")
    stmt = insert(pending_grades).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["assignment_id", "user_id"],
        set_={k: stmt.excluded[k] for k in values if k not in ("assignment_id", "user_id")},
    )
    await session.execute(stmt)
    return pending


async def delete(assignment_id: AssignmentID, user_id: UserID, *, session: AsyncSession) -> bool:
    stmt = sqla.delete(pending_grades).where(
        pending_grades.assignment_id == assignment_id,
        pending_grades.user_id == user_id,
    )
    result = await session.execute(stmt)
    return bool(result.rowcount)  # pyright: ignore [reportAttributeAccessIssue]
