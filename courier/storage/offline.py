"""
Durable local queue of submission edits and grading decisions.

Every public coroutine runs in its own transaction. Rows are keyed by
(assignment_id, user_id); saving again for the same pair replaces the
queued row. Storage failures surface as `LocalStorageError`.
"""

from __future__ import annotations

import asyncio
import contextlib
import datetime
import logging
import typing as t

import sqlalchemy.exc
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncEngine, AsyncSession

from courier.core.provider import TimestampProvider
from courier.lib.util import dedupe
from courier.model import AssignmentID, CourseID, Grade, Outcomes, PendingGrade, PendingSubmission, UserID
from courier.sync.errors import LocalStorageError, NotFoundError

from . import grade as grade_rows
from . import submission as submission_rows
from . import sync_time as sync_time_rows
from .table import metadata

logger = logging.getLogger(__name__)


class OfflineStore(object):
    engine: AsyncEngine
    default_user_id: UserID | None

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        default_user_id: UserID | None = None,
        utcnow: TimestampProvider = lambda: datetime.datetime.now(datetime.UTC),
    ):
        self.engine = engine
        self.default_user_id = default_user_id
        self.utcnow = utcnow
        self.sessionmaker = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
        self._schema_ready = False
        self._lock: asyncio.Lock | None = None

    async def create_schema(self) -> None:
        """Create the offline tables; safe to call repeatedly."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(metadata.create_all)
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise LocalStorageError(f"could not create offline schema: {e}") from e
        self._schema_ready = True

    async def close(self) -> None:
        await self.engine.dispose()

    @contextlib.asynccontextmanager
    async def transaction(self) -> t.AsyncIterator[AsyncSession]:
        # one connection may back the whole store, so transactions take turns
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if not self._schema_ready:
                await self.create_schema()
            try:
                async with self.sessionmaker() as session, session.begin():
                    yield session
            except sqlalchemy.exc.SQLAlchemyError as e:
                raise LocalStorageError(str(e)) from e

    def now(self) -> int:
        return int(self.utcnow().timestamp())

    def resolve_user(self, user_id: UserID | None) -> UserID:
        if user_id is not None:
            return user_id
        if self.default_user_id is None:
            raise ValueError("user_id is required when no current user is configured")
        return self.default_user_id

    # submissions

    async def save_submission(
        self,
        assignment_id: AssignmentID,
        course_id: CourseID,
        plugin_data: dict[str, t.Any] | None,
        online_time_modified: int,
        submitted: bool,
        user_id: UserID | None = None,
    ) -> PendingSubmission:
        now = self.now()
        pending = PendingSubmission(
            assignment_id=assignment_id,
            user_id=self.resolve_user(user_id),
            course_id=course_id,
            plugin_data=plugin_data or {},
            online_time_modified=online_time_modified,
            time_created=now,
            time_modified=now,
            submitted=submitted,
        )
        async with self.transaction() as session:
            return await submission_rows.upsert(pending, session=session)

    async def mark_submitted(
        self,
        assignment_id: AssignmentID,
        course_id: CourseID,
        submitted: bool,
        accept_statement: bool,
        online_time_modified: int,
        user_id: UserID | None = None,
    ) -> PendingSubmission:
        """Flag the queued submission as (not) submitted, queueing an empty one if needed."""
        user_id = self.resolve_user(user_id)
        async with self.transaction() as session:
            pending = await submission_rows.get(assignment_id, user_id, session=session)
            if pending is None:
                now = self.now()
                pending = PendingSubmission(
                    assignment_id=assignment_id,
                    user_id=user_id,
                    course_id=course_id,
                    online_time_modified=online_time_modified,
                    time_created=now,
                    time_modified=now,
                )
            pending = pending.model_copy(
                update={"submitted": submitted, "submission_statement_accepted": accept_statement}
            )
            return await submission_rows.upsert(pending, session=session)

    async def get_submission(self, assignment_id: AssignmentID, user_id: UserID | None = None) -> PendingSubmission:
        user_id = self.resolve_user(user_id)
        async with self.transaction() as session:
            pending = await submission_rows.get(assignment_id, user_id, session=session)
        if pending is None:
            raise NotFoundError(f"no pending submission for assignment {assignment_id}, user {user_id}")
        return pending

    async def list_submissions(self, assignment_id: AssignmentID) -> list[PendingSubmission]:
        async with self.transaction() as session:
            return await submission_rows.find(assignment_id=assignment_id, session=session)

    async def list_all_submissions(self) -> list[PendingSubmission]:
        async with self.transaction() as session:
            return await submission_rows.find(session=session)

    async def delete_submission(self, assignment_id: AssignmentID, user_id: UserID | None = None) -> None:
        user_id = self.resolve_user(user_id)
        async with self.transaction() as session:
            await submission_rows.delete(assignment_id, user_id, session=session)

    # grades

    async def save_grade(
        self,
        assignment_id: AssignmentID,
        user_id: UserID,
        course_id: CourseID,
        grade: Grade,
        attempt_number: int,
        add_attempt: bool,
        workflow_state: str,
        apply_to_all: bool,
        outcomes: Outcomes | None,
        plugin_data: dict[str, t.Any] | None,
    ) -> PendingGrade:
        pending = PendingGrade(
            assignment_id=assignment_id,
            user_id=user_id,
            course_id=course_id,
            grade=grade,
            attempt_number=attempt_number,
            add_attempt=add_attempt,
            workflow_state=workflow_state,
            apply_to_all=apply_to_all,
            outcomes=outcomes or {},
            plugin_data=plugin_data or {},
            time_modified=self.now(),
        )
        async with self.transaction() as session:
            return await grade_rows.upsert(pending, session=session)

    async def get_grade(self, assignment_id: AssignmentID, user_id: UserID | None = None) -> PendingGrade:
        user_id = self.resolve_user(user_id)
        async with self.transaction() as session:
            pending = await grade_rows.get(assignment_id, user_id, session=session)
        if pending is None:
            raise NotFoundError(f"no pending grade for assignment {assignment_id}, user {user_id}")
        return pending

    async def list_grades(self, assignment_id: AssignmentID) -> list[PendingGrade]:
        async with self.transaction() as session:
            return await grade_rows.find(assignment_id=assignment_id, session=session)

    async def list_all_grades(self) -> list[PendingGrade]:
        async with self.transaction() as session:
            return await grade_rows.find(session=session)

    async def delete_grade(self, assignment_id: AssignmentID, user_id: UserID | None = None) -> None:
        user_id = self.resolve_user(user_id)
        async with self.transaction() as session:
            await grade_rows.delete(assignment_id, user_id, session=session)

    # scans

    async def list_assignment_ids_with_pending_work(self) -> list[AssignmentID]:
        submissions, grades = await asyncio.gather(self.list_all_submissions(), self.list_all_grades())
        return dedupe([s.assignment_id for s in submissions] + [g.assignment_id for g in grades])

    async def has_pending_work(self, assignment_id: AssignmentID) -> bool:
        try:
            submissions, grades = await asyncio.gather(
                self.list_submissions(assignment_id), self.list_grades(assignment_id)
            )
        except LocalStorageError:
            logger.warning(
                "could not scan offline store, assuming nothing is pending",
                exc_info=True,
                extra={"assignment_id": assignment_id},
            )
            return False
        return bool(submissions or grades)

    # sync times

    async def get_sync_time(self, component: str, resource_id: str | int) -> datetime.datetime | None:
        async with self.transaction() as session:
            return await sync_time_rows.get(component, str(resource_id), session=session)

    async def set_sync_time(
        self, component: str, resource_id: str | int, when: datetime.datetime | None = None
    ) -> None:
        when = (when or self.utcnow()).astimezone(datetime.UTC)
        async with self.transaction() as session:
            await sync_time_rows.upsert(component, str(resource_id), when, session=session)
