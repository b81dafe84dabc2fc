"""
Synchronization of queued assignment work with the site.

A run for an assignment drains every queued submission and grade for it:
each item is checked against the site's current state, then either pushed
or discarded with a warning, and removed from the offline store. Runs are
deduplicated per assignment through the `SyncScheduler`.
"""

from __future__ import annotations

import asyncio
import logging
import typing as t

from courier.model import Assignment, AssignmentID, AutoSynced, ManualSynced, PendingGrade, PendingSubmission, \
    Submission, SyncResult, SyncState, UserID
from courier.plugin import PluginDataGateway
from courier.remote import raise_for_warnings, RemoteGateway, WebServiceError
from courier.storage.offline import OfflineStore

from .activity import ActivityLog, NullActivityLog
from .connectivity import Connectivity
from .errors import LocalStorageError, NetworkError, SyncBlockedError
from .events import EventBus
from .lock import SyncLockService
from .resolver import ConflictResolver, Decision
from .scheduler import SyncScheduler

logger = logging.getLogger(__name__)

SUBMISSION_MODIFIED = "The submission has been modified on the site."
GRADE_MODIFIED = "The submission grade has been modified on the site."

# operations holding the per-user grade block
GRADE_RUN = "grade sync"
ASSIGNMENT_RUN = "assignment sync"


class AssignmentSync(object):
    label: t.ClassVar[str] = "Assignment"

    def __init__(
        self,
        *,
        store: OfflineStore,
        gateway: RemoteGateway,
        plugins: PluginDataGateway,
        locks: SyncLockService,
        scheduler: SyncScheduler,
        resolver: ConflictResolver,
        connectivity: Connectivity,
        events: EventBus | None = None,
        activity: ActivityLog | None = None,
        component: str = "mod_assign",
        recheck_grade_block_before_write: bool = False,
    ):
        self.store = store
        self.gateway = gateway
        self.plugins = plugins
        self.locks = locks
        self.scheduler = scheduler
        self.resolver = resolver
        self.connectivity = connectivity
        self.events = events or EventBus()
        self.activity = activity or NullActivityLog()
        self.component = component
        self.recheck_grade_block_before_write = recheck_grade_block_before_write

    @staticmethod
    def grade_sync_id(assignment_id: AssignmentID, user_id: UserID) -> str:
        return f"assignGrade#{assignment_id}#{user_id}"

    async def has_data_to_sync(self, assignment_id: AssignmentID) -> bool:
        return await self.store.has_pending_work(assignment_id)

    async def wait_for_sync(self, assignment_id: AssignmentID) -> SyncResult | None:
        return await self.scheduler.wait_for_sync(assignment_id)

    # entry points

    async def sync(
        self, assignment_id: AssignmentID, *, force: bool = True, broadcast: bool = False
    ) -> SyncResult | None:
        """
        Synchronize one assignment.

        Without `force` the run is skipped (returning None) when the
        assignment was synchronized less than the minimum interval ago. With
        `broadcast` a `ManualSynced` event is published for the result.
        """
        if force:
            result = await self.sync_assignment(assignment_id)
        else:
            result = await self.sync_if_needed(assignment_id)

        if broadcast and result is not None:
            await self.events.publish(ManualSynced.from_result(assignment_id, result))
        return result

    async def sync_if_needed(self, assignment_id: AssignmentID) -> SyncResult | None:
        if not await self.scheduler.is_sync_needed(assignment_id):
            logger.debug(f"assignment {assignment_id} was synchronized recently, skipping")
            return None
        return await self.sync_assignment(assignment_id)

    async def sync_assignment(self, assignment_id: AssignmentID) -> SyncResult:
        return await self._start_or_join(assignment_id, lambda: self._sync_assignment(assignment_id))

    async def sync_grade(self, assignment_id: AssignmentID, user_id: UserID) -> SyncResult:
        """Synchronize the queued grade of a single user, outside of a full assignment run."""
        sync_id = self.grade_sync_id(assignment_id, user_id)
        return await self._start_or_join(
            sync_id, lambda: self._sync_single_grade(assignment_id, user_id), ignore=GRADE_RUN
        )

    async def _start_or_join(
        self,
        key: str | int,
        run: t.Callable[[], t.Coroutine[t.Any, t.Any, SyncResult]],
        *,
        ignore: str | None = None,
    ) -> SyncResult:
        # an in-flight run owns the state until it settles
        ongoing = self.scheduler.get_ongoing(key)
        if ongoing is None:
            self.scheduler.set_state(key, SyncState.BlockedCheck)

        if self.locks.is_blocked(self.component, key, ignore=ignore):
            if ongoing is None:
                self.scheduler.set_state(key, SyncState.Failed)
            logger.debug(f"cannot sync {key} because it is blocked")
            raise SyncBlockedError(self.component, key)

        if ongoing is not None:
            logger.debug(f"joining ongoing sync of {key}")
            return await ongoing

        logger.debug(f"starting sync of {key}")
        return await self.scheduler.add_ongoing(key, run())

    async def sync_all(self, *, force: bool = False) -> dict[AssignmentID, SyncResult | BaseException | None]:
        """
        Synchronize every assignment with queued work.

        Each assignment is attempted independently; failures are logged and
        returned in place of that assignment's result. Assignments whose run
        pushed something are announced with an `AutoSynced` event.
        """
        assignment_ids = await self.store.list_assignment_ids_with_pending_work()

        async def one(assignment_id: AssignmentID) -> SyncResult | None:
            result = await self.sync(assignment_id, force=force)
            if result is not None and result.updated:
                await self.events.publish(AutoSynced.from_result(assignment_id, result))
            return result

        outcomes = await asyncio.gather(*[one(a) for a in assignment_ids], return_exceptions=True)
        results: dict[AssignmentID, SyncResult | BaseException | None] = {}
        for assignment_id, outcome in zip(assignment_ids, outcomes):
            if isinstance(outcome, BaseException):
                logger.warning(
                    f"sync of assignment {assignment_id} failed: {outcome}",
                    extra={"assignment_id": assignment_id, "error": type(outcome).__name__},
                )
            results[assignment_id] = outcome
        return results

    # runs

    async def _sync_assignment(self, assignment_id: AssignmentID) -> SyncResult:
        await self._flush_activity(assignment_id)

        result = SyncResult()
        submissions, grades = await asyncio.gather(
            self._pending_submissions(assignment_id, result), self._pending_grades(assignment_id, result)
        )
        # an unreadable queue is not synchronized, so leave the throttle open for a retry
        complete = submissions is not None and grades is not None
        submissions, grades = submissions or [], grades or []
        if not submissions and not grades:
            if complete:
                await self._record_sync_time(assignment_id)
            return result

        if not self.connectivity.is_online():
            raise NetworkError()

        course_id = submissions[0].course_id if submissions else grades[0].course_id
        result.course_id = course_id
        assignment = await self.gateway.get_assignment(course_id, assignment_id)

        outcomes = await asyncio.gather(
            self._sync_submissions(assignment, submissions, result),
            self._sync_grades(assignment, grades, result),
            return_exceptions=True,
        )

        if result.updated:
            # data reached the site, cached reads are stale
            try:
                await self.gateway.invalidate_content(assignment.module_id, course_id)
            except Exception:
                logger.warning(f"could not invalidate cached content of assignment {assignment_id}", exc_info=True)

        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                logger.info(
                    f"sync of assignment {assignment_id} aborted: {outcome}",
                    extra={"assignment_id": assignment_id, "updated": result.updated},
                )
                raise outcome

        if complete:
            await self._record_sync_time(assignment_id)
        logger.info(
            f"synchronized assignment {assignment_id}",
            extra={
                "assignment_id": assignment_id,
                "updated": result.updated,
                "warnings": len(result.warnings),
                "blocked_user_ids": result.blocked_user_ids,
            },
        )
        return result

    async def _sync_single_grade(self, assignment_id: AssignmentID, user_id: UserID) -> SyncResult:
        result = SyncResult()
        sync_id = self.grade_sync_id(assignment_id, user_id)

        # held for the whole run, so an assignment run skips this user meanwhile
        with self.locks.blocking(self.component, sync_id, GRADE_RUN):
            try:
                pending = await self.store.get_grade(assignment_id, user_id)
            except LookupError:
                return result

            if not self.connectivity.is_online():
                raise NetworkError()

            result.course_id = pending.course_id
            assignment = await self.gateway.get_assignment(pending.course_id, assignment_id)
            try:
                if self.locks.is_blocked(self.component, sync_id, ignore=GRADE_RUN):
                    raise SyncBlockedError(self.component, sync_id)
                await self._reconcile_grade(assignment, pending, result, operation=GRADE_RUN)
            except SyncBlockedError:
                result.blocked_user_ids.append(user_id)

        if result.updated:
            try:
                await self.gateway.invalidate_content(assignment.module_id, pending.course_id)
            except Exception:
                logger.warning(f"could not invalidate cached content of assignment {assignment_id}", exc_info=True)
        return result

    async def _sync_submissions(
        self, assignment: Assignment, submissions: list[PendingSubmission], result: SyncResult
    ) -> None:
        for pending in submissions:
            try:
                await self._sync_submission(assignment, pending, result)
            except LocalStorageError as e:
                self._report_storage_failure(assignment, pending.user_id, e, result)

    async def _sync_grades(self, assignment: Assignment, grades: list[PendingGrade], result: SyncResult) -> None:
        for pending in grades:
            try:
                await self._sync_grade(assignment, pending, result)
            except SyncBlockedError:
                logger.warning(
                    f"cannot sync grade of user {pending.user_id} because it is blocked",
                    extra={"assignment_id": assignment.assignment_id, "user_id": pending.user_id},
                )
                result.blocked_user_ids.append(pending.user_id)
            except LocalStorageError as e:
                self._report_storage_failure(assignment, pending.user_id, e, result)

    # items

    async def _sync_submission(self, assignment: Assignment, pending: PendingSubmission, result: SyncResult) -> None:
        status = await self.gateway.get_submission_status(
            assignment.assignment_id, pending.user_id, module_id=assignment.module_id, bypass_cache=True
        )
        submission = self.resolver.canonical_submission(assignment, status)
        extra = {"assignment_id": assignment.assignment_id, "user_id": pending.user_id}

        if self.resolver.resolve_submission(pending, submission) is Decision.Discard:
            logger.info("discarding queued submission modified on the site", extra=extra)
            self._add_deleted_warning(assignment, SUBMISSION_MODIFIED, result)
            await self._delete_submission_data(assignment, pending, submission)
            return

        try:
            if not pending.plugin_data:
                raise_for_warnings(await self.gateway.remove_submission(assignment.assignment_id, pending.user_id))
            else:
                payload = await self.plugins.prepare_sync_payload(assignment, submission, pending)
                raise_for_warnings(await self.gateway.save_submission(assignment.assignment_id, payload))

                if assignment.submission_drafts and pending.submitted:
                    raise_for_warnings(
                        await self.gateway.submit_for_grading(
                            assignment.assignment_id, pending.submission_statement_accepted
                        )
                    )
            result.updated = True
            logger.info("pushed queued submission", extra=extra)
        except WebServiceError as e:
            logger.info(f"site rejected queued submission: {e.message}", extra=extra)
            self._add_deleted_warning(assignment, e.message, result)

        await self._delete_submission_data(assignment, pending, submission)

    async def _sync_grade(self, assignment: Assignment, pending: PendingGrade, result: SyncResult) -> None:
        assignment_id, user_id = assignment.assignment_id, pending.user_id
        sync_id = self.grade_sync_id(assignment_id, user_id)

        if self.locks.is_blocked(self.component, sync_id):
            raise SyncBlockedError(self.component, sync_id)

        with self.locks.blocking(self.component, sync_id, ASSIGNMENT_RUN):
            # a standalone grade sync may have pushed this row since it was listed
            try:
                pending = await self.store.get_grade(assignment_id, user_id)
            except LookupError:
                logger.debug(f"queued grade of user {user_id} was already synchronized")
                return
            await self._reconcile_grade(assignment, pending, result, operation=ASSIGNMENT_RUN)

    async def _reconcile_grade(
        self, assignment: Assignment, pending: PendingGrade, result: SyncResult, *, operation: str
    ) -> None:
        assignment_id, user_id = assignment.assignment_id, pending.user_id
        sync_id = self.grade_sync_id(assignment_id, user_id)
        extra = {"assignment_id": assignment_id, "user_id": user_id}

        status = await self.gateway.get_submission_status(
            assignment_id, user_id, module_id=assignment.module_id, bypass_cache=True
        )
        if self.resolver.resolve_grade(pending, status.feedback) is Decision.Discard:
            logger.info("discarding queued grade modified on the site", extra=extra)
            self._add_deleted_warning(assignment, GRADE_MODIFIED, result)
            await self.store.delete_grade(assignment_id, user_id)
            return

        items = await self.gateway.get_grade_items(
            assignment.course_id, assignment.module_id, user_id, bypass_cache=True
        )
        grade_info = await self.gateway.get_grade_info(assignment.module_id)
        pending = self.resolver.apply_gradebook(pending, items, grade_info)

        feedback_plugins = status.feedback.plugins if status.feedback is not None else []
        form = pending.to_form()
        form.plugin_data = await self.plugins.prepare_feedback_payload(
            assignment_id, user_id, feedback_plugins, pending
        )

        recheck = self.recheck_grade_block_before_write
        if recheck and self.locks.is_blocked(self.component, sync_id, ignore=operation):
            raise SyncBlockedError(self.component, sync_id)

        try:
            raise_for_warnings(await self.gateway.submit_grading_form(assignment_id, user_id, form))
            await self.plugins.discard_drafts(assignment_id, user_id, feedback_plugins)
            result.updated = True
            logger.info("pushed queued grade", extra={**extra, "grade": form.grade})
        except WebServiceError as e:
            logger.info(f"site rejected queued grade: {e.message}", extra=extra)
            self._add_deleted_warning(assignment, e.message, result)

        await self.store.delete_grade(assignment_id, user_id)

    # helpers

    async def _delete_submission_data(
        self, assignment: Assignment, pending: PendingSubmission, submission: Submission | None
    ) -> None:
        await self.store.delete_submission(assignment.assignment_id, pending.user_id)
        await self.plugins.delete_offline_artifacts(assignment, submission, pending)

    async def _pending_submissions(
        self, assignment_id: AssignmentID, result: SyncResult
    ) -> list[PendingSubmission] | None:
        try:
            return await self.store.list_submissions(assignment_id)
        except LocalStorageError as e:
            logger.warning(f"could not load queued submissions of assignment {assignment_id}", exc_info=True)
            self._add_unreadable_warning(assignment_id, e, result)
            return None

    async def _pending_grades(self, assignment_id: AssignmentID, result: SyncResult) -> list[PendingGrade] | None:
        try:
            return await self.store.list_grades(assignment_id)
        except LocalStorageError as e:
            logger.warning(f"could not load queued grades of assignment {assignment_id}", exc_info=True)
            self._add_unreadable_warning(assignment_id, e, result)
            return None

    def _add_unreadable_warning(
        self, assignment_id: AssignmentID, error: LocalStorageError, result: SyncResult
    ) -> None:
        message = f"Offline data from {self.label} {assignment_id} could not be read. {error}"
        if message not in result.warnings:
            result.warnings.append(message)

    async def _flush_activity(self, assignment_id: AssignmentID) -> None:
        try:
            await self.activity.sync_activity(self.component, assignment_id)
        except Exception:
            logger.warning(f"could not flush activity log of assignment {assignment_id}", exc_info=True)

    async def _record_sync_time(self, assignment_id: AssignmentID) -> None:
        try:
            await self.scheduler.set_sync_time(assignment_id)
        except LocalStorageError:
            logger.warning(f"could not record sync time of assignment {assignment_id}", exc_info=True)

    def _add_deleted_warning(self, assignment: Assignment, reason: str, result: SyncResult) -> None:
        message = f"Offline data from {self.label} '{assignment.name}' has been deleted. {reason}"
        if message not in result.warnings:
            result.warnings.append(message)

    def _report_storage_failure(
        self, assignment: Assignment, user_id: UserID, error: LocalStorageError, result: SyncResult
    ) -> None:
        logger.error(
            f"offline store failed while synchronizing: {error}",
            extra={"assignment_id": assignment.assignment_id, "user_id": user_id},
        )
        message = f"Offline data from {self.label} '{assignment.name}' could not be cleared. {error}"
        if message not in result.warnings:
            result.warnings.append(message)
