"""
Online-first writes for assignments.

Each operation tries the site first and falls back to the offline queue when
the device is offline or the site could not be reached. A `WebServiceError`
means the site refused the data; queueing it would only fail again later, so
it propagates. Operations return True when the data reached the site and
False when it was queued.
"""

from __future__ import annotations

import logging
import typing as t

from courier.model import Assignment, AssignmentID, CourseID, GradingForm, Submission, SubmissionState, UserID
from courier.plugin import PluginDataGateway
from courier.remote import raise_for_warnings, RemoteGateway, WebServiceError
from courier.storage.offline import OfflineStore
from courier.sync.connectivity import Connectivity
from courier.sync.errors import NotFoundError

logger = logging.getLogger(__name__)


class AssignmentService(object):
    def __init__(
        self,
        *,
        store: OfflineStore,
        gateway: RemoteGateway,
        plugins: PluginDataGateway,
        connectivity: Connectivity,
    ):
        self.store = store
        self.gateway = gateway
        self.plugins = plugins
        self.connectivity = connectivity

    async def _online_or_queue(
        self,
        online: t.Callable[[], t.Awaitable[None]],
        queue: t.Callable[[], t.Awaitable[t.Any]],
        *,
        allow_offline: bool = True,
        what: str,
    ) -> bool:
        try:
            await online()
        except WebServiceError:
            raise
        except Exception:
            if not allow_offline:
                raise
            logger.warning(f"could not reach the site, queueing {what}", exc_info=True)
            await queue()
            return False
        return True

    async def save_submission(
        self,
        assignment_id: AssignmentID,
        course_id: CourseID,
        plugin_data: dict[str, t.Any],
        online_time_modified: int,
        *,
        allows_drafts: bool = False,
        user_id: UserID | None = None,
        allow_offline: bool = True,
    ) -> bool:
        async def queue() -> None:
            await self.store.save_submission(
                assignment_id, course_id, plugin_data, online_time_modified, not allows_drafts, user_id
            )

        if allow_offline and not self.connectivity.is_online():
            await queue()
            return False

        async def online() -> None:
            # whatever was queued before is superseded by this write
            await self.store.delete_submission(assignment_id, user_id)
            raise_for_warnings(await self.gateway.save_submission(assignment_id, plugin_data))

        return await self._online_or_queue(online, queue, allow_offline=allow_offline, what="submission")

    async def submit_for_grading(
        self,
        assignment_id: AssignmentID,
        course_id: CourseID,
        accept_statement: bool,
        online_time_modified: int,
        *,
        force_offline: bool = False,
        user_id: UserID | None = None,
    ) -> bool:
        async def queue() -> None:
            await self.store.mark_submitted(
                assignment_id, course_id, True, accept_statement, online_time_modified, user_id
            )

        if force_offline or not self.connectivity.is_online():
            await queue()
            return False

        async def online() -> None:
            await self.store.delete_submission(assignment_id, user_id)
            raise_for_warnings(await self.gateway.submit_for_grading(assignment_id, accept_statement))

        return await self._online_or_queue(online, queue, what="submit for grading")

    async def submit_grading_form(
        self, assignment_id: AssignmentID, user_id: UserID, course_id: CourseID, form: GradingForm
    ) -> bool:
        async def queue() -> None:
            await self.store.save_grade(
                assignment_id,
                user_id,
                course_id,
                form.grade,
                form.attempt_number,
                form.add_attempt,
                form.workflow_state,
                form.apply_to_all,
                form.outcomes,
                dict(form.plugin_data),
            )

        if not self.connectivity.is_online():
            await queue()
            return False

        async def online() -> None:
            await self.store.delete_grade(assignment_id, user_id)
            raise_for_warnings(await self.gateway.submit_grading_form(assignment_id, user_id, form))

        return await self._online_or_queue(online, queue, what="grade")

    async def remove_submission(self, assignment: Assignment, submission: Submission) -> bool:
        assignment_id, user_id = assignment.assignment_id, submission.user_id

        async def queue() -> None:
            # an empty payload is pushed as a removal when synchronized
            await self.store.save_submission(
                assignment_id,
                assignment.course_id,
                {},
                submission.time_modified,
                assignment.submission_drafts,
                user_id,
            )

        if submission.status in (SubmissionState.New, SubmissionState.Reopened):
            # nothing of this attempt ever reached the site
            await self.store.delete_submission(assignment_id, user_id)
            return False

        if not self.connectivity.is_online():
            await queue()
            return False

        async def online() -> None:
            try:
                pending = await self.store.get_submission(assignment_id, user_id)
            except NotFoundError:
                pass
            else:
                await self.plugins.delete_offline_artifacts(assignment, submission, pending)
                await self.store.delete_submission(assignment_id, user_id)
            raise_for_warnings(await self.gateway.remove_submission(assignment_id, user_id))

        return await self._online_or_queue(online, queue, what="submission removal")
