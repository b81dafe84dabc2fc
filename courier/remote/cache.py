from __future__ import annotations

import logging
import typing as t

from courier.model import Assignment, AssignmentID, CourseID, GradeInfo, GradeItem, GradingForm, ModuleID, \
    SubmissionStatus, UserID

from .gateway import RemoteGateway, RemoteWarning

logger = logging.getLogger(__name__)

Key = tuple[t.Hashable, ...]


class CachingGateway(object):
    """
    Memoize reads of another `RemoteGateway`.

    Entries are grouped by the course module they belong to so that
    `invalidate_content` can drop everything a sync may have changed.
    Writes are never cached.
    """

    def __init__(self, remote: RemoteGateway):
        self.remote = remote
        self.assignments: dict[Key, Assignment] = {}
        self.statuses: dict[Key, SubmissionStatus] = {}
        self.grade_items: dict[Key, list[GradeItem]] = {}
        self.grade_info: dict[ModuleID, GradeInfo | None] = {}

    async def get_assignment(
        self, course_id: CourseID, assignment_id: AssignmentID, *, bypass_cache: bool = False
    ) -> Assignment:
        key = (course_id, assignment_id)
        if bypass_cache or key not in self.assignments:
            self.assignments[key] = await self.remote.get_assignment(course_id, assignment_id, bypass_cache=True)
        return self.assignments[key]

    async def get_submission_status(
        self, assignment_id: AssignmentID, user_id: UserID, *, module_id: ModuleID, bypass_cache: bool = False
    ) -> SubmissionStatus:
        key = (module_id, assignment_id, user_id)
        if bypass_cache or key not in self.statuses:
            self.statuses[key] = await self.remote.get_submission_status(
                assignment_id, user_id, module_id=module_id, bypass_cache=True
            )
        return self.statuses[key]

    async def get_grade_items(
        self, course_id: CourseID, module_id: ModuleID, user_id: UserID, *, bypass_cache: bool = False
    ) -> list[GradeItem]:
        key = (module_id, course_id, user_id)
        if bypass_cache or key not in self.grade_items:
            self.grade_items[key] = await self.remote.get_grade_items(course_id, module_id, user_id, bypass_cache=True)
        return self.grade_items[key]

    async def get_grade_info(self, module_id: ModuleID, *, bypass_cache: bool = False) -> GradeInfo | None:
        if bypass_cache or module_id not in self.grade_info:
            self.grade_info[module_id] = await self.remote.get_grade_info(module_id, bypass_cache=True)
        return self.grade_info[module_id]

    async def save_submission(self, assignment_id: AssignmentID, plugin_data: dict[str, t.Any]) -> list[RemoteWarning]:
        return await self.remote.save_submission(assignment_id, plugin_data)

    async def submit_for_grading(self, assignment_id: AssignmentID, accept_statement: bool) -> list[RemoteWarning]:
        return await self.remote.submit_for_grading(assignment_id, accept_statement)

    async def remove_submission(self, assignment_id: AssignmentID, user_id: UserID) -> list[RemoteWarning]:
        return await self.remote.remove_submission(assignment_id, user_id)

    async def submit_grading_form(
        self, assignment_id: AssignmentID, user_id: UserID, form: GradingForm
    ) -> list[RemoteWarning]:
        return await self.remote.submit_grading_form(assignment_id, user_id, form)

    async def invalidate_content(self, module_id: ModuleID, course_id: CourseID) -> None:
        dropped = 0
        for cache in (self.statuses, self.grade_items):
            for key in [k for k in cache if k[0] == module_id]:
                del cache[key]
                dropped += 1
        for key in [k for k in self.assignments if k[0] == course_id]:
            del self.assignments[key]
            dropped += 1
        if module_id in self.grade_info:
            del self.grade_info[module_id]
            dropped += 1

        logger.debug(
            "invalidated cached content",
            extra={"module_id": module_id, "course_id": course_id, "dropped": dropped},
        )
        await self.remote.invalidate_content(module_id, course_id)
