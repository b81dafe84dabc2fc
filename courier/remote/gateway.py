from __future__ import annotations

import typing as t

from courier.model import Assignment, AssignmentID, BaseModel, CourseID, GradeInfo, GradeItem, GradingForm, \
    ModuleID, SubmissionStatus, UserID


class RemoteWarning(BaseModel):
    """A structured warning returned by the site alongside (or instead of) data."""

    item: str | None = None
    item_id: int | None = None
    warning_code: str | None = None
    message: str


class WebServiceError(Exception):
    """
    The site understood the request and rejected it.

    Retrying cannot succeed, so queued data that produced this error is
    discarded rather than kept for a later attempt.
    """

    warnings: list[RemoteWarning]

    def __init__(self, warnings: t.Sequence[RemoteWarning] | str):
        if isinstance(warnings, str):
            warnings = [RemoteWarning(message=warnings)]
        self.warnings = list(warnings)
        super().__init__(self.message)

    @property
    def message(self) -> str:
        return " ".join(w.message for w in self.warnings) or "the site rejected the request"


def raise_for_warnings(warnings: t.Sequence[RemoteWarning] | None) -> None:
    if warnings:
        raise WebServiceError(warnings)


class RemoteGateway(t.Protocol):
    """
    The site's web services, as far as synchronization needs them.

    Reads accept `bypass_cache=True` to force a network round trip. Writes
    return the site's warnings; a non-empty list means the write was refused.
    Transport failures are raised as whatever the implementation raises.
    """

    async def get_assignment(
        self, course_id: CourseID, assignment_id: AssignmentID, *, bypass_cache: bool = False
    ) -> Assignment: ...

    async def get_submission_status(
        self, assignment_id: AssignmentID, user_id: UserID, *, module_id: ModuleID, bypass_cache: bool = False
    ) -> SubmissionStatus: ...

    async def get_grade_items(
        self, course_id: CourseID, module_id: ModuleID, user_id: UserID, *, bypass_cache: bool = False
    ) -> list[GradeItem]: ...

    async def get_grade_info(self, module_id: ModuleID, *, bypass_cache: bool = False) -> GradeInfo | None: ...

    async def save_submission(
        self, assignment_id: AssignmentID, plugin_data: dict[str, t.Any]
    ) -> list[RemoteWarning]: ...

    async def submit_for_grading(self, assignment_id: AssignmentID, accept_statement: bool) -> list[RemoteWarning]: ...

    async def remove_submission(self, assignment_id: AssignmentID, user_id: UserID) -> list[RemoteWarning]: ...

    async def submit_grading_form(
        self, assignment_id: AssignmentID, user_id: UserID, form: GradingForm
    ) -> list[RemoteWarning]: ...

    async def invalidate_content(self, module_id: ModuleID, course_id: CourseID) -> None: ...
