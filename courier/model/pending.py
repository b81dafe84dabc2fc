from __future__ import annotations

import typing as t

import pydantic as p

from .base import BaseModel
from .grade import Grade, GradingForm, Outcomes
from .id import AssignmentID, CourseID, UserID


class PendingSubmission(BaseModel):
    """A submission edit queued locally, keyed by (assignment_id, user_id)."""

    assignment_id: AssignmentID
    user_id: UserID
    course_id: CourseID
    plugin_data: dict[str, t.Any] = p.Field(default_factory=dict)
    online_time_modified: int
    time_created: int
    time_modified: int
    submitted: bool = False
    submission_statement_accepted: bool = False


class PendingGrade(BaseModel):
    """The latest grading decision queued locally for one user."""

    assignment_id: AssignmentID
    user_id: UserID
    course_id: CourseID
    grade: Grade = None
    attempt_number: int = -1
    add_attempt: bool = False
    workflow_state: str = ""
    apply_to_all: bool = False
    outcomes: Outcomes = p.Field(default_factory=dict)
    plugin_data: dict[str, t.Any] = p.Field(default_factory=dict)
    time_modified: int

    def to_form(self) -> GradingForm:
        return GradingForm(
            grade=self.grade,
            attempt_number=self.attempt_number,
            add_attempt=self.add_attempt,
            workflow_state=self.workflow_state,
            apply_to_all=self.apply_to_all,
            outcomes=dict(self.outcomes),
            plugin_data=dict(self.plugin_data),
        )
