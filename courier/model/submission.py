from __future__ import annotations

import typing as t

import pydantic as p

from .base import BaseModel
from .enum import SubmissionState
from .id import UserID


class SubmissionPlugin(BaseModel):
    """Plugin content attached to a canonical submission or feedback."""

    type: str
    name: str = ""
    fields: dict[str, t.Any] = p.Field(default_factory=dict)


class Submission(BaseModel):
    submission_id: int
    user_id: UserID
    attempt_number: int = 0
    status: SubmissionState = SubmissionState.New
    time_modified: int = 0
    plugins: list[SubmissionPlugin] = p.Field(default_factory=list)


class SubmissionAttempt(BaseModel):
    submission: Submission | None = None
    team_submission: Submission | None = None


class FeedbackGrade(BaseModel):
    grade: str | None = None
    time_modified: int = 0


class Feedback(BaseModel):
    grade: FeedbackGrade | None = None
    graded_date: int | None = None
    plugins: list[SubmissionPlugin] = p.Field(default_factory=list)

    @property
    def modified_at(self) -> int:
        """The later of the graded date and the grade's own modification time, 0 when the site never graded."""
        return max(self.graded_date or 0, self.grade.time_modified if self.grade is not None else 0)


class SubmissionStatus(BaseModel):
    """Canonical submission state for one user, as returned by the site."""

    last_attempt: SubmissionAttempt | None = None
    feedback: Feedback | None = None
