from __future__ import annotations

import typing as t

import pydantic as p

from .base import BaseModel
from .id import AssignmentID, CourseID, ModuleID


class AssignmentPlugin(BaseModel):
    """A submission or feedback plugin enabled on an assignment, identified by `type`."""

    type: str
    name: str = ""
    config: dict[str, t.Any] = p.Field(default_factory=dict)


class Assignment(BaseModel):
    assignment_id: AssignmentID
    course_id: CourseID
    module_id: ModuleID
    name: str
    submission_drafts: bool = False
    team_submission: bool = False
    require_submission_statement: bool = False
    submission_plugins: list[AssignmentPlugin] = p.Field(default_factory=list)
    feedback_plugins: list[AssignmentPlugin] = p.Field(default_factory=list)
