from __future__ import annotations

import pydantic as p

from .base import BaseModel
from .id import AssignmentID, CourseID, UserID


class SyncResult(BaseModel):
    warnings: list[str] = p.Field(default_factory=list)
    updated: bool = False
    blocked_user_ids: list[UserID] = p.Field(default_factory=list)
    course_id: CourseID | None = None


class SyncEvent(BaseModel):
    assignment_id: AssignmentID
    warnings: list[str] = p.Field(default_factory=list)
    updated: bool = False
    blocked_user_ids: list[UserID] = p.Field(default_factory=list)

    @classmethod
    def from_result(cls, assignment_id: AssignmentID, result: SyncResult) -> SyncEvent:
        return cls(
            assignment_id=assignment_id,
            warnings=list(result.warnings),
            updated=result.updated,
            blocked_user_ids=list(result.blocked_user_ids),
        )


class AutoSynced(SyncEvent): ...


class ManualSynced(SyncEvent): ...
