from __future__ import annotations

import typing as t

from courier.model import AssignmentID, PendingGrade, SubmissionPlugin, UserID

from .base import Payload


class CommentsFeedbackStrategy(object):
    """
    Feedback comments. A grader's unsent comment is kept as an in-memory
    draft until the grade carrying it reaches the site.
    """

    type: t.ClassVar[str] = "comments"
    field: t.ClassVar[str] = "assignfeedbackcomments_editor"

    def __init__(self) -> None:
        self.drafts: dict[tuple[AssignmentID, UserID], dict[str, t.Any]] = {}

    def save_draft(self, assignment_id: AssignmentID, user_id: UserID, text: str, format: int = 1) -> None:
        self.drafts[(assignment_id, user_id)] = {"text": text, "format": format}

    def get_draft(self, assignment_id: AssignmentID, user_id: UserID) -> dict[str, t.Any] | None:
        return self.drafts.get((assignment_id, user_id))

    async def prepare_feedback_payload(
        self, assignment_id: AssignmentID, user_id: UserID, plugin: SubmissionPlugin, pending: PendingGrade | None
    ) -> Payload:
        if pending is not None and self.field in pending.plugin_data:
            return {self.field: pending.plugin_data[self.field]}
        draft = self.get_draft(assignment_id, user_id)
        return {self.field: dict(draft)} if draft else {}

    async def discard_draft(self, assignment_id: AssignmentID, user_id: UserID, plugin: SubmissionPlugin) -> None:
        self.drafts.pop((assignment_id, user_id), None)
