from __future__ import annotations

import typing as t

from courier.model import Assignment, AssignmentID, PendingGrade, PendingSubmission, Submission, SubmissionPlugin, \
    UserID

Payload = dict[str, t.Any]


class SubmissionStrategy(t.Protocol):
    """Knows how one submission plugin type turns queued data into a site payload."""

    async def prepare_sync_payload(
        self, assignment: Assignment, submission: Submission, plugin: SubmissionPlugin, pending: PendingSubmission
    ) -> Payload: ...

    async def delete_offline_artifacts(
        self,
        assignment: Assignment,
        submission: Submission | None,
        plugin: SubmissionPlugin,
        pending: PendingSubmission,
    ) -> None: ...


class FeedbackStrategy(t.Protocol):
    """Knows how one feedback plugin type contributes to a grading payload."""

    async def prepare_feedback_payload(
        self, assignment_id: AssignmentID, user_id: UserID, plugin: SubmissionPlugin, pending: PendingGrade | None
    ) -> Payload: ...

    async def discard_draft(self, assignment_id: AssignmentID, user_id: UserID, plugin: SubmissionPlugin) -> None: ...


class DefaultSubmissionStrategy(object):
    """Used for plugin types nobody registered: contributes nothing, cleans nothing."""

    async def prepare_sync_payload(
        self, assignment: Assignment, submission: Submission, plugin: SubmissionPlugin, pending: PendingSubmission
    ) -> Payload:
        return {}

    async def delete_offline_artifacts(
        self,
        assignment: Assignment,
        submission: Submission | None,
        plugin: SubmissionPlugin,
        pending: PendingSubmission,
    ) -> None:
        return None


class DefaultFeedbackStrategy(object):
    async def prepare_feedback_payload(
        self, assignment_id: AssignmentID, user_id: UserID, plugin: SubmissionPlugin, pending: PendingGrade | None
    ) -> Payload:
        return {}

    async def discard_draft(self, assignment_id: AssignmentID, user_id: UserID, plugin: SubmissionPlugin) -> None:
        return None
