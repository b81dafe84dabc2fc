from __future__ import annotations

import enum
import typing as t

from courier.model import Assignment, Feedback, GradeInfo, GradeItem, PendingGrade, PendingSubmission, Submission, \
    SubmissionStatus, TieBreak
from courier.model.grade import parse_grade, scale_index


class Decision(enum.Enum):
    Push = "push"
    Discard = "discard"


class ConflictResolver(object):
    """Decides whether queued data still applies on top of the site's current state."""

    def __init__(self, tie_break: TieBreak = TieBreak.Local):
        self.tie_break = tie_break

    @staticmethod
    def canonical_submission(assignment: Assignment, status: SubmissionStatus) -> Submission | None:
        attempt = status.last_attempt
        if attempt is None:
            return None
        return attempt.team_submission if assignment.team_submission else attempt.submission

    def resolve_submission(self, pending: PendingSubmission, submission: Submission | None) -> Decision:
        # the queued edit was taken on top of a specific server version
        if submission is not None and submission.time_modified != pending.online_time_modified:
            return Decision.Discard
        return Decision.Push

    def resolve_grade(self, pending: PendingGrade, feedback: Feedback | None) -> Decision:
        modified = feedback.modified_at if feedback is not None else 0
        if self.tie_break is TieBreak.Server:
            stale = modified >= pending.time_modified and modified > 0
        else:
            stale = modified > pending.time_modified
        return Decision.Discard if stale else Decision.Push

    def apply_gradebook(
        self, pending: PendingGrade, items: t.Iterable[GradeItem], grade_info: GradeInfo | None
    ) -> PendingGrade:
        """
        Overlay gradebook values graded at or after the queued decision.

        Someone grading through the gradebook after the local edit means the
        gradebook value is the newer intent, for the grade itself and for
        each outcome.
        """
        grade = pending.grade
        outcomes = dict(pending.outcomes)

        for item in items:
            if (item.graded_date or 0) < pending.time_modified:
                continue

            if not item.outcome_id and not item.scale_id:
                if grade_info is not None and grade_info.scale:
                    grade = scale_index(grade_info.scale, item.grade or "")
                else:
                    grade = parse_grade(item.grade)
            elif grade_info is not None and item.outcome_id and grade_info.outcomes:
                if 0 <= item.item_number < len(grade_info.outcomes):
                    outcome = grade_info.outcomes[item.item_number]
                    if outcome.scale:
                        outcomes[item.item_number] = scale_index(outcome.scale, item.grade or "")

        return pending.model_copy(update={"grade": grade, "outcomes": outcomes})
