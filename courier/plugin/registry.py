from __future__ import annotations

import logging

from .base import DefaultFeedbackStrategy, DefaultSubmissionStrategy, FeedbackStrategy, SubmissionStrategy

logger = logging.getLogger(__name__)


class PluginRegistry(object):
    """Maps plugin type tags to strategies, falling back to no-op defaults."""

    def __init__(
        self,
        submission: dict[str, SubmissionStrategy] | None = None,
        feedback: dict[str, FeedbackStrategy] | None = None,
    ):
        self._submission: dict[str, SubmissionStrategy] = dict(submission or {})
        self._feedback: dict[str, FeedbackStrategy] = dict(feedback or {})
        self.default_submission: SubmissionStrategy = DefaultSubmissionStrategy()
        self.default_feedback: FeedbackStrategy = DefaultFeedbackStrategy()

    def register_submission(self, type_: str, strategy: SubmissionStrategy) -> None:
        if type_ in self._submission:
            logger.warning(f"replacing submission strategy for {type_!r}")
        self._submission[type_] = strategy

    def register_feedback(self, type_: str, strategy: FeedbackStrategy) -> None:
        if type_ in self._feedback:
            logger.warning(f"replacing feedback strategy for {type_!r}")
        self._feedback[type_] = strategy

    def submission_strategy(self, type_: str) -> SubmissionStrategy:
        return self._submission.get(type_, self.default_submission)

    def feedback_strategy(self, type_: str) -> FeedbackStrategy:
        return self._feedback.get(type_, self.default_feedback)

    @property
    def submission_types(self) -> list[str]:
        return sorted(self._submission)

    @property
    def feedback_types(self) -> list[str]:
        return sorted(self._feedback)
