from __future__ import annotations

import asyncio
import logging
import typing as t

from courier.model import Assignment, AssignmentID, PendingGrade, PendingSubmission, Submission, SubmissionPlugin, \
    UserID

from .base import Payload
from .registry import PluginRegistry

logger = logging.getLogger(__name__)


def merge(parts: t.Iterable[Payload], base: Payload | None = None) -> Payload:
    merged: Payload = dict(base or {})
    for part in parts:
        merged.update(part)
    return merged


class PluginDataGateway(object):
    """
    Fan a payload or cleanup request out to every plugin on a submission or
    feedback, and combine what comes back. Strategies never talk to the site.
    """

    def __init__(self, registry: PluginRegistry):
        self.registry = registry

    async def prepare_sync_payload(
        self, assignment: Assignment, submission: Submission | None, pending: PendingSubmission
    ) -> Payload:
        if submission is None:
            return {}
        parts = await asyncio.gather(*[
            self.registry.submission_strategy(plugin.type).prepare_sync_payload(assignment, submission, plugin, pending)
            for plugin in submission.plugins
        ])
        return merge(parts)

    async def delete_offline_artifacts(
        self, assignment: Assignment, submission: Submission | None, pending: PendingSubmission
    ) -> None:
        if submission is None:
            return
        await asyncio.gather(*[
            self.registry.submission_strategy(plugin.type).delete_offline_artifacts(
                assignment, submission, plugin, pending
            )
            for plugin in submission.plugins
        ])

    async def prepare_feedback_payload(
        self,
        assignment_id: AssignmentID,
        user_id: UserID,
        plugins: t.Sequence[SubmissionPlugin],
        pending: PendingGrade | None = None,
    ) -> Payload:
        parts = await asyncio.gather(*[
            self.registry.feedback_strategy(plugin.type).prepare_feedback_payload(
                assignment_id, user_id, plugin, pending
            )
            for plugin in plugins
        ])
        return merge(parts, base=pending.plugin_data if pending is not None else None)

    async def discard_drafts(
        self, assignment_id: AssignmentID, user_id: UserID, plugins: t.Sequence[SubmissionPlugin]
    ) -> None:
        await asyncio.gather(*[
            self.registry.feedback_strategy(plugin.type).discard_draft(assignment_id, user_id, plugin)
            for plugin in plugins
        ])
        logger.debug(f"discarded feedback drafts for assignment {assignment_id}, user {user_id}")
