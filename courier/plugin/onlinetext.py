from __future__ import annotations

import typing as t

from courier.model import Assignment, PendingSubmission, Submission, SubmissionPlugin

from .base import Payload


class OnlineTextStrategy(object):
    """Online text submissions carry their editor content inline in the queued payload."""

    type: t.ClassVar[str] = "onlinetext"
    field: t.ClassVar[str] = "onlinetext_editor"

    async def prepare_sync_payload(
        self, assignment: Assignment, submission: Submission, plugin: SubmissionPlugin, pending: PendingSubmission
    ) -> Payload:
        editor = pending.plugin_data.get(self.field)
        if not editor:
            return {}
        return {
            self.field: {
                "text": editor.get("text", ""),
                "format": editor.get("format", 1),
                "itemid": editor.get("itemid", 0),
            }
        }

    async def delete_offline_artifacts(
        self,
        assignment: Assignment,
        submission: Submission | None,
        plugin: SubmissionPlugin,
        pending: PendingSubmission,
    ) -> None:
        # nothing lives outside the queued row
        return None
