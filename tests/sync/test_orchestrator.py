"""Tests for courier.sync.orchestrator module.

These run a real in-memory offline store against `FakeRemote`.
"""

from __future__ import annotations

import asyncio
import typing as t
from unittest.mock import patch

import pytest
from fakes import ASSIGNMENT_ID, Clock, COURSE_ID, FakeRemote, MODULE_ID

from courier.model import Assignment, AssignmentID, AutoSynced, Feedback, GradeItem, ManualSynced, Submission, \
    SubmissionAttempt, SubmissionPlugin, SubmissionStatus, SyncEvent, SyncResult, SyncState, TieBreak, UserID
from courier.plugin import CommentsFeedbackStrategy, PluginRegistry
from courier.remote import RemoteWarning
from courier.storage.offline import OfflineStore
from courier.sync.connectivity import StaticConnectivity
from courier.sync.errors import LocalStorageError, NetworkError, NotFoundError, SyncBlockedError
from courier.sync.orchestrator import AssignmentSync, GRADE_MODIFIED, SUBMISSION_MODIFIED

UID = UserID(7)
OTHER_UID = UserID(8)

OpenStore = t.Callable[..., t.AsyncContextManager[OfflineStore]]
SyncFactory = t.Callable[..., AssignmentSync]

ESSAY = {"onlinetext_editor": {"text": "<p>essay</p>", "format": 1, "itemid": 5}}


def _deleted(reason: str, name: str = "Essay") -> str:
    return f"Offline data from Assignment '{name}' has been deleted. {reason}"


def _submission_status(time_modified: int = 100, user_id: UserID = UID) -> SubmissionStatus:
    return SubmissionStatus(
        last_attempt=SubmissionAttempt(
            submission=Submission(
                submission_id=1,
                user_id=user_id,
                time_modified=time_modified,
                plugins=[SubmissionPlugin(type="onlinetext")],
            )
        )
    )


def _feedback_status(graded_date: int | None = None) -> SubmissionStatus:
    return SubmissionStatus(feedback=Feedback(graded_date=graded_date, plugins=[SubmissionPlugin(type="comments")]))


async def _queue_submission(
    store: OfflineStore, plugin_data: dict[str, t.Any] | None = None, *, user_id: UserID = UID, submitted: bool = False
) -> None:
    await store.save_submission(
        ASSIGNMENT_ID, COURSE_ID, ESSAY if plugin_data is None else plugin_data, 100, submitted, user_id
    )


async def _queue_grade(
    store: OfflineStore, grade: float = 75, *, user_id: UserID = UID, assignment_id: AssignmentID = ASSIGNMENT_ID
) -> None:
    await store.save_grade(assignment_id, user_id, COURSE_ID, grade, -1, False, "graded", False, None, None)


def _writes(remote: FakeRemote) -> list[str]:
    reads = {"get_assignment", "get_submission_status", "get_grade_items", "get_grade_info"}
    return [name for name, _ in remote.calls if name not in reads]


class TestEmptyRun(object):
    """Runs with nothing queued."""

    def test_nothing_queued(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory, clock: Clock
    ) -> None:
        """An empty run touches nothing remote and still counts as synchronized."""

        async def run():
            async with offline_store() as store:
                result = await sync_factory(store, remote).sync(ASSIGNMENT_ID)
                return result, await store.get_sync_time("mod_assign", ASSIGNMENT_ID)

        result, synced_at = asyncio.run(run())

        assert result == SyncResult()
        assert remote.calls == []
        assert synced_at == clock.now

    def test_nothing_queued_while_offline(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        async def run():
            async with offline_store() as store:
                sync = sync_factory(store, remote, connectivity=StaticConnectivity(online=False))
                return await sync.sync(ASSIGNMENT_ID)

        assert asyncio.run(run()) == SyncResult()


class TestSubmissions(object):
    """Queued submissions."""

    def test_push(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory, assignment: Assignment
    ) -> None:
        remote.statuses[UID] = _submission_status(100)

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                result = await sync_factory(store, remote).sync(ASSIGNMENT_ID)
                with pytest.raises(NotFoundError):
                    await store.get_submission(ASSIGNMENT_ID, UID)
                return result, await store.list_submissions(ASSIGNMENT_ID)

        result, remaining = asyncio.run(run())

        assert result.updated is True
        assert result.warnings == []
        assert result.course_id == COURSE_ID
        assert remaining == []
        assert remote.called("save_submission") == [(ASSIGNMENT_ID, ESSAY)]
        assert remote.called("invalidate_content") == [(MODULE_ID, COURSE_ID)]
        assert remote.called("get_assignment") == [(COURSE_ID, ASSIGNMENT_ID)]

    def test_modified_on_site(self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory) -> None:
        """A submission changed on the site since it was queued is discarded, not pushed."""
        remote.statuses[UID] = _submission_status(200)

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                result = await sync_factory(store, remote).sync(ASSIGNMENT_ID)
                with pytest.raises(NotFoundError):
                    await store.get_submission(ASSIGNMENT_ID, UID)
                return result, await store.list_submissions(ASSIGNMENT_ID)

        result, remaining = asyncio.run(run())

        assert result.updated is False
        assert result.warnings == [_deleted(SUBMISSION_MODIFIED)]
        assert remaining == []
        assert _writes(remote) == []

    def test_discard_warning_is_not_repeated(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        remote.statuses[UID] = _submission_status(200, UID)
        remote.statuses[OTHER_UID] = _submission_status(300, OTHER_UID)

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                await _queue_submission(store, user_id=OTHER_UID)
                return await sync_factory(store, remote).sync(ASSIGNMENT_ID)

        assert asyncio.run(run()).warnings == [_deleted(SUBMISSION_MODIFIED)]

    def test_empty_payload_removes_submission(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        remote.statuses[UID] = _submission_status(100)

        async def run():
            async with offline_store() as store:
                await _queue_submission(store, {})
                return await sync_factory(store, remote).sync(ASSIGNMENT_ID)

        result = asyncio.run(run())

        assert result.updated is True
        assert remote.called("remove_submission") == [(ASSIGNMENT_ID, UID)]
        assert remote.called("save_submission") == []

    def test_submit_for_grading_with_drafts(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory, assignment: Assignment
    ) -> None:
        remote.assignment = assignment.model_copy(update={"submission_drafts": True})
        remote.statuses[UID] = _submission_status(100)

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                await store.mark_submitted(ASSIGNMENT_ID, COURSE_ID, True, True, 100, UID)
                return await sync_factory(store, remote).sync(ASSIGNMENT_ID)

        asyncio.run(run())

        assert _writes(remote) == ["save_submission", "submit_for_grading", "invalidate_content"]
        assert remote.called("submit_for_grading") == [(ASSIGNMENT_ID, True)]

    def test_no_submit_without_drafts(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        remote.statuses[UID] = _submission_status(100)

        async def run():
            async with offline_store() as store:
                await _queue_submission(store, submitted=True)
                return await sync_factory(store, remote).sync(ASSIGNMENT_ID)

        asyncio.run(run())

        assert remote.called("submit_for_grading") == []

    def test_rejected_by_site(self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory) -> None:
        """A refusal from the site drops the queued data with the site's reason."""
        remote.statuses[UID] = _submission_status(100)
        remote.warnings["save_submission"] = [RemoteWarning(message="The submission period has ended.")]

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                result = await sync_factory(store, remote).sync(ASSIGNMENT_ID)
                with pytest.raises(NotFoundError):
                    await store.get_submission(ASSIGNMENT_ID, UID)
                return result, await store.list_submissions(ASSIGNMENT_ID)

        result, remaining = asyncio.run(run())

        assert result.updated is False
        assert result.warnings == [_deleted("The submission period has ended.")]
        assert remaining == []
        assert remote.called("invalidate_content") == []

    def test_transport_failure_keeps_data(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """Anything but a refusal aborts the run and leaves the queue for the next attempt."""
        users = [UserID(7), UserID(8), UserID(9)]
        for user_id in users:
            remote.statuses[user_id] = _submission_status(100, user_id)
        remote.errors["save_submission"] = ConnectionError("connection reset")

        async def run():
            async with offline_store() as store:
                for user_id in users:
                    await _queue_submission(store, user_id=user_id)
                sync = sync_factory(store, remote)
                with pytest.raises(ConnectionError):
                    await sync.sync(ASSIGNMENT_ID)
                return (
                    await store.list_submissions(ASSIGNMENT_ID),
                    await store.get_sync_time("mod_assign", ASSIGNMENT_ID),
                    sync.scheduler.state(ASSIGNMENT_ID),
                )

        remaining, synced_at, state = asyncio.run(run())

        assert sorted(s.user_id for s in remaining) == users
        assert len(remote.called("save_submission")) == 1
        assert synced_at is None
        assert state is SyncState.Failed

    def test_storage_failure_is_reported(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """An item whose local data cannot be cleared is reported and the run goes on."""
        remote.statuses[UID] = _submission_status(100)

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                sync = sync_factory(store, remote)
                with patch.object(store, "delete_submission", side_effect=LocalStorageError("disk full")):
                    return await sync.sync(ASSIGNMENT_ID)

        result = asyncio.run(run())

        assert result.updated is True
        assert result.warnings == ["Offline data from Assignment 'Essay' could not be cleared. disk full"]


class TestGrades(object):
    """Queued grades."""

    def test_push(self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory, clock: Clock) -> None:
        remote.statuses[UID] = _feedback_status(clock.timestamp - 60)
        comments = CommentsFeedbackStrategy()
        comments.save_draft(ASSIGNMENT_ID, UID, "Well argued.")
        registry = PluginRegistry(feedback={"comments": comments})

        async def run():
            async with offline_store() as store:
                await _queue_grade(store, 75)
                result = await sync_factory(store, remote, registry=registry).sync(ASSIGNMENT_ID)
                with pytest.raises(NotFoundError):
                    await store.get_grade(ASSIGNMENT_ID, UID)
                return result, await store.list_grades(ASSIGNMENT_ID)

        result, remaining = asyncio.run(run())

        assert result.updated is True
        assert remaining == []
        [(assignment_id, user_id, form)] = remote.called("submit_grading_form")
        assert (assignment_id, user_id) == (ASSIGNMENT_ID, UID)
        assert form.grade == 75
        assert form.workflow_state == "graded"
        assert form.plugin_data == {"assignfeedbackcomments_editor": {"text": "Well argued.", "format": 1}}
        assert comments.get_draft(ASSIGNMENT_ID, UID) is None

    def test_graded_on_site_after_local_decision(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory, clock: Clock
    ) -> None:
        remote.statuses[UID] = _feedback_status(clock.timestamp + 60)

        async def run():
            async with offline_store() as store:
                await _queue_grade(store)
                result = await sync_factory(store, remote).sync(ASSIGNMENT_ID)
                with pytest.raises(NotFoundError):
                    await store.get_grade(ASSIGNMENT_ID, UID)
                return result, await store.list_grades(ASSIGNMENT_ID)

        result, remaining = asyncio.run(run())

        assert result.updated is False
        assert result.warnings == [_deleted(GRADE_MODIFIED)]
        assert remaining == []
        assert remote.called("submit_grading_form") == []

    @pytest.mark.parametrize(
        "tie_break, pushed",
        [
            (TieBreak.Local, True),
            (TieBreak.Server, False),
        ],
    )
    def test_equal_timestamps(
        self,
        offline_store: OpenStore,
        remote: FakeRemote,
        sync_factory: SyncFactory,
        clock: Clock,
        tie_break: TieBreak,
        pushed: bool,
    ) -> None:
        remote.statuses[UID] = _feedback_status(clock.timestamp)

        async def run():
            async with offline_store() as store:
                await _queue_grade(store)
                return await sync_factory(store, remote, tie_break=tie_break).sync(ASSIGNMENT_ID)

        result = asyncio.run(run())

        assert result.updated is pushed
        assert len(remote.called("submit_grading_form")) == (1 if pushed else 0)

    def test_gradebook_override(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory, clock: Clock
    ) -> None:
        """A gradebook grade given after the local decision replaces the queued grade."""
        remote.statuses[UID] = _feedback_status(None)
        remote.grade_items[UID] = [GradeItem(item_number=0, graded_date=clock.timestamp + 30, grade="90")]

        async def run():
            async with offline_store() as store:
                await _queue_grade(store, 75)
                return await sync_factory(store, remote).sync(ASSIGNMENT_ID)

        asyncio.run(run())

        [(_, _, form)] = remote.called("submit_grading_form")
        assert form.grade == 90

    def test_rejected_by_site(self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory) -> None:
        remote.warnings["submit_grading_form"] = [RemoteWarning(message="Invalid grade.")]

        async def run():
            async with offline_store() as store:
                await _queue_grade(store)
                result = await sync_factory(store, remote).sync(ASSIGNMENT_ID)
                return result, await store.list_grades(ASSIGNMENT_ID)

        result, remaining = asyncio.run(run())

        assert result.updated is False
        assert result.warnings == [_deleted("Invalid grade.")]
        assert remaining == []

    def test_blocked_grade_is_skipped(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """A grade open in an editor stays queued and its user is reported; other grades go through."""

        async def run():
            async with offline_store() as store:
                await _queue_grade(store)
                await _queue_grade(store, user_id=OTHER_UID)
                sync = sync_factory(store, remote)
                sync.locks.block("mod_assign", AssignmentSync.grade_sync_id(ASSIGNMENT_ID, UID), "grading")
                result = await sync.sync(ASSIGNMENT_ID)
                return result, await store.list_grades(ASSIGNMENT_ID)

        result, remaining = asyncio.run(run())

        assert result.blocked_user_ids == [UID]
        assert result.updated is True
        assert [g.user_id for g in remaining] == [UID]
        assert [args[1] for args in remote.called("submit_grading_form")] == [OTHER_UID]

    @pytest.mark.parametrize("recheck, pushed", [(True, False), (False, True)])
    def test_block_taken_while_preparing(
        self,
        offline_store: OpenStore,
        remote: FakeRemote,
        sync_factory: SyncFactory,
        recheck: bool,
        pushed: bool,
    ) -> None:
        """With the recheck enabled, a block taken mid-item still stops the write."""
        remote.statuses[UID] = _feedback_status(None)

        class BlockingComments(object):
            def __init__(self, sync: AssignmentSync):
                self.sync = sync

            async def prepare_feedback_payload(self, assignment_id, user_id, plugin, pending):
                self.sync.locks.block("mod_assign", AssignmentSync.grade_sync_id(assignment_id, user_id), "grading")
                return {}

            async def discard_draft(self, assignment_id, user_id, plugin):
                return None

        async def run():
            async with offline_store() as store:
                await _queue_grade(store)
                sync = sync_factory(store, remote, registry=PluginRegistry(), recheck_grade_block_before_write=recheck)
                sync.plugins.registry.register_feedback("comments", BlockingComments(sync))
                return await sync.sync(ASSIGNMENT_ID)

        result = asyncio.run(run())

        assert result.updated is pushed
        assert result.blocked_user_ids == ([] if pushed else [UID])

    def test_sync_single_grade(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """Synchronizing one user's grade leaves the rest of the assignment queued."""
        remote.statuses[UID] = _submission_status(100)

        async def run():
            async with offline_store() as store:
                await _queue_grade(store)
                await _queue_grade(store, user_id=OTHER_UID)
                await _queue_submission(store)
                result = await sync_factory(store, remote).sync_grade(ASSIGNMENT_ID, UID)
                return result, await store.list_grades(ASSIGNMENT_ID), await store.list_submissions(ASSIGNMENT_ID)

        result, grades, submissions = asyncio.run(run())

        assert result.updated is True
        assert [g.user_id for g in grades] == [OTHER_UID]
        assert len(submissions) == 1
        assert remote.called("save_submission") == []

    def test_sync_single_grade_nothing_queued(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        async def run():
            async with offline_store() as store:
                return await sync_factory(store, remote).sync_grade(ASSIGNMENT_ID, UID)

        assert asyncio.run(run()) == SyncResult()
        assert remote.calls == []

    def test_grade_sync_overlapping_assignment_run(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """A grade synchronized on its own is not pushed a second time by an assignment run."""
        remote.statuses[UID] = _feedback_status(None)

        async def run():
            remote.gate = asyncio.Event()
            async with offline_store() as store:
                await _queue_grade(store, 75)
                sync = sync_factory(store, remote)

                single = asyncio.ensure_future(sync.sync_grade(ASSIGNMENT_ID, UID))
                whole = asyncio.ensure_future(sync.sync_assignment(ASSIGNMENT_ID))
                await asyncio.sleep(0)

                remote.gate.set()
                results = await asyncio.gather(single, whole)
                return results, await store.list_grades(ASSIGNMENT_ID)

        (single, whole), remaining = asyncio.run(run())

        assert len(remote.called("submit_grading_form")) == 1
        assert single.updated is True
        assert whole.updated is False
        assert remaining == []

    def test_concurrent_grade_syncs_share_one_run(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        remote.statuses[UID] = _feedback_status(None)

        async def run():
            remote.gate = asyncio.Event()
            async with offline_store() as store:
                await _queue_grade(store)
                sync = sync_factory(store, remote)

                first = asyncio.ensure_future(sync.sync_grade(ASSIGNMENT_ID, UID))
                second = asyncio.ensure_future(sync.sync_grade(ASSIGNMENT_ID, UID))
                await asyncio.sleep(0)

                remote.gate.set()
                return await asyncio.gather(first, second)

        a, b = asyncio.run(run())

        assert a is b
        assert len(remote.called("submit_grading_form")) == 1

    def test_grade_held_by_assignment_run(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """While an assignment run works on a user's grade, a grade sync for that user is refused."""
        remote.statuses[UID] = _feedback_status(None)

        async def run():
            async with offline_store() as store:
                await _queue_grade(store)
                sync = sync_factory(store, remote)
                sync_id = AssignmentSync.grade_sync_id(ASSIGNMENT_ID, UID)
                with sync.locks.blocking("mod_assign", sync_id, "assignment sync"):
                    with pytest.raises(SyncBlockedError):
                        await sync.sync_grade(ASSIGNMENT_ID, UID)
                return await store.list_grades(ASSIGNMENT_ID)

        assert len(asyncio.run(run())) == 1
        assert remote.calls == []


class TestRun(object):
    """Whole-assignment run behavior."""

    def test_blocked_assignment(self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory) -> None:
        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                sync = sync_factory(store, remote)
                sync.locks.block("mod_assign", ASSIGNMENT_ID, "editing")
                with pytest.raises(SyncBlockedError):
                    await sync.sync(ASSIGNMENT_ID)
                return sync.scheduler.state(ASSIGNMENT_ID), await store.list_submissions(ASSIGNMENT_ID)

        state, remaining = asyncio.run(run())

        assert state is SyncState.Failed
        assert len(remaining) == 1
        assert remote.calls == []

    def test_offline_with_queued_work(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        async def run():
            async with offline_store() as store:
                await _queue_grade(store)
                sync = sync_factory(store, remote, connectivity=StaticConnectivity(online=False))
                with pytest.raises(NetworkError):
                    await sync.sync(ASSIGNMENT_ID)
                return await store.list_grades(ASSIGNMENT_ID)

        assert len(asyncio.run(run())) == 1
        assert remote.calls == []

    def test_concurrent_calls_share_one_run(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        remote.statuses[UID] = _submission_status(100)

        async def run():
            remote.gate = asyncio.Event()
            async with offline_store() as store:
                await _queue_submission(store)
                sync = sync_factory(store, remote)

                first = asyncio.ensure_future(sync.sync_assignment(ASSIGNMENT_ID))
                second = asyncio.ensure_future(sync.sync_assignment(ASSIGNMENT_ID))
                waiter = asyncio.ensure_future(sync.wait_for_sync(ASSIGNMENT_ID))
                await asyncio.sleep(0)
                in_flight = sync.scheduler.is_syncing(ASSIGNMENT_ID)

                remote.gate.set()
                results = await asyncio.gather(first, second, waiter)
                return in_flight, results

        in_flight, (a, b, waited) = asyncio.run(run())

        assert in_flight is True
        assert a is b
        assert waited is a
        assert len(remote.called("get_assignment")) == 1
        assert len(remote.called("save_submission")) == 1

    def test_invalidates_after_partial_failure(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """What already reached the site is invalidated even when the run aborts."""
        remote.statuses[UID] = _submission_status(100)
        remote.errors["submit_grading_form"] = ConnectionError("connection reset")

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                await _queue_grade(store, user_id=OTHER_UID)
                with pytest.raises(ConnectionError):
                    await sync_factory(store, remote).sync(ASSIGNMENT_ID)
                return (
                    await store.list_submissions(ASSIGNMENT_ID),
                    await store.list_grades(ASSIGNMENT_ID),
                    await store.get_sync_time("mod_assign", ASSIGNMENT_ID),
                )

        submissions, grades, synced_at = asyncio.run(run())

        assert submissions == []
        assert len(grades) == 1
        assert synced_at is None
        assert remote.called("invalidate_content") == [(MODULE_ID, COURSE_ID)]

    def test_invalidation_failure_is_ignored(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        remote.statuses[UID] = _submission_status(100)
        remote.errors["invalidate_content"] = RuntimeError("cache unavailable")

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                return await sync_factory(store, remote).sync(ASSIGNMENT_ID)

        assert asyncio.run(run()).updated is True

    def test_activity_failure_is_ignored(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        async def run():
            async with offline_store() as store:
                sync = sync_factory(store, remote)
                with patch.object(sync.activity, "sync_activity", side_effect=RuntimeError("log unavailable")):
                    return await sync.sync(ASSIGNMENT_ID)

        assert asyncio.run(run()) == SyncResult()

    def test_throttled_when_not_forced(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory, clock: Clock
    ) -> None:
        async def run():
            async with offline_store() as store:
                sync = sync_factory(store, remote)
                await sync.sync(ASSIGNMENT_ID)
                skipped = await sync.sync(ASSIGNMENT_ID, force=False)
                clock.advance(minutes=6)
                ran = await sync.sync(ASSIGNMENT_ID, force=False)
                return skipped, ran

        skipped, ran = asyncio.run(run())

        assert skipped is None
        assert ran == SyncResult()

    def test_has_data_to_sync(self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory) -> None:
        async def run():
            async with offline_store() as store:
                sync = sync_factory(store, remote)
                before = await sync.has_data_to_sync(ASSIGNMENT_ID)
                await _queue_grade(store)
                return before, await sync.has_data_to_sync(ASSIGNMENT_ID)

        assert asyncio.run(run()) == (False, True)

    def test_grade_sync_id(self) -> None:
        assert AssignmentSync.grade_sync_id(AssignmentID(11), UserID(7)) == "assignGrade#11#7"

    def test_blocked_caller_leaves_running_state(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """A caller refused by a block does not touch the state of the run already in flight."""
        remote.statuses[UID] = _submission_status(100)

        async def run():
            remote.gate = asyncio.Event()
            async with offline_store() as store:
                await _queue_submission(store)
                sync = sync_factory(store, remote)
                first = asyncio.ensure_future(sync.sync_assignment(ASSIGNMENT_ID))
                await asyncio.sleep(0)

                with sync.locks.blocking("mod_assign", ASSIGNMENT_ID, "editing"):
                    with pytest.raises(SyncBlockedError):
                        await sync.sync_assignment(ASSIGNMENT_ID)
                    during = sync.scheduler.state(ASSIGNMENT_ID)

                remote.gate.set()
                await first
                return during, sync.scheduler.state(ASSIGNMENT_ID)

        during, after = asyncio.run(run())

        assert during is SyncState.Running
        assert after is SyncState.Success

    def test_unreadable_queue_is_reported(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        """Queued data that cannot be read shows up as a warning and the run is retried later."""
        remote.statuses[UID] = _submission_status(100)

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                sync = sync_factory(store, remote)
                with patch.object(store, "list_grades", side_effect=LocalStorageError("disk error")):
                    result = await sync.sync(ASSIGNMENT_ID)
                return result, await store.get_sync_time("mod_assign", ASSIGNMENT_ID)

        result, synced_at = asyncio.run(run())

        assert result.updated is True
        assert result.warnings == [f"Offline data from Assignment {ASSIGNMENT_ID} could not be read. disk error"]
        assert synced_at is None

    def test_unreadable_queue_with_nothing_else(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        async def run():
            async with offline_store() as store:
                sync = sync_factory(store, remote)
                with patch.object(store, "list_submissions", side_effect=LocalStorageError("disk error")):
                    result = await sync.sync(ASSIGNMENT_ID)
                return result, await store.get_sync_time("mod_assign", ASSIGNMENT_ID)

        result, synced_at = asyncio.run(run())

        assert result.updated is False
        assert len(result.warnings) == 1
        assert synced_at is None
        assert remote.calls == []


class TestEvents(object):
    """Notifications published after runs."""

    def test_manual_sync_broadcast(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        remote.statuses[UID] = _submission_status(200)
        events: list[SyncEvent] = []

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                sync = sync_factory(store, remote)
                sync.events.subscribe(ManualSynced, events.append)
                await sync.sync(ASSIGNMENT_ID, broadcast=True)

        asyncio.run(run())

        assert events == [
            ManualSynced(assignment_id=ASSIGNMENT_ID, warnings=[_deleted(SUBMISSION_MODIFIED)], updated=False)
        ]

    def test_sync_all(self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory) -> None:
        """Every assignment with queued work is attempted; only those that pushed are announced."""
        remote.statuses[UID] = _submission_status(200)
        other = AssignmentID(12)
        blocked = AssignmentID(13)
        events: list[SyncEvent] = []

        async def run():
            async with offline_store() as store:
                await _queue_submission(store)
                await _queue_grade(store, user_id=OTHER_UID, assignment_id=other)
                await _queue_grade(store, user_id=OTHER_UID, assignment_id=blocked)
                sync = sync_factory(store, remote)
                sync.events.subscribe(AutoSynced, events.append)
                sync.locks.block("mod_assign", blocked, "editing")
                return await sync.sync_all()

        results = asyncio.run(run())

        assert set(results) == {ASSIGNMENT_ID, other, blocked}
        assert isinstance(results[ASSIGNMENT_ID], SyncResult)
        assert isinstance(results[other], SyncResult)
        assert isinstance(results[blocked], SyncBlockedError)
        assert [e.assignment_id for e in events] == [other]
        assert isinstance(events[0], AutoSynced)

    def test_failing_handler_does_not_break_sync(
        self, offline_store: OpenStore, remote: FakeRemote, sync_factory: SyncFactory
    ) -> None:
        def explode(event: SyncEvent) -> None:
            raise RuntimeError("listener bug")

        async def run():
            async with offline_store() as store:
                sync = sync_factory(store, remote)
                sync.events.subscribe(ManualSynced, explode)
                return await sync.sync(ASSIGNMENT_ID, broadcast=True)

        assert asyncio.run(run()) == SyncResult()
