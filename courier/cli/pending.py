from __future__ import annotations

import asyncio
import collections

import courier.lib.cli as click
from courier.core import di
from courier.model import AssignmentID, UserID
from courier.storage.offline import OfflineStore


@click.group("pending")
def pending(): ...


@pending.command("list")
@di.inject
def list_(store: OfflineStore = di.Provide["storage.store"]):
    """Show every assignment with queued work, and how much of it."""

    async def run() -> tuple[collections.Counter[int], collections.Counter[int]]:
        try:
            submissions, grades = await store.list_all_submissions(), await store.list_all_grades()
        finally:
            await store.close()
        return (
            collections.Counter(s.assignment_id for s in submissions),
            collections.Counter(g.assignment_id for g in grades),
        )

    submissions, grades = asyncio.run(run())
    if not submissions and not grades:
        click.echo("nothing queued")
        return

    for assignment_id in sorted(set(submissions) | set(grades)):
        click.echo(
            f"assignment {assignment_id}: "
            f"{submissions[assignment_id]} submission(s), {grades[assignment_id]} grade(s)"
        )


@pending.command()
@click.argument("assignment_id", type=int)
@click.option("-u", "--user", "user_id", type=int, default=None, help="only drop rows queued for this user")
@click.option("--grades/--no-grades", default=True, help="also drop queued grades")
@click.confirmation_option(prompt="Queued data will be lost. Continue?")
@di.inject
def discard(
    assignment_id: int,
    user_id: int | None,
    grades: bool,
    store: OfflineStore = di.Provide["storage.store"],
):
    """Drop queued data for an assignment without sending it."""

    async def run() -> int:
        aid = AssignmentID(assignment_id)
        dropped = 0
        try:
            for row in await store.list_submissions(aid):
                if user_id is None or row.user_id == user_id:
                    await store.delete_submission(aid, UserID(row.user_id))
                    dropped += 1
            if grades:
                for row in await store.list_grades(aid):
                    if user_id is None or row.user_id == user_id:
                        await store.delete_grade(aid, UserID(row.user_id))
                        dropped += 1
        finally:
            await store.close()
        return dropped

    click.echo(f"dropped {asyncio.run(run())} queued row(s)")


command = pending
