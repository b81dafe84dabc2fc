"""Pytest fixtures for courier tests.

Tests drive coroutines with `asyncio.run` from plain test methods. An
offline store is bound to the event loop it was first used on, so stores
are handed out as async context managers and opened inside the test's
coroutine:

    def test_something(self, offline_store, clock):
        async def run():
            async with offline_store() as store:
                ...

        asyncio.run(run())
"""

from __future__ import annotations

import contextlib
import datetime
import os
import typing as t
from pathlib import Path

import pydantic as p
import pytest
import sqlalchemy.pool
from fakes import ASSIGNMENT_ID, Clock, COURSE_ID, FakeRemote, MODULE_ID
from sqlalchemy.engine.url import URL as DSN
from sqlalchemy.ext.asyncio import create_async_engine

import courier
import courier.lib.json as json
from courier.core import CourierContainer
from courier.model import Assignment, DeploymentEnvironment, TieBreak, UserID
from courier.plugin import builtin_registry, PluginDataGateway, PluginRegistry
from courier.remote import CachingGateway
from courier.storage.offline import OfflineStore
from courier.sync.connectivity import StaticConnectivity
from courier.sync.events import EventBus
from courier.sync.lock import SyncLockService
from courier.sync.orchestrator import AssignmentSync
from courier.sync.resolver import ConflictResolver
from courier.sync.scheduler import SyncScheduler


@pytest.fixture(scope="session")
def container() -> t.Generator[CourierContainer]:
    """Boot the DI container once, from the repository's Test configuration."""
    ct = CourierContainer()
    root = Path(os.path.dirname(courier.__file__)).parent

    CourierContainer.boot(
        ct,
        debug=True,
        env=DeploymentEnvironment.Test,
        config_root=p.FileUrl(f"file://{root}/config"),
        override=(),
    )

    yield ct

    ct.shutdown_resources()


@pytest.fixture
def clock() -> Clock:
    return Clock(datetime.datetime(2026, 1, 1, tzinfo=datetime.UTC))


@pytest.fixture
def offline_store(clock: Clock) -> t.Callable[..., t.AsyncContextManager[OfflineStore]]:
    @contextlib.asynccontextmanager
    async def open_store(default_user_id: int | None = None) -> t.AsyncIterator[OfflineStore]:
        engine = create_async_engine(
            DSN.create("sqlite+aiosqlite"),
            poolclass=sqlalchemy.pool.StaticPool,
            connect_args={"check_same_thread": False},
            json_serializer=json.dumps,
            json_deserializer=json.loads,
        )
        store = OfflineStore(
            engine,
            default_user_id=UserID(default_user_id) if default_user_id is not None else None,
            utcnow=clock,
        )
        try:
            yield store
        finally:
            await store.close()

    return open_store


@pytest.fixture
def assignment() -> Assignment:
    return Assignment(
        assignment_id=ASSIGNMENT_ID,
        course_id=COURSE_ID,
        module_id=MODULE_ID,
        name="Essay",
    )


@pytest.fixture
def remote(assignment: Assignment) -> FakeRemote:
    return FakeRemote(assignment)


@pytest.fixture
def sync_factory(clock: Clock) -> t.Callable[..., AssignmentSync]:
    """Build an `AssignmentSync` around a store and a fake site."""

    def build(
        store: OfflineStore,
        remote: FakeRemote,
        *,
        registry: PluginRegistry | None = None,
        connectivity: StaticConnectivity | None = None,
        tie_break: TieBreak = TieBreak.Local,
        recheck_grade_block_before_write: bool = False,
        min_interval: datetime.timedelta = datetime.timedelta(minutes=5),
    ) -> AssignmentSync:
        return AssignmentSync(
            store=store,
            gateway=CachingGateway(remote),
            plugins=PluginDataGateway(registry or builtin_registry()),
            locks=SyncLockService(),
            scheduler=SyncScheduler(store, component="mod_assign", min_interval=min_interval, utcnow=clock),
            resolver=ConflictResolver(tie_break),
            connectivity=connectivity or StaticConnectivity(),
            events=EventBus(),
            recheck_grade_block_before_write=recheck_grade_block_before_write,
        )

    return build
