from __future__ import annotations

import datetime

from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Dependency, Object, Provider, Singleton

from courier.model import TieBreak
from courier.plugin import builtin_registry, PluginDataGateway, PluginRegistry
from courier.remote import CachingGateway, RemoteGateway
from courier.service import AssignmentService
from courier.storage.offline import OfflineStore
from courier.sync.activity import ActivityLog
from courier.sync.connectivity import Connectivity
from courier.sync.events import EventBus
from courier.sync.lock import SyncLockService
from courier.sync.orchestrator import AssignmentSync
from courier.sync.resolver import ConflictResolver
from courier.sync.scheduler import SyncScheduler

from ..provider import TimestampProvider


class SyncContainer(DeclarativeContainer):
    config = Configuration(strict=True)
    store: Provider[OfflineStore] = Dependency(instance_of=OfflineStore)
    # supplied by the embedding application
    remote: Provider[RemoteGateway] = Dependency()
    connectivity: Provider[Connectivity] = Dependency()
    activity: Provider[ActivityLog] = Dependency()
    utcnow: Provider[TimestampProvider] = Object()

    gateway: Provider[CachingGateway] = Singleton(CachingGateway, remote=remote)
    locks: Provider[SyncLockService] = Singleton(SyncLockService)
    events: Provider[EventBus] = Singleton(EventBus)
    registry: Provider[PluginRegistry] = Singleton(builtin_registry)
    plugins: Provider[PluginDataGateway] = Singleton(PluginDataGateway, registry=registry)
    resolver: Provider[ConflictResolver] = Singleton(ConflictResolver, tie_break=config.tie_break.as_(TieBreak))
    scheduler: Provider[SyncScheduler] = Singleton(
        SyncScheduler,
        store,
        component=config.component,
        min_interval=Singleton(datetime.timedelta, seconds=config.min_interval_seconds),
        utcnow=utcnow,
    )
    orchestrator: Provider[AssignmentSync] = Singleton(
        AssignmentSync,
        store=store,
        gateway=gateway,
        plugins=plugins,
        locks=locks,
        scheduler=scheduler,
        resolver=resolver,
        connectivity=connectivity,
        events=events,
        activity=activity,
        component=config.component,
        recheck_grade_block_before_write=config.recheck_grade_block_before_write,
    )
    service: Provider[AssignmentService] = Singleton(
        AssignmentService,
        store=store,
        gateway=gateway,
        plugins=plugins,
        connectivity=connectivity,
    )
