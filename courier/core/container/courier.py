from __future__ import annotations

import datetime
import types
from pathlib import Path

import pydantic as p
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Container, Dependency, Object, Provider, Resource, \
    Singleton

import courier
from courier.model import BaseModel, DeploymentEnvironment
from courier.remote import RemoteGateway
from courier.sync.activity import ActivityLog, NullActivityLog
from courier.sync.connectivity import Connectivity, StaticConnectivity

from ..config import Settings
from ..di import NotReady
from ..provider import LoggingProvider, TimestampProvider
from .storage import StorageContainer
from .sync import SyncContainer


class BootConfiguration(BaseModel):
    debug: bool
    env: DeploymentEnvironment
    config_root: p.AnyUrl
    override: tuple[str, ...]


class CourierContainer(DeclarativeContainer):
    config: Configuration = Configuration()

    debug: Provider[bool] = Singleton(bool)
    env: Provider[DeploymentEnvironment] = Singleton(DeploymentEnvironment)
    root: Object[NotReady | Path] = Object(NotReady())

    logging: Provider[LoggingProvider] = Resource(LoggingProvider, config=config.logging, debug=debug)
    utcnow: Provider[TimestampProvider] = Object(lambda: datetime.datetime.now(datetime.UTC))

    # the site and the network probe belong to the embedding application
    remote: Provider[RemoteGateway] = Dependency()
    connectivity: Provider[Connectivity] = Singleton(StaticConnectivity)
    activity: Provider[ActivityLog] = Singleton(NullActivityLog)

    storage: Provider[StorageContainer] = Container(
        StorageContainer, config=config.storage, logging=logging, user_id=config.sync.user_id, utcnow=utcnow
    )
    sync: Provider[SyncContainer] = Container(
        SyncContainer,
        config=config.sync,
        store=storage.provided.store.call(),
        remote=remote,
        connectivity=connectivity,
        activity=activity,
        utcnow=utcnow,
    )

    _boot_config: Provider[BootConfiguration | NotReady] = Object(NotReady())

    @staticmethod
    def boot(
        ct: CourierContainer,
        /,
        debug: bool,
        env: DeploymentEnvironment,
        config_root: p.FileUrl,
        override: tuple[str, ...] | None = None,
        wiring: tuple[str | types.ModuleType, ...] | None = None,
    ):
        """Load settings for `env` from `config_root`, start logging and wire the CLI modules."""
        if config_root.scheme != "file":
            raise ValueError(f"unsupported scheme for config root: {config_root.scheme}")

        settings = Settings(env=env, root=config_root, override=override or ())
        ct.config.from_pydantic(settings)
        ct.debug.override(debug)
        ct.env.override(env)
        ct.root.override(Path(courier.__file__).parent.parent)
        ct.wire(packages=["courier.cli"], modules=list(wiring or ()))

        logger = ct.logging().get_logger()
        for ov in settings.override:
            key, value = ov.split("=", 1)
            logger.info("overriding configuration parameter", extra={"key": key, "value": value})
        logger.debug("configuration finished", extra={"config": str(config_root), "env": env})

        ct._boot_config.override(
            BootConfiguration(debug=debug, env=env, config_root=config_root, override=settings.override)
        )
