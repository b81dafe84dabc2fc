from __future__ import annotations

import sqlalchemy.pool
from dependency_injector.containers import DeclarativeContainer
from dependency_injector.providers import Configuration, Object, Provider, Resource, Singleton
from sqlalchemy.engine.url import URL as DSN
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

import courier.lib.json as json
from courier.model import UserID
from courier.storage.offline import OfflineStore

from ..config.storage import OfflineStoreSettings
from ..provider import LoggingProvider, TimestampProvider


def provide_engine(config: OfflineStoreSettings, logging: LoggingProvider) -> AsyncEngine:
    logger = logging.get_logger()

    if config.path is None:
        # a single shared connection, otherwise every checkout sees a fresh empty database
        engine = create_async_engine(
            DSN.create(config.driver),
            echo=config.echo,
            poolclass=sqlalchemy.pool.StaticPool,
            connect_args={"check_same_thread": False},
            json_serializer=json.dumps,
            json_deserializer=json.loads,
        )
    else:
        config.path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(
            DSN.create(config.driver, database=str(config.path)),
            echo=config.echo,
            json_serializer=json.dumps,
            json_deserializer=json.loads,
        )

    logger.info(
        "initialized SQLAlchemy engine",
        extra={
            "driver": config.driver,
            "database": str(config.path) if config.path else ":memory:",
        },
    )
    return engine


def provide_store(engine: AsyncEngine, user_id: int | None, utcnow: TimestampProvider) -> OfflineStore:
    return OfflineStore(engine, default_user_id=UserID(user_id) if user_id is not None else None, utcnow=utcnow)


class StorageContainer(DeclarativeContainer):
    config = Configuration(strict=True)
    logging: Provider[LoggingProvider] = Resource()
    user_id: Provider[int | None] = Object(None)
    utcnow: Provider[TimestampProvider] = Object()

    engine: Provider[AsyncEngine] = Singleton(
        provide_engine, config=config.offline.as_(OfflineStoreSettings), logging=logging
    )
    store: Provider[OfflineStore] = Singleton(provide_store, engine=engine, user_id=user_id, utcnow=utcnow)
