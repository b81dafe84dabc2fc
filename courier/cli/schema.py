from __future__ import annotations

import asyncio

import courier.lib.cli as click
from courier.core import di
from courier.storage.offline import OfflineStore


@click.group("schema")
def schema(): ...


@schema.command()
@di.inject
def create(store: OfflineStore = di.Provide["storage.store"]):
    """Create the offline queue tables if they do not exist yet."""

    async def run() -> None:
        try:
            await store.create_schema()
        finally:
            await store.close()

    asyncio.run(run())
    click.echo(f"offline schema ready at {store.engine.url}")


command = schema
