import threading
from contextlib import asynccontextmanager
from logging import Logger
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from propertyhub.core.logger import AppLogger
from propertyhub.core.models import meta


class DatabaseClient:
    def __init__(self, url: str, logger: Logger | None = None):
        self.db_connections = threading.local()
        self.url = url
        self.logger = logger or AppLogger(name="database").get_logger()

    def async_engine(self) -> AsyncEngine:
        if not hasattr(self.db_connections, "engine"):
            self.logger.debug("Starting engine.")
            self.db_connections.engine = create_async_engine(self.url)
            self.logger.debug("Creating database engine finished.")
        return self.db_connections.engine

    def async_session_factory(self) -> async_sessionmaker[AsyncSession]:
        if not hasattr(self.db_connections, "session_factory"):
            self.logger.debug("Starting session factory.")
            engine = self.async_engine()
            self.db_connections.session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
        return self.db_connections.session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        session_factory = self.async_session_factory()
        async with session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Session wrapped in a single transaction, rolled back on any error."""
        session_factory = self.async_session_factory()
        async with session_factory() as session:
            async with session.begin():
                yield session

    async def cleanup(self):
        self.logger.debug("Cleaning database engine.")

        if hasattr(self.db_connections, "engine"):
            await self.db_connections.engine.dispose()
            del self.db_connections.engine
            if hasattr(self.db_connections, "session_factory"):
                del self.db_connections.session_factory
        self.logger.debug("Cleaning database finished.")

    async def create_models(self):
        self.logger.debug("Creating ORM modules.")
        async with self.async_engine().begin() as conn:
            await conn.run_sync(meta.create_all)
        self.logger.debug("Finished creating ORM modules.")
