"""
Database engines and session factories.
"""

from sqlalchemy import URL, Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel, create_engine


class SyncSessionManager:
    """
    A manager for synchronous sessions, used by the setup scripts. Expected
    usage:

    manager = SyncSessionManager(conn_url)

    with manager.session() as conn:
        organization = conn.get(Organization, "org-1")
    """

    connection_url: URL | str
    engine: Engine
    session: sessionmaker

    def __init__(self, connection_url: URL | str, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_engine(self.connection_url, echo=echo)
        self.session = sessionmaker(self.engine)

    def create_all(self):
        """
        Run the `SQLModel.metadata.create_all` migration tool. Required
        to set up the table schema.
        """
        # Table classes register themselves on import.
        from groupadmin.database.meta import ALL_TABLES  # noqa: F401

        with self.engine.begin() as conn:
            SQLModel.metadata.create_all(conn)


class AsyncSessionManager:
    """
    A manager for asynchronous sessions. Every request gets its own session
    and transaction:

    manager = AsyncSessionManager(conn_url)

    async with manager.session() as conn:
        async with conn.begin():
            res = await groups_service.get_group(
                group_id="12", organization_id="org-1", conn=conn, log=log
            )
    """

    connection_url: URL | str
    engine: AsyncEngine
    session: async_sessionmaker

    def __init__(self, connection_url: URL | str, echo: bool = False):
        self.connection_url = connection_url
        self.engine = create_async_engine(self.connection_url, echo=echo)
        self.session = async_sessionmaker(self.engine, expire_on_commit=False)

    async def create_all(self):
        """
        Run the `SQLModel.metadata.create_all` migration tool. Required
        to set up the table schema.
        """
        from groupadmin.database.meta import ALL_TABLES  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def drop_all(self):
        """
        Run the `SQLModel.metadata.drop_all` deletion method. WARNING: this
        will delete all data in your database; you probably don't want to do this
        unless you are writing a test.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)
