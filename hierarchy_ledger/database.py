"""
Database engine and session factory.

SQLite engines are switched to ``BEGIN IMMEDIATE`` so that every unit takes
the write lock up front: two transfers from the same account then serialize
instead of failing on lock upgrade.
"""

from typing import Any

from loguru import logger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from hierarchy_ledger.config.settings import Settings, settings as default_settings
from hierarchy_ledger.models.base import Base


# Seconds a SQLite connection waits on a locked database
SQLITE_BUSY_TIMEOUT = 30


def is_sqlite(url: str) -> bool:
    """True for sqlite URLs."""
    return url.startswith("sqlite")


def create_engine(settings: Settings | None = None, **kwargs: Any) -> AsyncEngine:
    """
    Create the async engine.

    Args:
        settings: Settings override
        **kwargs: Extra keyword arguments for create_async_engine

    Returns:
        AsyncEngine
    """
    settings = settings or default_settings
    url = settings.database_url

    if is_sqlite(url):
        kwargs.setdefault("connect_args", {"timeout": SQLITE_BUSY_TIMEOUT})
    else:
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_async_engine(url, echo=settings.database_echo, **kwargs)

    if is_sqlite(url):
        _enable_sqlite_immediate_transactions(engine)

    logger.debug(
        "Database engine created",
        extra={"dialect": engine.dialect.name},
    )
    return engine


def _enable_sqlite_immediate_transactions(engine: AsyncEngine) -> None:
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the session factory used by NetworkService.

    Args:
        engine: Async engine

    Returns:
        Session factory
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create all tables from model metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")
