"""
HealthRisk database access

Async database access on SQLAlchemy 2.0. A `Database` instance owns the
engine and session factory; it is created once at process start and passed
to the components that query.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import pandas as pd
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import DatabaseSettings, get_config
from .logging import get_logger

logger = get_logger(__name__)


class Database:
    """Engine plus session factory with an explicit lifecycle"""

    def __init__(self, settings: Optional[DatabaseSettings] = None):
        self.settings = settings or get_config().database
        self.engine = create_async_engine(
            self.settings.url,
            echo=self.settings.echo,
            pool_size=self.settings.pool_size,
            max_overflow=self.settings.max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        self._session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info(f"Database engine created: {self.settings.url.split('@')[-1]}")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a read-only session

        Usage:
            async with database.session() as session:
                result = await session.execute(...)
        """
        async with self._session_maker() as session:
            try:
                yield session
            finally:
                # Nothing here writes; never leave a transaction open
                await session.rollback()

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def close(self) -> None:
        """Dispose of the connection pool"""
        await self.engine.dispose()
        logger.info("Database engine disposed")


async def fetch_frame(session, statement) -> pd.DataFrame:
    """Execute a statement and return its rows as a DataFrame."""
    result = await session.execute(statement)
    return pd.DataFrame(result.fetchall(), columns=list(result.keys()))
