"""Database engine, session factory, and declarative base.

All ledger tables share a single DeclarativeBase.  Every request gets its
own session from get_db(); the session is committed when the request
finishes and rolled back on any exception, so each state-changing
operation is applied entirely or not at all.  Cached product views are
dropped only after the commit has succeeded.
"""

from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from trackchain.config import settings
from trackchain.utils.cache import discard_stale_products, flush_stale_products

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=20,
    max_overflow=10,
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base class for every ledger table."""
    pass


@asynccontextmanager
async def unit_of_work(session: AsyncSession):
    """Commit on success, roll back on error, then invalidate stale views."""
    try:
        yield session
        await session.commit()
    except Exception:
        discard_stale_products(session)
        await session.rollback()
        raise
    await flush_stale_products(session)


async def get_db() -> AsyncSession:
    """Yield a request-scoped session wrapped in a unit of work."""
    async with async_session() as session:
        async with unit_of_work(session):
            yield session
