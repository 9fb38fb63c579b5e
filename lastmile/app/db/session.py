"""
Async engine and session factory.

PostgreSQL (asyncpg) in deployment; SQLite (aiosqlite) works for local runs
and is what the tests use.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from lastmile.app.core.config import settings


def _engine_options() -> dict:
    options = {"echo": settings.db_echo}
    # SQLite ignores pool sizing
    if not settings.database_url.startswith("sqlite"):
        options.update(pool_size=settings.db_pool_size, max_overflow=settings.db_max_overflow)
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """Request-scoped session; endpoints and services commit explicitly."""
    async with AsyncSessionLocal() as session:
        yield session
