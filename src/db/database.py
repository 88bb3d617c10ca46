from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from config.settings import settings
from src.models.base import Base


def build_engine(database_url: str) -> AsyncEngine:
    """Async engine for the coins store.

    SQLite (tests, local runs) gets the dialect's default pool; pool sizing
    only applies to server databases.
    """
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=False)
    return create_async_engine(
        database_url,
        echo=False,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url)
async_session_factory = build_session_factory(engine)


async def init_db(target: AsyncEngine | None = None) -> None:
    """Create missing tables (idempotent)."""
    async with (target or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(target: AsyncEngine | None = None) -> None:
    await (target or engine).dispose()
