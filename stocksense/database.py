"""Async engine and sessions for the simulator's database.

SQLite (aiosqlite) is the development default; Postgres (asyncpg) is used
when a server URL is configured.
"""
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from stocksense.config import settings


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    options = {"echo": echo}
    if not url.startswith("sqlite"):
        # Server connections can be dropped between market loop ticks
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


engine = make_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """Request-scoped session; commits when the route returns, rolls back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create any missing tables. Alembic owns schema changes after that."""
    from stocksense.models.base import Base
    import stocksense.models.all  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
