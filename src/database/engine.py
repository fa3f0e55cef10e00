"""Async engine and session factory.

Postgres gets a sized connection pool; a SQLite URL (local runs) uses the
driver defaults since aiosqlite does not pool.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config import settings


def _engine_options(url: str) -> dict:
    options: dict = {"echo": settings.database_echo}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Services only flush; objects stay usable after the request commits
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
