"""
Database connection and session management.

A single pool is shared by every tenant. Tenant context never lives on a
connection: it is set per transaction by app.core.scope.
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import get_settings

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_pre_ping=True,
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for unscoped sessions.

    Only for tables outside tenant scope (the public org list). Tenant data
    goes through app.core.scope.with_scope.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping_database() -> bool:
    """Return True if a connection can be borrowed and answers ``select 1``."""
    async with engine.connect() as conn:
        await conn.execute(text("select 1"))
    return True
