"""
portal/database.py
Async database engine, session factory and table creation
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.pool import StaticPool

from portal.config import settings
from portal.orm.base import Base
import portal.orm  # registers every model on Base.metadata

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    """
    Create an engine suited to the database URL.

    In-memory SQLite lives inside a single connection, so every session
    must share it through StaticPool.
    """
    if ":memory:" in database_url:
        return create_async_engine(
            database_url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    if "sqlite" in database_url.lower():
        return create_async_engine(
            database_url,
            echo=False,
            pool_pre_ping=True,
            connect_args={
                "timeout": 30.0,   # SQLite busy timeout in seconds
            }
        )
    return create_async_engine(
        database_url,
        echo=False,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=3600,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_session_factory(engine)

_shared_lock = None
_shared_loop = None


def shared_connection_lock() -> asyncio.Lock:
    global _shared_lock, _shared_loop
    loop = asyncio.get_running_loop()
    if _shared_lock is None or _shared_loop is not loop:
        _shared_lock = asyncio.Lock()
        _shared_loop = loop
    return _shared_lock


@asynccontextmanager
async def session_scope(factory: async_sessionmaker):
    """
    Open a session from factory.

    On a StaticPool engine every session shares one connection, and
    returning it to the pool rolls back whatever is pending on it, so
    sessions there take turns instead of interleaving.
    """
    if isinstance(factory.kw["bind"].sync_engine.pool, StaticPool):
        async with shared_connection_lock():
            async with factory() as session:
                yield session
    else:
        async with factory() as session:
            yield session


async def get_db():
    """Dependency for getting async database session"""
    async with session_scope(AsyncSessionLocal) as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind: AsyncEngine = None):
    """Create all tables that do not exist yet."""
    bind = bind or engine
    logger.info("Initializing database...")
    logger.info(f"Database dialect: {bind.url.get_backend_name()}")

    try:
        async with bind.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("✓ Database initialization complete")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise


async def close_db():
    """Close database connection"""
    await engine.dispose()
    logger.info("Database connection closed")
