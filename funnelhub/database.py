import logging

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from funnelhub.config import settings

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Switch plain PostgreSQL URLs to the async psycopg driver."""
    if url.startswith("postgresql+asyncpg://"):
        return url.replace("postgresql+asyncpg://", "postgresql+psycopg://")
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://")
    return url


def build_engine(url: str, echo: bool = False, **overrides) -> AsyncEngine:
    """
    Create an async engine with pool settings suited to the backend.

    SQLite doesn't support pool settings, so those are only applied for
    server databases. Extra keyword arguments are passed straight through
    to create_async_engine (tests use this to swap the pool class).
    """
    database_url = normalize_database_url(url)

    if database_url.startswith("sqlite"):
        options = {
            "echo": echo,
            "connect_args": {"check_same_thread": False},
        }
    else:
        options = {
            "echo": echo,
            "pool_pre_ping": True,  # Check connection health before use
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "connect_args": {
                "prepare_threshold": None,  # Disable prepared statements for poolers
                "connect_timeout": 30,
            },
        }
    options.update(overrides)
    return create_async_engine(database_url, **options)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the given engine."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Create async session factory
async_session_factory = build_session_factory(engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all tables registered on Base.metadata."""
    # Import all models to register them with Base.metadata
    from funnelhub import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready ({len(Base.metadata.tables)} tables)")
