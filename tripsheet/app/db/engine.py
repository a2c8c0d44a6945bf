"""Database engine and session factory."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tripsheet.app.config import Settings, get_settings
from tripsheet.app.db.models import Base


def create_async_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create async SQLAlchemy engine from settings.

    Raises:
        ValueError: If DATABASE_URL is unset or empty.
    """
    database_url = settings.database_url

    if not database_url:
        raise ValueError(
            "DATABASE_URL must be set to a valid connection string. "
            "Please configure the database_url setting."
        )

    # Convert postgresql:// to postgresql+asyncpg://
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif database_url.startswith("sqlite://"):
        database_url = database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)

    return create_async_engine(database_url, pool_pre_ping=True, echo=False)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create sessionmaker for async database sessions.

    Args:
        engine: Async SQLAlchemy engine

    Returns:
        Sessionmaker bound to the engine
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    """Create tables that do not exist yet (local sqlite setups; Postgres uses Alembic)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


_async_engine: AsyncEngine | None = None


def get_async_engine() -> AsyncEngine:
    """Get global async engine instance."""
    global _async_engine
    if _async_engine is None:
        _async_engine = create_async_engine_from_settings(get_settings())
    return _async_engine
