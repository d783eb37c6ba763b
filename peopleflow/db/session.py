from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from peopleflow.core.config import settings


class DatabaseManager:
    """
    Owns the async engine and the session factory built on it.

    Encapsulates database connection setup and session creation so tests can
    build their own manager against a throwaway database.
    """

    def __init__(self, db_url: str, **engine_kwargs):
        """
        Args:
            db_url (str): SQLAlchemy URL with an async driver (asyncpg in production).
            **engine_kwargs: Extra options forwarded to create_async_engine.
        """
        if db_url.startswith("postgresql"):
            engine_kwargs.setdefault("pool_size", settings.DB_POOL_SIZE)
            engine_kwargs.setdefault("max_overflow", settings.DB_MAX_OVERFLOW)

        self._engine: AsyncEngine = create_async_engine(
            db_url,
            pool_pre_ping=True,
            echo=settings.DB_ECHO,
            **engine_kwargs,
        )

        self._async_session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
            bind=self._engine,
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def async_session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._async_session_factory

    async def dispose(self) -> None:
        """Close every pooled connection. Called on application shutdown."""
        await self._engine.dispose()


db_manager = DatabaseManager(settings.ASYNC_DATABASE_URL)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The session is closed when the request finishes, regardless of whether an
    exception occurred; uncommitted work is rolled back on close.

    Yields:
        AsyncSession: session bound to the application engine.
    """
    async with db_manager.async_session_factory() as session:
        yield session
