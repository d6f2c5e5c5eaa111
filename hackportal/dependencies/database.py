import contextlib
import logging
from collections.abc import AsyncIterator
from typing import Any

from pydantic_settings import BaseSettings
from sqlalchemy import NullPool
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from hackportal.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    __abstract__ = True


class DBSettings(BaseSettings):
    echo_sql: bool = False
    pool_size: int = 10
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800  # 30 minutes
    use_null_pool: bool = False


def convert_to_async_url(url: str) -> str:
    """Convert a synchronous database URL to its async driver equivalent.

    Converts:
    - postgresql:// -> postgresql+asyncpg://
    - postgresql+psycopg2:// -> postgresql+asyncpg://
    - sqlite:// -> sqlite+aiosqlite://

    Anything else is returned unchanged.
    """
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql+psycopg2://"):
        return url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def engine_kwargs_for(url: str, db_settings: DBSettings) -> dict[str, Any]:
    """Build engine keyword arguments; sqlite gets no pool sizing."""
    kwargs: dict[str, Any] = {"echo": db_settings.echo_sql}
    if url.startswith("sqlite") or db_settings.use_null_pool:
        if db_settings.use_null_pool:
            kwargs["poolclass"] = NullPool
        return kwargs
    kwargs.update(
        {
            "pool_size": db_settings.pool_size,
            "max_overflow": db_settings.max_overflow,
            "pool_timeout": db_settings.pool_timeout,
            "pool_recycle": db_settings.pool_recycle,
        }
    )
    return kwargs


class DatabaseSessionManager:
    _engine: AsyncEngine | None
    _sessionmaker: async_sessionmaker | None

    def __init__(self, host: str, engine_kwargs: dict[str, Any] | None = None):
        if not host or not host.strip():
            raise ValueError("DATABASE_URL is empty")
        self._host = convert_to_async_url(host)
        self._engine_kwargs = engine_kwargs or {}
        self._engine = None
        self._sessionmaker = None

    async def configure(self) -> None:
        if self._engine is not None:
            return  # Already configured

        self._engine = create_async_engine(self._host, **self._engine_kwargs)
        self._sessionmaker = async_sessionmaker(autocommit=False, bind=self._engine, expire_on_commit=False)

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()

        self._engine = None
        self._sessionmaker = None

    async def create_all(self) -> None:
        """Create all tables. Used for local development and tests; production uses alembic."""
        import hackportal.models  # noqa: F401  registers the tables on Base.metadata

        async with self.connect() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @contextlib.asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        if self._engine is None:
            raise Exception("DatabaseSessionManager is not initialized")

        async with self._engine.begin() as connection:
            try:
                yield connection
            except Exception:
                await connection.rollback()
                raise

    @contextlib.asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._sessionmaker is None:
            raise Exception("DatabaseSessionManager is not initialized")

        session = self._sessionmaker()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Run a block inside a single transaction.

        Commits when the block exits normally, rolls back and re-raises on any
        exception. The session is closed on every exit path.
        """
        async with self.session() as session:
            async with session.begin():
                yield session


def build_sessionmanager(settings: Settings, db_settings: DBSettings | None = None) -> DatabaseSessionManager:
    db_settings = db_settings or DBSettings()
    url = convert_to_async_url(settings.database_url)
    return DatabaseSessionManager(url, engine_kwargs_for(url, db_settings))


@contextlib.asynccontextmanager
async def initialize_db(manager: DatabaseSessionManager, create_tables: bool = False) -> AsyncIterator[DatabaseSessionManager]:
    await manager.configure()
    if create_tables:
        logger.info("Creating database tables")
        await manager.create_all()
    yield manager
    await manager.close()
